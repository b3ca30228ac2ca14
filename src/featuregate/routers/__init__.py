"""Routers package public exports."""

__all__ = [
    "health",
    "feature_flags",
]
