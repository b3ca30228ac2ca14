"""Ports package - defines interfaces for external dependencies."""

from .repositories import FeatureFlagRepository, FlagSource

__all__ = [
    "FeatureFlagRepository",
    "FlagSource",
]
