"""Repository protocols for data access layer abstraction."""

from .feature_flag import FeatureFlagRepository, FlagSource

__all__ = [
    "FeatureFlagRepository",
    "FlagSource",
]
