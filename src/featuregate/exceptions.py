"""Errors surfaced by the administration side of the flag engine.

Evaluation never raises; only administration calls propagate these.
"""


class FeatureFlagError(Exception):
    """Base class for feature flag administration errors."""


class FeatureFlagNotFoundError(FeatureFlagError):
    def __init__(self, flag_id: str):
        super().__init__(f"feature flag not found: {flag_id}")
        self.flag_id = flag_id


class InvalidFeatureFlagError(FeatureFlagError, ValueError):
    """Raised for out-of-range percentages or unsupported rule operators."""


class FeatureFlagMutationError(FeatureFlagError):
    """A repository write failed; the original error is chained as __cause__."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
