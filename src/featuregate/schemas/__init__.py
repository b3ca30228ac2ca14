"""Schema exports for API request/response models."""

from .feature_flag import (
    FeatureFlagActionResponse,
    FeatureFlagBatchEvaluateRequest,
    FeatureFlagBatchEvaluationResponse,
    FeatureFlagEvaluateRequest,
    FeatureFlagEvaluationResponse,
    FeatureFlagResponse,
    FeatureFlagRuleCreateRequest,
    FeatureFlagRuleResponse,
    FeatureFlagUpsertRequest,
    FlagCacheStatusResponse,
    flag_to_response,
    rule_to_response,
)

__all__ = [
    "FeatureFlagActionResponse",
    "FeatureFlagBatchEvaluateRequest",
    "FeatureFlagBatchEvaluationResponse",
    "FeatureFlagEvaluateRequest",
    "FeatureFlagEvaluationResponse",
    "FeatureFlagResponse",
    "FeatureFlagRuleCreateRequest",
    "FeatureFlagRuleResponse",
    "FeatureFlagUpsertRequest",
    "FlagCacheStatusResponse",
    "flag_to_response",
    "rule_to_response",
]
