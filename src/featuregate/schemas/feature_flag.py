from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..domain.feature import FeatureFlag, FeatureFlagRule

OperatorName = Literal[
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "in",
    "not_in",
    "greater_than",
    "less_than",
]


class FeatureFlagUpsertRequest(BaseModel):
    """Request model for creating or updating a feature flag by name."""

    name: str = Field(min_length=1)
    description: Optional[str] = None
    enabled: Optional[bool] = None
    percentage: Optional[int] = Field(default=None, ge=0, le=100)


class FeatureFlagRuleCreateRequest(BaseModel):
    """Request model for attaching a targeting rule to a flag."""

    attribute: str = Field(min_length=1)
    operator: OperatorName
    value: str


class FeatureFlagEvaluateRequest(BaseModel):
    """Request model for evaluating a feature flag."""

    feature_id: str
    context: Dict[str, Any] = Field(default_factory=dict)


class FeatureFlagBatchEvaluateRequest(BaseModel):
    feature_ids: List[str]
    context: Dict[str, Any] = Field(default_factory=dict)


class FeatureFlagRuleResponse(BaseModel):
    id: Optional[str] = None
    feature_flag_id: Optional[str] = None
    attribute: str
    operator: str
    value: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FeatureFlagResponse(BaseModel):
    """Response model for a feature flag."""

    id: str
    name: str
    description: str = ""
    enabled: bool
    percentage: int
    rules: List[FeatureFlagRuleResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FeatureFlagEvaluationResponse(BaseModel):
    """Response model for feature flag evaluation."""

    feature_id: str
    is_enabled: bool


class FeatureFlagBatchEvaluationResponse(BaseModel):
    results: Dict[str, bool]


class FlagCacheStatusResponse(BaseModel):
    size: int
    has_snapshot: bool
    stale: bool
    age_seconds: Optional[float] = None
    ttl_seconds: float
    refreshing: bool


class FeatureFlagActionResponse(BaseModel):
    """Generic response for feature flag actions."""

    status: str


def rule_to_response(rule: FeatureFlagRule) -> FeatureFlagRuleResponse:
    return FeatureFlagRuleResponse(
        id=rule.id,
        feature_flag_id=rule.feature_flag_id,
        attribute=rule.attribute,
        operator=rule.operator,
        value=rule.value,
        created_at=rule.created_at,
        updated_at=rule.updated_at,
    )


def flag_to_response(flag: FeatureFlag) -> FeatureFlagResponse:
    return FeatureFlagResponse(
        id=flag.id,
        name=flag.name,
        description=flag.description,
        enabled=flag.enabled,
        percentage=flag.percentage,
        rules=[rule_to_response(r) for r in flag.rules],
        created_at=flag.created_at,
        updated_at=flag.updated_at,
    )
