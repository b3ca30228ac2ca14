"""Pure flag model, rule evaluation and rollout bucketing."""

from .feature import (
    FeatureContext,
    FeatureFlag,
    FeatureFlagRule,
    RuleOperator,
    build_context,
    decide,
    find_flag,
    rule_matches,
)
from .rollout import consistent_hash, in_bucket

__all__ = [
    "FeatureContext",
    "FeatureFlag",
    "FeatureFlagRule",
    "RuleOperator",
    "build_context",
    "consistent_hash",
    "decide",
    "find_flag",
    "in_bucket",
    "rule_matches",
]
