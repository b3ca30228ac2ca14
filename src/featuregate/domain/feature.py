from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from ..logging_config import get_logger
from .rollout import in_bucket

logger = get_logger(__name__)

FeatureContext = Mapping[str, str]

IDENTITY_ATTRIBUTES = ("userId", "sessionId")


class RuleOperator:
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"

    ALL = (
        EQUALS,
        NOT_EQUALS,
        CONTAINS,
        NOT_CONTAINS,
        IN,
        NOT_IN,
        GREATER_THAN,
        LESS_THAN,
    )


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",")]


# leading decimal literal; trailing text is ignored ("2.1.3" reads as 2.1)
_LEADING_NUMBER = re.compile(
    r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


def parse_leading_number(value: str) -> Optional[float]:
    """Read the number at the start of ``value``; ``None`` when there is none.

    Only decimal literals and ``Infinity`` are recognised, so ``"inf"``,
    ``"nan"`` and ``"1_000"`` do not parse as their ``float()`` readings would.
    """
    m = _LEADING_NUMBER.match(value)
    if m is None:
        return None
    return float(m.group(1).replace("Infinity", "inf"))


@dataclass(frozen=True)
class FeatureFlagRule:
    id: Optional[str]
    feature_flag_id: Optional[str]
    attribute: str
    operator: str
    value: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def matches(self, context: FeatureContext) -> bool:
        actual = context.get(self.attribute)
        if actual is None:
            return False
        op = self.operator
        if op == RuleOperator.EQUALS:
            return actual == self.value
        if op == RuleOperator.NOT_EQUALS:
            return actual != self.value
        if op == RuleOperator.CONTAINS:
            return self.value in actual
        if op == RuleOperator.NOT_CONTAINS:
            return self.value not in actual
        if op == RuleOperator.IN:
            return actual in _split_list(self.value)
        if op == RuleOperator.NOT_IN:
            return actual not in _split_list(self.value)
        if op in (RuleOperator.GREATER_THAN, RuleOperator.LESS_THAN):
            left = parse_leading_number(actual)
            right = parse_leading_number(self.value)
            if left is None or right is None:
                logger.debug(
                    "feature_rule_numeric_parse_failed",
                    extra={
                        "rule_id": self.id,
                        "attribute": self.attribute,
                        "operator": op,
                        "actual": actual,
                    },
                )
                return False
            if op == RuleOperator.GREATER_THAN:
                return left > right
            return left < right
        logger.debug(
            "feature_rule_unknown_operator", extra={"rule_id": self.id, "operator": op}
        )
        return False


def rule_matches(rule: FeatureFlagRule, context: FeatureContext) -> bool:
    return rule.matches(context)


@dataclass(frozen=True)
class FeatureFlag:
    id: str
    name: str
    description: str = ""
    enabled: bool = False
    percentage: int = 100
    rules: Tuple[FeatureFlagRule, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def answers_to(self, feature_id: str) -> bool:
        return self.id == feature_id or self.name == feature_id

    def rules_match(self, context: FeatureContext) -> bool:
        # OR across rules; an empty rule list imposes no constraint
        if not self.rules:
            return True
        return any(rule_matches(r, context) for r in self.rules)

    def evaluate(
        self, feature_id: str, context: FeatureContext, anonymous_admit: bool = True
    ) -> bool:
        if not self.enabled:
            return False
        if not self.rules_match(context):
            return False
        if self.percentage >= 100:
            return True
        if self.percentage <= 0:
            return False
        identity = rollout_identity(context)
        if identity:
            return in_bucket(identity, feature_id, self.percentage)
        # TODO: product review of anonymous admission to partial rollouts;
        # flip Settings.flag_anonymous_rollout_admit once a policy is agreed.
        logger.debug(
            "feature_rollout_anonymous",
            extra={"feature_id": feature_id, "admitted": anonymous_admit},
        )
        return anonymous_admit


def rollout_identity(context: FeatureContext) -> Optional[str]:
    for attr in IDENTITY_ATTRIBUTES:
        v = context.get(attr)
        if v:
            return v
    return None


def find_flag(flags: Iterable[FeatureFlag], feature_id: str) -> Optional[FeatureFlag]:
    for f in flags:
        if f.answers_to(feature_id):
            return f
    return None


def decide(
    flags: Sequence[FeatureFlag],
    feature_id: str,
    context: FeatureContext,
    anonymous_admit: bool = True,
) -> bool:
    """Resolve one feature against a flag snapshot. Unknown features are off."""
    flag = find_flag(flags, feature_id)
    if flag is None:
        return False
    return flag.evaluate(feature_id, context, anonymous_admit=anonymous_admit)


def build_context(
    values: Optional[Mapping[str, Any]] = None, **extra: Any
) -> dict[str, str]:
    """Normalize caller-supplied attributes into a string mapping.

    ``None`` values are dropped so they read as absent; everything else is
    stringified.
    """
    ctx: dict[str, str] = {}
    for source in (values or {}, extra):
        for k, v in source.items():
            if v is None:
                continue
            ctx[str(k)] = v if isinstance(v, str) else str(v)
    return ctx
