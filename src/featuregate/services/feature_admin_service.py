"""Service layer for feature flag administration.

Every successful mutation writes through the repository and then invalidates
the flag cache, so the next evaluation reads fresh data. Evaluations already
holding the previous snapshot may still observe the old state.
"""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..domain.feature import FeatureFlag, FeatureFlagRule, RuleOperator
from ..exceptions import (
    FeatureFlagMutationError,
    FeatureFlagNotFoundError,
    InvalidFeatureFlagError,
)
from ..infrastructure.cache.flag_cache import FlagCache
from ..logging_config import get_logger
from ..ports.repositories import FeatureFlagRepository

logger = get_logger(__name__)


def _record_mutation(operation: str) -> None:
    try:
        from ..metrics import FEATURE_FLAG_MUTATIONS

        if FEATURE_FLAG_MUTATIONS is not None:
            FEATURE_FLAG_MUTATIONS.labels(operation=operation).inc()
    except Exception as e:
        logger.debug("feature_mutation_metric_failed", extra={"error": str(e)})


class FeatureFlagAdminService:
    def __init__(self, repo: FeatureFlagRepository, cache: Optional[FlagCache] = None):
        self.repo = repo
        self.cache = cache

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    async def list_flags(self) -> List[FeatureFlag]:
        return await self.repo.list_flags()

    async def get_flag(self, flag_ref: str) -> FeatureFlag:
        """Look a flag up by id, then by name."""
        flag = await self.repo.get_by_id(flag_ref)
        if flag is None:
            flag = await self.repo.get_by_name(flag_ref)
        if flag is None:
            raise FeatureFlagNotFoundError(flag_ref)
        return flag

    async def upsert(
        self,
        name: str,
        description: Optional[str] = None,
        enabled: Optional[bool] = None,
        percentage: Optional[int] = None,
    ) -> FeatureFlag:
        """Create or update the flag called ``name``.

        Omitted ``enabled``/``percentage`` default to a fully-on flag; an
        omitted description leaves the stored one untouched.
        """
        if not name:
            raise InvalidFeatureFlagError("name is required")
        pct = 100 if percentage is None else int(percentage)
        if not 0 <= pct <= 100:
            raise InvalidFeatureFlagError(f"percentage must be within [0, 100], got {pct}")
        try:
            flag = await self.repo.upsert(
                name,
                description=description,
                enabled=True if enabled is None else bool(enabled),
                percentage=pct,
            )
        except SQLAlchemyError as e:
            logger.error("feature_flag_upsert_failed", extra={"name": name, "error": str(e)})
            raise FeatureFlagMutationError("upsert", str(e)) from e
        self._invalidate()
        _record_mutation("upsert")
        logger.info(
            "feature_flag_upserted",
            extra={"flag_id": flag.id, "name": name, "enabled": flag.enabled, "percentage": pct},
        )
        return flag

    async def add_rule(
        self, flag_id: str, attribute: str, operator: str, value: str
    ) -> FeatureFlagRule:
        if operator not in RuleOperator.ALL:
            raise InvalidFeatureFlagError(f"unsupported operator: {operator}")
        if not attribute:
            raise InvalidFeatureFlagError("attribute is required")
        try:
            rule = await self.repo.add_rule(flag_id, attribute, operator, value)
        except SQLAlchemyError as e:
            logger.error("feature_rule_add_failed", extra={"flag_id": flag_id, "error": str(e)})
            raise FeatureFlagMutationError("add_rule", str(e)) from e
        if rule is None:
            raise FeatureFlagNotFoundError(flag_id)
        self._invalidate()
        _record_mutation("add_rule")
        logger.info(
            "feature_rule_added",
            extra={"flag_id": flag_id, "rule_id": rule.id, "attribute": attribute},
        )
        return rule

    async def delete(self, flag_id: str) -> None:
        try:
            deleted = await self.repo.delete(flag_id)
        except SQLAlchemyError as e:
            logger.error("feature_flag_delete_failed", extra={"flag_id": flag_id, "error": str(e)})
            raise FeatureFlagMutationError("delete", str(e)) from e
        if not deleted:
            raise FeatureFlagNotFoundError(flag_id)
        self._invalidate()
        _record_mutation("delete")
        logger.info("feature_flag_deleted", extra={"flag_id": flag_id})
