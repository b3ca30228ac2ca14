from typing import Any, Dict, Iterable, Mapping, Optional

from ..domain.feature import build_context, decide
from ..infrastructure.cache.flag_cache import FlagCache
from ..logging_config import get_logger

logger = get_logger(__name__)


def _record_evaluation(result: str) -> None:
    try:
        from ..metrics import FEATURE_FLAG_EVALUATIONS

        if FEATURE_FLAG_EVALUATIONS is not None:
            FEATURE_FLAG_EVALUATIONS.labels(result=result).inc()
    except Exception as e:
        logger.debug("feature_evaluation_metric_failed", extra={"error": str(e)})


class FeatureFlagService:
    """Answers "is this feature on for this caller?" from the flag cache.

    Evaluation is fail-closed: an unknown feature, a broken rule or any
    unexpected error resolves to ``False`` and is never raised to the caller.
    """

    def __init__(self, cache: FlagCache, anonymous_admit: bool = True):
        self.cache = cache
        self.anonymous_admit = anonymous_admit

    async def is_feature_enabled(
        self, feature_id: str, context: Optional[Mapping[str, Any]] = None
    ) -> bool:
        try:
            ctx = build_context(context)
            flags = await self.cache.get_all()
            enabled = decide(flags, feature_id, ctx, anonymous_admit=self.anonymous_admit)
        except Exception as e:
            logger.error(
                "feature_flag_evaluation_failed",
                extra={"feature_id": feature_id, "error": str(e)},
            )
            _record_evaluation("error")
            return False
        _record_evaluation("enabled" if enabled else "disabled")
        return enabled

    async def evaluate_many(
        self, feature_ids: Iterable[str], context: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, bool]:
        """Evaluate several features against a single snapshot read."""
        ids = list(feature_ids)
        try:
            ctx = build_context(context)
            flags = await self.cache.get_all()
        except Exception as e:
            logger.error(
                "feature_flag_batch_evaluation_failed",
                extra={"feature_ids": ids, "error": str(e)},
            )
            return {fid: False for fid in ids}
        results: Dict[str, bool] = {}
        for fid in ids:
            try:
                results[fid] = decide(flags, fid, ctx, anonymous_admit=self.anonymous_admit)
            except Exception as e:
                logger.error(
                    "feature_flag_evaluation_failed",
                    extra={"feature_id": fid, "error": str(e)},
                )
                results[fid] = False
            _record_evaluation("enabled" if results[fid] else "disabled")
        return results
