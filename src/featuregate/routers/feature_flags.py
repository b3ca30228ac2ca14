from typing import List

from fastapi import APIRouter, Depends, HTTPException
from starlette import status

from ..deps import get_admin_service, get_feature_service, get_flag_cache
from ..exceptions import FeatureFlagNotFoundError
from ..infrastructure.cache.flag_cache import FlagCache
from ..logging_config import get_logger
from ..schemas.feature_flag import (
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
from ..services.feature_admin_service import FeatureFlagAdminService
from ..services.feature_service import FeatureFlagService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/features", tags=["features"])


@router.get("", response_model=List[FeatureFlagResponse])
async def list_features(svc: FeatureFlagAdminService = Depends(get_admin_service)):
    """List all feature flags with their rules, read straight from the repository."""
    flags = await svc.list_flags()
    logger.debug("feature_flags_listed", extra={"count": len(flags)})
    return [flag_to_response(f) for f in flags]


@router.put("", response_model=FeatureFlagResponse)
async def upsert_feature(
    req: FeatureFlagUpsertRequest,
    svc: FeatureFlagAdminService = Depends(get_admin_service),
):
    """Create a feature flag, or update the one with the same name."""
    logger.info("upserting_feature_flag", extra={"name": req.name})
    flag = await svc.upsert(
        req.name,
        description=req.description,
        enabled=req.enabled,
        percentage=req.percentage,
    )
    return flag_to_response(flag)


@router.post("/evaluate", response_model=FeatureFlagEvaluationResponse)
async def evaluate_feature(
    req: FeatureFlagEvaluateRequest,
    svc: FeatureFlagService = Depends(get_feature_service),
):
    """Evaluate a feature flag for the supplied context."""
    enabled = await svc.is_feature_enabled(req.feature_id, req.context)
    logger.debug(
        "feature_flag_evaluated", extra={"feature_id": req.feature_id, "is_enabled": enabled}
    )
    return FeatureFlagEvaluationResponse(feature_id=req.feature_id, is_enabled=enabled)


@router.post("/evaluate/batch", response_model=FeatureFlagBatchEvaluationResponse)
async def evaluate_features(
    req: FeatureFlagBatchEvaluateRequest,
    svc: FeatureFlagService = Depends(get_feature_service),
):
    results = await svc.evaluate_many(req.feature_ids, req.context)
    return FeatureFlagBatchEvaluationResponse(results=results)


@router.get("/cache", response_model=FlagCacheStatusResponse)
async def cache_status(cache: FlagCache = Depends(get_flag_cache)):
    return FlagCacheStatusResponse(**cache.status())


@router.post("/cache/invalidate", response_model=FeatureFlagActionResponse)
async def invalidate_cache(cache: FlagCache = Depends(get_flag_cache)):
    """Drop the flag snapshot so the next evaluation reads the repository."""
    cache.invalidate()
    logger.info("feature_flag_cache_invalidated_via_api")
    return FeatureFlagActionResponse(status="ok")


@router.get("/{flag_ref}", response_model=FeatureFlagResponse)
async def get_feature(flag_ref: str, svc: FeatureFlagAdminService = Depends(get_admin_service)):
    """Fetch one flag by id or name."""
    try:
        flag = await svc.get_flag(flag_ref)
    except FeatureFlagNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="feature flag not found")
    return flag_to_response(flag)


@router.post(
    "/{flag_id}/rules",
    response_model=FeatureFlagRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_rule(
    flag_id: str,
    req: FeatureFlagRuleCreateRequest,
    svc: FeatureFlagAdminService = Depends(get_admin_service),
):
    """Attach a targeting rule to an existing flag."""
    logger.info(
        "adding_feature_rule",
        extra={"flag_id": flag_id, "attribute": req.attribute, "operator": req.operator},
    )
    rule = await svc.add_rule(flag_id, req.attribute, req.operator, req.value)
    return rule_to_response(rule)


@router.delete("/{flag_id}", response_model=FeatureFlagActionResponse)
async def delete_feature(flag_id: str, svc: FeatureFlagAdminService = Depends(get_admin_service)):
    """Delete a feature flag and its rules."""
    logger.info("deleting_feature_flag", extra={"flag_id": flag_id})
    await svc.delete(flag_id)
    return FeatureFlagActionResponse(status="ok")
