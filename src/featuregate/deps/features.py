"""Feature gating for route handlers.

``require_feature("new-games")`` hides a route (404) unless the feature is on
for the calling context, which is read from request headers.
"""

from typing import Dict

from fastapi import Depends, HTTPException, Request
from starlette import status

from ..domain.feature import build_context
from ..logging_config import get_logger
from ..services.feature_service import FeatureFlagService
from .injection import get_feature_service

logger = get_logger(__name__)

CONTEXT_HEADERS = {
    "x-user-id": "userId",
    "x-session-id": "sessionId",
    "x-user-role": "role",
    "x-country": "country",
    "x-device-type": "deviceType",
    "x-app-version": "appVersion",
}


def request_context(request: Request) -> Dict[str, str]:
    """Build the evaluation context for a request.

    Attributes set upstream on ``request.state.feature_context`` win over the
    well-known headers.
    """
    values = {
        attr: request.headers[header]
        for header, attr in CONTEXT_HEADERS.items()
        if request.headers.get(header)
    }
    upstream = getattr(request.state, "feature_context", None)
    if upstream:
        values.update(upstream)
    return build_context(values)


def require_feature(feature_id: str):
    async def _require_feature(
        request: Request,
        svc: FeatureFlagService = Depends(get_feature_service),
    ) -> None:
        if await svc.is_feature_enabled(feature_id, request_context(request)):
            return
        logger.debug("feature_gate_closed", extra={"feature_id": feature_id, "path": request.url.path})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    return _require_feature
