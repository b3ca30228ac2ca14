"""Unit tests for FeatureFlagAdminService."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from featuregate.domain.feature import FeatureFlagRule
from featuregate.exceptions import (
    FeatureFlagMutationError,
    FeatureFlagNotFoundError,
    InvalidFeatureFlagError,
)
from featuregate.services.feature_admin_service import FeatureFlagAdminService
from tests.conftest import make_flag


@pytest.fixture
def mock_repo():
    """Create mock feature flag repository."""
    return AsyncMock()


@pytest.fixture
def mock_cache():
    """Create mock flag cache; invalidate is synchronous."""
    cache = MagicMock()
    cache.invalidate = MagicMock()
    return cache


@pytest.fixture
def admin_service(mock_repo, mock_cache):
    return FeatureFlagAdminService(mock_repo, cache=mock_cache)


@pytest.mark.asyncio
async def test_upsert_defaults_and_invalidates(admin_service, mock_repo, mock_cache):
    mock_repo.upsert = AsyncMock(return_value=make_flag("beta"))

    flag = await admin_service.upsert("beta")

    assert flag.name == "beta"
    mock_repo.upsert.assert_awaited_once_with(
        "beta", description=None, enabled=True, percentage=100
    )
    mock_cache.invalidate.assert_called_once()


@pytest.mark.asyncio
async def test_upsert_passes_explicit_values(admin_service, mock_repo):
    mock_repo.upsert = AsyncMock(return_value=make_flag("beta", enabled=False, percentage=20))

    await admin_service.upsert("beta", description="d", enabled=False, percentage=20)

    mock_repo.upsert.assert_awaited_once_with(
        "beta", description="d", enabled=False, percentage=20
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("percentage", [-1, 101])
async def test_upsert_rejects_out_of_range_percentage(admin_service, mock_repo, mock_cache, percentage):
    with pytest.raises(InvalidFeatureFlagError):
        await admin_service.upsert("beta", percentage=percentage)
    mock_repo.upsert.assert_not_awaited()
    mock_cache.invalidate.assert_not_called()


@pytest.mark.asyncio
async def test_upsert_rejects_empty_name(admin_service):
    with pytest.raises(InvalidFeatureFlagError):
        await admin_service.upsert("")


@pytest.mark.asyncio
async def test_repository_errors_are_wrapped_and_cache_kept(admin_service, mock_repo, mock_cache):
    mock_repo.upsert = AsyncMock(side_effect=OperationalError("stmt", {}, Exception("gone")))

    with pytest.raises(FeatureFlagMutationError) as exc_info:
        await admin_service.upsert("beta")

    assert exc_info.value.operation == "upsert"
    mock_cache.invalidate.assert_not_called()


@pytest.mark.asyncio
async def test_add_rule_validates_operator(admin_service, mock_repo):
    with pytest.raises(InvalidFeatureFlagError):
        await admin_service.add_rule("f1", "role", "matches", "admin")
    mock_repo.add_rule.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_rule_on_missing_flag(admin_service, mock_repo, mock_cache):
    mock_repo.add_rule = AsyncMock(return_value=None)

    with pytest.raises(FeatureFlagNotFoundError):
        await admin_service.add_rule("nope", "role", "equals", "admin")
    mock_cache.invalidate.assert_not_called()


@pytest.mark.asyncio
async def test_add_rule_success_invalidates(admin_service, mock_repo, mock_cache):
    rule = FeatureFlagRule(
        id="r1", feature_flag_id="f1", attribute="role", operator="equals", value="admin"
    )
    mock_repo.add_rule = AsyncMock(return_value=rule)

    assert await admin_service.add_rule("f1", "role", "equals", "admin") is rule
    mock_cache.invalidate.assert_called_once()


@pytest.mark.asyncio
async def test_delete_missing_flag_raises(admin_service, mock_repo, mock_cache):
    mock_repo.delete = AsyncMock(return_value=False)

    with pytest.raises(FeatureFlagNotFoundError):
        await admin_service.delete("nope")
    mock_cache.invalidate.assert_not_called()


@pytest.mark.asyncio
async def test_delete_invalidates(admin_service, mock_repo, mock_cache):
    mock_repo.delete = AsyncMock(return_value=True)
    await admin_service.delete("f1")
    mock_cache.invalidate.assert_called_once()


@pytest.mark.asyncio
async def test_get_flag_falls_back_to_name(admin_service, mock_repo):
    flag = make_flag("beta")
    mock_repo.get_by_id = AsyncMock(return_value=None)
    mock_repo.get_by_name = AsyncMock(return_value=flag)

    assert await admin_service.get_flag("beta") is flag


@pytest.mark.asyncio
async def test_get_flag_not_found(admin_service, mock_repo):
    mock_repo.get_by_id = AsyncMock(return_value=None)
    mock_repo.get_by_name = AsyncMock(return_value=None)

    with pytest.raises(FeatureFlagNotFoundError):
        await admin_service.get_flag("ghost")


@pytest.mark.asyncio
async def test_works_without_cache(mock_repo):
    svc = FeatureFlagAdminService(mock_repo)
    mock_repo.delete = AsyncMock(return_value=True)
    await svc.delete("f1")
