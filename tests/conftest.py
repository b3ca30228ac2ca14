import sys
from pathlib import Path

# Ensure the project root (for `tests.*`) and src directory are on sys.path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))
sys.path.insert(0, str(ROOT))

import pytest

from featuregate.domain.feature import FeatureFlag, FeatureFlagRule


# Per-test temporary database URL (function-scoped) and test app fixture
@pytest.fixture
def database_url(tmp_path):
    """Return a sqlite+aiosqlite URL backed by a per-test file in pytest's tmp_path."""
    db_file = tmp_path / "test.db"
    # Use POSIX path so SQLAlchemy parses correctly on Windows
    return f"sqlite+aiosqlite:///{db_file.as_posix()}"


@pytest.fixture
async def test_app(database_url):
    """Create an app + engine + session factory backed by an ephemeral DB.

    Yields (client, engine, AsyncSessionLocal); ``client.app`` is the FastAPI app.
    """
    from tests.fixtures.app_factory import create_test_app

    client, engine, AsyncSessionLocal = await create_test_app(database_url=database_url)
    try:
        yield client, engine, AsyncSessionLocal
    finally:
        await client.app.state.flag_cache.aclose()
        await engine.dispose()


class StaticFlagSource:
    """In-memory FlagSource whose behaviour tests can steer between reads."""

    def __init__(self, flags=None):
        self.flags = list(flags or [])
        self.calls = 0
        self.error: Exception | None = None
        self.delay: float = 0.0

    async def list_flags(self):
        import asyncio

        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.flags)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def flag_source():
    return StaticFlagSource()


def make_flag(
    name: str = "f",
    enabled: bool = True,
    percentage: int = 100,
    rules=(),
    flag_id: str | None = None,
) -> FeatureFlag:
    """Build a FeatureFlag; rules may be given as (attribute, operator, value) tuples."""
    fid = flag_id or f"id-{name}"
    built = tuple(
        r
        if isinstance(r, FeatureFlagRule)
        else FeatureFlagRule(
            id=f"r{i}", feature_flag_id=fid, attribute=r[0], operator=r[1], value=r[2]
        )
        for i, r in enumerate(rules)
    )
    return FeatureFlag(id=fid, name=name, enabled=enabled, percentage=percentage, rules=built)
