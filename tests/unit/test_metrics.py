import pytest
from httpx import ASGITransport, AsyncClient


@pytest.mark.asyncio
async def test_metrics_endpoint(test_app):
    client, engine, AsyncSessionLocal = test_app
    async with AsyncClient(transport=ASGITransport(app=client.app), base_url="http://test") as ac:
        await ac.post("/api/v1/features/evaluate", json={"feature_id": "nope"})
        resp = await ac.get("/metrics")
        assert resp.status_code == 200
        assert "http_requests_total" in resp.text
        assert 'feature_flag_evaluations_total{result="disabled"}' in resp.text
        assert "feature_flag_cache_refreshes_total" in resp.text


def test_metrics_module_is_idempotent():
    import importlib

    from featuregate import metrics

    first = metrics.FEATURE_FLAG_EVALUATIONS
    importlib.reload(metrics)
    assert metrics.FEATURE_FLAG_EVALUATIONS is first
