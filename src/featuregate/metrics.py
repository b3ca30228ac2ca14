import prometheus_client
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Guard against duplicated metric registration when the module is imported
# multiple times (for example, when running uvicorn with the reloader).
REQUEST_COUNT = getattr(prometheus_client, "featuregate_REQUEST_COUNT", None)
REQUEST_LATENCY = getattr(prometheus_client, "featuregate_REQUEST_LATENCY", None)
FEATURE_FLAG_EVALUATIONS = getattr(prometheus_client, "featuregate_FEATURE_FLAG_EVALUATIONS", None)
FLAG_CACHE_REFRESHES = getattr(prometheus_client, "featuregate_FLAG_CACHE_REFRESHES", None)
FLAG_CACHE_STALE_SERVES = getattr(prometheus_client, "featuregate_FLAG_CACHE_STALE_SERVES", None)
FEATURE_FLAG_MUTATIONS = getattr(prometheus_client, "featuregate_FEATURE_FLAG_MUTATIONS", None)

# Initialize all metrics if any are None
if REQUEST_COUNT is None:
    # HTTP Metrics
    REQUEST_COUNT = Counter(
        "http_requests_total", "Total HTTP requests", ["method", "endpoint", "http_status"]
    )
    REQUEST_LATENCY = Histogram(
        "http_request_latency_seconds", "HTTP request latency in seconds", ["method", "endpoint"]
    )

    # Evaluation Metrics
    FEATURE_FLAG_EVALUATIONS = Counter(
        "feature_flag_evaluations_total",
        "Total feature flag evaluations",
        ["result"],  # result: enabled/disabled/error
    )

    # Cache Metrics
    FLAG_CACHE_REFRESHES = Counter(
        "feature_flag_cache_refreshes_total",
        "Flag snapshot refresh attempts",
        ["result"],  # result: success/failure/timeout
    )
    FLAG_CACHE_STALE_SERVES = Counter(
        "feature_flag_cache_stale_serves_total",
        "Reads answered from an expired snapshot after a failed or in-flight refresh",
    )

    # Administration Metrics
    FEATURE_FLAG_MUTATIONS = Counter(
        "feature_flag_mutations_total",
        "Feature flag administration mutations",
        ["operation"],  # operation: upsert/add_rule/delete
    )

    # Register all metrics on the prometheus_client module
    prometheus_client.featuregate_REQUEST_COUNT = REQUEST_COUNT  # type: ignore[attr-defined]
    prometheus_client.featuregate_REQUEST_LATENCY = REQUEST_LATENCY  # type: ignore[attr-defined]
    prometheus_client.featuregate_FEATURE_FLAG_EVALUATIONS = FEATURE_FLAG_EVALUATIONS  # type: ignore[attr-defined]
    prometheus_client.featuregate_FLAG_CACHE_REFRESHES = FLAG_CACHE_REFRESHES  # type: ignore[attr-defined]
    prometheus_client.featuregate_FLAG_CACHE_STALE_SERVES = FLAG_CACHE_STALE_SERVES  # type: ignore[attr-defined]
    prometheus_client.featuregate_FEATURE_FLAG_MUTATIONS = FEATURE_FLAG_MUTATIONS  # type: ignore[attr-defined]


def metrics_response():
    data = generate_latest()
    return data, CONTENT_TYPE_LATEST
