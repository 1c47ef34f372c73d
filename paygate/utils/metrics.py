"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
verify_decisions_total = Counter(
    "paygate_verify_decisions_total",
    "Payment verification decisions",
    ["result", "source"],  # result: ok/denied; source: input/cache/processor/config
)

downloads_total = Counter(
    "paygate_downloads_total",
    "Download link issuance outcomes",
    ["outcome"],  # redirect, denied, not_found, misconfigured, catalog_error, signing_error
)

purchase_records_total = Counter(
    "paygate_purchase_records_total",
    "Best-effort purchase ledger writes",
    ["status"],  # created, duplicate, failed
)

upstream_requests_total = Counter(
    "paygate_upstream_requests_total",
    "Requests to upstream services",
    ["upstream", "status"],
)

# Histograms
upstream_request_duration_seconds = Histogram(
    "paygate_upstream_request_duration_seconds",
    "Upstream request duration",
    ["upstream"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10],
)


def record_upstream(upstream: str, status: str, duration: float) -> None:
    upstream_requests_total.labels(upstream=upstream, status=status).inc()
    upstream_request_duration_seconds.labels(upstream=upstream).observe(duration)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
