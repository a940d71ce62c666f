"""
Prometheus metrics endpoint.

Exposes login and upstream metrics for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Login Metrics
# ============================================

logins_total = Counter(
    'logins_total',
    'Total login attempts by outcome',
    ['method', 'outcome']
)

login_failures = Counter(
    'login_failures_total',
    'Failed logins by pipeline stage and error kind',
    ['stage', 'kind']
)

# ============================================
# Upstream (GitHub) Metrics
# ============================================

upstream_request_duration = Histogram(
    'upstream_request_duration_seconds',
    'Duration of calls to the OAuth provider',
    ['call', 'outcome'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# ============================================
# Store Metrics
# ============================================

user_store_conflicts = Counter(
    'user_store_conflicts_total',
    'Inserts rejected because the email already exists'
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.

    Call this after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_login(method: str, outcome: str):
    """Record a login attempt; outcome is created, merged, resumed, default or failed."""
    logins_total.labels(method=method, outcome=outcome).inc()


def track_login_failure(stage: str, kind: str):
    """Record the stage at which a login aborted."""
    login_failures.labels(stage=stage, kind=kind).inc()


def track_upstream_call(call: str, outcome: str, duration_seconds: float):
    """Record a call to the OAuth provider."""
    upstream_request_duration.labels(call=call, outcome=outcome).observe(duration_seconds)


def track_store_conflict():
    """Record a duplicate-email insert."""
    user_store_conflicts.inc()


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns all registered metrics in Prometheus format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
