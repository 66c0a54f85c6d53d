"""
Prometheus metrics configuration
"""
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'clanchain_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'clanchain_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'clanchain_http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'clanchain_db_queries_total',
    'Total number of database queries',
    ['operation', 'table']
)

db_query_duration_seconds = Histogram(
    'clanchain_db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation', 'table'],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)
)

db_connection_pool_size = Gauge(
    'clanchain_db_connection_pool_size',
    'Database connection pool size',
    ['state']  # 'active' or 'idle'
)

# ============================================================================
# Functions gateway / workflow metrics
# ============================================================================

function_operations_total = Counter(
    'clanchain_function_operations_total',
    'CRUD operations dispatched through the functions gateway',
    ['resource', 'operation', 'status']
)

superadmin_actions_total = Counter(
    'clanchain_superadmin_actions_total',
    'Superadmin surface calls',
    ['action', 'method', 'status']
)

audit_writes_total = Counter(
    'clanchain_audit_writes_total',
    'Audit log writes',
    ['status']  # 'success' or 'failed'
)

dispute_transitions_total = Counter(
    'clanchain_dispute_transitions_total',
    'Dispute status transitions',
    ['from_status', 'to_status', 'via']
)


def get_metrics_response():
    """Render all registered metrics in Prometheus exposition format"""
    return generate_latest(), CONTENT_TYPE_LATEST
