from prometheus_client import Counter, Histogram, start_http_server
from .config import settings
from .utils.logging import setup_logger

logger = setup_logger(__name__)

# Submission metrics
activities_submitted_total = Counter(
    'fitpoints_activities_submitted_total',
    'Total number of activity submissions',
    ['status']
)

# Ledger metrics
points_credited_total = Counter(
    'fitpoints_points_credited_total',
    'Points appended to the ledger',
    ['source']
)

recompute_total = Counter(
    'fitpoints_recompute_total',
    'Participant total recomputations',
    ['status']
)

# Consistency bonus metrics
bonus_batches_total = Counter(
    'fitpoints_bonus_batches_total',
    'Consistency bonus award batches',
    ['outcome']
)

# Reporting metrics
aggregate_duration = Histogram(
    'fitpoints_aggregate_duration_seconds',
    'Aggregation duration in seconds'
)

def start_metrics_server(port: int = None):
    """Start the Prometheus metrics server."""
    port = port or settings.metrics_port
    try:
        start_http_server(port)
        logger.info(f"Started Prometheus metrics server on port {port}")
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        raise
