"""
metrics.py - Prometheus metrics for the chainy package.
"""

from prometheus_client import Counter, Gauge, start_http_server

BLOCKS_APPENDED = Counter(
    'chainy_blocks_appended_total', 'Total number of blocks appended to a chain'
)
VALIDATION_FAILURES = Counter(
    'chainy_validation_failures_total', 'Total number of failed chain validations', ['kind']
)
STORE_COUNT = Counter(
    'chainy_store_total', 'Total number of chains written to disk'
)
LOAD_COUNT = Counter(
    'chainy_load_total', 'Total number of chain loads', ['outcome']
)
CHAIN_LENGTH = Gauge(
    'chainy_chain_length',
    'Number of blocks in the most recently stored or loaded chain'
)

def start_metrics_server(port: int = 8000, addr: str = '0.0.0.0') -> None:
    """
    Start an HTTP server to expose Prometheus metrics on /metrics.
    """
    start_http_server(port, addr=addr)
