from prometheus_client import Counter, Histogram, start_http_server

RECONCILE_TOTAL = Counter(
    'endpoint_operator_reconcile_total',
    'Reconciliation passes by resource, event and result.',
    ['resource', 'event', 'result'],
)
RECONCILE_DURATION = Histogram(
    'endpoint_operator_reconcile_duration_seconds',
    'Duration of reconciliation passes, retries included.',
    ['resource', 'event'],
)
RECONCILE_RETRIES = Counter(
    'endpoint_operator_reconcile_retries_total',
    'Reconciliation passes re-run after a cluster API error.',
    ['resource', 'event', 'conflict'],
)
BOOT_RETRIES = Counter(
    'endpoint_operator_boot_retries_total',
    'Operator boot attempts that failed and were retried.',
)


def serve(port: int, logger=None) -> bool:
    """Expose /metrics on port. 0 disables the endpoint."""
    if not port:
        return False
    try:
        start_http_server(port)
    except OSError as e:
        if logger is not None:
            logger.warning("Failed to start metrics server", port=port, error=str(e))
        return False
    if logger is not None:
        logger.info("Metrics server started", port=port)
    return True
