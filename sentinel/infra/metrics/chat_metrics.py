# sentinel/infra/metrics/chat_metrics.py
"""Chat persistence and push delivery metrics."""

from prometheus_client import Counter, Histogram

messages_persisted = Counter(
    'sentinel_messages_persisted_total',
    'Messages stored',
    ['type']
)

push_deliveries = Counter(
    'sentinel_push_deliveries_total',
    'Push deliveries per identifier',
    ['provider', 'result']  # result: success/failure
)

push_provider_errors = Counter(
    'sentinel_push_provider_errors_total',
    'Provider-level failures (unconfigured, unreachable, circuit open)',
    ['provider']
)

push_fanout_duration = Histogram(
    'sentinel_push_fanout_duration_seconds',
    'Time spent in one notification fan-out',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)
