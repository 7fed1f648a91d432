# sentinel/infra/metrics/gateway_metrics.py
"""Connection gateway and presence metrics."""

from prometheus_client import Counter, Gauge

gateway_connections_active = Gauge(
    'sentinel_gateway_connections_active',
    'Authenticated WebSocket connections currently open'
)

gateway_connections_total = Counter(
    'sentinel_gateway_connections_total',
    'WebSocket connection attempts by outcome',
    ['outcome']  # authenticated / rejected
)

gateway_frames_sent = Counter(
    'sentinel_gateway_frames_sent_total',
    'Frames sent to clients',
    ['event']
)

gateway_frames_received = Counter(
    'sentinel_gateway_frames_received_total',
    'Frames received from clients',
    ['event']
)

gateway_send_failures = Counter(
    'sentinel_gateway_send_failures_total',
    'Frames that could not be written to a socket'
)

room_broadcasts = Counter(
    'sentinel_room_broadcasts_total',
    'Events published to room subscribers',
    ['event']
)

presence_online_users = Gauge(
    'sentinel_presence_online_users',
    'Users with at least one open connection'
)
