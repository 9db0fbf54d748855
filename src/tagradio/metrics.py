"""Prometheus metrics for radio station service."""
from prometheus_client import Counter, Gauge, Histogram

station_fetches_total = Counter(
    'station_fetches_total',
    'Total number of station playlist fetches',
    ['outcome']  # 'ok', 'empty', 'not_found', 'invalid'
)

station_resolved_songs = Histogram(
    'station_resolved_songs',
    'Number of songs in a resolved station playlist',
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500, 1000)
)

station_rule_replacements_total = Counter(
    'station_rule_replacements_total',
    'Total number of station rule set replacements',
    ['outcome']  # 'committed', 'rolled_back', 'rejected'
)

playback_events_total = Counter(
    'playback_events_total',
    'Total number of recorded playback events'
)

tags_total = Gauge(
    'tags_total',
    'Total number of tags'
)

tracks_active_total = Gauge(
    'tracks_active_total',
    'Number of active tracks'
)
