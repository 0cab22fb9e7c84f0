"""Prometheus metrics for the application"""
from prometheus_client import Counter, Gauge, REGISTRY

# Ingestion metrics
try:
    sent_records_counter = Counter(
        'mailtrack_sent_records_total',
        'Total number of sent records ingested'
    )
except ValueError:
    sent_records_counter = REGISTRY._names_to_collectors.get('mailtrack_sent_records_total')

try:
    open_events_counter = Counter(
        'mailtrack_open_events_total',
        'Total number of open signals by outcome',
        ['result']
    )
except ValueError:
    open_events_counter = REGISTRY._names_to_collectors.get('mailtrack_open_events_total')

# Persistence metrics
try:
    persistence_failures_counter = Counter(
        'mailtrack_persistence_failures_total',
        'Total number of failed event log writes',
        ['log']
    )
except ValueError:
    persistence_failures_counter = REGISTRY._names_to_collectors.get('mailtrack_persistence_failures_total')

# View size gauges (refreshed on scrape)
try:
    tracked_messages_gauge = Gauge(
        'mailtrack_tracked_messages',
        'Number of sent records currently in the store'
    )
except ValueError:
    tracked_messages_gauge = REGISTRY._names_to_collectors.get('mailtrack_tracked_messages')

try:
    stored_opens_gauge = Gauge(
        'mailtrack_stored_opens',
        'Number of deduplicated open records currently in the store'
    )
except ValueError:
    stored_opens_gauge = REGISTRY._names_to_collectors.get('mailtrack_stored_opens')

try:
    unique_opened_gauge = Gauge(
        'mailtrack_unique_opened',
        'Number of distinct tracking ids with at least one open'
    )
except ValueError:
    unique_opened_gauge = REGISTRY._names_to_collectors.get('mailtrack_unique_opened')


def update_store_gauges(stats: dict) -> None:
    """Refresh view gauges from a computed stats dict"""
    tracked_messages_gauge.set(stats["totalSent"])
    stored_opens_gauge.set(stats["totalOpened"])
    unique_opened_gauge.set(stats["uniqueOpened"])
