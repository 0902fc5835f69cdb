"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics through an optional HTTP exporter.
"""

from typing import Optional

from prometheus_client import Counter, Gauge, start_http_server

# Booking metrics
seats_booked = Counter(
    'airsales_seats_booked_total',
    'Seats sold',
    ['fare_class']  # first, economy
)

unserved_clients = Counter(
    'airsales_unserved_clients_total',
    'Clients for whom no flight had capacity'
)

clients_generated = Counter(
    'airsales_clients_generated_total',
    'Clients created by the generator'
)

# Aggregate sales
revenue = Gauge(
    'airsales_revenue',
    'Total revenue as last published or observed',
    ['process']
)

clients_served = Gauge(
    'airsales_clients_served',
    'Total clients served as last published or observed',
    ['process']
)

# Termination protocol
terminations = Counter(
    'airsales_terminations_total',
    'End of operation transitions',
    ['reason', 'origin']  # origin: local, remote
)

unknown_opcodes = Counter(
    'airsales_unknown_opcodes_total',
    'Protocol bytes that were not understood'
)


def start_metrics_server(port: Optional[int]) -> bool:
    """Start the Prometheus exporter when a port is configured."""
    if port is None:
        return False
    start_http_server(port)
    return True

# Convenience functions for instrumentation
def record_booking(fare_class: str):
    """Record a sold seat. fare_class: first, economy"""
    seats_booked.labels(fare_class=fare_class).inc()

def record_unserved_client():
    unserved_clients.inc()

def record_client_generated():
    clients_generated.inc()

def record_sales(process: str, total_revenue: int, total_clients: int):
    """Record the aggregate as seen by one process."""
    revenue.labels(process=process).set(total_revenue)
    clients_served.labels(process=process).set(total_clients)

def record_termination(reason: str, remote: bool):
    origin = "remote" if remote else "local"
    terminations.labels(reason=reason, origin=origin).inc()

def record_unknown_opcode():
    unknown_opcodes.inc()
