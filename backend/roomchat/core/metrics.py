"""Prometheus counters and gauges for the realtime push channel and services."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

REGISTRY = CollectorRegistry(auto_describe=True)

# Push-channel handshakes by outcome (admitted, token_missing, invalid_token, origin_rejected).
REALTIME_HANDSHAKES_TOTAL = Counter(
    "roomchat_realtime_handshakes_total",
    "Push channel handshake attempts by outcome",
    ["outcome"],
    registry=REGISTRY,
)

REALTIME_OPEN_CONNECTIONS = Gauge(
    "roomchat_realtime_open_connections",
    "Push channel connections currently admitted",
    registry=REGISTRY,
)

# Change notifications grouped by inbound event and processing outcome.
REALTIME_NOTIFICATIONS_TOTAL = Counter(
    "roomchat_realtime_notifications_total",
    "Change notifications processed by the broadcast core",
    ["event", "outcome"],
    registry=REGISTRY,
)

# One increment per frame actually written to a connection.
REALTIME_DELIVERIES_TOTAL = Counter(
    "roomchat_realtime_deliveries_total",
    "Frames delivered to push channel connections",
    ["event"],
    registry=REGISTRY,
)

SERVICE_OPERATION_SECONDS = Histogram(
    "roomchat_service_operation_seconds",
    "Service operation latency",
    ["service", "operation", "status"],
    registry=REGISTRY,
)
