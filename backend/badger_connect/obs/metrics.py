"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"badger_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"badger_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"badger_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"badger_socketio_events_total",
	"Socket.IO events received per namespace",
	["namespace", "event"],
)

SOCKET_REJECTED_PAYLOADS = Counter(
	"badger_socketio_rejected_payloads_total",
	"Socket.IO payloads that failed validation",
	["event"],
)

MATCH_QUEUE_DEPTH = Gauge(
	"badger_match_queue_depth",
	"Connections waiting for a partner",
	["mode"],
)

MATCH_PAIRS = Counter(
	"badger_match_pairs_total",
	"Sessions formed by the pairing engine",
	["mode"],
)

MATCH_DISCARDED = Counter(
	"badger_match_discarded_total",
	"Queue entries discarded at dequeue time",
	["mode", "reason"],
)

SESSIONS_ACTIVE = Gauge(
	"badger_sessions_active",
	"Active 1:1 sessions",
)

SESSIONS_ENDED = Counter(
	"badger_sessions_ended_total",
	"Sessions ended",
	["reason"],
)

RELAY_FORWARDED = Counter(
	"badger_relay_forwarded_total",
	"Payloads forwarded to a session peer",
	["kind"],
)

RELAY_DROPPED = Counter(
	"badger_relay_dropped_total",
	"Payloads dropped by the relay router",
	["kind", "reason"],
)

REACTIONS = Counter(
	"badger_reactions_total",
	"Reactions applied to the reputation ledger",
	["kind"],
)

BANS_ISSUED = Counter(
	"badger_bans_issued_total",
	"Emails that crossed a ban threshold",
)


def observe_request(route: str, method: str, status: int, duration_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(duration_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def payload_rejected(event: str) -> None:
	SOCKET_REJECTED_PAYLOADS.labels(event=event).inc()


def queue_depth(mode: str, depth: int) -> None:
	MATCH_QUEUE_DEPTH.labels(mode=mode).set(float(depth))


def pair_formed(mode: str) -> None:
	MATCH_PAIRS.labels(mode=mode).inc()
	SESSIONS_ACTIVE.inc()


def entry_discarded(mode: str, reason: str) -> None:
	MATCH_DISCARDED.labels(mode=mode, reason=reason).inc()


def session_ended(reason: str) -> None:
	SESSIONS_ENDED.labels(reason=reason).inc()
	SESSIONS_ACTIVE.dec()


def relay_forwarded(kind: str) -> None:
	RELAY_FORWARDED.labels(kind=kind).inc()


def relay_dropped(kind: str, reason: str) -> None:
	RELAY_DROPPED.labels(kind=kind, reason=reason).inc()


def reaction_applied(kind: str) -> None:
	REACTIONS.labels(kind=kind).inc()


def ban_issued() -> None:
	BANS_ISSUED.inc()
