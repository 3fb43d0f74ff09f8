"""JSON logging with per-request and per-socket-event context."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from badger_connect.settings import settings

_LOGGER_NAME = "badger"

# Fields bound for the current HTTP request or Socket.IO event.
_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("badger_log_context", default={})

_CONTEXT_KEYS = {
	"request_id": "request_id",
	"route": "route",
	"sid": "sid",
	"client_ip": "ip",
}

# Chat bodies, SDP blobs and emails never reach the log stream.
_REDACTED_KEYS = ("email", "body", "description", "candidate", "sdp", "token", "secret", "authorization")

_MAX_VALUE_CHARS = 200

_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_NOISY_LOGGERS = ("socketio", "engineio", "uvicorn.access")


def bind_context(
	*,
	request_id: Optional[str] = None,
	route: Optional[str] = None,
	sid: Optional[str] = None,
	client_ip: Optional[str] = None,
) -> Token:
	fields = dict(_CONTEXT.get())
	for key, value in (("request_id", request_id), ("route", route), ("sid", sid), ("client_ip", client_ip)):
		if value is not None:
			fields[key] = value
	return _CONTEXT.set(fields)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def _scrub(key: str, value: Any) -> Any:
	lowered = key.lower()
	if any(marker in lowered for marker in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_VALUE_CHARS:
		return value[:_MAX_VALUE_CHARS] + "..."
	if isinstance(value, Mapping):
		return {str(k): _scrub(str(k), v) for k, v in value.items()}
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line, tagged with service metadata and bound context."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		entry: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for key, value in _CONTEXT.get().items():
			entry[_CONTEXT_KEYS.get(key, key)] = value
		extras = {
			key: value
			for key, value in vars(record).items()
			if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
		}
		for key, value in extras.items():
			entry.setdefault(key, _scrub(key, value))
		if record.exc_info:
			entry["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(entry, default=str, separators=(",", ":"))


class InfoSamplingFilter(logging.Filter):
	"""Keeps a configurable share of INFO records; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = settings.obs_log_sampling_rate_info
		if rate >= 1.0:
			return True
		return random.random() < max(rate, 0.0)


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	for name in _NOISY_LOGGERS:
		logging.getLogger(name).setLevel(logging.WARNING)
	return get_logger()


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
