"""Health check helpers for liveness and matchmaking readiness."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from badger_connect.domain.matching.service import MatchService


async def liveness() -> Dict[str, str]:
	return {"status": "ok"}


async def matchmaking(service: MatchService | None) -> Tuple[int, Dict[str, Any]]:
	"""Per-mode queue lengths and active session count; a pure read."""
	if service is None:
		return 503, {"status": "starting", "waiting": {}, "sessions": 0}
	return 200, {
		"status": "ok",
		"waiting": service.waiting(),
		"sessions": service.active_sessions(),
	}
