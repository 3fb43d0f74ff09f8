"""Socket.IO namespace for matchmaking, relay and reputation events."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Set

import socketio

from badger_connect.domain.matching.models import (
	EVENT_ANSWER,
	EVENT_ERROR,
	EVENT_ICE_CANDIDATE,
	EVENT_OFFER,
)
from badger_connect.domain.matching.notifier import SocketNotifier
from badger_connect.domain.matching.policy import INTERNAL_ERROR_MESSAGE
from badger_connect.domain.matching.service import MatchService
from badger_connect.obs import logging as obs_logging
from badger_connect.obs import metrics as obs_metrics
from badger_connect.settings import settings

logger = logging.getLogger(__name__)

_namespace: "MatchNamespace" | None = None

# Wire event names carry ':' and '-', which cannot be spelled as on_* methods.
_EVENT_HANDLERS = {
	"profile:update": "on_profile_update",
	"match:request": "on_match_request",
	"chat:text:message": "on_chat_message",
	"chat:leave": "on_chat_leave",
	"profile:reaction": "on_profile_reaction",
	EVENT_OFFER: "on_webrtc_offer",
	EVENT_ANSWER: "on_webrtc_answer",
	EVENT_ICE_CANDIDATE: "on_webrtc_ice_candidate",
}


class MatchNamespace(socketio.AsyncNamespace):
	"""Namespace where every connection is one matchmaking handle (its sid)."""

	def __init__(self, namespace: Optional[str] = None, service: Optional[MatchService] = None) -> None:
		super().__init__(namespace or settings.socket_namespace)
		self._connected: Set[str] = set()
		self.service = service or MatchService(SocketNotifier(self))

	def is_live(self, sid: str) -> bool:
		return sid in self._connected

	async def trigger_event(self, event: str, *args: Any) -> Any:
		handler_name = _EVENT_HANDLERS.get(event)
		if handler_name is None:
			return await super().trigger_event(event, *args)
		return await getattr(self, handler_name)(*args)

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		self._connected.add(sid)
		logger.info("match connect sid=%s", sid)

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		if sid not in self._connected:
			return
		obs_metrics.socket_disconnected(self.namespace)
		# Mark the sid gone before teardown so nothing is relayed to it meanwhile.
		self._connected.discard(sid)
		await self._dispatch(sid, "disconnect", self.service.disconnect)
		logger.info("match disconnect sid=%s", sid)

	async def on_profile_update(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, "profile:update", self.service.update_profile, payload)

	async def on_match_request(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, "match:request", self.service.request_match, payload)

	async def on_chat_message(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, "chat:text:message", self.service.chat_message, payload)

	async def on_chat_leave(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, "chat:leave", self.service.leave, payload)

	async def on_profile_reaction(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, "profile:reaction", self.service.react, payload)

	async def on_webrtc_offer(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, EVENT_OFFER, self.service.signal, EVENT_OFFER, payload)

	async def on_webrtc_answer(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, EVENT_ANSWER, self.service.signal, EVENT_ANSWER, payload)

	async def on_webrtc_ice_candidate(self, sid: str, payload: Any = None) -> None:
		await self._dispatch(sid, EVENT_ICE_CANDIDATE, self.service.signal, EVENT_ICE_CANDIDATE, payload)

	async def _dispatch(
		self,
		sid: str,
		event: str,
		handler: Callable[..., Awaitable[None]],
		*args: Any,
	) -> None:
		obs_metrics.socket_event(self.namespace, event)
		tokens = obs_logging.bind_context(sid=sid, route=event)
		try:
			await handler(sid, *args)
		except Exception:
			logger.exception("socket event failed event=%s", event)
			if self.is_live(sid):
				await self.emit(EVENT_ERROR, INTERNAL_ERROR_MESSAGE, room=sid)
		finally:
			obs_logging.reset_context(tokens)


def set_namespace(namespace: MatchNamespace) -> None:
	global _namespace
	_namespace = namespace


def get_service() -> Optional[MatchService]:
	if _namespace is None:
		return None
	return _namespace.service
