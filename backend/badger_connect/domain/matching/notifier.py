"""Outbound delivery capability used by the matchmaking core."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Protocol

if TYPE_CHECKING:  # pragma: no cover
	from badger_connect.domain.matching.sockets import MatchNamespace

logger = logging.getLogger(__name__)


class Notifier(Protocol):
	"""What the core needs from the realtime transport."""

	def is_connected(self, handle: str) -> bool:
		...

	async def send(self, handle: str, event: str, payload: Any) -> None:
		...

	async def broadcast(self, handles: Iterable[str], event: str, payload: Any) -> None:
		...


class SocketNotifier:
	"""Delivers events through a Socket.IO namespace, one room per sid."""

	def __init__(self, namespace: "MatchNamespace") -> None:
		self._namespace = namespace

	def is_connected(self, handle: str) -> bool:
		return self._namespace.is_live(handle)

	async def send(self, handle: str, event: str, payload: Any) -> None:
		if not self.is_connected(handle):
			logger.debug("drop %s for departed sid=%s", event, handle)
			return
		await self._namespace.emit(event, payload, room=handle)

	async def broadcast(self, handles: Iterable[str], event: str, payload: Any) -> None:
		for handle in handles:
			await self.send(handle, event, payload)
