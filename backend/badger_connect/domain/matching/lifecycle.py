"""Connection teardown on explicit leave or disconnect."""

from __future__ import annotations

import logging
from typing import List, Optional

from badger_connect.domain.identity.registry import IdentityRegistry
from badger_connect.domain.matching.models import Envelope
from badger_connect.domain.matching.queues import WaitingQueueManager
from badger_connect.domain.matching.relay import RelayRouter
from badger_connect.domain.matching.sessions import SessionRegistry
from badger_connect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class ConnectionLifecycle:
	"""Evicts a connection from queues, sessions and the identity table.

	The steps always run in order (queues, session, identity) and each is a
	no-op when there is nothing to remove, so a handle can never be paired
	again while its teardown is in flight.
	"""

	def __init__(
		self,
		queues: WaitingQueueManager,
		sessions: SessionRegistry,
		identity: IdentityRegistry,
		relay: RelayRouter,
	) -> None:
		self._queues = queues
		self._sessions = sessions
		self._identity = identity
		self._relay = relay

	def leave(self, handle: str, session_id: Optional[str] = None) -> List[Envelope]:
		"""End the caller's session but keep the connection registered."""
		self._queues.remove_everywhere(handle)
		return self._end_session(handle, session_id, reason="leave")

	def disconnect(self, handle: str) -> List[Envelope]:
		self._queues.remove_everywhere(handle)
		notices = self._end_session(handle, None, reason="disconnect")
		self._identity.detach(handle)
		return [notice for notice in notices if notice.handle != handle]

	def _end_session(self, handle: str, session_id: Optional[str], *, reason: str) -> List[Envelope]:
		target_id: Optional[str] = None
		if session_id:
			session = self._sessions.find(session_id)
			if session is not None and session.includes(handle):
				target_id = session_id
		if target_id is None:
			found = self._sessions.find_by_handle(handle)
			if found is None:
				return []
			target_id = found[0]
		notices = self._sessions.end(target_id, handle)
		if notices:
			self._relay.forget_session(target_id)
			obs_metrics.session_ended(reason)
			logger.info("session ended session=%s by=%s reason=%s", target_id, handle, reason)
		return notices
