"""Registry of active 1:1 sessions."""

from __future__ import annotations

import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from badger_connect.domain.matching.models import (
	EVENT_PARTNER_LEFT,
	EVENT_SESSION_ENDED,
	ChatMode,
	Envelope,
	Session,
)
from badger_connect.domain.matching.policy import SessionConflict


def _new_session_id() -> str:
	return str(uuid.uuid4())


class SessionRegistry:
	"""Owns session lifetime: creation, lookup and teardown.

	Sessions are immutable once created; there is no way to rejoin one.
	A connection belongs to at most one active session.
	"""

	def __init__(
		self,
		*,
		id_factory: Callable[[], str] = _new_session_id,
		clock: Callable[[], float] = time.time,
	) -> None:
		self._sessions: Dict[str, Session] = {}
		self._by_handle: Dict[str, str] = {}
		self._id_factory = id_factory
		self._clock = clock

	def __len__(self) -> int:
		return len(self._sessions)

	def __contains__(self, session_id: object) -> bool:
		return session_id in self._sessions

	def create(self, mode: ChatMode, handle_a: str, handle_b: str) -> str:
		if handle_a == handle_b:
			raise SessionConflict(handle_a)
		for handle in (handle_a, handle_b):
			if handle in self._by_handle:
				raise SessionConflict(handle)
		session_id = self._id_factory()
		if session_id in self._sessions:
			raise RuntimeError("session id collision")
		self._sessions[session_id] = Session(
			id=session_id,
			mode=mode,
			participants=(handle_a, handle_b),
			started_at=self._clock(),
		)
		self._by_handle[handle_a] = session_id
		self._by_handle[handle_b] = session_id
		return session_id

	def find(self, session_id: str) -> Optional[Session]:
		return self._sessions.get(session_id)

	def find_by_handle(self, handle: str) -> Optional[Tuple[str, Session]]:
		session_id = self._by_handle.get(handle)
		if session_id is None:
			return None
		return session_id, self._sessions[session_id]

	def end(self, session_id: str, initiating_handle: str) -> List[Envelope]:
		"""Remove the session and address one notice to each participant.

		The participant that initiated the end gets ``system:session-ended``,
		the other one ``system:partner-left``. Unknown ids yield no notices.
		"""
		session = self._sessions.pop(session_id, None)
		if session is None:
			return []
		notices: List[Envelope] = []
		for handle in session.participants:
			if self._by_handle.get(handle) == session_id:
				del self._by_handle[handle]
			event = EVENT_SESSION_ENDED if handle == initiating_handle else EVENT_PARTNER_LEFT
			notices.append(Envelope(handle, event, {"sessionId": session_id}))
		return notices
