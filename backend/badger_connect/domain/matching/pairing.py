"""Pairing engine: drains a mode queue two entries at a time."""

from __future__ import annotations

import logging
from typing import Callable, List, Mapping, Optional

from badger_connect.domain.matching.models import (
	EVENT_BANNED,
	EVENT_PAIRED,
	ChatMode,
	Envelope,
	Profile,
)
from badger_connect.domain.matching.policy import is_banned
from badger_connect.domain.matching.queues import WaitingQueueManager
from badger_connect.domain.matching.sessions import SessionRegistry
from badger_connect.domain.reputation.ledger import ReputationLedger
from badger_connect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class PairingEngine:
	"""Strict FIFO pairing over the waiting queues.

	The two longest-waiting eligible entries of a mode form a session. An
	entry whose connection is gone, whose profile vanished, or whose email
	has been banned since it queued is discarded and never re-queued; a
	live entry dequeued alongside it goes back to the head of the queue.
	The first dequeued participant is the signaling initiator.
	"""

	def __init__(
		self,
		queues: WaitingQueueManager,
		sessions: SessionRegistry,
		ledger: ReputationLedger,
		profiles: Mapping[str, Profile],
		is_connected: Callable[[str], bool],
	) -> None:
		self._queues = queues
		self._sessions = sessions
		self._ledger = ledger
		self._profiles = profiles
		self._is_connected = is_connected

	def drain(self, mode: ChatMode) -> List[Envelope]:
		outbound: List[Envelope] = []
		while self._queues.length(mode) >= 2:
			first = self._next_eligible(mode, outbound)
			if first is None:
				break
			second = self._next_eligible(mode, outbound)
			if second is None:
				self._queues.requeue_front(mode, first)
				break
			paired = self._pair(mode, first, second)
			if paired is None:
				break
			outbound.extend(paired)
		obs_metrics.queue_depth(mode, self._queues.length(mode))
		return outbound

	def _next_eligible(self, mode: ChatMode, outbound: List[Envelope]) -> Optional[str]:
		while True:
			handle = self._queues.pop_oldest(mode)
			if handle is None:
				return None
			profile = self._profiles.get(handle)
			if not self._is_connected(handle) or profile is None:
				obs_metrics.entry_discarded(mode, "stale")
				logger.debug("discard stale queue entry sid=%s mode=%s", handle, mode)
				continue
			if is_banned(self._ledger, profile):
				obs_metrics.entry_discarded(mode, "banned")
				record = self._ledger.get(profile.email)
				outbound.append(Envelope(handle, EVENT_BANNED, record.to_payload(profile.email)))
				continue
			if self._sessions.find_by_handle(handle) is not None:
				obs_metrics.entry_discarded(mode, "in_session")
				continue
			return handle

	def _pair(self, mode: ChatMode, first: str, second: str) -> Optional[List[Envelope]]:
		try:
			session_id = self._sessions.create(mode, first, second)
		except RuntimeError:
			logger.exception("session create failed mode=%s", mode)
			self._queues.requeue_front(mode, second)
			self._queues.requeue_front(mode, first)
			return None
		obs_metrics.pair_formed(mode)
		logger.info("paired session=%s mode=%s initiator=%s peer=%s", session_id, mode, first, second)
		first_profile = self._profiles[first]
		second_profile = self._profiles[second]
		return [
			Envelope(
				first,
				EVENT_PAIRED,
				{
					"sessionId": session_id,
					"mode": mode,
					"partnerProfile": second_profile.sanitized(),
					"initiator": True,
				},
			),
			Envelope(
				second,
				EVENT_PAIRED,
				{
					"sessionId": session_id,
					"mode": mode,
					"partnerProfile": first_profile.sanitized(),
					"initiator": False,
				},
			),
		]
