"""Relay router: forwards chat, signaling and reactions between session peers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from badger_connect.domain.identity.registry import IdentityRegistry
from badger_connect.domain.matching.models import (
	EVENT_BANNED,
	EVENT_CHAT_MESSAGE,
	EVENT_REPUTATION,
	Envelope,
	Session,
)
from badger_connect.domain.matching.schemas import ChatMessageIn, ReactionRequest
from badger_connect.domain.matching.sessions import SessionRegistry
from badger_connect.domain.reputation.ledger import ReputationLedger
from badger_connect.domain.reputation.models import ReputationRecord
from badger_connect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def _epoch_ms(clock: Callable[[], float]) -> int:
	return int(clock() * 1000)


class RelayRouter:
	"""Stateless forwarding guarded by session membership.

	Every hop resolves the session named in the payload and drops the
	payload silently when the session is gone or the sender is not one of
	its participants. Payloads for a peer that is already disconnecting are
	dropped as well.
	"""

	def __init__(
		self,
		sessions: SessionRegistry,
		ledger: ReputationLedger,
		identity: IdentityRegistry,
		is_connected: Callable[[str], bool],
		*,
		dedup_reactions: bool = False,
		clock: Callable[[], float] = time.time,
	) -> None:
		self._sessions = sessions
		self._ledger = ledger
		self._identity = identity
		self._is_connected = is_connected
		self._dedup_reactions = dedup_reactions
		self._clock = clock
		self._reacted: Dict[str, Set[Tuple[str, str]]] = {}

	def chat(self, sender: str, message: ChatMessageIn) -> List[Envelope]:
		target = self._peer(message.session_id, sender, "chat")
		if target is None:
			return []
		payload = {
			"sessionId": message.session_id,
			"body": message.body,
			"from": message.sender,
			"timestamp": _epoch_ms(self._clock),
		}
		obs_metrics.relay_forwarded("chat")
		return [Envelope(target, EVENT_CHAT_MESSAGE, payload)]

	def signal(self, sender: str, session_id: str, event: str, payload: Dict[str, Any]) -> List[Envelope]:
		target = self._peer(session_id, sender, event)
		if target is None:
			return []
		obs_metrics.relay_forwarded(event)
		return [Envelope(target, event, payload)]

	def react(self, sender: str, reaction: ReactionRequest) -> Tuple[List[Envelope], Optional[ReputationRecord], bool]:
		"""Apply a reaction and fan the updated record out.

		Returns the envelopes, the updated record (``None`` when dropped) and
		whether this reaction flipped the target email to banned.
		"""
		session = self._member_session(reaction.session_id, sender, "reaction")
		if session is None:
			return [], None, False
		if self._dedup_reactions:
			seen = self._reacted.setdefault(session.id, set())
			key = (sender, reaction.target)
			if key in seen:
				obs_metrics.relay_dropped("reaction", "duplicate")
				return [], None, False
			seen.add(key)
		was_banned = self._ledger.is_banned(reaction.target)
		record = self._ledger.apply_reaction(reaction.target, reaction.kind)
		obs_metrics.reaction_applied(reaction.kind)
		flipped = record.banned and not was_banned
		if flipped:
			obs_metrics.ban_issued()

		payload = record.to_payload(reaction.target)
		targets = self._identity.handles_for(reaction.target)
		outbound = [Envelope(handle, EVENT_REPUTATION, payload) for handle in sorted(targets)]
		if sender not in targets:
			outbound.append(Envelope(sender, EVENT_REPUTATION, payload))
		if record.banned:
			outbound.extend(Envelope(handle, EVENT_BANNED, payload) for handle in sorted(targets))
		return outbound, record, flipped

	def forget_session(self, session_id: str) -> None:
		self._reacted.pop(session_id, None)

	def _member_session(self, session_id: str, sender: str, kind: str) -> Optional[Session]:
		session = self._sessions.find(session_id)
		if session is None:
			obs_metrics.relay_dropped(kind, "unknown_session")
			logger.debug("drop %s for unknown session=%s", kind, session_id)
			return None
		if not session.includes(sender):
			obs_metrics.relay_dropped(kind, "not_participant")
			logger.debug("drop %s from non participant sid=%s session=%s", kind, sender, session_id)
			return None
		return session

	def _peer(self, session_id: str, sender: str, kind: str) -> Optional[str]:
		session = self._member_session(session_id, sender, kind)
		if session is None:
			return None
		target = session.peer_of(sender)
		if target is None or not self._is_connected(target):
			obs_metrics.relay_dropped(kind, "peer_departed")
			return None
		return target
