"""Matchmaking service: one dispatch function per inbound event.

Each dispatch mutates the shared tables synchronously and then delivers
the resulting envelopes. Mutations touching a mode queue or the session
registry run under that mode's lock; teardown takes every mode lock in a
fixed order. Relay traffic takes no lock and relies on session
membership checks plus the notifier's liveness check.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import AsyncExitStack, asynccontextmanager
from itertools import groupby
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from badger_connect.domain.identity.registry import IdentityRegistry
from badger_connect.domain.matching.lifecycle import ConnectionLifecycle
from badger_connect.domain.matching.models import (
	EVENT_ANSWER,
	EVENT_BANNED,
	EVENT_ERROR,
	EVENT_ICE_CANDIDATE,
	EVENT_OFFER,
	EVENT_QUEUED,
	EVENT_REPUTATION,
	ChatMode,
	Envelope,
	Profile,
)
from badger_connect.domain.matching.notifier import Notifier
from badger_connect.domain.matching.pairing import PairingEngine
from badger_connect.domain.matching.policy import (
	INVALID_PAYLOAD_MESSAGE,
	PROFILE_MISSING_MESSAGE,
	is_banned,
)
from badger_connect.domain.matching.queues import WaitingQueueManager
from badger_connect.domain.matching.relay import RelayRouter
from badger_connect.domain.matching.schemas import (
	ChatMessageIn,
	LeaveRequest,
	MatchRequest,
	ProfileUpdate,
	ReactionRequest,
	SignalCandidate,
	SignalDescription,
)
from badger_connect.domain.matching.sessions import SessionRegistry
from badger_connect.domain.reputation.ledger import ReputationLedger
from badger_connect.domain.reputation.models import ReputationRecord
from badger_connect.obs import metrics as obs_metrics
from badger_connect.settings import settings

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

SIGNAL_EVENTS = (EVENT_OFFER, EVENT_ANSWER, EVENT_ICE_CANDIDATE)


class MatchService:
	def __init__(
		self,
		notifier: Notifier,
		*,
		identity: Optional[IdentityRegistry] = None,
		ledger: Optional[ReputationLedger] = None,
		queues: Optional[WaitingQueueManager] = None,
		sessions: Optional[SessionRegistry] = None,
		dedup_reactions: Optional[bool] = None,
		clock: Callable[[], float] = time.time,
	) -> None:
		self._notifier = notifier
		self.identity = identity or IdentityRegistry()
		self.ledger = ledger or ReputationLedger(
			report_threshold=settings.report_threshold,
			dislike_threshold=settings.dislike_threshold,
		)
		self.queues = queues or WaitingQueueManager()
		self.sessions = sessions or SessionRegistry(clock=clock)
		self._profiles: Dict[str, Profile] = {}
		self._locks: Dict[ChatMode, asyncio.Lock] = {mode: asyncio.Lock() for mode in self.queues.modes}
		if dedup_reactions is None:
			dedup_reactions = settings.reaction_dedup_per_session
		self.pairing = PairingEngine(
			self.queues,
			self.sessions,
			self.ledger,
			self._profiles,
			notifier.is_connected,
		)
		self.relay = RelayRouter(
			self.sessions,
			self.ledger,
			self.identity,
			notifier.is_connected,
			dedup_reactions=dedup_reactions,
			clock=clock,
		)
		self.lifecycle = ConnectionLifecycle(self.queues, self.sessions, self.identity, self.relay)

	# -- queries -----------------------------------------------------------

	def profile_for(self, handle: str) -> Optional[Profile]:
		return self._profiles.get(handle)

	def waiting(self) -> Dict[ChatMode, int]:
		return self.queues.snapshot()

	def active_sessions(self) -> int:
		return len(self.sessions)

	def reputation(self, email: str) -> ReputationRecord:
		return self.ledger.get(email)

	# -- inbound events ----------------------------------------------------

	async def update_profile(self, handle: str, data: Any) -> None:
		update = await self._parse(ProfileUpdate, data, handle, "profile:update", notify=True)
		if update is None:
			return
		profile = Profile(
			name=update.name.strip(),
			email=update.email,
			interests=tuple(update.interests),
			bio=update.bio,
		)
		self._profiles[handle] = profile
		self.identity.attach(handle, profile.email)
		record = self.ledger.ensure(profile.email)
		outbound: List[Envelope] = []
		payload = record.to_payload(profile.email)
		if record.banned:
			outbound.append(Envelope(handle, EVENT_BANNED, payload))
		outbound.append(Envelope(handle, EVENT_REPUTATION, payload))
		await self._deliver(outbound)

	async def request_match(self, handle: str, data: Any) -> None:
		request = await self._parse(MatchRequest, data, handle, "match:request", notify=True)
		if request is None:
			return
		profile = self._profiles.get(handle)
		if profile is None:
			await self._notifier.send(handle, EVENT_ERROR, PROFILE_MISSING_MESSAGE)
			return
		mode = request.mode
		async with self._serialized(mode):
			outbound: List[Envelope] = []
			if is_banned(self.ledger, profile):
				self.queues.remove_everywhere(handle)
				record = self.ledger.get(profile.email)
				outbound.append(Envelope(handle, EVENT_BANNED, record.to_payload(profile.email)))
				logger.info("match request rejected for banned profile sid=%s", handle)
			else:
				# Re-matching from inside a session counts as leaving it first.
				outbound.extend(self.lifecycle.leave(handle))
				length = self.queues.enqueue(mode, handle)
				outbound.append(Envelope(handle, EVENT_QUEUED, {"mode": mode, "queueLength": length}))
				outbound.extend(self.pairing.drain(mode))
			for queued_mode in self.queues.modes:
				obs_metrics.queue_depth(queued_mode, self.queues.length(queued_mode))
			await self._deliver(outbound)

	async def chat_message(self, handle: str, data: Any) -> None:
		message = await self._parse(ChatMessageIn, data, handle, "chat:text:message")
		if message is None:
			return
		await self._deliver(self.relay.chat(handle, message))

	async def signal(self, handle: str, event: str, data: Any) -> None:
		if event not in SIGNAL_EVENTS:
			raise ValueError(f"unsupported signaling event {event}")
		if event == EVENT_ICE_CANDIDATE:
			candidate = await self._parse(SignalCandidate, data, handle, event)
			if candidate is None:
				return
			session_id = candidate.session_id
			payload = {"sessionId": session_id, "candidate": candidate.candidate}
		else:
			description = await self._parse(SignalDescription, data, handle, event)
			if description is None:
				return
			session_id = description.session_id
			payload = {"sessionId": session_id, "description": description.description}
		await self._deliver(self.relay.signal(handle, session_id, event, payload))

	async def react(self, handle: str, data: Any) -> None:
		reaction = await self._parse(ReactionRequest, data, handle, "profile:reaction")
		if reaction is None:
			return
		outbound, _, flipped = self.relay.react(handle, reaction)
		if flipped:
			logger.info("email banned after %s reaction", reaction.kind)
			async with self._serialized():
				self._evict(self.identity.handles_for(reaction.target))
				await self._deliver(outbound)
			return
		await self._deliver(outbound)

	async def leave(self, handle: str, data: Any = None) -> None:
		request = await self._parse(LeaveRequest, data or {}, handle, "chat:leave")
		session_id = request.session_id if request is not None else None
		async with self._serialized():
			await self._deliver(self.lifecycle.leave(handle, session_id))

	async def disconnect(self, handle: str) -> None:
		async with self._serialized():
			notices = self.lifecycle.disconnect(handle)
			self._profiles.pop(handle, None)
			for mode in self.queues.modes:
				obs_metrics.queue_depth(mode, self.queues.length(mode))
			await self._deliver(notices)

	# -- helpers -----------------------------------------------------------

	@asynccontextmanager
	async def _serialized(self, *modes: ChatMode) -> AsyncIterator[None]:
		async with AsyncExitStack() as stack:
			for mode in modes or self.queues.modes:
				await stack.enter_async_context(self._locks[mode])
			yield

	def _evict(self, handles: Iterable[str]) -> None:
		for handle in handles:
			self.queues.remove_everywhere(handle)

	async def _parse(
		self,
		model: Type[PayloadT],
		data: Any,
		handle: str,
		event: str,
		*,
		notify: bool = False,
	) -> Optional[PayloadT]:
		try:
			return model.model_validate(data if data is not None else {})
		except ValidationError as exc:
			obs_metrics.payload_rejected(event)
			logger.debug("rejected %s payload sid=%s errors=%s", event, handle, exc.error_count())
			if notify:
				await self._notifier.send(handle, EVENT_ERROR, INVALID_PAYLOAD_MESSAGE)
			return None

	async def _deliver(self, envelopes: Iterable[Envelope]) -> None:
		# Consecutive envelopes sharing one payload object are a fan-out.
		for (event, _), group in groupby(envelopes, key=lambda e: (e.event, id(e.payload))):
			batch = list(group)
			if len(batch) == 1:
				await self._notifier.send(batch[0].handle, event, batch[0].payload)
			else:
				await self._notifier.broadcast([e.handle for e in batch], event, batch[0].payload)
