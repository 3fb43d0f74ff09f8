from __future__ import annotations

from typing import Dict

from badger_connect.domain.matching.models import Profile
from badger_connect.domain.matching.pairing import PairingEngine
from badger_connect.domain.matching.queues import WaitingQueueManager
from badger_connect.domain.matching.sessions import SessionRegistry
from badger_connect.domain.reputation.ledger import ReputationLedger


class _Harness:
	def __init__(self) -> None:
		self.queues = WaitingQueueManager()
		self.sessions = SessionRegistry()
		self.ledger = ReputationLedger()
		self.profiles: Dict[str, Profile] = {}
		self.live: set[str] = set()
		self.engine = PairingEngine(
			self.queues,
			self.sessions,
			self.ledger,
			self.profiles,
			lambda handle: handle in self.live,
		)

	def join(self, handle: str, mode: str = "text", *, email: str | None = None) -> None:
		self.profiles[handle] = Profile(name=handle.upper(), email=email or f"{handle}@x.edu", interests=("music",))
		self.live.add(handle)
		self.queues.enqueue(mode, handle)


def _pairs(harness: _Harness, *handles: str) -> set[tuple[str, str]]:
	result = set()
	for handle in handles:
		found = harness.sessions.find_by_handle(handle)
		if found:
			result.add(found[1].participants)
	return result


def test_strict_fifo_pairing() -> None:
	harness = _Harness()
	for handle in ("h1", "h2", "h3", "h4"):
		harness.join(handle)
	harness.engine.drain("text")
	assert _pairs(harness, "h1", "h2", "h3", "h4") == {("h1", "h2"), ("h3", "h4")}
	assert harness.queues.length("text") == 0


def test_first_dequeued_is_initiator_and_sees_partner_profile() -> None:
	harness = _Harness()
	harness.join("a")
	harness.join("b")
	outbound = harness.engine.drain("text")
	by_handle = {envelope.handle: envelope.payload for envelope in outbound}
	assert by_handle["a"]["initiator"] is True
	assert by_handle["b"]["initiator"] is False
	assert by_handle["a"]["sessionId"] == by_handle["b"]["sessionId"]
	assert by_handle["a"]["partnerProfile"]["email"] == "b@x.edu"
	assert by_handle["b"]["partnerProfile"]["email"] == "a@x.edu"
	assert "banned" not in by_handle["a"]["partnerProfile"]


def test_odd_entry_keeps_waiting() -> None:
	harness = _Harness()
	for handle in ("h1", "h2", "h3"):
		harness.join(handle)
	harness.engine.drain("text")
	assert harness.queues.pop_oldest("text") == "h3"


def test_stale_entry_is_discarded_and_live_partner_keeps_its_place() -> None:
	harness = _Harness()
	harness.join("stale")
	harness.join("h2")
	harness.live.discard("stale")
	outbound = harness.engine.drain("text")
	assert outbound == []
	assert harness.queues.snapshot()["text"] == 1
	harness.join("h3")
	harness.engine.drain("text")
	assert _pairs(harness, "h2") == {("h2", "h3")}
	assert harness.sessions.find_by_handle("stale") is None


def test_stale_entries_never_block_the_rest_of_the_queue() -> None:
	harness = _Harness()
	for handle in ("h1", "h2", "h3", "h4", "h5"):
		harness.join(handle)
	harness.live.difference_update({"h1", "h3"})
	harness.engine.drain("text")
	assert _pairs(harness, "h2", "h4", "h5") == {("h2", "h4")}
	assert harness.queues.pop_oldest("text") == "h5"


def test_entry_banned_after_queueing_never_becomes_participant() -> None:
	harness = _Harness()
	harness.join("a")
	harness.join("b")
	harness.join("c")
	for _ in range(3):
		harness.ledger.apply_reaction("a@x.edu", "report")
	outbound = harness.engine.drain("text")
	assert harness.sessions.find_by_handle("a") is None
	assert _pairs(harness, "b", "c") == {("b", "c")}
	assert [(e.handle, e.event) for e in outbound if e.handle == "a"] == [("a", "system:banned")]


def test_modes_are_independent() -> None:
	harness = _Harness()
	harness.join("t1", "text")
	harness.join("v1", "video")
	assert harness.engine.drain("text") == []
	assert harness.engine.drain("video") == []
	harness.join("v2", "video")
	harness.engine.drain("video")
	found = harness.sessions.find_by_handle("v1")
	assert found is not None and found[1].mode == "video"
	assert harness.queues.length("text") == 1


def test_failed_session_creation_keeps_queue_order() -> None:
	harness = _Harness()

	def exhausted() -> str:
		raise RuntimeError("session ids exhausted")

	harness.sessions = SessionRegistry(id_factory=exhausted)
	harness.engine = PairingEngine(
		harness.queues,
		harness.sessions,
		harness.ledger,
		harness.profiles,
		lambda handle: handle in harness.live,
	)
	for handle in ("a", "b", "c"):
		harness.join(handle)

	assert harness.engine.drain("text") == []
	assert len(harness.sessions) == 0
	assert [harness.queues.pop_oldest("text") for _ in range(3)] == ["a", "b", "c"]
