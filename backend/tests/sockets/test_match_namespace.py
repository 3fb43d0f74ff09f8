from unittest.mock import AsyncMock

import pytest
import socketio

from badger_connect.domain.matching.policy import INTERNAL_ERROR_MESSAGE
from badger_connect.domain.matching.sockets import MatchNamespace

_ENVIRON = {"asgi.scope": {"headers": []}}


def _namespace() -> MatchNamespace:
	server = socketio.AsyncServer(async_mode="asgi")
	namespace = MatchNamespace("/")
	server.register_namespace(namespace)
	namespace.emit = AsyncMock()
	return namespace


def _emitted(namespace: MatchNamespace, sid: str, event: str | None = None) -> list:
	return [
		call.args[1]
		for call in namespace.emit.await_args_list
		if call.kwargs.get("room") == sid and (event is None or call.args[0] == event)
	]


async def _join(namespace: MatchNamespace, sid: str, email: str, mode: str = "text") -> None:
	await namespace.trigger_event("connect", sid, _ENVIRON)
	await namespace.trigger_event(
		"profile:update",
		sid,
		{"name": sid.title(), "email": email, "interests": ["climbing"], "bio": ""},
	)
	await namespace.trigger_event("match:request", sid, {"mode": mode})


@pytest.mark.asyncio
async def test_connect_tracks_sid():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-a", _ENVIRON)
	assert namespace.is_live("sid-a")
	namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_profile_update_emits_reputation():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-a", _ENVIRON)
	await namespace.trigger_event("profile:update", "sid-a", {"name": "Ann", "email": "ann@x.edu"})
	(record,) = _emitted(namespace, "sid-a", "profile:reputation")
	assert record["email"] == "ann@x.edu"
	assert record["banned"] is False


@pytest.mark.asyncio
async def test_match_request_pairs_two_sockets():
	namespace = _namespace()
	await _join(namespace, "sid-a", "a@x.edu")
	await _join(namespace, "sid-b", "b@x.edu")

	(paired_a,) = _emitted(namespace, "sid-a", "match:paired")
	(paired_b,) = _emitted(namespace, "sid-b", "match:paired")
	assert paired_a["sessionId"] == paired_b["sessionId"]
	assert paired_a["initiator"] is True
	assert paired_b["initiator"] is False
	assert paired_b["partnerProfile"] == {
		"name": "Sid-A",
		"email": "a@x.edu",
		"interests": ["climbing"],
		"interest": "climbing",
		"bio": "Verified student.",
	}


@pytest.mark.asyncio
async def test_colon_and_hyphen_events_reach_handlers():
	namespace = _namespace()
	await _join(namespace, "sid-a", "a@x.edu", mode="video")
	await _join(namespace, "sid-b", "b@x.edu", mode="video")
	(paired,) = _emitted(namespace, "sid-a", "match:paired")
	session_id = paired["sessionId"]
	namespace.emit.reset_mock()

	await namespace.trigger_event("chat:text:message", "sid-a", {"sessionId": session_id, "body": "hi"})
	await namespace.trigger_event(
		"webrtc:offer", "sid-a", {"sessionId": session_id, "description": {"type": "offer", "sdp": "x"}}
	)
	await namespace.trigger_event(
		"webrtc:answer", "sid-b", {"sessionId": session_id, "description": {"type": "answer", "sdp": "y"}}
	)
	await namespace.trigger_event("webrtc:ice-candidate", "sid-b", {"sessionId": session_id, "candidate": None})

	events = [(call.args[0], call.kwargs["room"]) for call in namespace.emit.await_args_list]
	assert events == [
		("chat:text:message", "sid-b"),
		("webrtc:offer", "sid-b"),
		("webrtc:answer", "sid-a"),
		("webrtc:ice-candidate", "sid-a"),
	]


@pytest.mark.asyncio
async def test_disconnect_notifies_partner_and_stops_relay():
	namespace = _namespace()
	await _join(namespace, "sid-a", "a@x.edu")
	await _join(namespace, "sid-b", "b@x.edu")
	(paired,) = _emitted(namespace, "sid-a", "match:paired")
	session_id = paired["sessionId"]
	namespace.emit.reset_mock()

	await namespace.trigger_event("disconnect", "sid-a")

	assert not namespace.is_live("sid-a")
	assert _emitted(namespace, "sid-b") == [{"sessionId": session_id}]
	assert _emitted(namespace, "sid-a") == []
	assert namespace.service.active_sessions() == 0

	namespace.emit.reset_mock()
	await namespace.trigger_event("chat:text:message", "sid-b", {"sessionId": session_id, "body": "hello?"})
	namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_chat_leave_reports_session_ended():
	namespace = _namespace()
	await _join(namespace, "sid-a", "a@x.edu")
	await _join(namespace, "sid-b", "b@x.edu")
	(paired,) = _emitted(namespace, "sid-a", "match:paired")
	namespace.emit.reset_mock()

	await namespace.trigger_event("chat:leave", "sid-b", {"sessionId": paired["sessionId"], "mode": "text"})

	assert [call.args[0] for call in namespace.emit.await_args_list if call.kwargs["room"] == "sid-b"] == [
		"system:session-ended"
	]
	assert [call.args[0] for call in namespace.emit.await_args_list if call.kwargs["room"] == "sid-a"] == [
		"system:partner-left"
	]


@pytest.mark.asyncio
async def test_reaction_over_socket_updates_reputation():
	namespace = _namespace()
	await _join(namespace, "sid-a", "a@x.edu")
	await _join(namespace, "sid-b", "b@x.edu")
	(paired,) = _emitted(namespace, "sid-a", "match:paired")
	namespace.emit.reset_mock()

	await namespace.trigger_event(
		"profile:reaction", "sid-a", {"target": "b@x.edu", "type": "like", "sessionId": paired["sessionId"]}
	)

	assert _emitted(namespace, "sid-b", "profile:reputation")[0]["likes"] == 1
	assert _emitted(namespace, "sid-a", "profile:reputation")[0]["likes"] == 1


@pytest.mark.asyncio
async def test_handler_failure_emits_system_error():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-a", _ENVIRON)
	namespace.service.request_match = AsyncMock(side_effect=RuntimeError("boom"))

	await namespace.trigger_event("match:request", "sid-a", {"mode": "text"})

	namespace.emit.assert_awaited_once_with("system:error", INTERNAL_ERROR_MESSAGE, room="sid-a")


@pytest.mark.asyncio
async def test_unknown_event_is_ignored():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-a", _ENVIRON)
	await namespace.trigger_event("presence:ping", "sid-a", {})
	namespace.emit.assert_not_awaited()
