import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from badger_connect.domain.matching import sockets as match_sockets
from badger_connect.domain.matching.service import MatchService
from badger_connect.domain.matching.sockets import MatchNamespace
from badger_connect.main import app
from badger_connect.settings import settings


class RecordingNotifier:
	"""Notifier double that records every delivered event."""

	def __init__(self) -> None:
		self.connected: set[str] = set()
		self.sent: List[Tuple[str, str, Any]] = []
		self.broadcasts: List[Tuple[Tuple[str, ...], str]] = []

	def connect(self, *handles: str) -> None:
		self.connected.update(handles)

	def drop(self, handle: str) -> None:
		self.connected.discard(handle)

	def is_connected(self, handle: str) -> bool:
		return handle in self.connected

	async def send(self, handle: str, event: str, payload: Any) -> None:
		if handle in self.connected:
			self.sent.append((handle, event, payload))

	async def broadcast(self, handles: Iterable[str], event: str, payload: Any) -> None:
		handles = tuple(handles)
		self.broadcasts.append((handles, event))
		for handle in handles:
			await self.send(handle, event, payload)

	def events_for(self, handle: str, event: Optional[str] = None) -> List[Any]:
		return [
			payload
			for target, name, payload in self.sent
			if target == handle and (event is None or name == event)
		]

	def names_for(self, handle: str) -> List[str]:
		return [name for target, name, _ in self.sent if target == handle]

	def clear(self) -> None:
		self.sent.clear()
		self.broadcasts.clear()


def profile_payload(email: str, name: str = "", interests: Optional[list] = None) -> dict:
	return {
		"name": name or email.split("@", 1)[0].title(),
		"email": email,
		"interests": interests if interests is not None else ["hiking", "chess"],
	}


@pytest.fixture
def notifier() -> RecordingNotifier:
	return RecordingNotifier()


@pytest.fixture
def service(notifier: RecordingNotifier) -> MatchService:
	return MatchService(notifier, dedup_reactions=False)


@pytest.fixture
def register(service: MatchService, notifier: RecordingNotifier):
	"""Connect a handle and attach a profile for it."""

	async def _register(handle: str, email: str, **profile: Any) -> None:
		notifier.connect(handle)
		await service.update_profile(handle, {**profile_payload(email), **profile})

	return _register


@pytest.fixture(autouse=True)
def force_test_settings():
	original_public = settings.obs_metrics_public
	original_token = settings.obs_admin_token
	try:
		yield
	finally:
		settings.obs_metrics_public = original_public
		settings.obs_admin_token = original_token


@pytest.fixture
def app_namespace():
	"""Install a fresh matchmaking namespace behind the HTTP app."""
	original = match_sockets._namespace
	namespace = MatchNamespace("/")
	namespace.emit = AsyncMock()
	match_sockets.set_namespace(namespace)
	try:
		yield namespace
	finally:
		match_sockets._namespace = original


@pytest_asyncio.fixture
async def api_client(app_namespace):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
