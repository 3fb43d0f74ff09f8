"""Domain models for matchmaking and 1:1 sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

ChatMode = str

CHAT_MODES: tuple[ChatMode, ...] = (
	"text",
	"video",
)

DEFAULT_PARTNER_NAME = "Unknown Badger"
DEFAULT_PARTNER_BIO = "Verified student."

# Server -> client event names
EVENT_QUEUED = "match:queued"
EVENT_PAIRED = "match:paired"
EVENT_CHAT_MESSAGE = "chat:text:message"
EVENT_PARTNER_LEFT = "system:partner-left"
EVENT_SESSION_ENDED = "system:session-ended"
EVENT_REPUTATION = "profile:reputation"
EVENT_BANNED = "system:banned"
EVENT_ERROR = "system:error"
EVENT_OFFER = "webrtc:offer"
EVENT_ANSWER = "webrtc:answer"
EVENT_ICE_CANDIDATE = "webrtc:ice-candidate"


@dataclass(slots=True)
class Profile:
	"""Client-asserted profile; trusted verbatim apart from the email."""

	name: str
	email: str
	interests: tuple[str, ...] = ()
	bio: Optional[str] = None

	def sanitized(self) -> Dict[str, Any]:
		"""Partner view sent in ``match:paired``; never carries reputation."""
		return {
			"name": self.name or DEFAULT_PARTNER_NAME,
			"email": self.email,
			"interests": list(self.interests),
			"interest": self.interests[0] if self.interests else None,
			"bio": self.bio or DEFAULT_PARTNER_BIO,
		}


@dataclass(frozen=True, slots=True)
class Session:
	"""An established pairing of exactly two connections."""

	id: str
	mode: ChatMode
	participants: tuple[str, str]
	started_at: float

	def includes(self, handle: str) -> bool:
		return handle in self.participants

	def peer_of(self, handle: str) -> Optional[str]:
		first, second = self.participants
		if handle == first:
			return second
		if handle == second:
			return first
		return None


@dataclass(slots=True)
class Envelope:
	"""A single outbound event addressed to one connection."""

	handle: str
	event: str
	payload: Any = field(default=None)
