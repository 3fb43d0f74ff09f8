"""Matchmaking domain exports."""

from .models import CHAT_MODES, Profile, Session
from .queues import WaitingQueueManager
from .service import MatchService
from .sessions import SessionRegistry

__all__ = [
	"CHAT_MODES",
	"MatchService",
	"Profile",
	"Session",
	"SessionRegistry",
	"WaitingQueueManager",
]
