"""Policy errors and guards for matchmaking."""

from __future__ import annotations

from typing import Optional

from badger_connect.domain.matching.models import Profile
from badger_connect.domain.reputation.ledger import ReputationLedger

PROFILE_MISSING_MESSAGE = "Profile missing. Please log in again."
INVALID_PAYLOAD_MESSAGE = "Invalid request."
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again."


class MatchPolicyError(RuntimeError):
	def __init__(self, code: str, *, message: str | None = None) -> None:
		super().__init__(message or code)
		self.code = code
		self.detail = message or code


class SessionConflict(MatchPolicyError):
	def __init__(self, handle: str) -> None:
		super().__init__("session_conflict", message=f"connection {handle} is already in a session")
		self.handle = handle


def is_banned(ledger: ReputationLedger, profile: Optional[Profile]) -> bool:
	return profile is not None and ledger.is_banned(profile.email)
