"""Domain models for crowd-sourced reputation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ReactionKind = str

REACTION_KINDS: tuple[ReactionKind, ...] = (
	"like",
	"dislike",
	"report",
)

DEFAULT_REPORT_THRESHOLD = 3
DEFAULT_DISLIKE_THRESHOLD = 10


@dataclass(frozen=True, slots=True)
class ReputationRecord:
	"""Counters for one email plus the derived ban flag."""

	likes: int = 0
	dislikes: int = 0
	reports: int = 0
	banned: bool = False

	def to_dict(self) -> dict[str, Any]:
		return {
			"likes": self.likes,
			"dislikes": self.dislikes,
			"reports": self.reports,
			"banned": self.banned,
		}

	def to_payload(self, email: str) -> dict[str, Any]:
		return {"email": email, **self.to_dict()}


EMPTY_RECORD = ReputationRecord()


def normalise_email(email: str | None) -> str:
	return (email or "").strip().lower()
