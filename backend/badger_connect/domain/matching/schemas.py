"""Pydantic schemas for inbound Socket.IO payloads."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChatMode = Literal["text", "video"]
ReactionKind = Literal["like", "dislike", "report"]


class InboundPayload(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProfileUpdate(InboundPayload):
	name: str = ""
	email: str = Field(..., min_length=3)
	interests: List[str] = Field(default_factory=list)
	bio: Optional[str] = None

	@field_validator("email")
	@classmethod
	def _normalise_email(cls, value: str) -> str:
		email = value.strip().lower()
		if "@" not in email:
			raise ValueError("invalid_email")
		return email

	@field_validator("interests", mode="before")
	@classmethod
	def _coerce_interests(cls, value: Any) -> Any:
		if value is None:
			return []
		return value


class MatchRequest(InboundPayload):
	mode: ChatMode


class ChatMessageIn(InboundPayload):
	session_id: str = Field(..., min_length=1, alias="sessionId")
	body: str = Field(..., min_length=1)
	sender: Optional[str] = Field(default=None, alias="from")


class LeaveRequest(InboundPayload):
	session_id: Optional[str] = Field(default=None, alias="sessionId")
	user: Optional[Any] = None
	mode: Optional[str] = None


class ReactionRequest(InboundPayload):
	target: str = Field(..., min_length=1)
	kind: ReactionKind = Field(..., alias="type")
	session_id: str = Field(..., min_length=1, alias="sessionId")

	@field_validator("target")
	@classmethod
	def _normalise_target(cls, value: str) -> str:
		return value.strip().lower()


class SignalDescription(InboundPayload):
	session_id: str = Field(..., min_length=1, alias="sessionId")
	description: Any

	@field_validator("description")
	@classmethod
	def _require_description(cls, value: Any) -> Any:
		if value is None or value == "":
			raise ValueError("missing_description")
		return value


class SignalCandidate(InboundPayload):
	session_id: str = Field(..., min_length=1, alias="sessionId")
	# null marks the end of candidate gathering and is still relayed
	candidate: Any = Field(...)
