"""Read-only reputation lookup."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from badger_connect.api.deps import get_match_service
from badger_connect.domain.matching.service import MatchService
from badger_connect.domain.reputation.models import normalise_email

router = APIRouter()


class ReputationResponse(BaseModel):
	email: str
	likes: int
	dislikes: int
	reports: int
	banned: bool


@router.get("/reputation/{email}", response_model=ReputationResponse)
async def get_reputation(
	email: str,
	service: Optional[MatchService] = Depends(get_match_service),
) -> ReputationResponse:
	if service is None:
		raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="matchmaking_unavailable")
	normalised = normalise_email(email)
	record = service.reputation(normalised)
	return ReputationResponse(email=normalised, **record.to_dict())
