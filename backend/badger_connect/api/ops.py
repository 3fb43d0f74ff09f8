"""Health and metrics endpoints."""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from badger_connect.api.deps import get_match_service
from badger_connect.domain.matching.service import MatchService
from badger_connect.obs import health
from badger_connect.settings import settings

router = APIRouter()


def _presented_token(admin_header: Optional[str], authorization: Optional[str]) -> str:
	if admin_header:
		return admin_header
	scheme, _, credentials = (authorization or "").partition(" ")
	if scheme.lower() == "bearer":
		return credentials.strip()
	return ""


async def require_metrics_access(
	admin_header: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if settings.obs_metrics_public:
		return
	expected = settings.obs_admin_token
	if not expected:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	if not hmac.compare_digest(_presented_token(admin_header, authorization).encode(), expected.encode()):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health")
async def health_matchmaking(service: Optional[MatchService] = Depends(get_match_service)) -> JSONResponse:
	status_code, payload = await health.matchmaking(service)
	return JSONResponse(payload, status_code=status_code)


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/metrics", dependencies=[Depends(require_metrics_access)])
async def prometheus_metrics() -> Response:
	return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
