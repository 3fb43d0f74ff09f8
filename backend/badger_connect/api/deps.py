"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Optional

from badger_connect.domain.matching import sockets as match_sockets
from badger_connect.domain.matching.service import MatchService


def get_match_service() -> Optional[MatchService]:
	return match_sockets.get_service()
