"""In-process reputation ledger keyed by normalised email."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict

from badger_connect.domain.reputation.models import (
	DEFAULT_DISLIKE_THRESHOLD,
	DEFAULT_REPORT_THRESHOLD,
	EMPTY_RECORD,
	REACTION_KINDS,
	ReputationRecord,
	normalise_email,
)

logger = logging.getLogger(__name__)


class InvalidReaction(ValueError):
	def __init__(self, code: str) -> None:
		super().__init__(code)
		self.code = code


class ReputationLedger:
	"""Likes, dislikes and reports per email with a monotonic ban flag.

	Records are created lazily by the first mutation (or by :meth:`ensure`
	at profile registration); reads never create. There is no decrement or
	unban path. The ledger does not deduplicate reactions, callers decide
	whether a repeated reaction should reach it.
	"""

	def __init__(
		self,
		*,
		report_threshold: int = DEFAULT_REPORT_THRESHOLD,
		dislike_threshold: int = DEFAULT_DISLIKE_THRESHOLD,
	) -> None:
		self._report_threshold = report_threshold
		self._dislike_threshold = dislike_threshold
		self._records: Dict[str, ReputationRecord] = {}

	def __len__(self) -> int:
		return len(self._records)

	def __contains__(self, email: object) -> bool:
		return isinstance(email, str) and normalise_email(email) in self._records

	def get(self, email: str) -> ReputationRecord:
		return self._records.get(normalise_email(email), EMPTY_RECORD)

	def is_banned(self, email: str) -> bool:
		return self.get(email).banned

	def ensure(self, email: str) -> ReputationRecord:
		key = normalise_email(email)
		if not key:
			return EMPTY_RECORD
		return self._records.setdefault(key, EMPTY_RECORD)

	def apply_reaction(self, email: str, kind: str) -> ReputationRecord:
		key = normalise_email(email)
		if not key:
			raise InvalidReaction("missing_email")
		if kind not in REACTION_KINDS:
			raise InvalidReaction("unknown_reaction")
		current = self._records.get(key, EMPTY_RECORD)
		if kind == "like":
			updated = replace(current, likes=current.likes + 1)
		elif kind == "dislike":
			updated = replace(current, dislikes=current.dislikes + 1)
		else:
			updated = replace(current, reports=current.reports + 1)
		banned = (
			current.banned
			or updated.reports >= self._report_threshold
			or updated.dislikes >= self._dislike_threshold
		)
		updated = replace(updated, banned=banned)
		self._records[key] = updated
		if banned and not current.banned:
			logger.info(
				"reputation ban reached reports=%s dislikes=%s",
				updated.reports,
				updated.dislikes,
			)
		return updated
