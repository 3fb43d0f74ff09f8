"""Email to live-connection lookup table."""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional, Set

from badger_connect.domain.reputation.models import normalise_email


class IdentityRegistry:
	"""Tracks which connections currently assert which email.

	Several connections may share one email (one per browser tab). A
	connection asserts at most one email; attaching under a new email moves
	it.
	"""

	def __init__(self) -> None:
		self._handles: Dict[str, Set[str]] = {}
		self._emails: Dict[str, str] = {}

	def attach(self, handle: str, email: str) -> None:
		key = normalise_email(email)
		if not key:
			return
		previous = self._emails.get(handle)
		if previous == key:
			return
		if previous is not None:
			self._discard(previous, handle)
		self._handles.setdefault(key, set()).add(handle)
		self._emails[handle] = key

	def detach(self, handle: str) -> Optional[str]:
		email = self._emails.pop(handle, None)
		if email is not None:
			self._discard(email, handle)
		return email

	def handles_for(self, email: str) -> FrozenSet[str]:
		return frozenset(self._handles.get(normalise_email(email), ()))

	def email_of(self, handle: str) -> Optional[str]:
		return self._emails.get(handle)

	def __len__(self) -> int:
		return len(self._handles)

	def _discard(self, email: str, handle: str) -> None:
		handles = self._handles.get(email)
		if handles is None:
			return
		handles.discard(handle)
		if not handles:
			del self._handles[email]
