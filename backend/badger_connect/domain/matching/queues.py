"""Per-mode FIFO waiting queues."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Iterable, Optional

from badger_connect.domain.matching.models import CHAT_MODES, ChatMode


class WaitingQueueManager:
	"""One FIFO of connection handles per chat mode.

	A handle is queued in at most one mode at a time. Callers remove a
	handle everywhere before enqueueing it again; :meth:`enqueue` refuses a
	handle that is still queued.
	"""

	def __init__(self, modes: Iterable[ChatMode] = CHAT_MODES) -> None:
		self._queues: Dict[ChatMode, Deque[str]] = {mode: deque() for mode in modes}

	@property
	def modes(self) -> tuple[ChatMode, ...]:
		return tuple(self._queues)

	def supports(self, mode: str) -> bool:
		return mode in self._queues

	def enqueue(self, mode: ChatMode, handle: str) -> int:
		if self.mode_of(handle) is not None:
			raise ValueError("handle_already_queued")
		queue = self._queues[mode]
		queue.append(handle)
		return len(queue)

	def requeue_front(self, mode: ChatMode, handle: str) -> None:
		"""Return a dequeued handle to the head of its queue, keeping its seniority."""
		self._queues[mode].appendleft(handle)

	def pop_oldest(self, mode: ChatMode) -> Optional[str]:
		queue = self._queues[mode]
		if not queue:
			return None
		return queue.popleft()

	def remove_everywhere(self, handle: str) -> bool:
		removed = False
		for queue in self._queues.values():
			while handle in queue:
				queue.remove(handle)
				removed = True
		return removed

	def mode_of(self, handle: str) -> Optional[ChatMode]:
		for mode, queue in self._queues.items():
			if handle in queue:
				return mode
		return None

	def length(self, mode: ChatMode) -> int:
		return len(self._queues[mode])

	def snapshot(self) -> Dict[ChatMode, int]:
		return {mode: len(queue) for mode, queue in self._queues.items()}
