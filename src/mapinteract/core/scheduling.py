"""Ordered deadline queue shared by the host clock and the trace engine."""
from __future__ import annotations
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterator


@dataclass(order=True)
class Deadline:
    """A pending entry in a DeadlineQueue."""
    due: float
    seq: int
    key: Hashable = field(compare=False)
    payload: Any = field(compare=False, default=None)


class DeadlineQueue:
    """Min-heap of deadlines keyed for cancellation.

    Cancelling marks the key dead; stale heap entries are discarded lazily
    when they surface. Pushing a key that is already pending replaces it.
    """

    def __init__(self) -> None:
        self._heap: list[Deadline] = []
        self._live: dict[Hashable, Deadline] = {}
        self._counter = itertools.count()

    def push(self, due: float, key: Hashable, payload: Any = None) -> Deadline:
        """Schedule a deadline for a key."""
        deadline = Deadline(due=due, seq=next(self._counter), key=key, payload=payload)
        self._live[key] = deadline
        heapq.heappush(self._heap, deadline)
        return deadline

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending deadline for a key. Unknown keys are ignored."""
        return self._live.pop(key, None) is not None

    def pop_due(self, now: float) -> Iterator[Deadline]:
        """Yield live deadlines with due <= now, earliest first.

        Deadlines pushed while iterating are picked up if already due.
        """
        while self._heap and self._heap[0].due <= now:
            deadline = heapq.heappop(self._heap)
            if self._live.get(deadline.key) is not deadline:
                continue
            del self._live[deadline.key]
            yield deadline

    def next_due(self) -> float | None:
        """Due time of the earliest live deadline, if any."""
        while self._heap and self._live.get(self._heap[0].key) is not self._heap[0]:
            heapq.heappop(self._heap)
        return self._heap[0].due if self._heap else None

    def clear(self) -> None:
        """Drop every deadline."""
        self._heap.clear()
        self._live.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._live

    def __len__(self) -> int:
        return len(self._live)
