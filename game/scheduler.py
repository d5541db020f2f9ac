"""Deferred one-shot actions (respawns, flash detonations) keyed by due time."""
from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List

log = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
    due: float
    seq: int
    action: Callable[[], None] = field(compare=False)
    label: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Min-heap of pending tasks, pumped by the server loop.

    Actions are responsible for their own liveness checks; the scheduler only
    guarantees due-time order (FIFO among equal due times) and that each task
    runs at most once. Tasks run when the loop pumps ``run_due``, so they can
    land up to one tick (50 ms at 20 Hz) after their due time.
    """

    def __init__(self, now_fn: Callable[[], float] = time.time) -> None:
        self._now = now_fn
        self._heap: List[ScheduledTask] = []
        self._seq = itertools.count()

    def schedule(self, delay: float, action: Callable[[], None], label: str = "") -> ScheduledTask:
        task = ScheduledTask(due=self._now() + max(0.0, delay), seq=next(self._seq), action=action, label=label)
        heapq.heappush(self._heap, task)
        return task

    def pending(self) -> int:
        return sum(1 for t in self._heap if not t.cancelled)

    def next_due(self) -> float | None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].due if self._heap else None

    def run_due(self, now: float | None = None) -> int:
        """Run every task due at or before ``now``; returns how many ran."""
        t = self._now() if now is None else now
        ran = 0
        while self._heap and self._heap[0].due <= t:
            task = heapq.heappop(self._heap)
            if task.cancelled:
                continue
            try:
                task.action()
            except Exception:
                log.exception("[scheduler] task %s failed", task.label or task.seq)
            ran += 1
        return ran
