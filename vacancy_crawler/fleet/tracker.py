"""Fleet-wide aggregation of worker states and URL outcome counters."""

from __future__ import annotations

from threading import Lock
from typing import Callable, Hashable, Iterable

import structlog

from .states import COUNTED_STATES, Flag, WorkerState

WorkerId = Hashable


class FleetSubscriber:
    """Callback contract for consumers of fleet notifications.

    Every method is a no-op here; subclasses override what they need.
    Callbacks run on the reporting worker's thread while the tracker lock is
    held, so they must be quick and must not call back into workers.
    """

    def on_state_changed(self, worker_id: WorkerId, state: WorkerState) -> None:
        pass

    def on_flag_count_changed(self, flag: Flag, total: int) -> None:
        pass

    def on_state_counts_changed(self, counts: dict[WorkerState, int]) -> None:
        pass

    def on_worker_removed(self, worker_id: WorkerId) -> None:
        pass


class FleetTracker:
    """Central mirror of the latest state and per-flag counts of every worker.

    The tracker keeps workers by id only and never validates transitions; the
    first report for an unseen id registers it. Totals are recomputed from the
    maps on every report, so duplicate or reordered reports cannot skew them.
    Each mutating call holds one lock across mutate, recompute and notify.
    """

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self.logger = logger or structlog.get_logger("vacancy_crawler.tracker")
        self._lock = Lock()
        self._states: dict[WorkerId, WorkerState] = {}
        self._flag_counts: dict[WorkerId, dict[Flag, int]] = {}
        self._subscribers: list[FleetSubscriber] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------
    def subscribe(self, subscriber: FleetSubscriber) -> None:
        with self._lock:
            if subscriber not in self._subscribers:
                self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: FleetSubscriber) -> None:
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def report_state(self, worker_id: WorkerId, state: WorkerState) -> None:
        state = WorkerState(state)
        with self._lock:
            if self._ignore_closed("report_state", worker_id):
                return
            self._states[worker_id] = state
            self._flag_counts.setdefault(worker_id, self._empty_counts())
            self._notify(lambda sub: sub.on_state_changed(worker_id, state))
            counts = self._state_counts()
            self._notify(lambda sub: sub.on_state_counts_changed(dict(counts)))

    def report_flag_count(self, worker_id: WorkerId, flag: Flag, count: int) -> None:
        flag = Flag(flag)
        if count < 0:
            raise ValueError(f"Flag count cannot be negative: {count}")
        with self._lock:
            if self._ignore_closed("report_flag_count", worker_id):
                return
            self._flag_counts.setdefault(worker_id, self._empty_counts())[flag] = count
            total = self._flag_total(flag)
            self._notify(lambda sub: sub.on_flag_count_changed(flag, total))

    def remove_worker(self, worker_id: WorkerId) -> None:
        with self._lock:
            if worker_id not in self._states and worker_id not in self._flag_counts:
                return
            self._states.pop(worker_id, None)
            previous = self._flag_counts.pop(worker_id, {})
            self._notify(lambda sub: sub.on_worker_removed(worker_id))
            counts = self._state_counts()
            self._notify(lambda sub: sub.on_state_counts_changed(dict(counts)))
            for flag in Flag:
                if previous.get(flag):
                    total = self._flag_total(flag)
                    self._notify(lambda sub, flag=flag, total=total: sub.on_flag_count_changed(flag, total))
        self.logger.debug("worker_removed", worker_id=worker_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def state_counts(self) -> dict[WorkerState, int]:
        with self._lock:
            return self._state_counts()

    def flag_total(self, flag: Flag) -> int:
        with self._lock:
            return self._flag_total(Flag(flag))

    def flag_totals(self) -> dict[Flag, int]:
        with self._lock:
            return {flag: self._flag_total(flag) for flag in Flag}

    def worker_state(self, worker_id: WorkerId) -> WorkerState | None:
        with self._lock:
            return self._states.get(worker_id)

    def worker_counts(self, worker_id: WorkerId) -> dict[Flag, int]:
        with self._lock:
            return dict(self._flag_counts.get(worker_id, self._empty_counts()))

    def workers(self) -> list[WorkerId]:
        with self._lock:
            return list(dict.fromkeys([*self._states, *self._flag_counts]))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._subscribers.clear()
            self._states.clear()
            self._flag_counts.clear()
        self.logger.info("tracker_closed")

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    def _state_counts(self) -> dict[WorkerState, int]:
        counts = {state: 0 for state in COUNTED_STATES}
        for state in self._states.values():
            if state in counts:
                counts[state] += 1
        return counts

    def _flag_total(self, flag: Flag) -> int:
        return sum(counts.get(flag, 0) for counts in self._flag_counts.values())

    @staticmethod
    def _empty_counts() -> dict[Flag, int]:
        return {flag: 0 for flag in Flag}

    def _ignore_closed(self, operation: str, worker_id: WorkerId) -> bool:
        if self._closed:
            self.logger.debug("report_after_close", operation=operation, worker_id=worker_id)
        return self._closed

    def _notify(self, deliver: Callable[[FleetSubscriber], None]) -> None:
        for subscriber in self._iter_subscribers():
            try:
                deliver(subscriber)
            except Exception:  # noqa: BLE001
                self.logger.exception(
                    "subscriber_failed", subscriber=type(subscriber).__name__
                )

    def _iter_subscribers(self) -> Iterable[FleetSubscriber]:
        return tuple(self._subscribers)


__all__ = ["FleetSubscriber", "FleetTracker", "WorkerId"]
