"""Worker lifecycle states, outcome flags and the legal transition table."""

from __future__ import annotations

from enum import Enum

from ..errors import IllegalStateTransition


class WorkerState(str, Enum):
    """Lifecycle state a worker reports to the fleet tracker."""

    RUNNING = "running"
    PAUSING = "pausing"
    PAUSED = "paused"
    STOPPED = "stopped"


class Flag(str, Enum):
    """Classification of the result of processing one URL."""

    FOUND = "found"
    VISITED = "visited"
    RETRY = "retry"
    FILE = "file"
    DEAD = "dead"
    RECRAWL = "recrawl"


# States with a dedicated fleet-wide total; PAUSING is transitional.
COUNTED_STATES: tuple[WorkerState, ...] = (
    WorkerState.RUNNING,
    WorkerState.PAUSED,
    WorkerState.STOPPED,
)

# ``None`` is a freshly built worker that has not reported anything yet.
ALLOWED_TRANSITIONS: dict[WorkerState | None, frozenset[WorkerState]] = {
    None: frozenset({WorkerState.RUNNING, WorkerState.STOPPED}),
    WorkerState.RUNNING: frozenset({WorkerState.PAUSING, WorkerState.STOPPED}),
    WorkerState.PAUSING: frozenset(
        {WorkerState.PAUSED, WorkerState.RUNNING, WorkerState.STOPPED}
    ),
    WorkerState.PAUSED: frozenset({WorkerState.RUNNING, WorkerState.STOPPED}),
    WorkerState.STOPPED: frozenset(),
}


def can_transition(current: WorkerState | None, target: WorkerState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(current: WorkerState | None, target: WorkerState) -> WorkerState:
    """Return ``target`` when the move is legal, raise otherwise."""

    if not can_transition(current, target):
        raise IllegalStateTransition(current, target)
    return target


__all__ = [
    "ALLOWED_TRANSITIONS",
    "COUNTED_STATES",
    "Flag",
    "WorkerState",
    "can_transition",
    "check_transition",
]
