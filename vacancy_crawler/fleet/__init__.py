"""Fleet state tracking.

``CrawlWorker`` lives in :mod:`vacancy_crawler.fleet.worker` and is not
re-exported here because it depends on the engine package.
"""

from .states import ALLOWED_TRANSITIONS, COUNTED_STATES, Flag, WorkerState, can_transition, check_transition
from .tracker import FleetSubscriber, FleetTracker

__all__ = [
    "ALLOWED_TRANSITIONS",
    "COUNTED_STATES",
    "Flag",
    "FleetSubscriber",
    "FleetTracker",
    "WorkerState",
    "can_transition",
    "check_transition",
]
