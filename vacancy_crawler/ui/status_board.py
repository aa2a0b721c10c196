"""Rich status board mirroring fleet totals."""

from __future__ import annotations

from threading import Lock
from typing import Hashable

from rich.console import Console
from rich.errors import LiveError
from rich.live import Live
from rich.table import Table

from ..fleet import COUNTED_STATES, Flag, FleetSubscriber, WorkerState

_STATE_STYLES = {
    WorkerState.RUNNING: "green",
    WorkerState.PAUSING: "yellow",
    WorkerState.PAUSED: "yellow",
    WorkerState.STOPPED: "red",
}


class FleetStatusBoard(FleetSubscriber):
    """Keep the latest fleet totals and render them as a table.

    Callbacks arrive on worker threads; rendering may happen on the Live
    refresh thread, so both sides go through one lock.
    """

    def __init__(self, console: Console | None = None, enabled: bool = True) -> None:
        self.enabled = enabled
        self._console = console
        self._live: Live | None = None
        self._lock = Lock()
        self._state_counts: dict[WorkerState, int] = {state: 0 for state in COUNTED_STATES}
        self._flag_totals: dict[Flag, int] = {flag: 0 for flag in Flag}
        self._workers: dict[Hashable, WorkerState] = {}

    # FleetSubscriber -------------------------------------------------
    def on_state_changed(self, worker_id: Hashable, state: WorkerState) -> None:
        with self._lock:
            self._workers[worker_id] = state

    def on_flag_count_changed(self, flag: Flag, total: int) -> None:
        with self._lock:
            self._flag_totals[flag] = total

    def on_state_counts_changed(self, counts: dict[WorkerState, int]) -> None:
        with self._lock:
            self._state_counts.update(counts)

    def on_worker_removed(self, worker_id: Hashable) -> None:
        with self._lock:
            self._workers.pop(worker_id, None)

    # Snapshot --------------------------------------------------------
    @property
    def state_counts(self) -> dict[WorkerState, int]:
        with self._lock:
            return dict(self._state_counts)

    @property
    def flag_totals(self) -> dict[Flag, int]:
        with self._lock:
            return dict(self._flag_totals)

    @property
    def worker_states(self) -> dict[Hashable, WorkerState]:
        with self._lock:
            return dict(self._workers)

    def render(self) -> Table:
        with self._lock:
            state_counts = dict(self._state_counts)
            flag_totals = dict(self._flag_totals)
            workers = sorted(self._workers.items(), key=lambda item: str(item[0]))

        table = Table(title="Vacancy crawler fleet", expand=False)
        table.add_column("Metric", style="bold cyan")
        table.add_column("Value", justify="right")
        for state in COUNTED_STATES:
            table.add_row(f"workers {state.value}", str(state_counts.get(state, 0)))
        table.add_section()
        for flag in Flag:
            table.add_row(f"urls {flag.value}", str(flag_totals.get(flag, 0)))
        if workers:
            table.add_section()
            for worker_id, state in workers:
                style = _STATE_STYLES.get(state, "")
                table.add_row(f"worker {worker_id}", f"[{style}]{state.value}[/{style}]" if style else state.value)
        return table

    # Live ------------------------------------------------------------
    def start(self) -> None:
        if not self.enabled or self._live is not None:
            return
        console = self._console or Console()
        if not console.is_terminal:
            # non-interactive output: stay silent
            self.enabled = False
            return
        live = Live(get_renderable=self.render, console=console, refresh_per_second=4, transient=False)
        try:
            live.start()
        except LiveError:
            self.enabled = False
            return
        self._live = live

    def stop(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None


__all__ = ["FleetStatusBoard"]
