"""Typer CLI entrypoint for the vacancy crawler fleet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, ScheduleConfig, ScheduleType, WorkerConfig
from .engine import ThreadPoolManager
from .errors import CrawlerError
from .fleet import Flag, FleetTracker
from .infra import SQLiteManager
from .logging_conf import CRAWLER_LOG, available_worker_logs, configure_logging, log_dir, tail_log, worker_log_path
from .orchestrator import FleetOrchestrator
from .records import Vacancy
from .scheduler import APSchedulerAdapter
from .store import SQLiteRecordStore
from .ui import FleetStatusBoard

app = typer.Typer(help="Vacancy crawler fleet command line", no_args_is_help=True)
worker_app = typer.Typer(name="worker", help="Inspect and run crawl workers", no_args_is_help=True)
vacancy_app = typer.Typer(name="vacancy", help="Inspect stored vacancies", no_args_is_help=True)
blacklist_app = typer.Typer(name="blacklist", help="Manage per-worker blacklists", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Inspect log files", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: FleetOrchestrator
    board: FleetStatusBoard

    def close(self) -> None:
        self.board.stop()
        self.orchestrator.shutdown()


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    store = SQLiteRecordStore(SQLiteManager(), repository.store_path())
    tracker = FleetTracker()
    orchestrator = FleetOrchestrator(
        config_repository=repository,
        store=store,
        tracker=tracker,
        thread_pool=ThreadPoolManager(global_config.thread_pool_workers),
        scheduler=APSchedulerAdapter(),
    )
    board = FleetStatusBoard(console=console, enabled=global_config.show_status_board)
    tracker.subscribe(board)
    return AppState(repository=repository, orchestrator=orchestrator, board=board)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _format_schedule(schedule: ScheduleConfig | None) -> str:
    if schedule is None:
        return "-"
    if schedule.value in (None, "", {}):
        return schedule.type.value
    if schedule.type is ScheduleType.CRON:
        return f"cron ({schedule.value})"
    return f"{schedule.type.value} ({schedule.value})"


def _render_workers_table(workers: Sequence[WorkerConfig]) -> Table:
    table = Table(title=f"Workers ({len(workers)})", box=box.SIMPLE_HEAD)
    table.add_column("Id", justify="right")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Base URL", overflow="fold")
    table.add_column("Max pages", justify="right")
    table.add_column("Recrawl", style="yellow")
    for worker in workers:
        table.add_row(
            str(worker.worker_id),
            worker.name,
            worker.base_url,
            str(worker.max_pages),
            _format_schedule(worker.recrawl),
        )
    return table


def _render_summary_table(summaries: Mapping[str, Mapping[str, int]]) -> Table:
    table = Table(title="Crawl summary", box=box.SIMPLE_HEAD)
    table.add_column("Worker", style="cyan", no_wrap=True)
    keys = [flag.value for flag in Flag] + ["inserted", "updated", "skipped"]
    for key in keys:
        table.add_column(key, justify="right")
    for name, summary in summaries.items():
        table.add_row(name, *(str(summary.get(key, 0)) for key in keys))
    return table


def _render_history_table(url_id: int, versions: Iterable[Vacancy]) -> Table:
    table = Table(title=f"Vacancy history for url {url_id}", box=box.SIMPLE_HEAD)
    table.add_column("Version", justify="right")
    table.add_column("Active")
    table.add_column("Title", overflow="fold")
    table.add_column("Employer", overflow="fold")
    table.add_column("Fingerprint", style="dim")
    for vacancy in versions:
        table.add_row(
            str(vacancy.version),
            "yes" if vacancy.active else "no",
            vacancy.title or "-",
            vacancy.employer or "-",
            vacancy.fingerprint[:12],
        )
    return table


app.add_typer(worker_app, name="worker")
app.add_typer(vacancy_app, name="vacancy")
app.add_typer(blacklist_app, name="blacklist")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    state = build_state(verbose)
    ctx.obj = state
    ctx.call_on_close(state.close)


@worker_app.command("list", help="List configured workers and scheduled recrawls.")
def worker_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    workers = state.repository.list_workers()
    if not workers:
        console.print("No workers configured yet.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_workers_table(workers))


@worker_app.command("run", help="Crawl one worker in the foreground.")
def worker_run(ctx: typer.Context, name: str = typer.Argument(..., help="Worker name.")) -> None:
    state = _get_state(ctx)
    state.board.start()
    try:
        summary = state.orchestrator.run_worker(name)
    except FileNotFoundError:
        console.print(f"Worker `{name}` is not configured.", style="red")
        raise typer.Exit(code=1)
    except CrawlerError as exc:
        console.print(f"Worker `{name}` failed: {exc}", style="red")
        raise typer.Exit(code=1)
    finally:
        state.board.stop()
    console.print(_render_summary_table({name: summary}))


@worker_app.command("run-all", help="Crawl every configured worker in parallel.")
def worker_run_all(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    if not state.repository.list_workers():
        console.print("No workers configured yet.", style="yellow")
        raise typer.Exit(code=0)
    state.board.start()
    try:
        summaries = state.orchestrator.run_all()
    finally:
        state.board.stop()
    if not summaries:
        console.print("No worker finished successfully; see the error log.", style="red")
        raise typer.Exit(code=1)
    console.print(_render_summary_table(summaries))


@vacancy_app.command("history", help="Show every stored version of the vacancy behind a URL id.")
def vacancy_history(ctx: typer.Context, url_id: int = typer.Argument(..., help="Source URL id.")) -> None:
    state = _get_state(ctx)
    versions = state.orchestrator.vacancy_history(url_id)
    if not versions:
        console.print("No vacancy stored for this URL.", style="dim")
        return
    console.print(_render_history_table(url_id, versions))


@blacklist_app.command("add", help="Blacklist a word for one worker.")
def blacklist_add(
    ctx: typer.Context,
    worker: str = typer.Argument(..., help="Worker name."),
    word: str = typer.Argument(..., help="URL substring to reject."),
) -> None:
    state = _get_state(ctx)
    try:
        state.orchestrator.add_blacklist_word(worker, word)
    except FileNotFoundError:
        console.print(f"Worker `{worker}` is not configured.", style="red")
        raise typer.Exit(code=1)
    except ValueError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    console.print(f"Blacklisted `{word.strip()}` for `{worker}`.", style="green")


@blacklist_app.command("list", help="Show the blacklist of one worker.")
def blacklist_list(ctx: typer.Context, worker: str = typer.Argument(..., help="Worker name.")) -> None:
    state = _get_state(ctx)
    try:
        words = state.orchestrator.blacklist_words(worker)
    except FileNotFoundError:
        console.print(f"Worker `{worker}` is not configured.", style="red")
        raise typer.Exit(code=1)
    if not words:
        console.print("Blacklist is empty.", style="dim")
        return
    table = Table(title=f"Blacklist of {worker}", box=box.SIMPLE_HEAD)
    table.add_column("Word", style="green")
    for word in words:
        table.add_row(word)
    console.print(table)


@log_app.command("list", help="List available worker log files.")
def log_list() -> None:
    logs = list(available_worker_logs())
    if not logs:
        console.print("No worker logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of the global log or a worker log.")
def log_show(
    worker: Optional[str] = typer.Option(None, "--worker", help="Worker name (global log when omitted)."),
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines to show."),
) -> None:
    path = worker_log_path(worker) if worker else log_dir() / CRAWLER_LOG
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log lines yet.", style="dim")
        return
    console.print(f"{path.name} (last {len(lines)} lines)", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
