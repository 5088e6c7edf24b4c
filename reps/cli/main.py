"""
reps: interview prep tracker with spaced repetition.

A Rich terminal interface over the local task store, with AI-assisted
review and mock interviews when the web API is configured.

Commands:
- reps add        - Add a task
- reps list       - List tasks (filter, sort, group)
- reps review     - Review due tasks (SM-2)
- reps move       - Move a task to another board column
- reps dashboard  - Per-topic progress and streaks
- reps calendar   - Month view of reviews and deadlines
- reps mock       - Practice interview (API mode)
- reps sync       - Upload local tasks to the web API
"""
from __future__ import annotations

import asyncio
import functools
import random
import sys
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ..client import RepsApiClient
from ..config import Settings, get_settings
from ..core.dates import format_date, parse_date, today
from ..core.errors import InvalidInputError, RepsError
from ..core.models import Note, Task, find_task, new_task, topic_label
from ..core.schemas import EvaluationResult, MockScore
from ..scheduling.due import select_due
from ..scheduling.sm2 import QUALITY_LABELS
from ..sessions import DIFFICULTIES, PracticeSession, ReviewSession, Step
from ..stats import compute_streaks, review_dates, topic_summary
from ..store import JsonTaskStore, PreferenceStore
from ..views import Board, DropTarget, FilterSpec, MoveOutcome, TaskFilterEngine, month_grid, tasks_by_date

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="reps",
    help="reps: interview prep tracker with spaced repetition",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "success": "bold green",
    "error": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
    "topic": {
        "coding": "blue",
        "system-design": "magenta",
        "behavioral": "green",
        "papers": "yellow",
        "custom": "cyan",
    },
}

SAMPLE_TASKS = [
    ("coding", "Two Sum - hash map approach"),
    ("coding", "LRU Cache implementation"),
    ("system-design", "Design a URL shortener"),
    ("behavioral", "Tell me about a time you led a technical decision"),
    ("papers", "Constitutional AI paper"),
]


def style_topic(topic: str) -> str:
    """Get styled topic label."""
    color = STYLES["topic"].get(topic, "white")
    return f"[{color}]{topic_label(topic)}[/{color}]"


def format_score(score: float) -> str:
    color = "green" if score >= 4 else "yellow" if score >= 3 else "red"
    return f"[{color}]{score:g}/5[/{color}]"


# =============================================================================
# Plumbing
# =============================================================================

def handle_errors(func):
    """Print reps errors in red and exit non-zero instead of a traceback."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except InvalidInputError as e:
            console.print(f"[{STYLES['error']}]{e}[/{STYLES['error']}]")
            raise typer.Exit(1) from e
        except RepsError as e:
            logger.error(f"{func.__name__} failed: {e}")
            console.print(f"[{STYLES['error']}]{e}[/{STYLES['error']}]")
            raise typer.Exit(2) from e

    return wrapper


def _store(settings: Settings) -> JsonTaskStore:
    return JsonTaskStore(settings.data_file)


def _require_task(store: JsonTaskStore, id_prefix: str) -> Task:
    task = store.get(id_prefix)
    if task is None:
        console.print(f"[{STYLES['error']}]Task not found.[/{STYLES['error']}]")
        raise typer.Exit(1)
    return task


@asynccontextmanager
async def _review_backend(settings: Settings) -> AsyncIterator[tuple[Any, RepsApiClient | None]]:
    """Yield (task source + persister, AI client or None) for the active mode."""
    if settings.is_api_mode():
        async with RepsApiClient(
            settings.api_url, settings.api_key, timeout=settings.request_timeout_seconds
        ) as client:
            yield client, client
    else:
        yield _store(settings), None


# =============================================================================
# Display Helpers
# =============================================================================

def task_table(tasks: list[Task] | tuple[Task, ...], title: str | None = None) -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Next review")
    table.add_column("Deadline")

    ref = today()
    for task in tasks:
        next_review = format_date(task.next_review)
        if not task.completed and task.next_review < ref:
            next_review = f"[red]{next_review}[/red]"
        elif not task.completed and task.next_review == ref:
            next_review = f"[yellow]{next_review}[/yellow]"
        status = f"[green]{task.status}[/green]" if task.completed else task.status
        table.add_row(
            task.id[:8],
            task.title,
            style_topic(task.topic),
            status,
            next_review,
            format_date(task.deadline) or "",
        )
    return table


def display_evaluation(result: EvaluationResult) -> None:
    content = (
        f"Clarity:           {format_score(result.clarity)}\n"
        f"Specificity:       {format_score(result.specificity)}\n"
        f"Mission alignment: {format_score(result.mission_alignment)}\n\n"
        f"[bold]Feedback[/bold]\n{result.feedback}\n\n"
        f"[bold]Suggested improvement[/bold]\n{result.suggested_improvement}"
    )
    console.print(Panel(content, title="Evaluation", border_style="cyan"))


def display_mock_score(score: MockScore) -> None:
    lines = [
        f"Clarity:       {format_score(score.clarity)}",
        f"Depth:         {format_score(score.depth)}",
        f"Correctness:   {format_score(score.correctness)}",
        f"Communication: {format_score(score.communication)}",
        f"[bold]Overall:       {format_score(score.overall)}[/bold]",
        "",
        score.feedback,
    ]
    if score.strengths:
        lines += ["", "[bold green]Strengths[/bold green]", *(f"  + {s}" for s in score.strengths)]
    if score.improvements:
        lines += ["", "[bold yellow]To improve[/bold yellow]", *(f"  - {s}" for s in score.improvements)]
    console.print(Panel("\n".join(lines), title="Interview Score", border_style="green"))


# =============================================================================
# Task Commands
# =============================================================================

@app.command()
@handle_errors
def add(
    title: str = typer.Option(..., "--title", help="Task title"),
    topic: str = typer.Option(..., "--topic", "-t", help="coding, system-design, behavioral, papers, custom"),
    deadline: Optional[str] = typer.Option(None, "--deadline", "-d", help="Deadline (YYYY-MM-DD)"),
    note: Optional[str] = typer.Option(None, "--note", "-n", help="Initial note"),
) -> None:
    """Add a new task."""
    task = new_task(title, topic=topic, deadline=parse_date(deadline, field_name="deadline"), note=note)
    _store(get_settings()).save_task(task)
    console.print(f"[green]Added: {task.title}[/green] [dim]({task.id[:8]})[/dim]")


@app.command("list")
@handle_errors
def list_tasks(
    topic: str = typer.Option("all", "--topic", "-t", help="Filter by topic"),
    status: str = typer.Option("all", "--status", "-s", help="Filter by status"),
    due: str = typer.Option("all", "--due", help="all, overdue, today, this-week, no-deadline"),
    search: str = typer.Option("", "--search", "-q", help="Case-insensitive title search"),
    sort: str = typer.Option("created", "--sort", help="created, next-review, deadline, ease-factor"),
    direction: str = typer.Option("desc", "--dir", help="asc or desc"),
    group_by: Optional[str] = typer.Option(None, "--group-by", "-g", help="none, status, topic (remembered)"),
    hide_completed: Optional[bool] = typer.Option(
        None, "--hide-completed/--show-completed", help="Hide completed tasks (remembered)"
    ),
) -> None:
    """List tasks."""
    settings = get_settings()
    prefs_store = PreferenceStore(settings.prefs_file)
    prefs = prefs_store.load()

    overrides: dict[str, Any] = {
        "topic": topic,
        "status": status,
        "due": due,
        "search": search,
        "sort_field": sort,
        "sort_dir": direction,
    }
    if group_by is not None:
        overrides["group_by"] = group_by
    if hide_completed is not None:
        overrides["hide_completed"] = hide_completed
    spec = FilterSpec.from_preferences(prefs, **overrides)

    if spec.preferences() != prefs:
        prefs_store.save(spec.preferences())

    result = TaskFilterEngine().apply(_store(settings).load(), spec)
    if not result.filtered:
        console.print("[dim]No tasks found.[/dim]")
        return

    if spec.group_by == "none":
        console.print(task_table(result.filtered))
        return
    for key, tasks in result.grouped.items():
        title = topic_label(key) if spec.group_by == "topic" else key
        console.print(task_table(tasks, title=f"{title} ({len(tasks)})"))


@app.command()
@handle_errors
def status() -> None:
    """Show review status."""
    selection = select_due(_store(get_settings()).load())
    counts = selection.counts()
    console.print(f"Total: {counts['total']} | Due: {counts['due']} | Overdue: {counts['overdue']}")


@app.command()
@handle_errors
def info(task_id: str = typer.Argument(..., help="Task id or prefix")) -> None:
    """Show task details."""
    task = _require_task(_store(get_settings()), task_id)

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("ID", task.id)
    table.add_row("Topic", style_topic(task.topic))
    table.add_row("Status", task.status + (" (completed)" if task.completed else ""))
    table.add_row("Ease / Reps / Interval", f"{task.ease_factor} / {task.repetitions} / {task.interval}d")
    table.add_row("Next review", format_date(task.next_review))
    if task.last_reviewed:
        table.add_row("Last reviewed", format_date(task.last_reviewed))
    if task.deadline:
        table.add_row("Deadline", format_date(task.deadline))
    if task.tags:
        table.add_row("Tags", ", ".join(task.tags))

    console.print(f"\n[bold]{task.title}[/bold]")
    console.print(table)
    if task.notes:
        console.print("[bold]Notes[/bold]")
        for n in task.notes:
            console.print(f"  - {n.text} [dim]({format_date(n.created_at)})[/dim]")


@app.command()
@handle_errors
def done(task_id: str = typer.Argument(..., help="Task id or prefix")) -> None:
    """Mark a task as completed."""
    settings = get_settings()
    store = _store(settings)
    task = _require_task(store, task_id)
    store.save_task(task.with_status(settings.get_workflow().terminal, completed=True))
    console.print(f"[green]Completed: {task.title}[/green]")


@app.command()
@handle_errors
def note(
    task_id: str = typer.Argument(..., help="Task id or prefix"),
    text: str = typer.Argument(..., help="Note text"),
) -> None:
    """Add a note to a task."""
    store = _store(get_settings())
    task = _require_task(store, task_id)
    store.add_note(task.id, Note(id=str(uuid.uuid4()), text=text, created_at=today()))
    console.print(f"[green]Note added to: {task.title}[/green]")


@app.command()
@handle_errors
def delete(
    task_id: str = typer.Argument(..., help="Task id or prefix"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a task."""
    store = _store(get_settings())
    task = _require_task(store, task_id)
    if not confirm and not Confirm.ask(f"Delete '{task.title}'?", default=False):
        raise typer.Exit(0)
    store.delete_task(task.id)
    console.print(f"[green]Deleted: {task.title}[/green]")


@app.command()
@handle_errors
def seed() -> None:
    """Add sample tasks for trying things out."""
    store = _store(get_settings())
    for topic, title in SAMPLE_TASKS:
        task = new_task(title, topic=topic)
        store.save_task(task)
        console.print(f"[green]Seeded: {task.title}[/green]")


# =============================================================================
# Views
# =============================================================================

@app.command()
@handle_errors
def dashboard() -> None:
    """Show per-topic progress and review streaks."""
    tasks = _store(get_settings()).load()
    summaries = topic_summary(tasks)
    if not summaries:
        console.print("[dim]No tasks yet. Try `reps seed`.[/dim]")
        return

    table = Table(title="reps dashboard", title_justify="left")
    table.add_column("Topic")
    table.add_column("Progress")
    table.add_column("Done", justify="right")
    table.add_column("Due", justify="right")
    for s in summaries:
        bar = "█" * s.done + "░" * (s.total - s.done)
        due = f"[red]{s.due}[/red]" if s.due else "0"
        table.add_row(style_topic(s.topic), bar, f"{s.done}/{s.total}", due)
    console.print(table)

    streaks = compute_streaks(review_dates(tasks))
    console.print(
        f"Current streak: [bold]{streaks.current}[/bold] day(s) | "
        f"Longest: [bold]{streaks.longest}[/bold] | "
        f"Last review: {format_date(streaks.last_review_date) or 'never'}"
    )


@app.command()
@handle_errors
def calendar(
    month: Optional[str] = typer.Option(None, "--month", "-m", help="Month to show (YYYY-MM)"),
) -> None:
    """Show reviews and deadlines for a month."""
    ref = parse_date(f"{month}-01", field_name="month") if month else today()
    tasks = _store(get_settings()).load()
    by_date = tasks_by_date(tasks)

    table = Table(title=ref.strftime("%B %Y"), title_justify="left", show_lines=True)
    for name in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"):
        table.add_column(name, width=12)

    current = today()
    for week in month_grid(ref.year, ref.month):
        cells = []
        for day in week:
            if day is None:
                cells.append("")
                continue
            d = date(ref.year, ref.month, day)
            label = f"[reverse]{day}[/reverse]" if d == current else str(day)
            entries = [
                f"[red]! {t.title[:10]}[/red]" if t.deadline == d else t.title[:12]
                for t in by_date.get(d, [])
            ]
            cells.append("\n".join([label, *entries]))
        table.add_row(*cells)
    console.print(table)


@app.command()
@handle_errors
def move(
    task_id: str = typer.Argument(..., help="Task id or prefix"),
    target: str = typer.Argument(..., help="Status column, or a task id with --onto-card"),
    onto_card: bool = typer.Option(False, "--onto-card", help="Target is a card; use its column"),
) -> None:
    """Move a task to another board column."""
    settings = get_settings()
    store = _store(settings)
    tasks = store.load()
    task = find_task(tasks, task_id)
    if task is None:
        console.print(f"[{STYLES['error']}]Task not found.[/{STYLES['error']}]")
        raise typer.Exit(1)

    if onto_card:
        card = find_task(tasks, target)
        drop = DropTarget.card(card.id if card else target)
    else:
        drop = DropTarget.column(target)

    board = Board(tasks, store, workflow=settings.get_workflow(), loader=store.load_tasks)
    outcome = asyncio.run(board.move(task.id, drop))

    if outcome == MoveOutcome.MOVED:
        moved = board.get(task.id)
        console.print(f"[green]Moved '{task.title}' to {moved.status if moved else target}[/green]")
    elif outcome == MoveOutcome.NOOP:
        console.print(f"[dim]'{task.title}' is already in {task.status}[/dim]")
    elif outcome == MoveOutcome.REVERTED:
        console.print(f"[{STYLES['error']}]Move failed: {board.last_error}[/{STYLES['error']}]")
        raise typer.Exit(2)
    else:
        columns = ", ".join(settings.get_workflow().statuses)
        console.print(f"[{STYLES['error']}]Not a board column: {target}. Columns: {columns}[/{STYLES['error']}]")
        raise typer.Exit(1)


# =============================================================================
# Sessions
# =============================================================================

async def _review_task(session: ReviewSession) -> bool:
    """Drive one task through the session. Returns False if the user quit."""
    task = session.current_task
    assert task is not None

    console.print(Panel(
        f"[bold]{task.title}[/bold]\n{style_topic(task.topic)}  |  "
        f"ease {task.ease_factor}  |  {task.repetitions} rep(s)",
        title=session.progress,
        title_align="left",
        border_style="cyan",
    ))
    if task.notes:
        console.print(f"[dim]Notes: {task.notes[-1].text}[/dim]")

    if session.questions is not None:
        question = await session.load_question()
        if question:
            console.print(Panel(question, title="Interview Question", border_style="magenta"))
            if Confirm.ask("Write your answer for AI evaluation?", default=False):
                session.start_answer()
                while session.step == Step.ANSWER:
                    answer = Prompt.ask("Your answer")
                    if not answer.strip():
                        break
                    result = await session.submit_answer(answer)
                    if result is not None:
                        display_evaluation(result)
                    elif not Confirm.ask(f"[red]{session.error}[/red] Try again?", default=True):
                        break
        elif session.error:
            console.print(f"[dim](Could not fetch a question: {session.error})[/dim]")

    if session.step == Step.EVALUATION:
        session.continue_to_rating()
    elif session.step in (Step.QUESTION, Step.ANSWER):
        session.skip_to_rating()

    for label in QUALITY_LABELS.values():
        console.print(f"  [dim]{label}[/dim]")
    choice = Prompt.ask("Rate your recall (q to quit)", choices=[*(str(q) for q in QUALITY_LABELS), "q"])
    if choice == "q":
        return False

    saved = await session.rate(int(choice))
    while not saved:
        console.print(f"[{STYLES['error']}]Could not save rating: {session.error}[/{STYLES['error']}]")
        if not Confirm.ask("Retry?", default=True):
            return False
        saved = await session.retry_rating()

    outcome = session.results[-1]
    console.print(f"[green]Next review: {format_date(outcome.schedule.next_review)}[/green]")
    return True


async def _run_review(settings: Settings, limit: int | None) -> ReviewSession | None:
    async with _review_backend(settings) as (backend, ai):
        due = await backend.load_due_tasks()
        if limit:
            due = due[:limit]
        if not due:
            return None

        session = ReviewSession(due, persister=backend, questions=ai, evaluator=ai)
        console.print(f"\n[bold]{session.total} task(s) due for review[/bold]\n")
        while not session.is_complete:
            if not await _review_task(session):
                session.abandon()
                break
        return session


@app.command()
@handle_errors
def review(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum tasks to review"),
) -> None:
    """Review due tasks."""
    settings = get_settings()
    session = asyncio.run(_run_review(settings, limit or settings.review_limit))
    if session is None:
        console.print("[green]No tasks due for review![/green]")
        return
    console.print(Panel(
        f"Reviewed {session.reviewed_count} of {session.total} task(s)",
        title="Session Complete" if session.is_complete else "Session Ended",
        border_style="green",
    ))


async def _run_mock(settings: Settings, topic: str | None, difficulty: str | None, surprise: bool) -> None:
    async with RepsApiClient(settings.api_url, settings.api_key, timeout=settings.request_timeout_seconds) as client:
        session = PracticeSession(client)
        if surprise:
            session.surprise_me(random.Random())
        else:
            session.choose(topic, difficulty)
        console.print(f"[bold]Mock interview:[/bold] {style_topic(session.topic)} ({session.difficulty})")

        question = await session.start()
        if question is None:
            console.print(f"[{STYLES['error']}]Could not start: {session.error}[/{STYLES['error']}]")
            raise typer.Exit(2)

        while session.step == Step.QUESTION:
            console.print(Panel(session.question or "", title="Interviewer", border_style="magenta"))
            session.begin_answer()
            answer = Prompt.ask("Your answer (empty to quit)")
            if not answer.strip():
                session.reset()
                console.print("[dim]Interview ended.[/dim]")
                return
            while await session.submit_answer(answer) is None:
                if not Confirm.ask(f"[red]{session.error}[/red] Try again?", default=True):
                    session.reset()
                    return

        if session.score is not None:
            display_mock_score(session.score)
        else:
            console.print("[dim]The interviewer ended the session without a score.[/dim]")


@app.command()
@handle_errors
def mock(
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Interview topic"),
    difficulty: Optional[str] = typer.Option(None, "--difficulty", "-d", help=", ".join(DIFFICULTIES)),
    surprise: bool = typer.Option(False, "--surprise", help="Pick a random topic and difficulty"),
) -> None:
    """Run a practice interview (requires the web API)."""
    settings = get_settings()
    if not settings.is_api_mode():
        console.print(f"[{STYLES['error']}]Mock interviews need the web API. Set REPS_API_KEY.[/{STYLES['error']}]")
        raise typer.Exit(1)
    asyncio.run(_run_mock(settings, topic, difficulty, surprise))


# =============================================================================
# Remote
# =============================================================================

@app.command()
@handle_errors
def sync() -> None:
    """Upload local tasks to the web API."""
    settings = get_settings()
    tasks = _store(settings).load()
    if not tasks:
        console.print("[dim]No local tasks to sync.[/dim]")
        return
    if not settings.is_api_mode():
        console.print(f"[{STYLES['error']}]API not configured. Set REPS_API_KEY.[/{STYLES['error']}]")
        raise typer.Exit(1)

    async def _upload() -> int:
        async with RepsApiClient(
            settings.api_url, settings.api_key, timeout=settings.request_timeout_seconds
        ) as client:
            return await client.sync_tasks(tasks)

    console.print(f"[dim]Syncing {len(tasks)} task(s)...[/dim]")
    count = asyncio.run(_upload())
    console.print(f"[green]Synced {count} task(s) successfully.[/green]")


@app.command()
def config() -> None:
    """Show the effective configuration."""
    settings = get_settings()
    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Mode", "api" if settings.is_api_mode() else "local")
    table.add_row("Data file", str(settings.data_file))
    table.add_row("API URL", settings.api_url)
    table.add_row("API key", "set" if settings.api_key else "[dim]unset[/dim]")
    table.add_row("Statuses", ", ".join(settings.statuses))
    table.add_row("Terminal status", settings.get_workflow().terminal or "")
    table.add_row("Review limit", str(settings.review_limit or "none"))
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
