"""CLI commands for the exam portal.

Commands:
- init-db: Create the database schema
- start: Start (or resume) an attempt
- answer: Record the answer to one question
- submit: Close an attempt and show its score
- show: Show an attempt with its answers
- results: Show a student's results
- expire: Expire attempts past their deadline

The database path comes from the config file or EXAMPORTAL_DB.
"""

import typer
from rich.console import Console
from rich.table import Table

from examportal.config.app_config import ConfigError, load_app_config
from examportal.core.errors import ExamPortalError
from examportal.core.expiry import sweep_expired
from examportal.core.lifecycle import AttemptLifecycleManager
from examportal.core.models import AttemptDetail
from examportal.core.results import list_student_results
from examportal.db.database import init_db

app = typer.Typer(
    name="exam",
    help="Timed multiple-choice exam attempts.",
    no_args_is_help=True,
)

console = Console()

SKIP_TOKENS = {"-", "skip"}


def _manager_or_exit() -> AttemptLifecycleManager:
    """Load config, make sure the schema exists, and build a manager."""
    try:
        config = load_app_config(force_reload=True)
    except ConfigError as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)

    init_db(config.database.path)
    return AttemptLifecycleManager(config=config.attempts)


def _fail(error: ExamPortalError) -> None:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


def _print_detail(detail: AttemptDetail) -> None:
    attempt = detail.attempt
    console.print(
        f"[bold]Attempt {attempt.attempt_id}[/bold] · {detail.exam.title} "
        f"· [cyan]{attempt.status.value}[/cyan]"
    )
    console.print(f"  [dim]Started:[/dim] {attempt.start_time.isoformat()}")
    if detail.deadline is not None and not attempt.status.is_terminal:
        console.print(f"  [dim]Deadline:[/dim] {detail.deadline.isoformat()}")
        if detail.overdue:
            console.print("  [yellow]⚠ Past deadline[/yellow]")

    answers = {a.question_id: a for a in detail.answers}
    table = Table(show_header=True, header_style="bold")
    table.add_column("Question")
    table.add_column("Marks", justify="right")
    table.add_column("Answer")
    if attempt.status.is_terminal:
        table.add_column("Correct")

    for question in detail.exam.questions:
        answer = answers.get(question.question_id)
        selected = answer.selected_option.value if answer and answer.selected_option else "-"
        row = [str(question.question_id), str(question.marks), selected]
        if attempt.status.is_terminal:
            row.append("✓" if answer and answer.is_correct else "✗")
        table.add_row(*row)
    console.print(table)

    if detail.summary is not None:
        summary = detail.summary
        color = "green" if summary.passed else "red"
        console.print(
            f"[{color}]{summary.obtained_marks}/{summary.total_marks} "
            f"({summary.percentage}%) · {'PASSED' if summary.passed else 'FAILED'}[/{color}]"
        )


@app.command(name="init-db")
def init_database() -> None:
    """Create the database schema if it does not exist."""
    try:
        config = load_app_config(force_reload=True)
    except ConfigError as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)

    path = init_db(config.database.path)
    console.print(f"[green]✓ Database ready:[/green] {path}")


@app.command()
def start(
    student_id: int = typer.Argument(..., help="Student ID"),
    exam_id: int = typer.Argument(..., help="Exam ID"),
) -> None:
    """Start an attempt, or resume the one in progress."""
    manager = _manager_or_exit()

    try:
        attempt, created = manager.open_attempt(student_id, exam_id)
    except ExamPortalError as e:
        _fail(e)

    verb = "started" if created else "resumed"
    console.print(f"[green]✓ Attempt {attempt.attempt_id} {verb}[/green]")
    console.print(f"  [dim]Started:[/dim] {attempt.start_time.isoformat()}")


@app.command()
def answer(
    attempt_id: int = typer.Argument(..., help="Attempt ID"),
    question_id: int = typer.Argument(..., help="Question ID"),
    option: str = typer.Argument(..., help="A, B, C, D, or '-' to skip"),
) -> None:
    """Record (or overwrite) the answer to one question."""
    manager = _manager_or_exit()
    selected = None if option.strip().lower() in SKIP_TOKENS else option

    try:
        record = manager.record_answer(attempt_id, question_id, selected)
    except ExamPortalError as e:
        _fail(e)

    shown = record.selected_option.value if record.selected_option else "skipped"
    console.print(f"[green]✓ Question {question_id}: {shown}[/green]")


@app.command()
def submit(
    attempt_id: int = typer.Argument(..., help="Attempt ID"),
) -> None:
    """Close an attempt and show its score."""
    manager = _manager_or_exit()

    try:
        manager.submit(attempt_id)
        detail = manager.get_attempt_detail(attempt_id)
    except ExamPortalError as e:
        _fail(e)

    console.print(f"[green]✓ Attempt {attempt_id} submitted[/green]")
    _print_detail(detail)


@app.command()
def show(
    attempt_id: int = typer.Argument(..., help="Attempt ID"),
) -> None:
    """Show an attempt with its answers."""
    manager = _manager_or_exit()

    try:
        detail = manager.get_attempt_detail(attempt_id)
    except ExamPortalError as e:
        _fail(e)

    _print_detail(detail)


@app.command()
def results(
    student_id: int = typer.Argument(..., help="Student ID"),
) -> None:
    """Show a student's results."""
    _manager_or_exit()

    try:
        student_results = list_student_results(student_id)
    except ExamPortalError as e:
        _fail(e)

    if not student_results.results:
        console.print("[yellow]No results yet[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Attempt", justify="right")
    table.add_column("Exam")
    table.add_column("Marks", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Status")
    for r in student_results.results:
        outcome = "[green]PASSED[/green]" if r.passed else "[red]FAILED[/red]"
        table.add_row(
            str(r.attempt_id),
            r.exam_title,
            f"{r.obtained_marks}/{r.total_marks}",
            f"{r.percentage}",
            f"{outcome} ({r.status.value})",
        )
    console.print(table)
    console.print(
        f"Average: {student_results.average_percentage}% · "
        f"Pass rate: {student_results.pass_rate}% "
        f"({student_results.passed_count}/{student_results.total_results})"
    )


@app.command()
def expire() -> None:
    """Expire every in-progress attempt past its deadline."""
    manager = _manager_or_exit()

    expired = sweep_expired(now=manager.now(), config=manager.config)
    if not expired:
        console.print("[dim]No overdue attempts[/dim]")
        return

    for attempt in expired:
        console.print(
            f"[yellow]⏱ Attempt {attempt.attempt_id} expired[/yellow] "
            f"({attempt.obtained_marks} marks)"
        )
    console.print(f"[green]✓ {len(expired)} attempt(s) expired[/green]")


if __name__ == "__main__":
    app()
