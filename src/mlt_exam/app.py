"""Interactive CLI application."""
import getpass
import logging
import sqlite3
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from mlt_exam.analytics import generate_study_plan, get_incorrect_items
from mlt_exam.bank import fetch_active_questions, get_bank_counts, select_exam_questions
from mlt_exam.config import DEBUG, DEFAULT_DB_PATH, TIER, ExamPolicy
from mlt_exam.db import init_db
from mlt_exam.errors import Expired, ExamError, PersistenceFailure, ProviderUnavailable
from mlt_exam.importer import import_file
from mlt_exam.persistence import SqliteSnapshotStore, get_reports, save_report
from mlt_exam.seed import seed_all, is_seeded
from mlt_exam.session import ExamSession
from mlt_exam.shuffle import displayed_to_canonical, option_order
from mlt_exam.timer import format_remaining

console = Console()
logger = logging.getLogger(__name__)

LETTERS = "abcdefgh"
BUCKET_COLORS = {"weak": "red", "mid": "dark_orange", "good": "yellow", "strong": "green"}


class SessionExitRequested(Exception):
    """Raised when the user types 'q' or 'menu' during an exam."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]SCFHS Medical Laboratory Technologist[/bold]\n[dim]Mock Exam Trainer[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("exam", "Start a timed mock exam"),
        ("resume", "Continue a paused exam"),
        ("history", "Past exam results"),
        ("plan", "Study plan from your last exam"),
        ("bank", "Question bank overview"),
        ("import", "Add questions from a JSON/YAML file"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_question(session: ExamSession, remaining: float) -> list[int]:
    """Render the current question; returns the display order of its options."""
    attempt = session.attempt
    q = attempt.current_question
    order = option_order(attempt.id, q.id, len(q.options))
    flag = " [yellow]FLAGGED[/yellow]" if attempt.flags[attempt.pointer] else ""
    header = (
        f"Question {attempt.pointer + 1} of {attempt.question_count}{flag}   "
        f"[green]Answered: {attempt.answered_count}[/green]   "
        f"[yellow]Flagged: {attempt.flagged_count}[/yellow]   "
        f"Time left: [bold]{format_remaining(remaining, show_hours=session.policy.duration_minutes > 60)}[/bold]"
    )
    if attempt.violations:
        header += f"   [red]Left exam: {attempt.violations}[/red]"
    console.print(f"\n{header}")
    console.print(f"[dim]{q.domain} / {q.subtopic}[/dim]\n")
    console.print(f"[bold]{q.stem}[/bold]\n")
    chosen = attempt.answers[attempt.pointer]
    for shown, canonical in enumerate(order):
        marker = "[green]>[/green]" if chosen == canonical else " "
        console.print(f" {marker} [cyan]{LETTERS[shown]})[/cyan] {q.options[canonical]}")
    return order


def warn_time(mark_seconds: int) -> None:
    console.print(f"[bold yellow]Time warning: {mark_seconds // 60} minutes remaining![/bold yellow]")


def run_exam_session(session: ExamSession) -> None:
    """Drive one attempt until it is finished, paused or times out."""
    console.print("[dim]Answer with a letter. n/p next/prev, f flag, s skip, g goto, "
                  "finish to submit, q to pause.[/dim]")
    while session.report is None:
        remaining = session.tick()
        if session.report is not None:
            break
        order = show_question(session, remaining)
        letters = list(LETTERS[:len(order)])
        try:
            choice = session_prompt(
                "\nYour choice", choices=letters + ["n", "p", "f", "s", "g", "finish", "q"],
                show_choices=False,
            ).strip().lower()
            if choice in letters:
                session.select_answer(displayed_to_canonical(order, letters.index(choice)))
                session.navigate(session.attempt.pointer + 1)
            elif choice == "n":
                session.navigate(session.attempt.pointer + 1)
            elif choice == "p":
                session.navigate(session.attempt.pointer - 1)
            elif choice == "f":
                session.toggle_flag()
            elif choice == "s":
                session.skip()
            elif choice == "g":
                target = IntPrompt.ask("Go to question", default=session.attempt.pointer + 1)
                if not session.navigate(target - 1):
                    console.print("[red]No such question.[/red]")
            elif choice == "finish":
                unanswered = session.attempt.question_count - session.attempt.answered_count
                if unanswered and Prompt.ask(
                    f"{unanswered} unanswered. Submit anyway?", choices=["y", "n"], default="n"
                ) != "y":
                    continue
                session.finish()
        except SessionExitRequested:
            # Leaving the exam counts as taking focus away from it
            session.visibility_changed(True)
            console.print("[yellow]Exam paused. Use 'resume' to continue before time runs out.[/yellow]")
            return
        except Expired:
            break
    if session.expired:
        console.print("[bold red]Time is up. The exam has ended.[/bold red]")
    show_report(session.report)
    offer_incorrect_review(session)


def show_report(report) -> None:
    verdict = "[green]PASSED[/green]" if report.passed else "[red]NOT PASSED[/red]"
    minutes = int(report.time_total_sec // 60)
    console.print(Panel(
        f"Score: [bold]{report.score_pct:.1f}%[/bold] ({report.correct_count}/{report.question_count})  {verdict}\n"
        f"Time: {minutes} min   Skipped: {len(report.skipped_ids)}   Flagged: {len(report.flagged_ids)}"
        f"   Left exam: {report.tab_leave_count}",
        title="Exam Results", border_style="blue",
    ))
    table = Table(title="Domain Breakdown")
    table.add_column("Domain", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Avg time", justify="right")
    table.add_column("Status")
    table.add_column("Impact", justify="right")
    for d in report.domains:
        color = BUCKET_COLORS[d.bucket]
        table.add_row(
            d.name, f"{d.correct}/{d.count}", f"{d.accuracy * 100:.0f}%", f"{d.avg_time_sec:.0f}s",
            f"[{color}]{d.bucket.upper()}[/{color}]",
            f"+{d.impact}" if d.impact else "",
        )
    console.print(table)
    if report.subtopics_weakest:
        console.print("\n[bold]Weakest Subtopics:[/bold]")
        for s in report.subtopics_weakest:
            console.print(f"  [red]{s.accuracy * 100:.0f}%[/red] {s.name} ({len(s.question_ids)} questions)")
    if report.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for r in report.recommendations:
            console.print(f"  [yellow]{r.title}[/yellow] {r.count} questions, {r.duration_min} min")
    console.print(f"\n  [dim]Spaced repetition: {report.srs_plan.daily_new} new cards/day, "
                  f"{report.srs_plan.review_min} min review[/dim]")


def offer_incorrect_review(session: ExamSession) -> None:
    items = get_incorrect_items(session.attempt)
    if not items:
        return
    if Prompt.ask(f"\nReview {len(items)} incorrect answers?", choices=["y", "n"], default="y") != "y":
        return
    for i, (q, chosen) in enumerate(items, 1):
        console.print(f"\n[bold]{i}. {q.stem}[/bold]")
        console.print(f"  [red]Your answer:[/red] {q.options[chosen]}")
        console.print(f"  [green]Correct:[/green] {q.options[q.correct_index]}")
        if q.explanation:
            console.print(f"  [dim]{q.explanation}[/dim]")


def make_session_kwargs(db_path: str, user_id: str) -> dict:
    def store_report(report):
        try:
            save_report(db_path, user_id, report)
        except PersistenceFailure as e:
            logger.warning("%s", e)
    return {"on_warning": warn_time, "on_report": store_report}


def cmd_exam(db_path: str, user_id: str, policy: ExamPolicy):
    try:
        available = sum(get_bank_counts(db_path).values())
        count = IntPrompt.ask("Number of questions", default=min(policy.total_questions, available))

        def provider():
            with console.status("Preparing questions..."):
                return select_exam_questions(fetch_active_questions(db_path), count)

        session = ExamSession.prepare(
            provider, SqliteSnapshotStore(db_path, user_id), policy=policy,
            on_status=lambda status: logger.debug("Exam status: %s", status.value),
            **make_session_kwargs(db_path, user_id),
        )
    except ProviderUnavailable as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(Panel(
        f"{session.attempt.question_count} questions, {policy.duration_minutes} minutes. "
        f"Pass mark {policy.pass_percentage:.0f}%.", title="Mock Exam", border_style="blue",
    ))
    run_exam_session(session)


def cmd_resume(db_path: str, user_id: str, policy: ExamPolicy):
    session = ExamSession.resume(
        SqliteSnapshotStore(db_path, user_id), policy=policy,
        **make_session_kwargs(db_path, user_id),
    )
    if session is None:
        console.print("[yellow]No exam in progress.[/yellow]")
        return
    if session.expired:
        console.print("[bold red]Your exam time ran out while you were away.[/bold red]")
        show_report(session.report)
        return
    session.visibility_changed(False)
    run_exam_session(session)


def cmd_history(db_path: str, user_id: str):
    reports = get_reports(db_path, user_id)
    if not reports:
        console.print("[yellow]No finished exams yet.[/yellow]")
        return
    table = Table(title="Exam History")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Result")
    table.add_column("Questions", justify="right")
    table.add_column("Left exam", justify="right")
    for i, r in enumerate(reports, 1):
        result = "[green]PASS[/green]" if r.passed else "[red]FAIL[/red]"
        table.add_row(str(i), f"{r.score_pct:.1f}%", result, str(r.question_count), str(r.tab_leave_count))
    console.print(table)


def cmd_plan(db_path: str, user_id: str):
    reports = get_reports(db_path, user_id, limit=1)
    if not reports:
        console.print("[yellow]Take an exam first to get a study plan.[/yellow]")
        return
    plan = generate_study_plan(reports[0])
    if plan["priorities"]:
        console.print("\n[bold]Priorities:[/bold]")
        for p in plan["priorities"]:
            console.print(f"  [cyan]{p['domain']}[/cyan] - {p['reason']}\n    [dim]{p['action']}[/dim]")
    table = Table(title="This Week")
    table.add_column("Day")
    table.add_column("Focus", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Activity")
    for day in plan["week_plan"]:
        table.add_row(day["day"], day["focus"], str(day["duration"]), day["activity"])
    console.print(table)
    for tip in plan["time_tips"]:
        console.print(f"  [dim]- {tip}[/dim]")


def cmd_bank(db_path: str):
    counts = get_bank_counts(db_path)
    table = Table(title="Question Bank")
    table.add_column("Domain", style="cyan")
    table.add_column("Active questions", justify="right")
    for domain, total in counts.items():
        table.add_row(domain, str(total))
    table.add_row("[bold]Total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    console.print(table)


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(db_path, file_path)
    console.print(f"[green]Imported {result['imported']} questions from {result['filename']}[/green]")
    if result["rejected"]:
        console.print(f"[yellow]Skipped invalid records: {result['rejected']}[/yellow]")


def setup_logging():
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    setup_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    user_id = getpass.getuser()
    policy = ExamPolicy.for_tier(TIER)
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="exam").strip().lower()
        try:
            if choice == "exam":
                cmd_exam(db_path, user_id, policy)
            elif choice == "resume":
                cmd_resume(db_path, user_id, policy)
            elif choice == "history":
                cmd_history(db_path, user_id)
            elif choice == "plan":
                cmd_plan(db_path, user_id)
            elif choice == "bank":
                cmd_bank(db_path)
            elif choice == "import":
                cmd_import(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (ExamError, ValueError, sqlite3.Error) as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
