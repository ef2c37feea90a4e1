"""Interactive CLI application."""
import sys
from datetime import date
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from study_planner.db import DEFAULT_DB_PATH, init_db
from study_planner.importer import import_file
from study_planner.mastery import calc_course_mastery
from study_planner.models import DailyPlan, TaskType
from study_planner.planner import generate_daily_plan, get_todays_plan
from study_planner.readiness import calc_all_readiness, get_readiness_color, get_readiness_label
from study_planner.remediation import get_weak_units, log_question_attempt
from study_planner.scheduler import validate_plan
from study_planner.sessions import log_focus_session
from study_planner.settings import get_target_study_minutes, set_target_study_minutes
from study_planner.tasks import add_task, complete_task, get_courses, get_incomplete_tasks, get_units

console = Console()

TASK_TYPE_CHOICES = {
    "assignment": TaskType.ASSIGNMENT_WORK,
    "exam": TaskType.EXAM_BUILD,
    "practice": TaskType.TIMED_PRACTICE,
}


def show_welcome():
    console.print(Panel(
        "[bold]Study Planner[/bold]\n[dim]Daily quest board + exam readiness[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("plan", "Generate today's plan"),
        ("today", "Show today's saved plan"),
        ("tasks", "List open tasks"),
        ("add", "Add a task"),
        ("done", "Complete a task"),
        ("practice", "Log a practice question"),
        ("focus", "Log a focus session"),
        ("readiness", "Exam readiness per course"),
        ("target", "Set daily study minutes"),
        ("import", "Import courses and tasks"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def render_plan(plan: DailyPlan) -> None:
    for lane in plan.lanes:
        table = Table(title=f"{lane.display_name} ({lane.total_minutes}/{lane.target_minutes} min)")
        table.add_column("ID", justify="right")
        table.add_column("Task", style="cyan")
        table.add_column("Min", justify="right")
        table.add_column("Score", justify="right")
        for t in lane.tasks:
            table.add_row(str(t.id), t.task.title, str(t.estimated_minutes), f"{t.total_score:.1f}")
        console.print(table)
    console.print(f"\n  Total: [bold]{plan.total_minutes}[/bold] min")
    for warning in validate_plan(plan):
        console.print(f"  [yellow]{warning}[/yellow]")


def cmd_plan(db_path: str):
    plan = generate_daily_plan(db_path)
    render_plan(plan)


def cmd_today(db_path: str):
    plan = get_todays_plan(db_path)
    if plan is None:
        console.print("[yellow]No plan for today yet. Use 'plan' to generate one.[/yellow]")
        return
    render_plan(plan)


def cmd_tasks(db_path: str):
    tasks = get_incomplete_tasks(db_path)
    if not tasks:
        console.print("[green]No open tasks![/green]")
        return
    table = Table(title="Open Tasks")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Due")
    table.add_column("Min", justify="right")
    for t in tasks:
        table.add_row(
            str(t.id), t.title, t.task_type.value,
            t.due_date.isoformat() if t.due_date else "-", str(t.estimated_minutes),
        )
    console.print(table)


def choose_unit(db_path: str) -> int | None:
    units = get_units(db_path)
    if not units:
        return None
    for u in units:
        console.print(f"  [cyan]{u.id}[/cyan]) Unit {u.unit_number}: {u.name} [dim]({u.mastery_score}%)[/dim]")
    choice = Prompt.ask("Unit id (blank for none)", default="").strip()
    if not choice:
        return None
    if not choice.isdigit() or int(choice) not in {u.id for u in units}:
        raise ValueError(f"No unit with id {choice}")
    return int(choice)


def cmd_add(db_path: str):
    title = Prompt.ask("Title")
    kind = Prompt.ask("Type", choices=list(TASK_TYPE_CHOICES), default="assignment")
    minutes = IntPrompt.ask("Estimated minutes", default=30)
    due = Prompt.ask("Due date (YYYY-MM-DD, blank for none)", default="")
    unit_id = choose_unit(db_path)
    task_id = add_task(
        db_path, title, TASK_TYPE_CHOICES[kind], minutes,
        date.fromisoformat(due) if due.strip() else None, unit_id,
    )
    console.print(f"[green]Added task {task_id}.[/green]")


def cmd_done(db_path: str):
    task_id = IntPrompt.ask("Task id")
    if complete_task(db_path, task_id):
        console.print("[green]Task completed![/green]")
    else:
        console.print(f"[red]No task with id {task_id}.[/red]")


def cmd_practice(db_path: str):
    unit_id = choose_unit(db_path)
    if unit_id is None:
        console.print("[yellow]Add a course with units first.[/yellow]")
        return
    correct = Confirm.ask("Did you answer correctly?")
    log_question_attempt(db_path, unit_id, correct)
    console.print("[green]Correct! Great work![/green]" if correct else "[red]Incorrect. Keep practicing![/red]")


def cmd_focus(db_path: str):
    minutes = IntPrompt.ask("Minutes studied")
    log_focus_session(db_path, minutes)
    console.print(f"[green]Logged {minutes} minutes.[/green]")


def cmd_readiness(db_path: str):
    scores, failures = calc_all_readiness(db_path)
    names = {c.id: c.name for c in get_courses(db_path)}
    table = Table(title="Exam Readiness")
    table.add_column("Course", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    table.add_column("Coverage", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Recency", justify="right")
    table.add_column("Pacing", justify="right")
    table.add_column("Mastery", justify="right")
    for course_id, score in scores.items():
        color = get_readiness_color(score.total)
        table.add_row(
            names.get(course_id, str(course_id)),
            f"{score.total}%",
            f"[{color}]{get_readiness_label(score.total)}[/{color}]",
            f"{score.coverage}%", f"{score.accuracy}%", f"{score.recency}%", f"{score.pacing}%",
            f"{calc_course_mastery(db_path, course_id)}%",
        )
    console.print(table)
    for course_id, reason in failures.items():
        console.print(f"  [red]Course {course_id}: {reason}[/red]")

    weak = get_weak_units(db_path)
    if weak:
        console.print("\n[bold]Weakest Units:[/bold]")
        for w in weak[:5]:
            console.print(f"  [red]{w['mastery']}%[/red] Unit {w['unit_number']}: {w['unit_name']} ({w['course_name']})")


def cmd_target(db_path: str):
    current = get_target_study_minutes(db_path)
    minutes = IntPrompt.ask("Daily study minutes", default=current)
    set_target_study_minutes(db_path, minutes)
    console.print(f"[green]Daily target set to {minutes} minutes.[/green]")


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    counts = import_file(db_path, file_path)
    console.print(
        f"[green]Imported {counts['courses']} courses, {counts['units']} units, {counts['tasks']} tasks.[/green]"
    )


COMMANDS = {
    "plan": cmd_plan,
    "today": cmd_today,
    "tasks": cmd_tasks,
    "add": cmd_add,
    "done": cmd_done,
    "practice": cmd_practice,
    "focus": cmd_focus,
    "readiness": cmd_readiness,
    "target": cmd_target,
    "import": cmd_import,
}


def main():
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="plan").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Good luck on your exams![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
