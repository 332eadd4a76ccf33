"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of routines, the active workout and
workout history.  Weights arrive in the canonical unit and are converted
for display here.
"""

from datetime import datetime

from rich.console import Console
from rich.table import Table

from ..core.exercises.base import ExerciseCatalog
from ..core.metrics import (
    PersonalRecord,
    best_estimated_1rm,
    completed_set_count,
    total_set_count,
    weight_changes,
)
from ..core.models import (
    BodyStat,
    ExerciseLog,
    Routine,
    WorkoutRecord,
    WorkoutSession,
    WorkoutSet,
)
from ..core.rest_timer import RestEvent, format_clock, phase
from ..core.set_spec import PerSetConfig, set_spec_for
from ..core.units import format_weight, unit_label

console = Console()


def _fmt_date(iso: str) -> str:
    """Format an ISO timestamp as '2026-02-18 07:30 (Wed)'."""
    try:
        dt = datetime.fromisoformat(iso)
    except ValueError:
        return iso
    return dt.strftime("%Y-%m-%d %H:%M (%a)")


def _fmt_days(days: list[str]) -> str:
    if not days or "any" in days:
        return "any"
    return ", ".join(d[:3].capitalize() for d in days)


def _fmt_set_target(workout_set: WorkoutSet, time_based: bool) -> str:
    if time_based:
        return f"{workout_set.duration or 0}s"
    return str(workout_set.reps) if workout_set.reps is not None else "—"


# =============================================================================
# Routines
# =============================================================================


def print_routines(routines: list[Routine]) -> None:
    """Print a summary table of stored routines."""
    if not routines:
        print_info("No routines yet. Run 'init' or 'import-routine'.")
        return

    table = Table(title="Routines")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Exercises", justify="right")
    table.add_column("Days")

    for r in routines:
        table.add_row(r.id[:8], r.name, str(len(r.exercises)), _fmt_days(r.days))

    console.print(table)


def print_routine(routine: Routine, catalog: ExerciseCatalog) -> None:
    """Print every exercise of a routine with its set prescription."""
    console.print(f"[bold cyan]{routine.name}[/bold cyan]  [dim]{routine.id}[/dim]")
    if routine.description:
        console.print(f"[dim]{routine.description}[/dim]")

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Exercise", style="bold")
    table.add_column("Sets")
    table.add_column("Rest")
    table.add_column("Days")
    table.add_column("Superset")

    for i, ex in enumerate(routine.exercises, 1):
        spec = set_spec_for(ex)
        time_based = catalog.is_time_based(ex.exercise_id)
        if isinstance(spec, PerSetConfig):
            unit = "s" if time_based else ""
            sets = ", ".join(
                f"{(e.duration or 0) if time_based else e.reps}{unit}" for e in spec.entries
            )
            rests = sorted({e.rest_period for e in spec.entries})
            rest = "/".join(f"{r}s" for r in rests)
        else:
            amount = f"{spec.duration or 0}s" if time_based else str(spec.reps)
            sets = f"{spec.count}x{amount}"
            rest = f"{spec.rest_period}s"
        table.add_row(
            str(i),
            catalog.display_name(ex.exercise_id),
            sets,
            rest,
            _fmt_days(ex.days),
            ex.superset_group or "",
        )

    console.print(table)


# =============================================================================
# Active workout
# =============================================================================


def _exercise_header(index: int, log: ExerciseLog, current: bool, unit: str) -> str:
    marker = "▶" if current else " "
    header = f"{marker} {index + 1}. [bold]{log.exercise_name}[/bold]  {log.completed_count}/{len(log.sets)}"
    if log.superset_group:
        header += f"  [magenta]superset {log.superset_group}[/magenta]"
    best = best_estimated_1rm(log.sets)
    if best > 0 and not log.is_time_based:
        header += f"  [green]Est. 1RM: {format_weight(best, unit, decimals=0)}[/green]"
    return header


def print_session(
    session: WorkoutSession,
    routine_name: str,
    unit: str,
    elapsed_seconds: int,
    show_all: bool = False,
) -> None:
    """
    Print the active workout.

    The current exercise is expanded into a set table; the others are
    summarised on one line unless ``show_all`` is set.
    """
    logs = session.exercise_logs
    console.print()
    console.print(
        f"[bold cyan]{routine_name}[/bold cyan]"
        f"{' — ' + session.selected_day.capitalize() if session.selected_day else ''}"
        f"   ⏱ {format_clock(elapsed_seconds)}"
        f"   [dim]{completed_set_count(logs)}/{total_set_count(logs)} sets[/dim]"
    )

    for i, log in enumerate(logs):
        current = i == session.current_exercise_index
        console.print(_exercise_header(i, log, current, unit))
        if current or show_all:
            console.print(format_set_table(log, unit, session, i))

    print_rest_line(session)


def format_set_table(
    log: ExerciseLog, unit: str, session: WorkoutSession, exercise_index: int
) -> Table:
    """Create a table of the sets of one exercise."""
    table = Table(show_header=True, padding=(0, 1))
    table.add_column("Set", justify="right")
    table.add_column(f"Weight ({unit_label(unit)})", justify="right")
    table.add_column("Time" if log.is_time_based else "Reps", justify="right")
    table.add_column("Rest", justify="right")
    table.add_column("Done", justify="center")

    rest = session.rest_state
    for j, s in enumerate(log.sets):
        resting = rest.resting_exercise_index == exercise_index and rest.resting_set_index == j
        done = "[green]✓[/green]" if s.completed else ""
        if resting:
            done += " [yellow]⏸[/yellow]" if rest.paused else " [yellow]…[/yellow]"
        table.add_row(
            str(j + 1),
            format_weight(s.weight, unit, include_unit=False) if s.weight else "—",
            _fmt_set_target(s, log.is_time_based),
            f"{s.rest_period}s",
            done,
            style="dim" if s.completed else None,
        )
    return table


def print_rest_line(session: WorkoutSession) -> None:
    """Print the rest timer state, if a rest is active."""
    state = session.rest_state
    current = phase(state)
    if current == "idle":
        return
    label = "Paused" if current == "paused" else "Resting"
    console.print(f"[yellow]{label}: {format_clock(state.remaining_seconds)} remaining[/yellow]")


def play_cue(event: RestEvent) -> None:
    """Audible cue for a rest timer event (terminal bell)."""
    if event == RestEvent.COUNTDOWN:
        console.bell()
    elif event == RestEvent.FINISHED:
        console.bell()
        console.bell()
        console.print("[bold green]Rest over — next set![/bold green]")


def print_workout_help() -> None:
    """Print the command reference for the interactive workout."""
    console.print(
        "[bold]Commands[/bold] (E = exercise #, S = set #; E defaults to the current exercise)\n"
        "  [cyan]c [E] [S][/cyan]          complete a set (default: next open set)\n"
        "  [cyan]w [E] S VALUE[/cyan]      set weight      [cyan]r [E] S VALUE[/cyan]   set reps\n"
        "  [cyan]t [E] S SECONDS[/cyan]    set duration (time-based exercises)\n"
        "  [cyan]a [E][/cyan]              add a set\n"
        "  [cyan]g E[/cyan]                go to exercise\n"
        "  [cyan]rest SECONDS[/cyan]       change the current rest period\n"
        "  [cyan]timer[/cyan]              resume the rest countdown   [cyan]skip[/cyan] skip rest\n"
        "  [cyan]all[/cyan]                show every exercise\n"
        "  [cyan]f[/cyan]                  finish and save   [cyan]q[/cyan] quit   [cyan]h[/cyan] help"
    )


# =============================================================================
# History
# =============================================================================


def format_history_table(
    workouts: list[WorkoutRecord], unit: str, numbers: list[int] | None = None
) -> Table:
    """
    Create a Rich table of finished workouts.

    ``numbers`` are the 1-based history positions shown in the # column
    (default: 1..n).
    """
    if numbers is None:
        numbers = list(range(1, len(workouts) + 1))
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Routine", style="bold")
    table.add_column("Day")
    table.add_column("Time", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column(f"Volume ({unit_label(unit)})", justify="right")

    for i, w in zip(numbers, workouts):
        table.add_row(
            str(i),
            _fmt_date(w.date),
            w.routine_name,
            (w.day or "").capitalize(),
            format_clock(w.duration),
            str(w.set_count),
            format_weight(w.total_volume, unit, include_unit=False, decimals=0),
        )

    return table


def print_history(
    workouts: list[WorkoutRecord], unit: str, numbers: list[int] | None = None
) -> None:
    if not workouts:
        print_info("No workouts logged yet.")
        return
    console.print(format_history_table(workouts, unit, numbers))


def print_workout_detail(record: WorkoutRecord, unit: str) -> None:
    """Print one finished workout with every completed set."""
    console.print(
        f"[bold cyan]{record.routine_name}[/bold cyan]  {_fmt_date(record.date)}"
        f"   ⏱ {format_clock(record.duration)}"
    )
    for ex in record.exercises:
        console.print(f"  [bold]{ex.exercise_name}[/bold]")
        for j, s in enumerate(ex.sets, 1):
            amount = f"{s.duration}s" if s.duration and not s.reps else f"{s.reps or 0} reps"
            weight = f" @ {format_weight(s.weight, unit)}" if s.weight > 0 else ""
            console.print(f"    {j}. {amount}{weight}")
    console.print(
        f"[bold]Total volume:[/bold] {format_weight(record.total_volume, unit, decimals=0)}"
    )


def print_records(records: list[PersonalRecord], unit: str) -> None:
    """Print personal records per exercise."""
    if not records:
        print_info("No personal records yet. Finish a workout first.")
        return

    table = Table(title="Personal Records")
    table.add_column("Exercise", style="bold")
    table.add_column("Heaviest", justify="right")
    table.add_column("Est. 1RM", justify="right")
    table.add_column("Best set", justify="right")
    table.add_column("Total volume", justify="right")
    table.add_column("Workouts", justify="right")
    table.add_column("Last", style="dim")

    for r in records:
        table.add_row(
            r.exercise_name,
            format_weight(r.max_weight, unit) if r.max_weight > 0 else "—",
            format_weight(r.best_1rm, unit, decimals=0) if r.best_1rm > 0 else "—",
            format_weight(r.best_set_volume, unit, decimals=0) if r.best_set_volume > 0 else "—",
            format_weight(r.total_volume, unit, decimals=0),
            str(r.workouts),
            (r.last_date or "")[:10],
        )

    console.print(table)


# =============================================================================
# Body stats
# =============================================================================


def _fmt_change(change: float | None, unit: str) -> str:
    if change is None:
        return ""
    if change == 0:
        return "±0"
    sign = "+" if change > 0 else "-"
    return sign + format_weight(abs(change), unit, include_unit=False, decimals=1)


def print_body_stats(
    stats: list[BodyStat], unit: str, numbers: list[int] | None = None
) -> None:
    """
    Print body-stat entries with the weight change between weigh-ins.

    ``stats`` must be in date order; changes are computed over this list.
    """
    if not stats:
        print_info("No body stats logged yet. Use 'liftlog log-body-stat'.")
        return
    if numbers is None:
        numbers = list(range(1, len(stats) + 1))

    table = Table(title="Body Stats")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column(f"Weight ({unit_label(unit)})", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Body fat", justify="right")
    table.add_column("Measurements")

    for i, stat, change in zip(numbers, stats, weight_changes(stats)):
        table.add_row(
            str(i),
            stat.date[:10],
            format_weight(stat.weight, unit, include_unit=False) if stat.weight else "—",
            _fmt_change(change, unit),
            f"{stat.body_fat:.1f}%" if stat.body_fat is not None else "—",
            ", ".join(f"{site} {value:g}" for site, value in stat.measurements.items()),
        )

    console.print(table)

    latest = next((s for s in reversed(stats) if s.weight), None)
    if latest is not None:
        console.print(f"[bold]Current weight:[/bold] {format_weight(latest.weight, unit)}")


# =============================================================================
# Messages
# =============================================================================


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
