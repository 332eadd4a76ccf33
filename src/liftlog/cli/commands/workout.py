"""Workout commands: start (interactive workout), status, discard."""

import time
from typing import Annotated, Optional

import typer

from ...core.config import ANY_DAY, TICK_INTERVAL_SECONDS, WEEKDAYS
from ...core.errors import HistorySaveError, SetValidationError
from ...core.exercises import get_catalog
from ...core.manager import SessionManager
from ...core.metrics import completed_set_count
from ...core.models import Routine
from ...core.reconciler import PendingChange
from ...core.rest_timer import format_clock
from ...core.session import is_complete
from ...io.routine_store import RoutineNotFoundError
from ...io.serializers import ValidationError
from ...io.session_cache import dump_snapshot
from .. import views
from ..app import DataDirOption, Workspace, app, get_workspace

# Patched in tests to run the countdown instantly
_sleep = time.sleep

_EDIT_FIELDS = {"w": "weight", "r": "reps", "t": "duration"}


class _InputError(ValueError):
    """Malformed workout command; shown to the user, state unchanged."""


# =============================================================================
# Input helpers
# =============================================================================


def _to_index(raw: str, upper: int, what: str) -> int:
    """Parse a 1-based number typed by the user into a 0-based index."""
    try:
        n = int(raw)
    except ValueError:
        raise _InputError(f"{what} must be a number, got '{raw}'")
    if upper == 0:
        raise _InputError(f"No {what.lower()}s here")
    if n < 1 or n > upper:
        raise _InputError(f"{what} must be between 1 and {upper}")
    return n - 1


def _exercise_arg(manager: SessionManager, args: list[str], needed: int) -> tuple[int, list[str]]:
    """
    Split an optional leading exercise number off ``args``.

    With ``needed`` trailing arguments, one extra leading argument is the
    exercise; otherwise the current exercise is used.
    """
    session = manager.session
    if len(args) == needed + 1:
        ei = _to_index(args[0], len(session.exercise_logs), "Exercise")
        return ei, args[1:]
    if len(args) == needed:
        return session.current_exercise_index, args
    raise _InputError("Wrong number of arguments (type h for help)")


def _resolve_day(routine: Routine, day: str | None) -> str | None:
    """Return the day to run, prompting when the routine is day-specific."""
    if day is not None:
        day = day.strip().lower()
        if day in ("all", ""):
            return None
        if day not in WEEKDAYS and day != ANY_DAY:
            views.print_error(f"Unknown day '{day}'. Use a weekday name or 'all'.")
            raise typer.Exit(1)
        return day

    scheduled = [d for d in WEEKDAYS if d in routine.days]
    if not scheduled:
        return None

    views.console.print(
        "This routine has day-specific exercises: "
        + ", ".join(d.capitalize() for d in scheduled)
    )
    while True:
        raw = views.console.input("Day to train (Enter for all exercises): ").strip().lower()
        if not raw or raw == "all":
            return None
        matches = [d for d in WEEKDAYS if d.startswith(raw)]
        if len(matches) == 1:
            return matches[0]
        views.print_error("Enter a weekday name (e.g. mon, friday) or press Enter")


# =============================================================================
# Rest timer
# =============================================================================


def _countdown(manager: SessionManager) -> None:
    """Tick the running rest down to zero, or until interrupted."""
    with views.console.status("") as status:
        while manager.rest_phase() == "running":
            remaining = manager.session.rest_state.remaining_seconds
            status.update(f"[yellow]Rest {format_clock(remaining)}[/yellow]  [dim](Ctrl-C to pause)[/dim]")
            _sleep(TICK_INTERVAL_SECONDS)
            for event in manager.tick():
                views.play_cue(event)


def _rest_menu(manager: SessionManager) -> None:
    """Options shown while the rest is paused."""
    views.print_rest_line(manager.session)
    while True:
        choice = views.console.input(
            "[r]esume  [s]kip  [e]dit rest  [b]ack to workout: "
        ).strip().lower()
        if choice in ("r", ""):
            manager.resume_rest()
            return
        if choice == "s":
            manager.skip_rest()
            views.print_info("Rest skipped.")
            return
        if choice == "e":
            raw = views.console.input("New rest in seconds (30–300): ").strip()
            if _edit_rest(manager, raw):
                return
            continue
        if choice == "b":
            views.print_info("Rest paused. Type 'timer' to resume it.")
            return
        views.print_error(f"Unknown choice: {choice}")


def _run_rest(manager: SessionManager) -> None:
    """Run the countdown; Ctrl-C pauses it and opens the rest menu."""
    while manager.rest_phase() == "running":
        try:
            _countdown(manager)
        except KeyboardInterrupt:
            manager.pause_rest()
            _rest_menu(manager)


def _offer_permanent(manager: SessionManager, change: PendingChange) -> None:
    """Ask whether a session change should also update the routine."""
    choice = views.console.input(
        "Apply to [s]this workout only or [p]ermanently update the routine? [s]: "
    ).strip().lower()
    if choice not in ("p", "permanent", "permanently"):
        return
    outcome = manager.make_permanent(change)
    if outcome.applied:
        views.print_success(outcome.message)
    else:
        views.print_warning(f"{outcome.message}. The change applies to this workout only.")


def _edit_rest(manager: SessionManager, raw: str) -> bool:
    """Change the active rest; True if it was changed."""
    try:
        seconds = int(raw)
    except ValueError:
        views.print_error(f"Rest must be a whole number of seconds, got '{raw}'")
        return False

    change = manager.change_rest_period(seconds)
    if change is None:
        views.print_error("No rest in progress. Complete a set first.")
        return False

    note = "" if change.rest_period == seconds else " (limited to 30–300s)"
    views.print_success(f"Rest set to {change.rest_period}s{note}")
    _offer_permanent(manager, change)
    return True


# =============================================================================
# Workout actions
# =============================================================================


def _complete(manager: SessionManager, args: list[str], run_timer: bool) -> None:
    session = manager.session
    if not args:
        ei = session.current_exercise_index
        log = session.exercise_logs[ei]
        open_sets = [j for j, s in enumerate(log.sets) if not s.completed]
        if not open_sets:
            raise _InputError(f"All sets of {log.exercise_name} are done")
        si = open_sets[0]
    else:
        ei, rest = _exercise_arg(manager, args, 1)
        si = _to_index(rest[0], len(session.exercise_logs[ei].sets), "Set")

    try:
        result = manager.complete_set(ei, si)
    except SetValidationError as e:
        views.print_error(str(e))
        return

    log = session.exercise_logs[ei]
    views.print_success(f"{log.exercise_name}: set {si + 1} done")

    if result.workout_complete:
        views.print_success("All sets done! Type f to finish and save.")
    elif result.exercise_complete and result.advanced:
        nxt = session.exercise_logs[session.current_exercise_index]
        views.print_info(f"Next: {nxt.exercise_name}")

    if result.rest_seconds <= 0 or result.workout_complete:
        manager.skip_rest()
        return
    if run_timer:
        _run_rest(manager)
    else:
        views.print_info(f"Rest {format_clock(result.rest_seconds)}. Type 'timer' to start it.")


def _edit_field(manager: SessionManager, field: str, args: list[str]) -> None:
    session = manager.session
    ei, rest = _exercise_arg(manager, args, 2)
    log = session.exercise_logs[ei]
    si = _to_index(rest[0], len(log.sets), "Set")

    if log.sets[si].completed:
        views.print_warning("That set is already completed and can't be edited.")
        return
    if not manager.update_set_field(ei, si, field, rest[1]):
        views.print_error(f"Invalid {field}: '{rest[1]}'")


def _add_set(manager: SessionManager, args: list[str]) -> None:
    ei, _ = _exercise_arg(manager, args, 0)
    change = manager.add_set(ei)
    log = manager.session.exercise_logs[ei]
    views.print_success(f"Added set {change.set_index + 1} to {log.exercise_name}")
    _offer_permanent(manager, change)


def _go_to(manager: SessionManager, args: list[str]) -> None:
    if len(args) != 1:
        raise _InputError("Usage: g EXERCISE")
    ei = _to_index(args[0], len(manager.session.exercise_logs), "Exercise")
    manager.go_to(ei)


def _finish(manager: SessionManager, routine: Routine) -> bool:
    """Save the workout to history; True when the workout ended."""
    session = manager.session
    if completed_set_count(session.exercise_logs) == 0:
        views.print_error("Complete at least one set before finishing.")
        return False
    if not is_complete(session) and not views.confirm_action(
        "Some sets are not done. Finish anyway?"
    ):
        return False

    try:
        record = manager.finish(routine.name)
    except HistorySaveError as e:
        views.print_error(f"{e}. The workout is still open; try again.")
        return False

    views.print_success("Workout saved!")
    views.print_workout_detail(record, manager.settings.unit_system)
    return True


def _quit(manager: SessionManager, routine: Routine) -> bool:
    """Exit dialog; True when the loop should end."""
    choice = views.console.input(
        "Leave workout: [k]eep for later  [d]iscard  [f]inish and save  [c]ancel [k]: "
    ).strip().lower()
    if choice in ("", "k"):
        views.print_info(f"Workout kept. Resume with: liftlog start \"{routine.name}\"")
        return True
    if choice == "d":
        manager.discard()
        views.print_warning("Workout discarded.")
        return True
    if choice == "f":
        return _finish(manager, routine)
    return False


def _handle(manager: SessionManager, routine: Routine, line: str, run_timer: bool) -> bool:
    """
    Execute one workout command.

    Returns:
        True when the workout loop should end
    """
    parts = line.split()
    if not parts:
        return False
    cmd, args = parts[0].lower(), parts[1:]

    if cmd in ("c", "done"):
        _complete(manager, args, run_timer)
    elif cmd in _EDIT_FIELDS:
        _edit_field(manager, _EDIT_FIELDS[cmd], args)
    elif cmd == "a":
        _add_set(manager, args)
    elif cmd == "g":
        _go_to(manager, args)
    elif cmd == "rest":
        if len(args) != 1:
            raise _InputError("Usage: rest SECONDS")
        if _edit_rest(manager, args[0]) and run_timer:
            _run_rest(manager)
    elif cmd == "timer":
        if manager.rest_phase() == "idle":
            views.print_info("No rest in progress.")
        else:
            manager.resume_rest()
            _run_rest(manager)
    elif cmd == "skip":
        manager.skip_rest()
    elif cmd == "all":
        views.print_session(
            manager.session,
            routine.name,
            manager.settings.unit_system,
            manager.elapsed_seconds(),
            show_all=True,
        )
    elif cmd in ("h", "help", "?"):
        views.print_workout_help()
    elif cmd == "f":
        return _finish(manager, routine)
    elif cmd == "q":
        return _quit(manager, routine)
    else:
        raise _InputError(f"Unknown command '{cmd}' (type h for help)")
    return False


def _workout_loop(manager: SessionManager, routine: Routine, run_timer: bool) -> None:
    views.print_workout_help()
    while True:
        views.print_session(
            manager.session, routine.name, manager.settings.unit_system, manager.elapsed_seconds()
        )
        try:
            line = views.console.input("> ")
        except (EOFError, KeyboardInterrupt):
            views.console.print()
            views.print_info("Workout kept for later.")
            return

        try:
            if _handle(manager, routine, line, run_timer):
                return
        except _InputError as e:
            views.print_error(str(e))
        except EOFError:
            views.print_info("Workout kept for later.")
            return


# =============================================================================
# Commands
# =============================================================================


def _load_routine(ws: Workspace, routine_key: str) -> Routine:
    try:
        return ws.routines.find_routine(routine_key)
    except (RoutineNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def start(
    routine_key: Annotated[str, typer.Argument(help="Routine name, ID or ID prefix")],
    day: Annotated[
        Optional[str],
        typer.Option("--day", "-d", help="Weekday to train, or 'all' (prompted if omitted)"),
    ] = None,
    from_exercise: Annotated[
        int,
        typer.Option("--from", help="Exercise number to start from (1-based)"),
    ] = 1,
    no_timer: Annotated[
        bool,
        typer.Option("--no-timer", help="Don't start the rest countdown automatically"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Run a workout interactively, set by set.

    Progress is saved after every change: quitting (or a crash) keeps the
    workout, and starting the same routine and day again resumes it.
    """
    ws = get_workspace(data_dir)
    routine = _load_routine(ws, routine_key)
    selected_day = _resolve_day(routine, day)

    manager = ws.manager()
    restored = manager.start(routine, selected_day, get_catalog(), starting_index=from_exercise - 1)

    if not manager.session.exercise_logs:
        manager.discard()
        views.print_error(
            f"'{routine.name}' has no exercises"
            + (f" on {selected_day.capitalize()}" if selected_day else "")
        )
        raise typer.Exit(1)

    if restored:
        views.print_info(
            f"Resuming workout ({format_clock(manager.elapsed_seconds())} elapsed)"
        )

    _workout_loop(manager, routine, run_timer=not no_timer)


@app.command()
def status(
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Print the stored workout snapshot as JSON"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Show the workout in progress, if any."""
    ws = get_workspace(data_dir)
    session = ws.cache.peek()
    if session is None:
        if json_out:
            views.console.print_json("null")
        else:
            views.print_info("No workout in progress.")
        return

    if json_out:
        views.console.print_json(dump_snapshot(session))
        return

    try:
        routine_name = ws.routines.get_routine(session.routine_id).name
    except (RoutineNotFoundError, ValidationError):
        routine_name = "(deleted routine)"

    views.print_session(
        session,
        routine_name,
        ws.settings.unit_system,
        session.elapsed_seconds(time.time()),
        show_all=True,
    )


@app.command()
def discard(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Discard without prompting"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Discard the workout in progress without saving it."""
    ws = get_workspace(data_dir)
    if ws.cache.peek() is None:
        views.print_info("No workout in progress.")
        return
    if not force and not views.confirm_action("Discard the workout in progress?"):
        views.print_info("Cancelled.")
        return
    ws.cache.erase()
    views.print_success("Workout discarded.")
