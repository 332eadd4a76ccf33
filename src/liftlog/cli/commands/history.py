"""History commands: history, show-workout, delete-workout, records, settings."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import REST_EDIT_MAX_SECONDS, REST_EDIT_MIN_SECONDS, UNIT_SYSTEMS
from ...core.engine.config_loader import save_user_settings
from ...core.metrics import personal_records
from ...core.models import WorkoutRecord
from ...io.serializers import ValidationError, workout_record_to_dict
from .. import views
from ..app import DataDirOption, Workspace, app, get_workspace


def _load_history(ws: Workspace) -> list[WorkoutRecord]:
    try:
        return ws.history.load_history()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _pick(workouts: list[WorkoutRecord], number: int) -> WorkoutRecord:
    if not workouts:
        views.print_error("No workouts logged yet.")
        raise typer.Exit(1)
    if number < 1 or number > len(workouts):
        views.print_error(f"Workout # must be between 1 and {len(workouts)}")
        raise typer.Exit(1)
    return workouts[number - 1]


@app.command()
def history(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Show only the last N workouts (0 = all)"),
    ] = 0,
    routine: Annotated[
        Optional[str],
        typer.Option("--routine", "-r", help="Only workouts of this routine name"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON instead of a table"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show finished workouts, oldest first.

    Numbers in the # column are used by show-workout and delete-workout.
    """
    ws = get_workspace(data_dir)
    workouts = _load_history(ws)

    numbered = list(enumerate(workouts, 1))
    if routine:
        numbered = [(i, w) for i, w in numbered if w.routine_name.lower() == routine.lower()]
    if limit > 0:
        numbered = numbered[-limit:]

    if json_out:
        print(json.dumps(
            [{"number": i, **workout_record_to_dict(w)} for i, w in numbered],
            indent=2,
        ))
        return

    views.print_history(
        [w for _, w in numbered],
        ws.settings.unit_system,
        numbers=[i for i, _ in numbered],
    )


@app.command("show-workout")
def show_workout(
    number: Annotated[int, typer.Argument(help="Workout # from the history table")],
    data_dir: DataDirOption = None,
) -> None:
    """Show every completed set of one finished workout."""
    ws = get_workspace(data_dir)
    record = _pick(_load_history(ws), number)
    views.print_workout_detail(record, ws.settings.unit_system)


@app.command("delete-workout")
def delete_workout(
    number: Annotated[int, typer.Argument(help="Workout # from the history table")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Delete without prompting"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Delete a finished workout from history."""
    ws = get_workspace(data_dir)
    target = _pick(_load_history(ws), number)

    if not force and not views.confirm_action(
        f"Delete {target.routine_name} on {target.date[:10]}?"
    ):
        views.print_info("Cancelled.")
        return

    ws.history.delete_workout_at(number - 1)
    views.print_success(f"Deleted workout #{number} ({target.routine_name}, {target.date[:10]})")


@app.command()
def records(data_dir: DataDirOption = None) -> None:
    """Show personal records per exercise."""
    ws = get_workspace(data_dir)
    views.print_records(personal_records(_load_history(ws)), ws.settings.unit_system)


@app.command()
def settings(
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="Display unit: lbs or kg"),
    ] = None,
    rest: Annotated[
        Optional[int],
        typer.Option("--rest", help="Default rest in seconds for exercises without one"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show or change settings.

    Weights are always stored in pounds; the unit only changes how they
    are shown and entered.
    """
    ws = get_workspace(data_dir)
    updates: dict = {}

    if unit is not None:
        unit = unit.lower()
        if unit not in UNIT_SYSTEMS:
            views.print_error(f"Unit must be one of: {', '.join(UNIT_SYSTEMS)}")
            raise typer.Exit(1)
        updates["units"] = {"unit_system": unit}

    if rest is not None:
        if not REST_EDIT_MIN_SECONDS <= rest <= REST_EDIT_MAX_SECONDS:
            views.print_error(
                f"Rest must be between {REST_EDIT_MIN_SECONDS} and {REST_EDIT_MAX_SECONDS} seconds"
            )
            raise typer.Exit(1)
        updates["rest"] = {"default_rest_seconds": rest}

    if updates:
        path = save_user_settings(updates, ws.data_dir)
        views.print_success(f"Settings saved to {path}")
        ws = get_workspace(ws.data_dir)

    s = ws.settings
    views.console.print(f"[bold]Unit:[/bold]                {s.unit_system}")
    views.console.print(f"[bold]Default rest:[/bold]        {s.default_rest_seconds}s")
    views.console.print(f"[bold]Superset transition:[/bold] {s.superset_transition_seconds}s")
