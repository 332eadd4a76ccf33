"""Routine commands: init, routines, show-routine, import-routine, delete-routine."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.exercises import get_catalog
from ...io.routine_import import (
    get_sample_routine_path,
    load_routine_file,
    unknown_exercise_ids,
)
from ...io.routine_store import RoutineNotFoundError
from ...io.serializers import ValidationError
from .. import views
from ..app import DataDirOption, app, get_workspace


@app.command()
def init(
    no_sample: Annotated[
        bool,
        typer.Option("--no-sample", help="Do not create the sample routine"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Create the data directory, routine, history and body-stat files.

    A sample routine is added when no routines exist yet.  Running init
    again never touches existing data.
    """
    ws = get_workspace(data_dir)
    try:
        ws.routines.init()
        ws.history.init()
        ws.body_stats.init()
        existing = ws.routines.load_routines()
    except (OSError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Data directory: {ws.data_dir}")

    if existing or no_sample:
        views.print_info(f"{len(existing)} routine(s) stored.")
        return

    name, description, exercises = load_routine_file(get_sample_routine_path())
    routine = ws.routines.create_routine(name, exercises, description)
    views.print_success(f"Created sample routine '{routine.name}'")
    views.print_routine(routine, get_catalog())
    views.print_info(f"Start it with: liftlog start \"{routine.name}\"")


@app.command("routines")
def list_routines(data_dir: DataDirOption = None) -> None:
    """List stored routines."""
    ws = get_workspace(data_dir)
    try:
        routines = ws.routines.load_routines()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_routines(routines)


@app.command("show-routine")
def show_routine(
    routine_key: Annotated[str, typer.Argument(help="Routine name, ID or ID prefix")],
    data_dir: DataDirOption = None,
) -> None:
    """Show the exercises and set prescription of one routine."""
    ws = get_workspace(data_dir)
    try:
        routine = ws.routines.find_routine(routine_key)
    except (RoutineNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_routine(routine, get_catalog())


@app.command("import-routine")
def import_routine(
    path: Annotated[Path, typer.Argument(help="Routine YAML file")],
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Override the routine name"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Import a routine from a YAML file.

    See src/liftlog/sample_routine.yaml for the format.
    """
    ws = get_workspace(data_dir)
    try:
        routine_name, description, exercises = load_routine_file(path)
    except FileNotFoundError:
        views.print_error(f"File not found: {path}")
        raise typer.Exit(1)
    except (OSError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    catalog = get_catalog()
    for exercise_id in unknown_exercise_ids(exercises, catalog):
        views.print_warning(f"Unknown exercise '{exercise_id}' (it will show as a placeholder)")

    routine = ws.routines.create_routine(name or routine_name, exercises, description)
    views.print_success(f"Imported routine '{routine.name}' ({len(routine.exercises)} exercises)")
    views.print_routine(routine, catalog)


@app.command("delete-routine")
def delete_routine(
    routine_key: Annotated[str, typer.Argument(help="Routine name, ID or ID prefix")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Delete without prompting"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Delete a stored routine (history is kept)."""
    ws = get_workspace(data_dir)
    try:
        routine = ws.routines.find_routine(routine_key)
    except (RoutineNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Delete routine '{routine.name}'?"):
        views.print_info("Cancelled.")
        return

    ws.routines.delete_routine(routine.id)
    active = ws.cache.peek()
    if active is not None and active.routine_id == routine.id:
        ws.cache.erase()
        views.print_info("Discarded the in-progress workout of this routine.")
    views.print_success(f"Deleted routine '{routine.name}'")
