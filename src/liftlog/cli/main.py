"""
CLI entry point using Typer.

Provides commands for running and logging workouts:
- init: Create the data directory and a sample routine
- routines / show-routine / import-routine / delete-routine: Manage routines
- start: Run a routine interactively, set by set
- status / discard: Inspect or drop the workout in progress
- history / show-workout / delete-workout: Browse finished workouts
- records: Personal records per exercise
- log-body-stat / body-stats / delete-body-stat: Body weight, body fat and measurements
- settings: Display unit and default rest
"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.logger import setup_logger
from . import views
from .app import app, get_workspace
from .commands import body, history, routines, workout


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
    log_file: Annotated[
        Optional[Path],
        typer.Option("--log-file", help="Also write logs to this file"),
    ] = None,
) -> None:
    """
    Strength workout logger. Run without a command for interactive mode.
    """
    setup_logger(level="DEBUG" if verbose else "WARNING", log_file=log_file)

    if ctx.invoked_subcommand is not None:
        return  # A sub-command was given

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]liftlog[/bold cyan] — strength workout logger")
    views.console.print()

    menu = {
        "1": ("start",    "Start / resume a workout"),
        "2": ("routines", "List routines"),
        "3": ("status",   "Workout in progress"),
        "4": ("history",  "Workout history"),
        "5": ("records",  "Personal records"),
        "6": ("body",     "Body stats"),
        "7": ("settings", "Settings"),
        "i": ("init",     "Set up data directory"),
        "0": ("quit",     "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = {k: v[0] for k, v in menu.items()}.get(choice)
    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    if chosen == "start":
        _menu_start(ctx)
    elif chosen == "routines":
        ctx.invoke(routines.list_routines)
    elif chosen == "status":
        ctx.invoke(workout.status)
    elif chosen == "history":
        ctx.invoke(history.history)
    elif chosen == "records":
        ctx.invoke(history.records)
    elif chosen == "body":
        ctx.invoke(body.body_stats)
    elif chosen == "settings":
        ctx.invoke(history.settings)
    elif chosen == "init":
        ctx.invoke(routines.init)


def _menu_start(ctx: typer.Context) -> None:
    """Pick a routine from the list and start it."""
    stored = get_workspace(None).routines.load_routines()
    if not stored:
        views.print_info("No routines yet. Run 'liftlog init' first.")
        return

    for i, r in enumerate(stored, 1):
        views.console.print(f"  \\[{i}] {r.name}")
    raw = views.console.input("Routine # (Enter to cancel): ").strip()
    if not raw:
        views.print_info("Cancelled.")
        return
    if not raw.isdigit() or not 1 <= int(raw) <= len(stored):
        views.print_error(f"Enter a number between 1 and {len(stored)}")
        raise typer.Exit(1)

    ctx.invoke(workout.start, routine_key=stored[int(raw) - 1].id)


if __name__ == "__main__":
    app()
