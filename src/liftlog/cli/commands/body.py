"""Body-stat commands: log-body-stat, body-stats, delete-body-stat."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.models import BodyStat
from ...core.units import to_canonical, unit_label
from ...io.serializers import ValidationError, body_stat_to_dict
from .. import views
from ..app import DataDirOption, Workspace, app, get_workspace


def _load_stats(ws: Workspace) -> list[BodyStat]:
    try:
        return ws.body_stats.load_stats()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def _parse_date(raw: str | None) -> str:
    """ISO timestamp for ``raw`` (YYYY-MM-DD or full ISO), default now."""
    if raw is None:
        return datetime.now().isoformat(timespec="seconds")
    try:
        return datetime.fromisoformat(raw).isoformat(timespec="seconds")
    except ValueError:
        views.print_error(f"Invalid date '{raw}'. Use YYYY-MM-DD.")
        raise typer.Exit(1)


@app.command("log-body-stat")
def log_body_stat(
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Body weight in the display unit"),
    ] = None,
    body_fat: Annotated[
        Optional[float],
        typer.Option("--body-fat", "-b", help="Body fat percentage"),
    ] = None,
    chest: Annotated[Optional[float], typer.Option("--chest", help="Chest measurement")] = None,
    waist: Annotated[Optional[float], typer.Option("--waist", help="Waist measurement")] = None,
    arms: Annotated[Optional[float], typer.Option("--arms", help="Arm measurement")] = None,
    legs: Annotated[Optional[float], typer.Option("--legs", help="Leg measurement")] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Date of the entry (default: now)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Log body weight, body fat and measurements.

    Measurements are stored as entered; use the same length unit every time.
    """
    ws = get_workspace(data_dir)
    unit = ws.settings.unit_system
    measurements = {
        site: value
        for site, value in (("chest", chest), ("waist", waist), ("arms", arms), ("legs", legs))
        if value is not None
    }

    try:
        stat = BodyStat(
            date=_parse_date(date),
            weight=to_canonical(weight, unit) if weight is not None else None,
            body_fat=body_fat,
            measurements=measurements,
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        ws.body_stats.append_stat(stat)
    except OSError as e:
        views.print_error(f"Could not save body stat: {e}")
        raise typer.Exit(1)

    parts = []
    if weight is not None:
        parts.append(f"{weight:g} {unit_label(unit)}")
    if body_fat is not None:
        parts.append(f"{body_fat:g}% body fat")
    parts.extend(f"{site} {value:g}" for site, value in measurements.items())
    views.print_success(f"Logged body stat: {', '.join(parts)}")


@app.command("body-stats")
def body_stats(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Show only the last N entries (0 = all)"),
    ] = 0,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON instead of a table"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Show logged body stats, oldest first."""
    ws = get_workspace(data_dir)
    numbered = list(enumerate(_load_stats(ws), 1))
    if limit > 0:
        numbered = numbered[-limit:]

    if json_out:
        print(json.dumps(
            [{"number": i, **body_stat_to_dict(s)} for i, s in numbered],
            indent=2,
        ))
        return

    views.print_body_stats(
        [s for _, s in numbered],
        ws.settings.unit_system,
        numbers=[i for i, _ in numbered],
    )


@app.command("delete-body-stat")
def delete_body_stat(
    number: Annotated[int, typer.Argument(help="Entry # from the body-stats table")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Delete without prompting"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Delete one body-stat entry."""
    ws = get_workspace(data_dir)
    stats = _load_stats(ws)
    if number < 1 or number > len(stats):
        views.print_error(
            f"Entry # must be between 1 and {len(stats)}" if stats else "No body stats logged yet."
        )
        raise typer.Exit(1)

    target = stats[number - 1]
    if not force and not views.confirm_action(f"Delete body stat from {target.date[:10]}?"):
        views.print_info("Cancelled.")
        return

    ws.body_stats.delete_stat_at(number - 1)
    views.print_success(f"Deleted body stat #{number} ({target.date[:10]})")
