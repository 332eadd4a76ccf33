"""Shared Typer app object, shared option types, and store wiring."""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Callable, Optional

import typer

from ..core.engine.config_loader import AppSettings, load_settings
from ..core.manager import SessionManager
from ..core.reconciler import Reconciler
from ..io.body_stats_store import BodyStatsStore
from ..io.history_store import HistoryStore, get_default_data_dir
from ..io.routine_store import RoutineStore
from ..io.session_cache import JsonFileKeyValueStore, SessionCache

ROUTINES_FILE = "routines.json"
HISTORY_FILE = "history.jsonl"
BODY_STATS_FILE = "body_stats.jsonl"
CACHE_DIR = "cache"

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-D", help="Data directory (default: ~/.liftlog)"),
]

app = typer.Typer(
    name="liftlog",
    help="Strength workout logger: run routines set by set, with rest timers and history.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@dataclass
class Workspace:
    """Stores and settings rooted at one data directory."""

    data_dir: Path
    routines: RoutineStore
    history: HistoryStore
    body_stats: BodyStatsStore
    cache: SessionCache
    settings: AppSettings

    def manager(self, clock: Callable[[], float] = time.time) -> SessionManager:
        return SessionManager(
            cache=self.cache,
            history=self.history,
            reconciler=Reconciler(self.routines),
            settings=self.settings,
            clock=clock,
        )


def get_workspace(data_dir: Path | None) -> Workspace:
    """Get stores for ``data_dir`` or the default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    data_dir = Path(data_dir).expanduser()
    return Workspace(
        data_dir=data_dir,
        routines=RoutineStore(data_dir / ROUTINES_FILE),
        history=HistoryStore(data_dir / HISTORY_FILE),
        body_stats=BodyStatsStore(data_dir / BODY_STATS_FILE),
        cache=SessionCache(JsonFileKeyValueStore(data_dir / CACHE_DIR)),
        settings=load_settings(data_dir),
    )
