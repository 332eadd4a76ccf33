"""
Exercise registry.

The default catalog is loaded once from the bundled ``exercises.yaml``
(plus ``~/.liftlog/exercises.yaml`` overrides).  If nothing can be
loaded a RuntimeError is raised: the application cannot start workouts
without a catalog.
"""

from .base import ExerciseCatalog

_CATALOG: ExerciseCatalog | None = None


def _build_catalog() -> ExerciseCatalog:
    from .loader import load_catalog_entries

    entries = load_catalog_entries()
    if not entries:
        raise RuntimeError(
            "liftlog: no exercise definitions could be loaded. "
            "Check that src/liftlog/exercises.yaml is present and valid."
        )
    return ExerciseCatalog(entries)


def get_catalog() -> ExerciseCatalog:
    """Return the default exercise catalog, loading it on first use."""
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = _build_catalog()
    return _CATALOG


def reset_catalog() -> None:
    """Forget the cached catalog so the next lookup reloads YAML."""
    global _CATALOG
    _CATALOG = None
