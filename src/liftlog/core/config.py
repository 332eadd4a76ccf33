"""
Configuration constants for the workout session engine.

All adjustable parameters are centralized here.  Values that users may
want to change (display unit, default rest) can be overridden through
settings.yaml; see core/engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# REST TIMER
# =============================================================================

DEFAULT_REST_SECONDS: Final[int] = 90  # Used when a routine entry has no rest period
SUPERSET_TRANSITION_SECONDS: Final[int] = 15  # Cap between linked superset exercises
REST_EDIT_MIN_SECONDS: Final[int] = 30  # Bounds for editing rest mid-countdown
REST_EDIT_MAX_SECONDS: Final[int] = 300
COUNTDOWN_CUE_SECONDS: Final[tuple[int, ...]] = (3, 2, 1)  # Short audio cue at these values
TICK_INTERVAL_SECONDS: Final[float] = 1.0

# =============================================================================
# UNITS
# =============================================================================

# Weights are stored in pounds; kilograms are a display-only unit.
CANONICAL_UNIT: Final[str] = "lbs"
KG_PER_LB: Final[float] = 0.453592
UNIT_SYSTEMS: Final[tuple[str, ...]] = ("lbs", "kg")

# =============================================================================
# CATALOG / SESSION
# =============================================================================

PLACEHOLDER_EXERCISE_NAME: Final[str] = "Unknown Exercise"
ANY_DAY: Final[str] = "any"
WEEKDAYS: Final[tuple[str, ...]] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# =============================================================================
# PERSISTENCE
# =============================================================================

ACTIVE_WORKOUT_KEY: Final[str] = "active_workout"
DATA_DIR_NAME: Final[str] = ".liftlog"

# =============================================================================
# BODY STATS
# =============================================================================

# Circumference sites; values are kept in whatever length unit was entered
MEASUREMENT_SITES: Final[tuple[str, ...]] = ("chest", "waist", "arms", "legs")
