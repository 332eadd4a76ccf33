"""
Rest timer state transitions.

The timer is a single countdown owned by the workout session:

    idle -> running -> (paused <-> running) -> idle

Every transition is a pure function returning a new RestState.  ``tick``
also returns the events the caller should act on (audio cues, UI refresh),
so the countdown itself has no side effects.
"""

from dataclasses import replace
from enum import Enum
from typing import Literal

from .config import COUNTDOWN_CUE_SECONDS
from .models import RestState

RestPhase = Literal["idle", "running", "paused"]


class RestEvent(str, Enum):
    """Events emitted by ``tick``."""

    COUNTDOWN = "countdown"  # short cue at 3, 2, 1
    FINISHED = "finished"  # longer cue, rest is over


def phase(state: RestState) -> RestPhase:
    """Return the state-machine phase of ``state``."""
    if not state.is_active or state.remaining_seconds <= 0:
        return "idle"
    return "paused" if state.paused else "running"


def start_rest(
    state: RestState,
    duration_seconds: int,
    exercise_index: int,
    set_index: int,
) -> RestState:
    """
    Start a new countdown, superseding any rest already in progress.

    A non-positive duration leaves the timer idle.
    """
    if duration_seconds <= 0:
        return RestState()
    return RestState(
        remaining_seconds=int(duration_seconds),
        paused=False,
        resting_exercise_index=exercise_index,
        resting_set_index=set_index,
    )


def tick(state: RestState) -> tuple[RestState, list[RestEvent]]:
    """
    Advance the countdown by one second.

    No progress is made while paused or idle.  Reaching zero clears the
    resting pointer and emits FINISHED.
    """
    if phase(state) != "running":
        return state, []

    remaining = max(0, state.remaining_seconds - 1)
    if remaining == 0:
        return RestState(), [RestEvent.FINISHED]

    events = [RestEvent.COUNTDOWN] if remaining in COUNTDOWN_CUE_SECONDS else []
    return replace(state, remaining_seconds=remaining), events


def pause(state: RestState) -> RestState:
    if phase(state) != "running":
        return state
    return replace(state, paused=True)


def resume(state: RestState) -> RestState:
    if phase(state) != "paused":
        return state
    return replace(state, paused=False)


def toggle_pause(state: RestState) -> RestState:
    """Pause a running countdown or resume a paused one."""
    return resume(state) if state.paused else pause(state)


def skip(state: RestState) -> RestState:
    """End the rest immediately, with the same clearing as natural expiry."""
    return RestState()


def format_clock(seconds: int) -> str:
    """Format seconds as ``m:ss``."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"
