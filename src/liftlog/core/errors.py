"""Exception types raised by the workout session engine."""


class LiftlogError(Exception):
    """Base class for liftlog errors."""


class SetValidationError(LiftlogError):
    """Raised when a set cannot be completed with its current values."""


class WriteBackSkipped(LiftlogError):
    """Raised when a session change cannot be located in the stored routine."""


class HistorySaveError(LiftlogError):
    """Raised when a finished workout could not be written to history."""
