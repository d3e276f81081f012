"""Exception types raised by clockhand.

Remote failures during ``watch`` are recoverable; everything raised by a
one-shot command ends the process with a non-zero exit code.
"""


class ClockhandError(Exception):
    """Base class for errors surfaced to the user."""


class ServiceUnavailable(ClockhandError):
    """Harvest could not be reached, timed out, or rejected the credentials."""


class TimerNotFound(ClockhandError):
    """No time entry exists for the requested day."""


class NoRunningTimer(ClockhandError):
    """A command needed a running timer and none is active."""


class ConfigInvalid(ClockhandError):
    """A config file is missing or malformed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
