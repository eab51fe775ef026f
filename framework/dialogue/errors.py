"""
Dialogue runner errors.

All of these signal a caller mistake against the runner's state machine
and are raised synchronously. Command lookups that find nothing are not
errors; they are reported as DispatchOutcome values.
"""

from __future__ import annotations


class DialogueError(RuntimeError):
    """Base class for dialogue runner errors."""


class InvalidState(DialogueError):
    """The operation is not allowed in the runner's current state."""


class NotRunning(InvalidState):
    """A resume-family call was made while no dialogue is running."""


class AlreadyRunning(InvalidState):
    """A resume-family call was made from inside an advance cycle."""


class InvalidOption(DialogueError, IndexError):
    """An option index outside the last presented option set."""

    def __init__(self, index: int, option_count: int):
        super().__init__(
            f"Option {index} is out of range; {option_count} option(s) were presented"
        )
        self.index = index
        self.option_count = option_count


class CommandInFlight(DialogueError):
    """An asynchronous command was dispatched while another is pending."""

    def __init__(self, command: str):
        super().__init__(
            f"Cannot dispatch asynchronous command \"{command}\": "
            f"another asynchronous command has not finished"
        )
        self.command = command
