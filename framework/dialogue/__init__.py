"""
Dialogue module - runs dialogue programs and routes their commands.

Provides:
- DialogueRunner, the System driving a dialogue engine
- Command registration for components (@command)
- Command dispatch to the components of named entities
- Frame-stepped and asyncio tasks for asynchronous commands
- Variable storage and runner configuration
"""

from framework.dialogue.commands import (
    CommandInvocation,
    CommandRegistry,
    CommandSpec,
    HandlerCandidate,
    command,
)
from framework.dialogue.config import DEFAULT_START_NODE, RunnerConfig
from framework.dialogue.dispatcher import (
    CommandDispatcher,
    Diagnostic,
    DiagnosticKind,
    DispatchOutcome,
    DispatchResult,
)
from framework.dialogue.errors import (
    AlreadyRunning,
    CommandInFlight,
    DialogueError,
    InvalidOption,
    InvalidState,
    NotRunning,
)
from framework.dialogue.interfaces import (
    Command,
    Dialogue,
    DialoguePresenter,
    HandlerExecutionType,
    Line,
    Option,
    OptionSet,
)
from framework.dialogue.runner import DialogueRunner, RunState
from framework.dialogue.storage import MemoryVariableStorage, Value, VariableStorage
from framework.dialogue.tasks import CommandTask, TaskScheduler

__all__ = [
    "DialogueRunner",
    "RunState",
    "RunnerConfig",
    "DEFAULT_START_NODE",
    "command",
    "CommandRegistry",
    "CommandSpec",
    "CommandInvocation",
    "HandlerCandidate",
    "CommandDispatcher",
    "DispatchOutcome",
    "DispatchResult",
    "Diagnostic",
    "DiagnosticKind",
    "CommandTask",
    "TaskScheduler",
    "Dialogue",
    "DialoguePresenter",
    "HandlerExecutionType",
    "Line",
    "Option",
    "OptionSet",
    "Command",
    "VariableStorage",
    "MemoryVariableStorage",
    "Value",
    "DialogueError",
    "InvalidState",
    "NotRunning",
    "AlreadyRunning",
    "InvalidOption",
    "CommandInFlight",
]
