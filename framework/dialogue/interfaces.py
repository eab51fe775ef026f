"""
Interfaces between the dialogue runner and its collaborators.

The runner never interprets a script itself. It talks to:
- a Dialogue (the execution engine that runs compiled programs),
- a DialoguePresenter (the UI side that shows lines, options, commands),
- a VariableStorage (see framework.dialogue.storage).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional, Protocol


class HandlerExecutionType(Enum):
    """What the engine should do after a handler returns."""
    CONTINUE = auto()  # Keep executing immediately
    PAUSE = auto()     # Stop until the continuation is invoked


@dataclass
class Line:
    """A line of dialogue to display."""
    text: str
    line_id: Optional[str] = None


@dataclass
class Option:
    """A single option the player can choose."""
    index: int
    text: str
    option_id: Optional[str] = None


@dataclass
class OptionSet:
    """The options presented together at one choice point."""
    options: list[Option] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.options)

    def __getitem__(self, index: int) -> Option:
        return self.options[index]


@dataclass
class Command:
    """A command emitted by the script, e.g. ``jump Avatar 3 left``."""
    text: str


LineHandler = Callable[[Line], HandlerExecutionType]
CommandHandler = Callable[[Command], HandlerExecutionType]
OptionsHandler = Callable[[OptionSet], None]
NodeCompleteHandler = Callable[[str], HandlerExecutionType]
DialogueCompleteHandler = Callable[[], None]


class Dialogue(Protocol):
    """
    The execution engine running a compiled dialogue program.

    The engine calls back through its five handlers. After a handler
    returning PAUSE, or after the options handler, ``advance`` returns
    and the engine waits for the next ``advance`` call.
    """

    line_handler: Optional[LineHandler]
    command_handler: Optional[CommandHandler]
    options_handler: Optional[OptionsHandler]
    node_complete_handler: Optional[NodeCompleteHandler]
    dialogue_complete_handler: Optional[DialogueCompleteHandler]

    @property
    def current_node(self) -> Optional[str]: ...

    def set_program(self, program: Any) -> None: ...

    def add_program(self, program: Any) -> None: ...

    def set_node(self, node_name: str) -> None: ...

    def advance(self) -> None: ...

    def set_selected_option(self, index: int) -> None: ...

    def stop(self) -> None: ...

    def unload_all(self) -> None: ...

    def node_exists(self, node_name: str) -> bool: ...

    def register_function(
        self,
        name: str,
        param_count: int,
        implementation: Callable[..., Any],
    ) -> None: ...


class DialoguePresenter(ABC):
    """
    Base class for anything that presents a dialogue to the player.

    ``run_line``, ``run_command`` and ``node_complete`` return CONTINUE to
    let the dialogue proceed at once, or PAUSE and call ``on_complete``
    later. ``run_options`` always pauses; call ``on_selected(index)`` with
    the chosen option.
    """

    def dialogue_started(self) -> None:
        """A dialogue has started."""

    @abstractmethod
    def run_line(
        self,
        line: Line,
        on_complete: Callable[[], None],
    ) -> HandlerExecutionType:
        """Display a line."""

    @abstractmethod
    def run_options(
        self,
        options: OptionSet,
        on_selected: Callable[[int], None],
    ) -> None:
        """Display options; call on_selected with the chosen index."""

    @abstractmethod
    def run_command(
        self,
        command: Command,
        on_complete: Callable[[], None],
    ) -> HandlerExecutionType:
        """Handle a command that no component answered."""

    def node_complete(
        self,
        node_name: str,
        on_complete: Callable[[], None],
    ) -> HandlerExecutionType:
        """A node has finished."""
        return HandlerExecutionType.CONTINUE

    def dialogue_complete(self) -> None:
        """The dialogue has ended."""
