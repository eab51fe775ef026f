"""
Test doubles for the dialogue engine and presenter.

ScriptedDialogue runs programs written as plain Python data:

    {
        "Start": [
            ("line", "Hello"),
            ("command", "jump Avatar 3 left"),
            ("options", [("Go left", "Left"), ("Go right", "Right")]),
        ],
        "Left": [("line", "You went left")],
        "Right": [("jump", "Start")],
    }

A node ends after its last step (the dialogue completes) or at a jump
or chosen option (the dialogue moves to the target node). Either way the
node-complete handler fires first.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from framework.dialogue.interfaces import (
    Command,
    DialoguePresenter,
    HandlerExecutionType,
    Line,
    Option,
    OptionSet,
)

_END = object()


class ScriptedDialogue:
    """A minimal dialogue engine executing scripted nodes."""

    def __init__(self, program: Optional[dict[str, list[tuple]]] = None):
        self.line_handler = None
        self.command_handler = None
        self.options_handler = None
        self.node_complete_handler = None
        self.dialogue_complete_handler = None

        self.nodes: dict[str, list[tuple]] = dict(program or {})
        self.functions: dict[str, Callable[..., Any]] = {}
        self.advance_calls = 0
        self.stop_calls = 0
        self.selected_options: list[int] = []

        self._node: Optional[str] = None
        self._index = 0
        self._running = False
        self._options: Optional[list[tuple[str, str]]] = None
        self._jump: Any = None        # target chosen by an option or jump step
        self._transition: Any = None  # target after a completed node

    @property
    def current_node(self) -> Optional[str]:
        return self._node

    def set_program(self, program: dict[str, list[tuple]]) -> None:
        self.nodes = dict(program)

    def add_program(self, program: dict[str, list[tuple]]) -> None:
        self.nodes.update(program)

    def unload_all(self) -> None:
        self.nodes.clear()

    def node_exists(self, node_name: str) -> bool:
        return node_name in self.nodes

    def register_function(self, name: str, param_count: int, implementation: Callable) -> None:
        self.functions[name] = implementation

    def set_node(self, node_name: str) -> None:
        if node_name not in self.nodes:
            raise KeyError(f"No node named {node_name}")
        self._node = node_name
        self._index = 0
        self._running = True
        self._options = None
        self._jump = None
        self._transition = None

    def set_selected_option(self, index: int) -> None:
        if self._options is None:
            raise RuntimeError("No options are being presented")
        self.selected_options.append(index)
        self._jump = self._options[index][1]
        self._options = None

    def stop(self) -> None:
        self.stop_calls += 1
        self._running = False

    def advance(self) -> None:
        self.advance_calls += 1
        if self._options is not None:
            raise RuntimeError("Waiting for an option to be selected")

        while self._running:
            if self._jump is not None:
                target, self._jump = self._jump, None
                if self._complete_node(target):
                    return
                continue

            if self._transition is not None:
                target, self._transition = self._transition, None
                if target is _END:
                    self._running = False
                    self.dialogue_complete_handler()
                    return
                self._node = target
                self._index = 0
                continue

            steps = self.nodes[self._node]
            if self._index >= len(steps):
                if self._complete_node(_END):
                    return
                continue

            kind, value = steps[self._index]
            self._index += 1

            if kind == "line":
                if self.line_handler(Line(value)) is HandlerExecutionType.PAUSE:
                    return
            elif kind == "command":
                if self.command_handler(Command(value)) is HandlerExecutionType.PAUSE:
                    return
            elif kind == "options":
                self._options = list(value)
                self.options_handler(OptionSet(
                    [Option(i, text) for i, (text, _) in enumerate(self._options)]
                ))
                return
            elif kind == "jump":
                self._jump = value
            else:
                raise ValueError(f"Unknown step {kind!r}")

    def _complete_node(self, target: Any) -> bool:
        """Fire node-complete; True if the handler paused."""
        self._transition = target
        result = self.node_complete_handler(self._node)
        return result is HandlerExecutionType.PAUSE


class RecordingPresenter(DialoguePresenter):
    """Presenter that records everything and pauses when told to."""

    def __init__(
        self,
        line_result: HandlerExecutionType = HandlerExecutionType.CONTINUE,
        command_result: HandlerExecutionType = HandlerExecutionType.CONTINUE,
        node_result: HandlerExecutionType = HandlerExecutionType.CONTINUE,
    ):
        self.line_result = line_result
        self.command_result = command_result
        self.node_result = node_result

        self.started = 0
        self.completed = 0
        self.lines: list[str] = []
        self.commands: list[str] = []
        self.option_sets: list[list[str]] = []
        self.completed_nodes: list[str] = []

        self.on_complete: Optional[Callable[[], None]] = None
        self.on_selected: Optional[Callable[[int], None]] = None

    def dialogue_started(self) -> None:
        self.started += 1

    def run_line(self, line: Line, on_complete: Callable[[], None]) -> HandlerExecutionType:
        self.lines.append(line.text)
        self.on_complete = on_complete
        return self.line_result

    def run_options(self, options: OptionSet, on_selected: Callable[[int], None]) -> None:
        self.option_sets.append([option.text for option in options.options])
        self.on_selected = on_selected

    def run_command(self, command: Command, on_complete: Callable[[], None]) -> HandlerExecutionType:
        self.commands.append(command.text)
        self.on_complete = on_complete
        return self.command_result

    def node_complete(self, node_name: str, on_complete: Callable[[], None]) -> HandlerExecutionType:
        self.completed_nodes.append(node_name)
        self.on_complete = on_complete
        return self.node_result

    def dialogue_complete(self) -> None:
        self.completed += 1
