"""
Dialogue runner - drives a dialogue engine and routes its events.

The runner sits between three collaborators:
- the Dialogue engine, which executes a compiled program and calls back
  with lines, options, commands and node/dialogue completion,
- the DialoguePresenter, which shows those to the player and decides
  when the dialogue continues,
- the World, whose entities answer script commands through their
  components (see framework.dialogue.commands).

It is a System: add it to a World and it picks up the world's entity
lookup and event bus, and steps its command tasks every frame.

Usage:
    runner = DialogueRunner(dialogue, presenter, MemoryVariableStorage())
    world.add_system(runner)
    runner.start("Sally")

    # Each frame
    world.update(dt)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from functools import partial
from typing import TYPE_CHECKING, Any, Optional

from engine.core.events import DialogueEvent, EventBus
from engine.core.system import System
from framework.dialogue.commands import CommandRegistry
from framework.dialogue.config import RunnerConfig
from framework.dialogue.dispatcher import (
    CommandDispatcher,
    DispatchOutcome,
    DispatchResult,
    TargetLookup,
)
from framework.dialogue.errors import AlreadyRunning, InvalidOption, InvalidState, NotRunning
from framework.dialogue.interfaces import (
    Command,
    Dialogue,
    DialoguePresenter,
    HandlerExecutionType,
    Line,
    OptionSet,
)
from framework.dialogue.storage import VariableStorage
from framework.dialogue.tasks import CommandTask, TaskScheduler

if TYPE_CHECKING:
    from engine.core.world import World


class RunState(Enum):
    """Lifecycle of a DialogueRunner."""
    IDLE = auto()     # Never started, or the dialogue completed
    RUNNING = auto()
    STOPPED = auto()  # Stopped by the host


class _Suspension(Enum):
    """What a paused dialogue is waiting for."""
    CONTINUATION = auto()  # resume() from the presenter
    OPTIONS = auto()       # select_option() from the presenter
    COMMAND = auto()       # asynchronous command tasks


@dataclass
class _PendingCommand:
    """Asynchronous tasks started by one dispatch."""
    generation: int
    command: str
    remaining: int


class DialogueRunner(System):
    """
    Runs dialogues and connects them to the presenter and the world.

    Continuations handed to the presenter are the bound methods
    ``resume`` and ``select_option``. They may be called at any later
    point, but not from inside the presenter call that received them;
    return CONTINUE to proceed immediately instead.

    Attributes:
        dialogue: The dialogue engine
        presenter: Presents lines, options and unhandled commands
        variable_storage: Variables read and written by scripts
        config: Runner configuration
        dispatcher: Routes commands to component operations
        scheduler: Runs asynchronous command operations
    """

    # Ticked before entity systems
    priority = 100

    def __init__(
        self,
        dialogue: Dialogue,
        presenter: DialoguePresenter,
        variable_storage: VariableStorage,
        config: Optional[RunnerConfig] = None,
        *,
        lookup: Optional[TargetLookup] = None,
        registry: Optional[CommandRegistry] = None,
        scheduler: Optional[TaskScheduler] = None,
        event_bus: Optional[EventBus] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__()
        self.dialogue = dialogue
        self.presenter = presenter
        self.variable_storage = variable_storage
        self.config = config or RunnerConfig()
        self.lookup = lookup
        self.event_bus = event_bus
        self.logger = logger or logging.getLogger(__name__)
        self.scheduler = scheduler or TaskScheduler(logger=self.logger)
        self.dispatcher = CommandDispatcher(registry, self.scheduler, self.logger)

        self._state = RunState.IDLE
        self._generation = 0
        self._in_cycle = False
        self._suspension: Optional[_Suspension] = None
        self._options: Optional[OptionSet] = None
        self._pending: Optional[_PendingCommand] = None
        self._visited: set[str] = set()
        self._variables_initialized = False
        self._world_lookup = False

        dialogue.line_handler = self._handle_line
        dialogue.command_handler = self._handle_command
        dialogue.options_handler = self._handle_options
        dialogue.node_complete_handler = self._handle_node_complete
        dialogue.dialogue_complete_handler = self._handle_dialogue_complete
        dialogue.register_function("visited", 1, self.is_visited)

    # Properties

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    @property
    def current_node(self) -> Optional[str]:
        """The node being run, or None when no dialogue is running."""
        if self._state is not RunState.RUNNING:
            return None
        return self.dialogue.current_node

    @property
    def visited_nodes(self) -> frozenset[str]:
        """Every node that has completed since this runner was created."""
        return frozenset(self._visited)

    def is_visited(self, node_name: str) -> bool:
        """Whether a node has completed at least once."""
        return node_name in self._visited

    # Lifecycle

    def start(self, node_name: Optional[str] = None) -> None:
        """
        Start a dialogue.

        Args:
            node_name: Node to start from (default: config.start_node)

        Raises:
            AlreadyRunning: If called while the dialogue is executing
            InvalidState: If a dialogue is already running
        """
        if self._in_cycle:
            raise AlreadyRunning("Cannot start a dialogue while one is executing")
        if self._state is RunState.RUNNING:
            raise InvalidState("A dialogue is already running")

        if not self._variables_initialized:
            self.variable_storage.reset_to_defaults()
            self._variables_initialized = True

        node_name = node_name or self.config.start_node
        self._generation += 1
        self._state = RunState.RUNNING
        self._suspension = None
        self._options = None
        self._pending = None

        self.presenter.dialogue_started()
        self._publish(DialogueEvent.DIALOGUE_STARTED, node=node_name)

        self.dialogue.set_node(node_name)
        self._continue_dialogue()

    def reset(self, node_name: Optional[str] = None) -> None:
        """
        Restore variables to their defaults and start again.

        Raises:
            AlreadyRunning: If called while the dialogue is executing
            InvalidState: If a dialogue is running
        """
        if self._in_cycle:
            raise AlreadyRunning("Cannot reset a dialogue while one is executing")
        if self._state is RunState.RUNNING:
            raise InvalidState("Stop the dialogue before resetting it")

        self.variable_storage.reset_to_defaults()
        self._variables_initialized = True
        self.start(node_name)

    def stop(self) -> None:
        """
        Stop the dialogue.

        Asynchronous commands keep running, but their completion no
        longer continues the dialogue. Stopping twice is harmless.
        """
        if self._state is RunState.STOPPED:
            return

        was_running = self._state is RunState.RUNNING
        self._state = RunState.STOPPED
        self._generation += 1
        self._suspension = None
        self._options = None
        self._pending = None

        self.dialogue.stop()
        if was_running:
            self._publish(DialogueEvent.DIALOGUE_STOPPED)

    def clear(self) -> None:
        """
        Unload every program from the dialogue engine.

        Raises:
            InvalidState: If a dialogue is running
        """
        if self._state is RunState.RUNNING:
            raise InvalidState("You cannot clear the dialogue system while a dialogue is running")
        self.dialogue.unload_all()

    def set_program(self, program: Any) -> None:
        """Replace the loaded program."""
        self.dialogue.set_program(program)

    def add_program(self, program: Any) -> None:
        """Load a program alongside those already loaded."""
        self.dialogue.add_program(program)

    def node_exists(self, node_name: str) -> bool:
        return self.dialogue.node_exists(node_name)

    # Continuations

    def resume(self) -> None:
        """
        Continue after the presenter finished a line, command or node.

        Raises:
            NotRunning: If no dialogue is running
            AlreadyRunning: If called while the dialogue is executing
            InvalidState: If the dialogue is not waiting on the presenter
        """
        self._check_can_continue()
        if self._suspension is not _Suspension.CONTINUATION:
            raise InvalidState("The dialogue is not waiting to be resumed")
        self._continue_dialogue()

    def select_option(self, index: int) -> None:
        """
        Choose one of the presented options and continue.

        Raises:
            NotRunning: If no dialogue is running
            AlreadyRunning: If called while the dialogue is executing
            InvalidState: If the dialogue is not waiting for an option
            InvalidOption: If index is not one of the presented options
        """
        self._check_can_continue()
        if self._suspension is not _Suspension.OPTIONS or self._options is None:
            raise InvalidState("The dialogue is not waiting for an option")
        if not 0 <= index < len(self._options):
            raise InvalidOption(index, len(self._options))

        self._options = None
        self.dialogue.set_selected_option(index)
        self._continue_dialogue()

    def _check_can_continue(self) -> None:
        if self._state is not RunState.RUNNING:
            raise NotRunning("No dialogue is running")
        if self._in_cycle:
            raise AlreadyRunning("The dialogue is already executing")

    def _continue_dialogue(self) -> None:
        self._check_can_continue()
        self._suspension = None
        self._in_cycle = True
        try:
            self.dialogue.advance()
        finally:
            self._in_cycle = False

    # Commands

    def dispatch_command(self, text: str) -> DispatchResult:
        """
        Run a command on the components of its target entity.

        Raises:
            CommandInFlight: If the command is asynchronous and an earlier
                asynchronous command has not finished
        """
        result = self.dispatcher.dispatch(
            text, self.lookup, allow_async=self._pending is None
        )

        self._publish(DialogueEvent.COMMAND_DISPATCHED, command=text, outcome=result.outcome)
        for diagnostic in result.diagnostics:
            self._publish(DialogueEvent.COMMAND_DIAGNOSTIC, diagnostic=diagnostic)

        if result.tasks:
            pending = _PendingCommand(self._generation, text, len(result.tasks))
            self._pending = pending
            for task in result.tasks:
                task.add_done_callback(partial(self._on_command_task_done, pending))

        return result

    def _on_command_task_done(self, pending: _PendingCommand, task: CommandTask) -> None:
        if pending is not self._pending:
            self.logger.debug("Ignoring completion of stale command \"%s\"", pending.command)
            return

        if task.exception is not None:
            self._pending = None
            self.logger.warning(
                "Command \"%s\" failed; the dialogue will not continue", pending.command
            )
            return

        pending.remaining -= 1
        if pending.remaining > 0:
            return
        self._pending = None

        if pending.generation != self._generation or self._state is not RunState.RUNNING:
            self.logger.debug("Ignoring completion of stale command \"%s\"", pending.command)
            return

        if self._suspension is _Suspension.COMMAND:
            self._continue_dialogue()

    # Engine handlers

    def _handle_line(self, line: Line) -> HandlerExecutionType:
        return self._suspend_if_paused(self.presenter.run_line(line, self.resume))

    def _handle_options(self, options: OptionSet) -> None:
        self._options = options
        self._suspension = _Suspension.OPTIONS
        self.presenter.run_options(options, self.select_option)

    def _handle_command(self, command: Command) -> HandlerExecutionType:
        if self.config.automatic_commands:
            result = self.dispatch_command(command.text)
            if result.outcome is DispatchOutcome.INVOKED_SYNC:
                return HandlerExecutionType.CONTINUE
            if result.outcome is DispatchOutcome.INVOKED_ASYNC:
                self._suspension = _Suspension.COMMAND
                return HandlerExecutionType.PAUSE

        return self._suspend_if_paused(self.presenter.run_command(command, self.resume))

    def _handle_node_complete(self, node_name: str) -> HandlerExecutionType:
        self._visited.add(node_name)
        self.logger.debug("Node complete: %s", node_name)
        self._publish(DialogueEvent.NODE_COMPLETED, node=node_name)
        return self._suspend_if_paused(self.presenter.node_complete(node_name, self.resume))

    def _handle_dialogue_complete(self) -> None:
        if self._state is RunState.STOPPED:
            # Engines may report completion while being stopped
            self.logger.debug("Dialogue completed after stop")
            return

        self._state = RunState.IDLE
        self._suspension = None
        self._options = None
        self._pending = None
        self.presenter.dialogue_complete()
        self._publish(DialogueEvent.DIALOGUE_COMPLETED)

    def _suspend_if_paused(self, execution_type: HandlerExecutionType) -> HandlerExecutionType:
        if execution_type is HandlerExecutionType.PAUSE:
            self._suspension = _Suspension.CONTINUATION
        return execution_type

    def _publish(self, event_type: DialogueEvent, **data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, **data)

    # System

    def on_add(self, world: World) -> None:
        super().on_add(world)
        if self.lookup is None:
            self.lookup = world.get_entity_by_name
            self._world_lookup = True
        if self.event_bus is None:
            self.event_bus = world.event_bus

        if self.config.start_automatically:
            self.start()

    def on_remove(self) -> None:
        if self._world_lookup:
            self.lookup = None
            self._world_lookup = False
        super().on_remove()

    def update(self, dt: float) -> None:
        """Step asynchronous command tasks."""
        self.scheduler.update(dt)

    def __repr__(self) -> str:
        return f"DialogueRunner(state={self._state.name}, node={self.current_node!r})"
