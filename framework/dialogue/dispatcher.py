"""
Command dispatcher - routes script commands to component operations.

Commands that can be dispatched look like this:

    COMMANDNAME OBJECTNAME <param> <param> <param> ...

A command is dispatched when:
1. it has at least two words,
2. the second word names a live entity,
3. a component on that entity has an operation registered for the
   first word whose parameters fit the remaining words.

Anything else is left for the presenter to handle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Optional

from framework.dialogue.commands import CommandInvocation, CommandRegistry, HandlerCandidate
from framework.dialogue.errors import CommandInFlight
from framework.dialogue.tasks import CommandTask, TaskScheduler

if TYPE_CHECKING:
    from engine.core.entity import Entity


# Resolves a target name to an entity (World.get_entity_by_name)
TargetLookup = Callable[[str], Optional["Entity"]]


class DispatchOutcome(Enum):
    """Result of dispatching one command."""
    NO_TARGET = auto()      # Too few words, or the target does not exist
    NO_MATCH = auto()       # No operation on the target fits the command
    INVOKED_SYNC = auto()   # Operations ran to completion
    INVOKED_ASYNC = auto()  # At least one operation is still running


class DiagnosticKind(Enum):
    AMBIGUOUS_MATCH = auto()
    SIGNATURE_MISMATCH = auto()


@dataclass(frozen=True)
class Diagnostic:
    """An authoring problem noticed while dispatching a command."""
    kind: DiagnosticKind
    message: str
    command: str
    target: str
    method: Optional[str] = None


@dataclass
class DispatchResult:
    """What happened to a dispatched command."""
    outcome: DispatchOutcome
    invocation: Optional[CommandInvocation] = None
    invoked: int = 0
    tasks: list[CommandTask] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def was_handled(self) -> bool:
        """Whether any operation was invoked."""
        return self.outcome in (DispatchOutcome.INVOKED_SYNC, DispatchOutcome.INVOKED_ASYNC)


class CommandDispatcher:
    """
    Finds and invokes the operations a command refers to.

    The dispatcher keeps no state between calls; the registry and the
    scheduler it uses are shared with whoever created it.
    """

    def __init__(
        self,
        registry: Optional[CommandRegistry] = None,
        scheduler: Optional[TaskScheduler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry or CommandRegistry.get_default()
        self.scheduler = scheduler or TaskScheduler()
        self.logger = logger or logging.getLogger(__name__)

    def dispatch(
        self,
        text: str,
        lookup: Optional[TargetLookup],
        *,
        allow_async: bool = True,
    ) -> DispatchResult:
        """
        Dispatch a command.

        Args:
            text: Raw command text
            lookup: Resolves the target name; None means no target exists
            allow_async: If False, refuse to start asynchronous operations

        Returns:
            The dispatch result

        Raises:
            CommandInFlight: If an asynchronous operation matched while
                allow_async is False; nothing is invoked in that case
        """
        invocation = CommandInvocation.parse(text)
        if invocation is None:
            return DispatchResult(DispatchOutcome.NO_TARGET)

        target = lookup(invocation.target_name) if lookup else None
        if target is None:
            return DispatchResult(DispatchOutcome.NO_TARGET, invocation)

        matches, near_misses = self.find_candidates(invocation, target)

        if not matches:
            diagnostics = [
                self._report(
                    DiagnosticKind.SIGNATURE_MISMATCH,
                    logging.ERROR,
                    f"Method \"{candidate.spec.name}\" wants to respond to command "
                    f"\"{invocation.command_name}\", but {reason}",
                    invocation,
                    candidate.spec.name,
                )
                for candidate, reason in near_misses
            ]
            return DispatchResult(DispatchOutcome.NO_MATCH, invocation, diagnostics=diagnostics)

        if not allow_async and any(candidate.is_async for candidate in matches):
            raise CommandInFlight(text)

        result = DispatchResult(DispatchOutcome.INVOKED_SYNC, invocation)
        try:
            for candidate in matches:
                returned = candidate.spec.invoke(candidate.component, invocation.arguments)
                if candidate.is_async:
                    task_name = f"{invocation.command_name} {invocation.target_name}"
                    result.tasks.append(self.scheduler.start(returned, name=task_name))
                result.invoked += 1
        except BaseException:
            # Nobody will wait for tasks from a dispatch that raised
            for task in result.tasks:
                task.cancel()
            raise

        if result.tasks:
            result.outcome = DispatchOutcome.INVOKED_ASYNC

        if len(matches) > 1:
            result.diagnostics.append(self._report(
                DiagnosticKind.AMBIGUOUS_MATCH,
                logging.WARNING,
                f"The command \"{text}\" found {len(matches)} targets. "
                f"You should only have one - check your scripts.",
                invocation,
            ))

        return result

    def find_candidates(
        self,
        invocation: CommandInvocation,
        target: Entity,
    ) -> tuple[list[HandlerCandidate], list[tuple[HandlerCandidate, str]]]:
        """
        Match the target's operations against an invocation.

        Returns:
            (matching candidates, near misses with the reason they failed)
        """
        matches: list[HandlerCandidate] = []
        near_misses: list[tuple[HandlerCandidate, str]] = []

        for component in target.components:
            for spec in self.registry.commands_for(type(component), invocation.command_name):
                candidate = HandlerCandidate(component, spec)
                reason = spec.mismatch(invocation.arguments)
                if reason is None:
                    matches.append(candidate)
                else:
                    near_misses.append((candidate, reason))

        return matches, near_misses

    def _report(
        self,
        kind: DiagnosticKind,
        level: int,
        message: str,
        invocation: CommandInvocation,
        method: Optional[str] = None,
    ) -> Diagnostic:
        self.logger.log(level, message)
        return Diagnostic(
            kind=kind,
            message=message,
            command=invocation.text,
            target=invocation.target_name,
            method=method,
        )
