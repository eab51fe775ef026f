"""
Cooperative tasks for asynchronous dialogue commands.

A command that takes time (walking a character across the screen,
fading the camera) is written as a generator and stepped once per frame
by TaskScheduler.update(dt):

    @command("fade")
    def fade(self, seconds: str):
        self.fading = True
        yield float(seconds)      # wait that many seconds
        self.fading = False

Yield protocol:
- None waits one frame
- a number waits that many seconds
- a generator runs to completion before the outer one resumes
- a CommandTask is waited on until it is done

``async def`` commands are run as asyncio tasks instead; they need a
running event loop (or ``TaskScheduler.loop``).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generator, Optional


class CommandTask:
    """
    Handle for a running asynchronous command.

    Done callbacks run exactly once, when the task finishes, fails or is
    cancelled.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._done = False
        self._cancelled = False
        self._exception: Optional[BaseException] = None
        self._callbacks: list[Callable[[CommandTask], None]] = []
        self._cancel_hook: Optional[Callable[[], Any]] = None

    @property
    def done(self) -> bool:
        return self._done

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def exception(self) -> Optional[BaseException]:
        """The exception the task failed with, if any."""
        return self._exception

    def add_done_callback(self, callback: Callable[[CommandTask], None]) -> None:
        """Call ``callback(task)`` when done (immediately if already done)."""
        if self._done:
            callback(self)
        else:
            self._callbacks.append(callback)

    def cancel(self) -> bool:
        """
        Cancel the task.

        Returns:
            False if the task had already finished
        """
        if self._done:
            return False
        self._cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()
        self._finish()
        return True

    def _finish(self, exception: Optional[BaseException] = None) -> None:
        if self._done:
            return
        self._done = True
        self._exception = exception
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "done" if self._done else "pending"
        return f"CommandTask({self.name!r}, {state})"


@dataclass
class _Routine:
    """A generator-based task and its scheduling state."""
    task: CommandTask
    stack: list[Generator] = field(default_factory=list)
    delay: float = 0.0
    waiting_on: Optional[CommandTask] = None


class TaskScheduler:
    """
    Runs asynchronous commands.

    Generators are first stepped on the next update(), never inside
    start(), so a command cannot finish while it is still being
    dispatched.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.loop = loop
        self.logger = logger or logging.getLogger(__name__)
        self._routines: list[_Routine] = []
        self._awaiting: set[CommandTask] = set()

    @property
    def pending(self) -> int:
        """Number of tasks that have not finished."""
        return len(self._routines) + len(self._awaiting)

    def start(self, work: Any, name: str = "") -> CommandTask:
        """
        Schedule a generator or awaitable.

        Raises:
            TypeError: If work is neither a generator nor an awaitable
            RuntimeError: For an awaitable, if there is no event loop
        """
        task = CommandTask(name)

        if inspect.isgenerator(work):
            routine = _Routine(task, [work])
            task._cancel_hook = lambda: self._cancel_routine(routine)
            self._routines.append(routine)
        elif inspect.isawaitable(work):
            self._start_awaitable(task, work)
        else:
            raise TypeError(
                f"Cannot run {type(work).__name__} as a command task; "
                f"expected a generator or an awaitable"
            )

        self.logger.debug("Started task %s", task)
        return task

    def _start_awaitable(self, task: CommandTask, work: Any) -> None:
        loop = self.loop or asyncio.get_running_loop()
        future = asyncio.ensure_future(work, loop=loop)
        task._cancel_hook = future.cancel
        self._awaiting.add(task)
        future.add_done_callback(lambda f: self._on_awaitable_done(task, f))

    def _on_awaitable_done(self, task: CommandTask, future: asyncio.Future) -> None:
        self._awaiting.discard(task)
        if task.done:
            return
        if future.cancelled():
            task.cancel()
            return

        exception = future.exception()
        task._finish(exception)
        if exception is not None:
            # Surfaces through the event loop's exception handler
            raise exception

    def update(self, dt: float) -> None:
        """
        Step every generator task by one frame.

        An exception raised by a generator fails its task and propagates.

        Args:
            dt: Delta time in seconds
        """
        for routine in list(self._routines):
            # Cancelled during this frame
            if routine.task.done:
                continue
            self._step(routine, dt)

    def _step(self, routine: _Routine, dt: float) -> None:
        if routine.waiting_on is not None:
            if not routine.waiting_on.done:
                return
            routine.waiting_on = None

        if routine.delay > 0:
            routine.delay -= dt
            if routine.delay > 0:
                return
            routine.delay = 0.0

        while True:
            try:
                yielded = next(routine.stack[-1])
            except StopIteration:
                routine.stack.pop()
                if routine.stack:
                    continue
                self._routines.remove(routine)
                routine.task._finish()
                return
            except Exception as exc:
                self._routines.remove(routine)
                routine.task._finish(exc)
                raise

            if inspect.isgenerator(yielded):
                routine.stack.append(yielded)
                continue
            if isinstance(yielded, CommandTask):
                routine.waiting_on = yielded
                return
            if isinstance(yielded, (int, float)) and not isinstance(yielded, bool):
                routine.delay = float(yielded)
                return
            if yielded is None:
                return

            error = TypeError(f"Task {routine.task.name!r} yielded unsupported {yielded!r}")
            self._routines.remove(routine)
            routine.task._finish(error)
            raise error

    def _cancel_routine(self, routine: _Routine) -> None:
        self._routines = [r for r in self._routines if r is not routine]
        for generator in reversed(routine.stack):
            generator.close()
        routine.stack.clear()

    def cancel_all(self) -> None:
        """Cancel every pending task."""
        routines, self._routines = self._routines, []
        for routine in routines:
            routine.task.cancel()

        awaiting, self._awaiting = self._awaiting, set()
        for task in awaiting:
            task.cancel()
