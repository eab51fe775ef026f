"""
Command registration for dialogue scripts.

Components expose operations to scripts with the ``command`` decorator:

    @register_component
    class Mover(Component):
        @command("jump")
        def jump(self, height: str, direction: str) -> None:
            ...

        @command("walk")
        def walk(self, *waypoints: str):
            for point in waypoints:
                yield 0.5          # frame-stepped: wait half a second

The script line ``<<jump Avatar 3 left>>`` then calls ``jump("3", "left")``
on the Mover attached to the entity named Avatar.

An operation takes either a fixed number of string parameters or a
single variadic string parameter (``*args: str`` or ``list[str]``).
Generator functions and ``async def`` functions are asynchronous: the
dialogue waits for them to finish before continuing.

Signatures are inspected once, when a component type is registered.
Resolution is a keyed lookup on the precomputed CommandSpecs.
"""

from __future__ import annotations

import collections.abc
import functools
import inspect
import re
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from engine.core.component import Component, add_registration_hook


# Attribute under which @command stores its metadata on a function
COMMAND_ATTRIBUTE = "__dialogue_commands__"

_SEQUENCE_ORIGINS = (list, tuple, collections.abc.Sequence)
_STRING_SEQUENCE_PATTERN = re.compile(
    r"^(?:typing\.)?(?:list|List|Sequence|tuple|Tuple)\[\s*str\s*(?:,\s*\.\.\.\s*)?\]$"
)


@dataclass(frozen=True)
class CommandMetadata:
    """The command name an operation answers to."""
    command_name: str
    asynchronous: Optional[bool] = None  # None: decide from the function kind


def command(name: str, *, asynchronous: Optional[bool] = None) -> Callable:
    """
    Decorator marking a component method as a dialogue command.

    Args:
        name: Command name as written in scripts (first word of the command)
        asynchronous: Force the execution model. By default generator and
            ``async def`` functions are asynchronous, everything else is not.

    A method may carry several @command decorators to answer to several names.
    """
    if not name or any(ch.isspace() for ch in name):
        raise ValueError(f"Invalid command name: {name!r}")

    def decorator(function: Callable) -> Callable:
        existing = getattr(function, COMMAND_ATTRIBUTE, ())
        setattr(function, COMMAND_ATTRIBUTE, existing + (CommandMetadata(name, asynchronous),))
        return function

    return decorator


def _accepts_string(annotation: Any) -> bool:
    """Whether a parameter with this annotation can be given a str."""
    if annotation is inspect.Parameter.empty or annotation in (str, object, Any):
        return True

    if isinstance(annotation, str):
        # Unresolvable forward reference: judge by name
        tokens = re.split(r"[\s|\[\],]+", annotation)
        return "str" in tokens or annotation.strip() in ("Any", "typing.Any", "object")

    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return any(_accepts_string(arg) for arg in typing.get_args(annotation))

    if isinstance(annotation, type):
        return issubclass(str, annotation)

    return False


def _is_string_sequence(annotation: Any) -> bool:
    """Whether an annotation declares an ordered sequence of strings."""
    if isinstance(annotation, str):
        return bool(_STRING_SEQUENCE_PATTERN.match(annotation.strip()))

    origin = typing.get_origin(annotation)
    if origin not in _SEQUENCE_ORIGINS:
        return False

    args = typing.get_args(annotation)
    if origin is tuple:
        return len(args) == 2 and args[0] is str and args[1] is Ellipsis
    return args == (str,)


def _type_hints(function: Callable) -> dict[str, Any]:
    try:
        return typing.get_type_hints(function)
    except (NameError, TypeError):
        # Names only importable under TYPE_CHECKING; fall back to raw strings
        return dict(getattr(function, "__annotations__", {}))


@dataclass(frozen=True)
class CommandSpec:
    """
    A registered operation and its precomputed signature.

    Attributes:
        command_name: Name the operation answers to
        function: The function (taking the component as first argument)
        method_name: Attribute to look up on the component at call time,
            or None for functions registered with add_command
        arity: Number of positional parameters after the component
        variadic: Takes all arguments as one string sequence
        star_args: The variadic parameter is ``*args`` rather than a list
        string_params: Every positional parameter accepts a str
        is_async: The operation returns a task to wait for
    """
    command_name: str
    function: Callable
    method_name: Optional[str]
    arity: int
    variadic: bool
    star_args: bool
    string_params: bool
    is_async: bool

    @classmethod
    def from_function(
        cls,
        command_name: str,
        function: Callable,
        method_name: Optional[str] = None,
        asynchronous: Optional[bool] = None,
    ) -> CommandSpec:
        """
        Build a spec from a function whose first parameter is the component.

        Raises:
            TypeError: If the function cannot be called with positional
                string arguments (e.g. required keyword-only parameters)
        """
        signature = inspect.signature(function)
        params = list(signature.parameters.values())[1:]
        hints = _type_hints(function)

        def annotation(param: inspect.Parameter) -> Any:
            return hints.get(param.name, param.annotation)

        for param in params:
            if param.kind is inspect.Parameter.KEYWORD_ONLY and param.default is inspect.Parameter.empty:
                raise TypeError(
                    f"Command \"{command_name}\" operation {getattr(function, '__qualname__', function)!r} "
                    f"has required keyword-only parameter '{param.name}'"
                )

        positional = [
            p for p in params
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        star = [p for p in params if p.kind is inspect.Parameter.VAR_POSITIONAL]

        variadic = False
        star_args = False
        if not positional and star and _accepts_string(annotation(star[0])):
            variadic = star_args = True
        elif len(positional) == 1 and not star and _is_string_sequence(annotation(positional[0])):
            variadic = True

        if asynchronous is None:
            asynchronous = (
                inspect.isgeneratorfunction(function)
                or inspect.iscoroutinefunction(function)
            )

        return cls(
            command_name=command_name,
            function=function,
            method_name=method_name,
            arity=len(positional),
            variadic=variadic,
            star_args=star_args,
            string_params=all(_accepts_string(annotation(p)) for p in positional),
            is_async=asynchronous,
        )

    @property
    def name(self) -> str:
        """Operation name for diagnostics."""
        return self.method_name or getattr(self.function, "__name__", repr(self.function))

    def mismatch(self, arguments: Sequence[str]) -> Optional[str]:
        """Why these arguments cannot be passed, or None if they can."""
        if self.variadic:
            return None
        if self.arity != len(arguments):
            return (
                f"it has a different number of parameters ({self.arity}) "
                f"to those provided ({len(arguments)})"
            )
        if not self.string_params:
            return "not all of its parameters are strings"
        return None

    def invoke(self, component: Component, arguments: Sequence[str]) -> Any:
        """Call the operation on a component with already-matched arguments."""
        if self.method_name is not None:
            target = getattr(component, self.method_name)
        else:
            target = functools.partial(self.function, component)

        if self.variadic and not self.star_args:
            return target(list(arguments))
        return target(*arguments)


@dataclass(frozen=True)
class CommandInvocation:
    """A command split into name, target and arguments."""
    command_name: str
    target_name: str
    arguments: tuple[str, ...]
    text: str

    @classmethod
    def parse(cls, text: str) -> Optional[CommandInvocation]:
        """
        Parse ``COMMAND TARGET [ARG ...]``.

        Returns None when there are fewer than two words, since a command
        needs both a name and a target.
        """
        words = text.split()
        if len(words) < 2:
            return None
        return cls(words[0], words[1], tuple(words[2:]), text)


@dataclass(frozen=True)
class HandlerCandidate:
    """A registered operation paired with the component it would run on."""
    component: Component
    spec: CommandSpec

    @property
    def arity(self) -> int:
        return self.spec.arity

    @property
    def variadic(self) -> bool:
        return self.spec.variadic

    @property
    def is_async(self) -> bool:
        return self.spec.is_async


class CommandRegistry:
    """
    Maps component types to the commands they answer.

    The default instance is process-wide; ``register_component`` indexes
    each new component type into it. Types that were never registered are
    indexed the first time a command is resolved against them.
    """

    _default_instance: Optional[CommandRegistry] = None

    def __init__(self) -> None:
        # component type -> command name -> specs from @command methods
        self._tables: dict[type, dict[str, tuple[CommandSpec, ...]]] = {}
        # component type -> specs added with add_command
        self._explicit: dict[type, list[CommandSpec]] = {}

    @classmethod
    def get_default(cls) -> CommandRegistry:
        """Get the process-wide registry."""
        if cls._default_instance is None:
            cls._default_instance = cls()
        return cls._default_instance

    def register_type(self, component_type: type) -> dict[str, tuple[CommandSpec, ...]]:
        """Index the @command methods of a component type (idempotent)."""
        table = self._tables.get(component_type)
        if table is not None:
            return table

        metadata_by_name: dict[str, list[CommandMetadata]] = {}
        for klass in reversed(component_type.__mro__):
            for attr_name, value in vars(klass).items():
                if not inspect.isfunction(value):
                    continue
                for metadata in getattr(value, COMMAND_ATTRIBUTE, ()):
                    found = metadata_by_name.setdefault(attr_name, [])
                    if metadata not in found:
                        found.append(metadata)

        collected: dict[str, list[CommandSpec]] = {}
        for attr_name, metadata_list in metadata_by_name.items():
            # Overrides inherit the command names of the method they replace
            function = inspect.getattr_static(component_type, attr_name)
            if not inspect.isfunction(function):
                continue
            for metadata in metadata_list:
                spec = CommandSpec.from_function(
                    metadata.command_name,
                    function,
                    method_name=attr_name,
                    asynchronous=metadata.asynchronous,
                )
                collected.setdefault(metadata.command_name, []).append(spec)

        table = {name: tuple(specs) for name, specs in collected.items()}
        self._tables[component_type] = table
        return table

    def add_command(
        self,
        component_type: type,
        command_name: str,
        function: Callable,
        *,
        asynchronous: Optional[bool] = None,
    ) -> CommandSpec:
        """
        Register a function as a command of a component type.

        The function receives the component as its first argument,
        followed by the command's arguments.
        """
        spec = CommandSpec.from_function(command_name, function, asynchronous=asynchronous)
        self._explicit.setdefault(component_type, []).append(spec)
        return spec

    def commands_for(self, component_type: type, command_name: str) -> tuple[CommandSpec, ...]:
        """All operations of a component type answering to a command name."""
        table = self.register_type(component_type)
        specs = list(table.get(command_name, ()))
        for klass in component_type.__mro__:
            specs.extend(
                spec for spec in self._explicit.get(klass, ())
                if spec.command_name == command_name
            )
        return tuple(specs)

    def command_names(self, component_type: type) -> set[str]:
        """Every command name a component type answers to."""
        names = set(self.register_type(component_type))
        for klass in component_type.__mro__:
            names.update(spec.command_name for spec in self._explicit.get(klass, ()))
        return names


add_registration_hook(CommandRegistry.get_default().register_type)
