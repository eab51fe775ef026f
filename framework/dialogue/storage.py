"""
Variable storage used by dialogue scripts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

# Values a script can hold: numbers, booleans, strings, or nothing
Value = Union[float, int, bool, str, None]


class VariableStorage(ABC):
    """Base class for dialogue variable stores."""

    @abstractmethod
    def get_value(self, name: str) -> Value:
        """Get a variable's value (None if unset)."""

    @abstractmethod
    def set_value(self, name: str, value: Value) -> None:
        """Set a variable's value."""

    @abstractmethod
    def reset_to_defaults(self) -> None:
        """Discard all values and restore the defaults."""

    def clear(self) -> None:
        """Remove every variable, defaults included."""
        raise NotImplementedError(f"{type(self).__name__} does not support clear()")


class MemoryVariableStorage(VariableStorage):
    """
    In-memory variable storage with default values.

    Usage:
        storage = MemoryVariableStorage({"$gold": 10, "$met_sally": False})
        storage.set_value("$gold", 25)
        storage.reset_to_defaults()   # $gold is 10 again
    """

    def __init__(self, defaults: Optional[dict[str, Value]] = None):
        self._defaults: dict[str, Value] = {}
        for name, value in (defaults or {}).items():
            self._defaults[name] = self._check(name, value)
        self._values: dict[str, Value] = dict(self._defaults)

    @staticmethod
    def _check(name: str, value: Any) -> Value:
        if value is not None and not isinstance(value, (int, float, bool, str)):
            raise TypeError(
                f"Variable {name} cannot hold a {type(value).__name__}; "
                f"expected a number, bool or string"
            )
        return value

    def get_value(self, name: str) -> Value:
        return self._values.get(name)

    def set_value(self, name: str, value: Value) -> None:
        self._values[name] = self._check(name, value)

    def reset_to_defaults(self) -> None:
        self._values = dict(self._defaults)

    def clear(self) -> None:
        self._defaults.clear()
        self._values.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._values

    @property
    def values(self) -> dict[str, Value]:
        """A copy of the current values."""
        return dict(self._values)
