"""
Component base class for entity behaviours.

Components hold the data for one aspect of an entity. A component may
also expose operations that dialogue scripts can trigger by name, by
decorating its methods with ``framework.dialogue.command``.

Usage:
    @register_component
    class Avatar(Component):
        height: float = 0.0

        @command("jump")
        def jump(self, height: str, direction: str) -> None:
            self.height = float(height)
"""

from __future__ import annotations

from typing import Callable, ClassVar

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """
    Base class for all components.

    Components are Pydantic models, which gives them:
    - Validation of field values on construction and assignment
    - JSON serialization
    - Default values
    """

    model_config = ConfigDict(
        # Allow arbitrary types (for references)
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='forbid',
    )

    # Class variable: component type name (used for registration)
    _type_name: ClassVar[str] = ""

    # Owning entity id (set by Entity.add)
    _entity_id: int | None = None

    @classmethod
    def get_type_name(cls) -> str:
        """Get the component type name."""
        return cls._type_name or cls.__name__

    @property
    def entity_id(self) -> int | None:
        """Id of the entity this component is attached to."""
        return self._entity_id

    def clone(self) -> Component:
        """Create a deep copy of this component."""
        return self.model_copy(deep=True)


# Registry of component types by name
_component_registry: dict[str, type[Component]] = {}

# Called with each newly registered type (the command registry hooks in here)
_registration_hooks: list[Callable[[type[Component]], None]] = []


def register_component(cls: type[Component]) -> type[Component]:
    """
    Decorator to register a component type.

    Registration also runs every registration hook, so that the dialogue
    command registry can index the type's commands once, up front.

    Usage:
        @register_component
        class Door(Component):
            is_open: bool = False
    """
    type_name = cls.get_type_name()
    _component_registry[type_name] = cls
    for hook in _registration_hooks:
        hook(cls)
    return cls


def add_registration_hook(hook: Callable[[type[Component]], None]) -> None:
    """Run ``hook`` for every component type registered from now on."""
    _registration_hooks.append(hook)


def get_component_type(type_name: str) -> type[Component] | None:
    """Get component class by type name."""
    return _component_registry.get(type_name)


def get_all_component_types() -> dict[str, type[Component]]:
    """Get all registered component types."""
    return _component_registry.copy()
