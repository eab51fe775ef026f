"""
System base class for per-frame logic.

Systems are ticked by their World once per frame. The default update
visits every entity that has the required components; systems that
drive something other than entities (the DialogueRunner steps its
command tasks) override update instead.

Usage:
    class MovementSystem(System):
        required_components = [Position, Velocity]

        def process_entity(self, entity: Entity, dt: float) -> None:
            entity.get(Position).x += entity.get(Velocity).vx * dt
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Iterator

from engine.core.component import Component

if TYPE_CHECKING:
    from engine.core.entity import Entity
    from engine.core.world import World


class System:
    """
    Base class for all systems.

    Override required_components to select entities and process_entity
    to act on them, or override update entirely.
    """

    # Components required for this system to process an entity
    required_components: ClassVar[list[type[Component]]] = []

    # Priority for execution order (higher = earlier)
    priority: ClassVar[int] = 0

    enabled: bool = True

    def __init__(self):
        self._world: World | None = None

    @property
    def world(self) -> World:
        """Get the world this system belongs to."""
        if self._world is None:
            raise RuntimeError(f"System {self.__class__.__name__} not attached to world")
        return self._world

    def on_add(self, world: World) -> None:
        """Called when system is added to a world."""
        self._world = world

    def on_remove(self) -> None:
        """Called when system is removed from a world."""
        self._world = None

    def get_entities(self) -> Iterator[Entity]:
        """Entities that have every required component."""
        if not self._world or not self.required_components:
            return iter([])
        return self._world.get_entities_with(*self.required_components)

    def update(self, dt: float) -> None:
        """
        Update this system.

        Args:
            dt: Delta time in seconds
        """
        for entity in self.get_entities():
            if entity.active:
                self.process_entity(entity, dt)

    def process_entity(self, entity: Entity, dt: float) -> None:
        """Process a single entity. Override in entity-driven systems."""

    def __repr__(self) -> str:
        required = ", ".join(c.__name__ for c in self.required_components)
        return f"{self.__class__.__name__}(requires=[{required}])"
