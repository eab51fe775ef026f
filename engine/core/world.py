"""
World container for entities and systems.

The World is the host side of a dialogue: it owns the scene's entities,
resolves entity names for script commands, and ticks systems (such as
the DialogueRunner) once per frame.

Usage:
    world = World()
    world.add_system(DialogueRunner(dialogue, presenter, storage))

    avatar = world.create_entity("Avatar")
    avatar.add(Mover())

    # In game loop:
    world.update(dt)
"""

from __future__ import annotations

from typing import Iterator

from engine.core.entity import Entity
from engine.core.component import Component
from engine.core.system import System
from engine.core.events import EventBus, EngineEvent


class World:
    """
    Container for entities and systems.

    Provides:
    - Entity management (create, destroy, find by name)
    - Component indices for entity queries
    - System management and per-frame update
    """

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus or EventBus()

        self._entities: dict[int, Entity] = {}
        self._entities_by_name: dict[str, Entity] = {}
        self._entities_to_destroy: list[int] = []

        # component_type -> set of entity IDs
        self._component_index: dict[type[Component], set[int]] = {}

        # Systems (sorted by priority)
        self._systems: list[System] = []

    # Entity Management

    def create_entity(self, name: str = "") -> Entity:
        """Create a new entity in this world."""
        entity = Entity(name)
        self._add_entity(entity)
        return entity

    def add_entity(self, entity: Entity) -> Entity:
        """
        Add an existing entity to this world.

        Raises:
            ValueError: If the entity is already in this world
        """
        if entity.id in self._entities:
            raise ValueError(f"Entity {entity.id} already in world")

        self._add_entity(entity)
        return entity

    def _add_entity(self, entity: Entity) -> None:
        entity._world = self
        self._entities[entity.id] = entity
        self._entities_by_name[entity.name] = entity

        for component in entity.components:
            self._index_component(entity, type(component))

        self.event_bus.publish(EngineEvent.ENTITY_CREATED, entity=entity)

    def destroy_entity(self, entity: Entity | int) -> None:
        """
        Mark an entity for destruction.

        The entity is removed at the end of the current update.
        """
        entity_id = entity.id if isinstance(entity, Entity) else entity

        if entity_id in self._entities and entity_id not in self._entities_to_destroy:
            self._entities_to_destroy.append(entity_id)

    def _process_destroyed_entities(self) -> None:
        for entity_id in self._entities_to_destroy:
            entity = self._entities.pop(entity_id, None)
            if entity is None:
                continue

            for component in entity.components:
                self._unindex_component(entity, type(component))

            if self._entities_by_name.get(entity.name) is entity:
                del self._entities_by_name[entity.name]

            entity._world = None
            self.event_bus.publish(EngineEvent.ENTITY_DESTROYED, entity=entity)

        self._entities_to_destroy.clear()

    def get_entity(self, entity_id: int) -> Entity | None:
        """Get entity by ID."""
        return self._entities.get(entity_id)

    def get_entity_by_name(self, name: str) -> Entity | None:
        """
        Find a live entity by name.

        This is the lookup that dialogue commands use to resolve their
        target; inactive entities are treated as absent.
        """
        entity = self._entities_by_name.get(name)
        if entity is None or not entity.active:
            return None
        return entity

    @property
    def entities(self) -> Iterator[Entity]:
        """Iterate over all entities."""
        return iter(list(self._entities.values()))

    @property
    def entity_count(self) -> int:
        return len(self._entities)

    # Component indexing

    def _index_component(self, entity: Entity, component_type: type[Component]) -> None:
        self._component_index.setdefault(component_type, set()).add(entity.id)

    def _unindex_component(self, entity: Entity, component_type: type[Component]) -> None:
        if component_type in self._component_index:
            self._component_index[component_type].discard(entity.id)

    def _on_component_added(self, entity: Entity, component: Component) -> None:
        self._index_component(entity, type(component))
        self.event_bus.publish(
            EngineEvent.COMPONENT_ADDED,
            entity=entity,
            component=component
        )

    def _on_component_removed(self, entity: Entity, component: Component) -> None:
        self._unindex_component(entity, type(component))
        self.event_bus.publish(
            EngineEvent.COMPONENT_REMOVED,
            entity=entity,
            component=component
        )

    def get_entities_with(self, *component_types: type[Component]) -> Iterator[Entity]:
        """Get all entities that have ALL specified components."""
        if not component_types:
            return

        candidate_ids = self._component_index.get(component_types[0], set()).copy()
        for comp_type in component_types[1:]:
            candidate_ids &= self._component_index.get(comp_type, set())

        for entity_id in sorted(candidate_ids):
            entity = self._entities.get(entity_id)
            if entity:
                yield entity

    # System Management

    def add_system(self, system: System) -> None:
        """Add a system; systems update in descending priority order."""
        self._systems.append(system)
        self._systems.sort(key=lambda s: -s.priority)
        system.on_add(self)

    def remove_system(self, system: System) -> None:
        if system in self._systems:
            self._systems.remove(system)
            system.on_remove()

    def get_system(self, system_type: type[System]) -> System | None:
        """Get a system by type."""
        for system in self._systems:
            if isinstance(system, system_type):
                return system
        return None

    def update(self, dt: float) -> None:
        """
        Update all systems, then remove destroyed entities.

        Args:
            dt: Delta time in seconds
        """
        for system in list(self._systems):
            if system.enabled:
                system.update(dt)

        self._process_destroyed_entities()

    def clear(self) -> None:
        """Remove all entities and systems."""
        for entity_id in list(self._entities.keys()):
            self.destroy_entity(entity_id)
        self._process_destroyed_entities()

        for system in self._systems[:]:
            self.remove_system(system)

        self._component_index.clear()
