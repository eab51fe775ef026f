"""
Dialogue host engine.

The entity/component world that a dialogue script talks to.

Quick Start:
    from engine.core import World, Component, register_component

    @register_component
    class Mover(Component):
        speed: float = 1.0

    world = World()
    world.create_entity("Avatar").add(Mover())
"""

__version__ = "0.1.0"

from engine.core import (
    Entity,
    Component,
    register_component,
    System,
    World,
    EventBus,
    Event,
    EngineEvent,
    DialogueEvent,
)

__all__ = [
    # ECS
    "Entity",
    "Component",
    "register_component",
    "System",
    "World",
    # Events
    "EventBus",
    "Event",
    "EngineEvent",
    "DialogueEvent",
]
