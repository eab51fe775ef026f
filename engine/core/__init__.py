"""
Core engine module.

Exports:
- Entity: Component container, addressable by name
- Component, register_component: Component base and registration
- System: Per-frame logic base class
- World: Entity/system container
- EventBus, Event, EngineEvent, DialogueEvent: Event system
"""

from engine.core.entity import Entity
from engine.core.component import Component, register_component, get_component_type
from engine.core.system import System
from engine.core.world import World
from engine.core.events import EventBus, Event, EngineEvent, DialogueEvent

__all__ = [
    # ECS
    "Entity",
    "Component",
    "register_component",
    "get_component_type",
    "System",
    "World",
    # Events
    "EventBus",
    "Event",
    "EngineEvent",
    "DialogueEvent",
]
