import pytest
from pydantic import ValidationError
from engine.core.entity import Entity
from engine.core.component import Component, register_component, get_component_type
from engine.core.events import EngineEvent
from engine.core.world import World

class Mover(Component):
    speed: float = 1.0

class Door(Component):
    is_open: bool = False

def test_entity_creation():
    e = Entity("Avatar")
    assert e.id > 0
    assert e.name == "Avatar"
    assert e.active is True

def test_entity_default_name():
    e = Entity()
    assert e.name == f"Entity_{e.id}"

def test_add_get_component():
    e = Entity("Avatar")
    m = Mover(speed=2.5)
    e.add(m)

    retrieved = e.get(Mover)
    assert retrieved is m
    assert retrieved.speed == 2.5
    assert m.entity_id == e.id

def test_add_duplicate_component_type():
    e = Entity()
    e.add(Mover())
    with pytest.raises(ValueError):
        e.add(Mover())

def test_remove_component():
    e = Entity()
    e.add(Mover())
    assert e.has(Mover)

    removed = e.remove(Mover)
    assert not e.has(Mover)
    assert e.try_get(Mover) is None
    assert removed.entity_id is None

def test_get_missing_component():
    with pytest.raises(KeyError):
        Entity().get(Door)

def test_components_keep_attachment_order():
    e = Entity()
    door = e.add(Door())
    mover = e.add(Mover())
    assert list(e.components) == [door, mover]

def test_component_validation():
    with pytest.raises(ValidationError):
        Mover(speed={"invalid": "type"})

    m = Mover()
    with pytest.raises(ValidationError):
        m.speed = "fast"

def test_register_component():
    @register_component
    class Lantern(Component):
        lit: bool = False

    assert get_component_type("Lantern") is Lantern

def test_world_entity_management(world):
    e = Entity("Avatar")
    e.add(Mover())
    world.add_entity(e)

    assert world.entity_count == 1

    results = list(world.get_entities_with(Mover))
    assert results == [e]
    assert list(world.get_entities_with(Door)) == []

def test_world_add_entity_twice(world):
    e = world.create_entity("Avatar")
    with pytest.raises(ValueError):
        world.add_entity(e)

def test_world_find_by_name(world):
    avatar = world.create_entity("Avatar")
    world.create_entity("Sally")

    assert world.get_entity_by_name("Avatar") is avatar
    assert world.get_entity_by_name("Nobody") is None

def test_world_find_by_name_ignores_inactive(world):
    avatar = world.create_entity("Avatar")
    avatar.active = False
    assert world.get_entity_by_name("Avatar") is None

    avatar.active = True
    assert world.get_entity_by_name("Avatar") is avatar

def test_world_cleanup(world):
    e = world.create_entity("Avatar")
    world.destroy_entity(e)

    # Still present until the end of the update
    assert world.get_entity_by_name("Avatar") is e

    world.update(0.1)

    assert world.entity_count == 0
    assert world.get_entity_by_name("Avatar") is None
    assert e.world is None

def test_world_component_events(world):
    seen = []
    world.event_bus.subscribe(EngineEvent.COMPONENT_ADDED, lambda ev: seen.append(ev["component"]), weak=False)

    e = world.create_entity("Avatar")
    m = e.add(Mover())

    assert seen == [m]
    assert list(world.get_entities_with(Mover)) == [e]

def test_world_clear():
    world = World()
    world.create_entity("Avatar")
    world.clear()
    assert world.entity_count == 0
