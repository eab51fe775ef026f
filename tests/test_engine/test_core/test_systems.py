import pytest
from engine.core.system import System
from engine.core.entity import Entity
from engine.core.component import Component

class Position(Component):
    x: float = 0.0

class Velocity(Component):
    vx: float = 0.0

class MovementSystem(System):
    required_components = [Position, Velocity]

    def process_entity(self, entity, dt):
        pos = entity.get(Position)
        vel = entity.get(Velocity)
        pos.x += vel.vx * dt

class ClockSystem(System):
    priority = 10

    def __init__(self, log):
        super().__init__()
        self.log = log

    def update(self, dt):
        self.log.append("clock")

class LateSystem(System):
    def __init__(self, log):
        super().__init__()
        self.log = log

    def update(self, dt):
        self.log.append("late")

def test_system_processing(world):
    # Entity with required matching components
    e1 = Entity("Mover")
    e1.add(Position(x=0))
    e1.add(Velocity(vx=10))
    world.add_entity(e1)

    # Entity missing one component
    e2 = Entity("Statue")
    e2.add(Position(x=0))
    world.add_entity(e2)

    system = MovementSystem()
    world.add_system(system)

    world.update(1.0)

    assert e1.get(Position).x == 10.0
    assert e2.get(Position).x == 0.0

def test_inactive_entities_are_skipped(world):
    e = world.create_entity("Mover")
    e.add(Position(x=0))
    e.add(Velocity(vx=10))
    e.active = False

    world.add_system(MovementSystem())
    world.update(1.0)

    assert e.get(Position).x == 0.0

def test_system_add_remove(world):
    system = MovementSystem()

    world.add_system(system)
    assert system.world is world
    assert world.get_system(MovementSystem) is system

    world.remove_system(system)
    with pytest.raises(RuntimeError):
        _ = system.world

def test_system_priority_order(world):
    log = []
    world.add_system(LateSystem(log))
    world.add_system(ClockSystem(log))

    world.update(0.1)

    assert log == ["clock", "late"]

def test_disabled_system_is_not_updated(world):
    log = []
    system = LateSystem(log)
    system.enabled = False
    world.add_system(system)

    world.update(0.1)

    assert log == []
