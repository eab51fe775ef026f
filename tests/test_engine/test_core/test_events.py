import logging
import pytest
from enum import Enum, auto
from engine.core.events import EventBus, Event, DialogueEvent

class MockEvent(Enum):
    TEST_EVENT = auto()
    OTHER_EVENT = auto()

def test_event_bus_subscribe_publish(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT, data="test")

    assert len(received) == 1
    assert received[0].type == MockEvent.TEST_EVENT
    assert received[0].data["data"] == "test"

def test_event_bus_unsubscribe(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.unsubscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 0

def test_event_priority(event_bus):
    order = []

    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("low"), priority=1, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("high"), priority=10, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("normal"), priority=5, weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["high", "normal", "low"]

def test_event_consumption(event_bus):
    received = []

    def consumer(event):
        received.append("consumer")
        event.consume()

    def later_handler(event):
        received.append("later")

    event_bus.subscribe(MockEvent.TEST_EVENT, consumer, priority=10)
    event_bus.subscribe(MockEvent.TEST_EVENT, later_handler, priority=5)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert received == ["consumer"]

def test_one_shot_handler(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append, one_shot=True, weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 1

def test_failing_handler_is_logged(event_bus, caplog):
    received = []

    def broken(event):
        raise ValueError("boom")

    event_bus.subscribe(MockEvent.TEST_EVENT, broken, priority=10)
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append, weak=False)

    with caplog.at_level(logging.ERROR, logger="engine.core.events"):
        event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 1
    assert "Error in event handler" in caplog.text

def test_publish_from_handler_is_queued(event_bus):
    order = []

    def first(event):
        order.append("first")
        event_bus.publish(MockEvent.OTHER_EVENT)
        order.append("first done")

    event_bus.subscribe(MockEvent.TEST_EVENT, first)
    event_bus.subscribe(MockEvent.OTHER_EVENT, lambda e: order.append("other"), weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["first", "first done", "other"]

def test_dialogue_event_payload(event_bus):
    received = []
    event_bus.subscribe(DialogueEvent.NODE_COMPLETED, received.append, weak=False)

    event = event_bus.publish(DialogueEvent.NODE_COMPLETED, node="Sally")

    assert isinstance(event, Event)
    assert received[0].get("node") == "Sally"
    assert received[0].get("missing", "default") == "default"

def test_clear(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, received.append, weak=False)
    event_bus.clear(MockEvent.TEST_EVENT)
    event_bus.publish(MockEvent.TEST_EVENT)
    assert received == []
