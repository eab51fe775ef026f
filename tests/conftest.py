import os
import sys
import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())

from tests.fakes import RecordingPresenter, ScriptedDialogue


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()

@pytest.fixture
def world():
    """Fresh World for each test."""
    from engine.core.world import World
    return World()

@pytest.fixture
def storage():
    """Variable storage with a couple of defaults."""
    from framework.dialogue.storage import MemoryVariableStorage
    return MemoryVariableStorage({"$gold": 10, "$met_sally": False})

@pytest.fixture
def presenter():
    """Presenter that continues immediately and records what it saw."""
    return RecordingPresenter()

@pytest.fixture
def dialogue():
    """Scripted engine with a few small nodes."""
    return ScriptedDialogue({
        "Start": [("line", "Welcome")],
        "Sally": [("line", "Hi, I'm Sally"), ("line", "Nice to meet you")],
        "Ship": [("line", "The ship hums")],
    })
