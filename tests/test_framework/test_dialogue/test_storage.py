import pytest
from framework.dialogue.storage import MemoryVariableStorage, VariableStorage

def test_defaults_are_visible(storage):
    assert storage.get_value("$gold") == 10
    assert storage.get_value("$met_sally") is False
    assert "$gold" in storage

def test_unset_variable_is_none(storage):
    assert storage.get_value("$unknown") is None
    assert "$unknown" not in storage

def test_set_and_reset(storage):
    storage.set_value("$gold", 25)
    storage.set_value("$name", "Sally")
    assert storage.values == {"$gold": 25, "$met_sally": False, "$name": "Sally"}

    storage.reset_to_defaults()
    assert storage.values == {"$gold": 10, "$met_sally": False}

def test_values_is_a_copy(storage):
    storage.values["$gold"] = 0
    assert storage.get_value("$gold") == 10

def test_rejects_unsupported_values(storage):
    with pytest.raises(TypeError):
        storage.set_value("$inventory", ["sword"])
    with pytest.raises(TypeError):
        MemoryVariableStorage({"$pos": (1, 2)})

def test_clear_removes_defaults(storage):
    storage.clear()
    storage.reset_to_defaults()
    assert storage.values == {}

def test_base_clear_not_supported():
    class ReadOnlyStorage(VariableStorage):
        def get_value(self, name):
            return None

        def set_value(self, name, value):
            pass

        def reset_to_defaults(self):
            pass

    with pytest.raises(NotImplementedError):
        ReadOnlyStorage().clear()
