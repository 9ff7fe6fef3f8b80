import json

import pytest

from aivox.iot.thing import NotFoundError, Parameter, ParameterList, Thing, ValueType
from aivox.iot.thing_manager import ThingManager


def _thing(name, calls):
    thing = Thing(name, f"{name} device")
    thing.properties.add_number_property("level", "level", lambda: len(calls))
    thing.methods.add_method(
        "Set",
        "set",
        ParameterList([Parameter("level", "level", ValueType.NUMBER)]),
        lambda params: calls.append((name, params["level"].value)),
    )
    return thing


def test_empty_manager():
    manager = ThingManager()
    assert manager.descriptors_json() == "[]"
    assert manager.states_json() == "[]"


def test_descriptors_in_insertion_order():
    manager = ThingManager()
    manager.add_thing(_thing("A", []))
    manager.add_thing(_thing("B", []))
    descriptors = json.loads(manager.descriptors_json())
    assert [d["name"] for d in descriptors] == ["A", "B"]
    assert descriptors[1]["methods"]["Set"]["parameters"]["level"]["type"] == "number"


def test_states_reflect_getters():
    calls = []
    manager = ThingManager()
    manager.add_thing(_thing("A", calls))
    manager.invoke({"name": "A", "method": "Set", "parameters": {"level": 9}})
    assert json.loads(manager.states_json()) == [{"name": "A", "state": {"level": 1}}]


def test_invoke_routes_by_name():
    calls = []
    manager = ThingManager()
    manager.add_thing(_thing("A", calls))
    manager.add_thing(_thing("B", calls))
    manager.invoke({"name": "B", "method": "Set", "parameters": {"level": 3}})
    assert calls == [("B", 3)]


def test_invoke_unknown_name_does_nothing():
    calls = []
    manager = ThingManager()
    manager.add_thing(_thing("A", calls))
    manager.invoke({"name": "Z", "method": "Set", "parameters": {"level": 3}})
    assert calls == []


def test_invoke_passes_schedule():
    calls = []
    scheduled = []
    manager = ThingManager()
    manager.add_thing(_thing("A", calls))
    manager.invoke({"name": "A", "method": "Set", "parameters": {"level": 2}}, schedule=scheduled.append)
    assert calls == []
    scheduled[0]()
    assert calls == [("A", 2)]


def test_invoke_unknown_method_raises():
    manager = ThingManager()
    manager.add_thing(_thing("A", []))
    with pytest.raises(NotFoundError):
        manager.invoke({"name": "A", "method": "Nope"})