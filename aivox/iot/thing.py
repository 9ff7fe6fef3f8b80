"""IoT things: typed properties, remotely invocable methods and a type registry."""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class ValueType(Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


class NotFoundError(LookupError):
    """A named property, parameter, method or thing type does not exist."""


class Property:
    """A read-only value a thing reports, obtained from a getter."""

    def __init__(self, name: str, description: str, value_type: ValueType | str, getter: Callable[[], Any]):
        self.name = name
        self.description = description
        self.value_type = ValueType(value_type)
        self._getter = getter

    def value(self) -> bool | int | str:
        raw = self._getter()
        if self.value_type is ValueType.BOOLEAN:
            return bool(raw)
        if self.value_type is ValueType.NUMBER:
            return int(raw)
        return str(raw)

    def _descriptor(self) -> dict[str, Any]:
        return {"description": self.description, "type": self.value_type.value}

    def descriptor_json(self) -> str:
        return _dumps(self._descriptor())

    def state_json(self) -> str:
        return _dumps(self.value())


class PropertyList:
    """The ordered properties of a thing."""

    def __init__(self, properties: Iterable[Property] | None = None):
        self._properties = list(properties or ())

    def add_boolean_property(self, name: str, description: str, getter: Callable[[], bool]) -> None:
        self._properties.append(Property(name, description, ValueType.BOOLEAN, getter))

    def add_number_property(self, name: str, description: str, getter: Callable[[], int]) -> None:
        self._properties.append(Property(name, description, ValueType.NUMBER, getter))

    def add_string_property(self, name: str, description: str, getter: Callable[[], str]) -> None:
        self._properties.append(Property(name, description, ValueType.STRING, getter))

    def __getitem__(self, name: str) -> Property:
        for prop in self._properties:
            if prop.name == name:
                return prop
        raise NotFoundError(f"Property not found: {name}")

    def __iter__(self) -> Iterator[Property]:
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def _descriptor(self) -> dict[str, Any]:
        return {prop.name: prop._descriptor() for prop in self._properties}

    def _state(self) -> dict[str, Any]:
        return {prop.name: prop.value() for prop in self._properties}

    def descriptor_json(self) -> str:
        return _dumps(self._descriptor())

    def state_json(self) -> str:
        return _dumps(self._state())


@dataclasses.dataclass
class Parameter:
    """An argument of a method; ``value`` holds the last value supplied."""

    name: str
    description: str
    value_type: ValueType
    required: bool = True
    value: Any = None

    def _descriptor(self) -> dict[str, Any]:
        return {"description": self.description, "type": ValueType(self.value_type).value}

    def descriptor_json(self) -> str:
        return _dumps(self._descriptor())

    def _assign(self, raw: Any) -> None:
        value_type = ValueType(self.value_type)
        if value_type is ValueType.NUMBER:
            if not isinstance(raw, (int, float)):
                raise ValueError(f"Parameter {self.name} must be a number")
            self.value = int(raw)
        elif value_type is ValueType.BOOLEAN:
            self.value = raw == 1
        else:
            if not isinstance(raw, str):
                raise ValueError(f"Parameter {self.name} must be a string")
            self.value = raw


class ParameterList:
    """The ordered parameters of a method."""

    def __init__(self, parameters: Iterable[Parameter] | None = None):
        self._parameters = list(parameters or ())

    def add_parameter(self, parameter: Parameter) -> None:
        self._parameters.append(parameter)

    def __getitem__(self, name: str) -> Parameter:
        for parameter in self._parameters:
            if parameter.name == name:
                return parameter
        raise NotFoundError(f"Parameter not found: {name}")

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def _descriptor(self) -> dict[str, Any]:
        return {parameter.name: parameter._descriptor() for parameter in self._parameters}

    def descriptor_json(self) -> str:
        return _dumps(self._descriptor())


class Method:
    """A named action with parameters; invoking it runs the callback."""

    def __init__(
        self,
        name: str,
        description: str,
        parameters: Iterable[Parameter] | None,
        callback: Callable[[ParameterList], None],
    ):
        self.name = name
        self.description = description
        self.parameters = ParameterList(dataclasses.replace(p) for p in (parameters or ()))
        self._callback = callback

    def _descriptor(self) -> dict[str, Any]:
        return {"description": self.description, "parameters": self.parameters._descriptor()}

    def descriptor_json(self) -> str:
        return _dumps(self._descriptor())

    def invoke(self) -> None:
        self._callback(self.parameters)


class MethodList:
    """The ordered methods of a thing."""

    def __init__(self, methods: Iterable[Method] | None = None):
        self._methods = list(methods or ())

    def add_method(
        self,
        name: str,
        description: str,
        parameters: Iterable[Parameter] | None,
        callback: Callable[[ParameterList], None],
    ) -> None:
        self._methods.append(Method(name, description, parameters, callback))

    def __getitem__(self, name: str) -> Method:
        for method in self._methods:
            if method.name == name:
                return method
        raise NotFoundError(f"Method not found: {name}")

    def __iter__(self) -> Iterator[Method]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def _descriptor(self) -> dict[str, Any]:
        return {method.name: method._descriptor() for method in self._methods}

    def descriptor_json(self) -> str:
        return _dumps(self._descriptor())


def _run_now(task: Callable[[], None]) -> None:
    task()


class Thing:
    """A device exposing properties and methods to a remote controller."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.properties = PropertyList()
        self.methods = MethodList()

    def descriptor_json(self) -> str:
        return _dumps(
            {
                "name": self.name,
                "description": self.description,
                "properties": self.properties._descriptor(),
                "methods": self.methods._descriptor(),
            }
        )

    def state_json(self) -> str:
        return _dumps({"name": self.name, "state": self.properties._state()})

    def invoke(
        self,
        command: Mapping[str, Any],
        schedule: Callable[[Callable[[], None]], Any] | None = None,
    ) -> None:
        """Fill in the named method's parameters from ``command`` and run it.

        The method runs through ``schedule`` when given, otherwise at once.
        """
        method_name = command.get("method")
        if not isinstance(method_name, str):
            raise ValueError("Command does not name a method")
        method = self.methods[method_name]
        inputs = command.get("parameters")
        if not isinstance(inputs, Mapping):
            inputs = {}
        for parameter in method.parameters:
            if parameter.name not in inputs:
                if parameter.required:
                    raise ValueError(f"Parameter {parameter.name} is required")
                continue
            parameter._assign(inputs[parameter.name])
        (schedule or _run_now)(method.invoke)


_thing_creators: dict[str, Callable[[], Thing]] = {}


def register_thing(type_name: str, creator: Callable[[], Thing]) -> Callable[[], Thing]:
    """Register ``creator`` as the factory for ``type_name``."""
    _thing_creators[type_name] = creator
    return creator


def create_thing(type_name: str) -> Thing:
    try:
        creator = _thing_creators[type_name]
    except KeyError:
        raise NotFoundError(f"Thing type not found: {type_name}") from None
    return creator()