"""A collection of things addressed by name."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from aivox.iot.thing import Thing

logger = logging.getLogger(__name__)


class ThingManager:
    """Holds the device's things and routes commands to them."""

    def __init__(self):
        self.things: list[Thing] = []

    def add_thing(self, thing: Thing) -> None:
        self.things.append(thing)

    def descriptors_json(self) -> str:
        return "[" + ",".join(thing.descriptor_json() for thing in self.things) + "]"

    def states_json(self) -> str:
        return "[" + ",".join(thing.state_json() for thing in self.things) + "]"

    def invoke(
        self,
        command: Mapping[str, Any],
        schedule: Callable[[Callable[[], None]], Any] | None = None,
    ) -> None:
        """Pass ``command`` to the first thing whose name it gives; ignore it otherwise."""
        name = command.get("name")
        for thing in self.things:
            if thing.name == name:
                thing.invoke(command, schedule)
                return
        logger.debug("No thing named %s", name)