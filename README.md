# aivox

Parts of a voice assistant device, written as plain Python objects. A host
program or a test suite can drive them directly. The package uses only the
standard library.

## Modules

- `aivox.settings.Settings` is a namespaced key/value store for strings and
  32-bit integers. Its data is kept in a JSON file, `~/.aivox/settings.json`
  unless a `path` is given. It works as a context manager. A read-write
  instance commits its changes when it is closed. A read-only instance logs
  every write and ignores it.
- `aivox.iot.thing` describes devices that a remote controller can drive:
  - `Thing` holds a `PropertyList` and a `MethodList`.
  - `Property` values come from getters and are typed by `ValueType`.
  - `Method` objects carry a `ParameterList` of `Parameter`.
  - `descriptor_json()` and `state_json()` produce compact JSON.
  - `Thing.invoke(command, schedule)` fills in a method's parameters from a
    command mapping and runs it, either directly or through `schedule`.
  - A missing required parameter raises `ValueError`.
  - An unknown method, property or parameter raises `NotFoundError`.
  - `register_thing` and `create_thing` keep a registry of thing types.
- `aivox.iot.thing_manager.ThingManager` collects things. It produces JSON
  arrays of their descriptors and states. It passes each command to the thing
  whose `name` the command gives, and ignores commands for unknown names.
- `aivox.ota` handles firmware updates:
  - `parse_version` and `is_new_version_available` compare dotted versions.
  - `read_image_version` reads the version stored in an application image.
  - `Ota.check_version()` queries an update server over HTTP.
  - `Ota.apply_response(body)` applies a response without any network access.
    It records activation data, stores any `mqtt` strings in the `mqtt`
    settings namespace, records the server time, and reads the offered
    firmware version and URL.
  - `Ota.upgrade(url, sink, callback)` and `Ota.start_upgrade(sink, callback)`
    stream an image into a binary file object. They report progress and
    refuse an image whose version matches the current one.
  - Failures raise `OtaError` or `UpgradeError`.
- `aivox.display` keeps the visible state of a screen: status, timed
  notifications, emotion icon, chat message, and mute, battery and network
  indicators. `Display` stores its backlight brightness in the `display`
  settings namespace. `NoDisplay` keeps only that setting.
  `emotion_icon` and `battery_icon` map emotions and charge levels to icon
  names. `DeviceState` lists the device states.
- `aivox.lcd_display.LcdDisplay` extends `Display` with emoji faces
  (`lcd_emotion_icon`) and a backlight. The backlight is driven by
  `pwm_writer(duty)` on a 10-bit scale and fades one percent every 5 ms toward
  the target.

## Install

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Example

    from aivox.iot.thing import Parameter, Thing, ValueType
    from aivox.iot.thing_manager import ThingManager

    class Fan(Thing):
        def __init__(self):
            super().__init__("Fan", "a test fan")
            self.speed = 0
            self.properties.add_number_property("speed", "fan speed", lambda: self.speed)
            self.methods.add_method(
                "SetSpeed",
                "set the fan speed",
                [Parameter("speed", "0 to 3", ValueType.NUMBER)],
                lambda params: setattr(self, "speed", params["speed"].value),
            )

    manager = ThingManager()
    manager.add_thing(Fan())
    print(manager.descriptors_json())
    manager.invoke({"name": "Fan", "method": "SetSpeed", "parameters": {"speed": 2}})
    print(manager.states_json())   # [{"name":"Fan","state":{"speed":2}}]

Checking a version-check response:

    from aivox.ota import Ota

    ota = Ota("1.0.0", settings_path="settings.json")
    ota.apply_response('{"firmware": {"version": "1.1.0", "url": "http://localhost/fw.bin"}}')
    print(ota.has_new_version, ota.firmware_url)

## What it does not do

- It has no connection to an assistant server: no WebSocket or MQTT transport,
  no audio streaming and no encryption.
- It has no LED control.
- It includes no ready-made things. You define your own `Thing` subclasses.
- It draws nothing on a screen. The display classes only keep state for a
  renderer to show.
- It writes firmware images only to the file object you pass. It does not
  flash them or reboot.
- It has no command-line program.