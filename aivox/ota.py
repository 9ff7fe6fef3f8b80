"""Firmware version checks against an update server and image downloads."""

from __future__ import annotations

import json
import logging
import math
import os
import re
import time
import urllib.request
from collections.abc import Callable, Mapping
from typing import Any, BinaryIO

from aivox.settings import Settings

logger = logging.getLogger(__name__)

IMAGE_HEADER_SIZE = 24
SEGMENT_HEADER_SIZE = 8
APP_DESC_SIZE = 256
_VERSION_OFFSET = IMAGE_HEADER_SIZE + SEGMENT_HEADER_SIZE + 16
_VERSION_SIZE = 32
IMAGE_PREFIX_SIZE = IMAGE_HEADER_SIZE + SEGMENT_HEADER_SIZE + APP_DESC_SIZE

READ_CHUNK_SIZE = 512
PROGRESS_INTERVAL = 1.0

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


class OtaError(Exception):
    """The version check or the upgrade failed."""


class UpgradeError(OtaError):
    """Downloading or accepting a firmware image failed."""


def parse_version(version: str) -> list[int]:
    """Split a dotted version into its numbers; each segment must start with a number."""
    segments = version.split(".")
    if segments and segments[-1] == "":
        segments.pop()
    numbers = []
    for segment in segments:
        match = _LEADING_INT.match(segment)
        if match is None:
            raise ValueError(f"Invalid version segment {segment!r} in {version!r}")
        numbers.append(int(match.group()))
    return numbers


def is_new_version_available(current_version: str, new_version: str) -> bool:
    """Return whether ``new_version`` is newer than ``current_version``."""
    current = parse_version(current_version)
    newer = parse_version(new_version)
    for new_part, current_part in zip(newer, current):
        if new_part != current_part:
            return new_part > current_part
    return len(newer) > len(current)


def read_image_version(data: bytes) -> str | None:
    """Return the version recorded in an application image, or None if ``data`` is too short."""
    if len(data) < IMAGE_PREFIX_SIZE:
        return None
    raw = bytes(data[_VERSION_OFFSET : _VERSION_OFFSET + _VERSION_SIZE])
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


Opener = Callable[[urllib.request.Request], Any]


class Ota:
    """Asks the update server for the latest firmware and applies its other settings."""

    def __init__(
        self,
        current_version: str,
        check_version_url: str = "",
        headers: Mapping[str, str] | None = None,
        post_data: str = "",
        settings_path: str | os.PathLike | None = None,
        opener: Opener | None = None,
    ):
        self.current_version = current_version
        self.check_version_url = check_version_url
        self.headers: dict[str, str] = dict(headers or {})
        self.post_data = post_data
        self.settings_path = settings_path
        self._opener = opener or urllib.request.urlopen

        self.has_new_version = False
        self.has_mqtt_config = False
        self.has_activation_code = False
        self.has_server_time = False
        self.firmware_version = ""
        self.firmware_url = ""
        self.activation_message = ""
        self.activation_code = ""
        self.server_time: float | None = None

    def _open(self, request: urllib.request.Request, error: type[OtaError]) -> Any:
        try:
            return self._opener(request)
        except (OSError, ValueError) as exc:
            raise error(f"Failed to open HTTP connection: {exc}") from exc

    def check_version(self) -> bool:
        """Query the server and return whether a newer firmware is offered."""
        logger.info("Current version: %s", self.current_version)
        if len(self.check_version_url) < 10:
            raise OtaError("Check version URL is not properly set")

        headers = {**self.headers, "Content-Type": "application/json"}
        method = "POST" if self.post_data else "GET"
        data = self.post_data.encode("utf-8") if self.post_data else None
        request = urllib.request.Request(self.check_version_url, data=data, headers=headers, method=method)
        with self._open(request, OtaError) as response:
            try:
                body = response.read()
            except OSError as exc:
                raise OtaError(f"Failed to read response: {exc}") from exc
        return self.apply_response(body)

    def apply_response(self, body: str | bytes) -> bool:
        """Apply a version-check response and return whether a newer firmware is offered."""
        try:
            root = json.loads(body)
        except ValueError as exc:
            raise OtaError("Failed to parse JSON response") from exc
        if not isinstance(root, dict):
            raise OtaError("Failed to parse JSON response")

        self.has_activation_code = False
        activation = root.get("activation")
        if isinstance(activation, dict):
            if isinstance(activation.get("message"), str):
                self.activation_message = activation["message"]
            if isinstance(activation.get("code"), str):
                self.activation_code = activation["code"]
            self.has_activation_code = True

        self.has_mqtt_config = False
        mqtt = root.get("mqtt")
        if isinstance(mqtt, dict):
            with Settings("mqtt", True, self.settings_path) as settings:
                for key, value in mqtt.items():
                    if isinstance(value, str) and settings.get_string(key) != value:
                        settings.set_string(key, value)
            self.has_mqtt_config = True

        self.has_server_time = False
        server_time = root.get("server_time")
        if isinstance(server_time, dict):
            timestamp = server_time.get("timestamp")
            if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
                ts = float(timestamp)
                offset = server_time.get("timezone_offset")
                if isinstance(offset, (int, float)) and not isinstance(offset, bool):
                    ts += int(offset) * 60 * 1000
                seconds = math.trunc(ts / 1000)
                microseconds = int(math.fmod(math.trunc(ts), 1000)) * 1000
                self.server_time = seconds + microseconds / 1_000_000
                self.has_server_time = True

        firmware = root.get("firmware")
        if not isinstance(firmware, dict):
            raise OtaError("Failed to get firmware object")
        version = firmware.get("version")
        if not isinstance(version, str):
            raise OtaError("Failed to get version object")
        url = firmware.get("url")
        if not isinstance(url, str):
            raise OtaError("Failed to get url object")

        self.firmware_version = version
        self.firmware_url = url
        self.has_new_version = is_new_version_available(self.current_version, self.firmware_version)
        if self.has_new_version:
            logger.info("New version available: %s", self.firmware_version)
        else:
            logger.info("Current is the latest version")
        return self.has_new_version

    def upgrade(
        self,
        firmware_url: str,
        sink: BinaryIO,
        callback: Callable[[int, int], None] | None = None,
    ) -> int:
        """Download the image at ``firmware_url`` into ``sink`` and return its size.

        ``callback(progress_percent, bytes_in_last_interval)`` is called about
        once a second and at the end.
        """
        logger.info("Upgrading firmware from %s", firmware_url)
        request = urllib.request.Request(firmware_url, method="GET")
        with self._open(request, UpgradeError) as response:
            try:
                content_length = int(response.headers.get("Content-Length") or 0)
            except (TypeError, ValueError):
                content_length = 0
            if content_length <= 0:
                raise UpgradeError("Failed to get content length")

            header_checked = False
            header = bytearray()
            total_read = recent_read = 0
            last_calc = time.monotonic()
            while True:
                try:
                    chunk = response.read(READ_CHUNK_SIZE)
                except OSError as exc:
                    raise UpgradeError(f"Failed to read HTTP data: {exc}") from exc

                recent_read += len(chunk)
                total_read += len(chunk)
                if not chunk or time.monotonic() - last_calc >= PROGRESS_INTERVAL:
                    progress = total_read * 100 // content_length
                    logger.info(
                        "Progress: %d%% (%d/%d), Speed: %dB/s", progress, total_read, content_length, recent_read
                    )
                    if callback is not None:
                        callback(progress, recent_read)
                    last_calc = time.monotonic()
                    recent_read = 0

                if not chunk:
                    break

                if header_checked:
                    sink.write(chunk)
                    continue
                header.extend(chunk)
                new_version = read_image_version(header)
                if new_version is None:
                    continue
                logger.info("New firmware version: %s", new_version)
                if new_version == self.current_version:
                    raise UpgradeError("Firmware version is the same, skipping upgrade")
                header_checked = True
                sink.write(bytes(header))
                header = bytearray()

        if not header_checked:
            raise UpgradeError("Image validation failed, image is corrupted")
        logger.info("Firmware upgrade successful")
        return total_read

    def start_upgrade(self, sink: BinaryIO, callback: Callable[[int, int], None] | None = None) -> int:
        """Download the firmware found by the last version check."""
        return self.upgrade(self.firmware_url, sink, callback)