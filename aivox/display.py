"""Device display state: status line, notifications, emotion, battery and network icons.

Icons are identified by name; a renderer maps each name to its glyph.
"""

from __future__ import annotations

import logging
import os
import threading
from enum import Enum

from aivox.settings import Settings

logger = logging.getLogger(__name__)


class DeviceState(Enum):
    UNKNOWN = "unknown"
    STARTING = "starting"
    WIFI_CONFIGURING = "wifi_configuring"
    IDLE = "idle"
    CONNECTING = "connecting"
    LISTENING = "listening"
    SPEAKING = "speaking"
    UPGRADING = "upgrading"
    ACTIVATING = "activating"


EMOTIONS = (
    "neutral",
    "happy",
    "laughing",
    "funny",
    "sad",
    "angry",
    "crying",
    "loving",
    "embarrassed",
    "surprised",
    "shocked",
    "thinking",
    "winking",
    "cool",
    "relaxed",
    "delicious",
    "kissy",
    "confident",
    "sleepy",
    "silly",
    "confused",
)

_EMOTION_ICONS = {name: f"emoji-{name}" for name in EMOTIONS}

ICON_VOLUME_MUTE = "volume-mute"
ICON_BATTERY_CHARGING = "battery-charging"
_BATTERY_LEVEL_ICONS = (
    "battery-empty",  # 0-19%
    "battery-1",  # 20-39%
    "battery-2",  # 40-59%
    "battery-3",  # 60-79%
    "battery-full",  # 80-99%
    "battery-full",  # 100%
)

# Network status is only polled in these states, so as not to disturb upgrades.
_NETWORK_POLL_STATES = frozenset(
    {DeviceState.IDLE, DeviceState.STARTING, DeviceState.WIFI_CONFIGURING, DeviceState.LISTENING}
)


def emotion_icon(emotion: str) -> str:
    """Return the icon for ``emotion``, falling back to the neutral face."""
    return _EMOTION_ICONS.get(emotion, _EMOTION_ICONS["neutral"])


def battery_icon(level: int, charging: bool) -> str:
    """Return the battery icon for a charge level in percent."""
    if charging:
        return ICON_BATTERY_CHARGING
    if not 0 <= level <= 100:
        raise ValueError(f"Battery level out of range: {level}")
    return _BATTERY_LEVEL_ICONS[level // 20]


class Display:
    """A screen's visible state; every change is made under one lock."""

    has_ui = True

    def __init__(self, width: int = 0, height: int = 0, settings_path: str | os.PathLike | None = None):
        self.width = width
        self.height = height
        self.settings_path = settings_path
        with Settings("display", path=settings_path) as settings:
            self.brightness = settings.get_int("brightness", 100)

        self._lock = threading.RLock()
        self._notification_timer: threading.Timer | None = None

        self.status = ""
        self.status_visible = True
        self.notification = ""
        self.notification_visible = False
        self.emotion = ""
        self.chat_message = ""
        self.network_icon = ""
        self.battery_icon = ""
        self.mute_icon = ""
        self.muted = False

    def set_status(self, status: str) -> None:
        with self._lock:
            if not self.has_ui:
                return
            self.status = status
            self.status_visible = True
            self.notification_visible = False

    def show_notification(self, notification: str, duration_ms: int = 3000) -> None:
        """Show ``notification`` in place of the status for ``duration_ms``."""
        with self._lock:
            if not self.has_ui:
                return
            self.notification = notification
            self.notification_visible = True
            self.status_visible = False
            self._cancel_notification_timer()
            timer = threading.Timer(duration_ms / 1000, self.hide_notification)
            timer.daemon = True
            self._notification_timer = timer
            timer.start()

    def hide_notification(self) -> None:
        with self._lock:
            if not self.has_ui:
                return
            self.notification_visible = False
            self.status_visible = True

    def set_emotion(self, emotion: str) -> None:
        with self._lock:
            if not self.has_ui:
                return
            self.emotion = emotion_icon(emotion)

    def set_icon(self, icon: str) -> None:
        with self._lock:
            if not self.has_ui:
                return
            self.emotion = icon

    def set_chat_message(self, role: str, content: str) -> None:
        with self._lock:
            if not self.has_ui:
                return
            self.chat_message = content

    def set_backlight(self, brightness: int) -> None:
        """Store the brightness (0-255) and remember it across restarts."""
        if not 0 <= brightness <= 255:
            raise ValueError(f"Brightness out of range: {brightness}")
        with Settings("display", True, self.settings_path) as settings:
            settings.set_int("brightness", brightness)
        self.brightness = brightness

    def update(
        self,
        output_volume: int,
        battery: tuple[int, bool] | None = None,
        device_state: DeviceState | None = None,
        network_icon: str | None = None,
    ) -> None:
        """Refresh the mute, battery and network indicators.

        ``battery`` is ``(level, charging)`` or ``None`` when unknown; the
        network icon is taken only in states where polling it is allowed.
        """
        with self._lock:
            if not self.has_ui:
                return
            if output_volume == 0 and not self.muted:
                self.muted = True
                self.mute_icon = ICON_VOLUME_MUTE
            elif output_volume > 0 and self.muted:
                self.muted = False
                self.mute_icon = ""

            if battery is not None:
                level, charging = battery
                self.battery_icon = battery_icon(level, charging)

            if network_icon is not None and device_state in _NETWORK_POLL_STATES:
                self.network_icon = network_icon

    def _cancel_notification_timer(self) -> None:
        if self._notification_timer is not None:
            self._notification_timer.cancel()
            self._notification_timer = None

    def close(self) -> None:
        with self._lock:
            self._cancel_notification_timer()


class NoDisplay(Display):
    """A board without a screen: only the backlight setting is kept."""

    has_ui = False