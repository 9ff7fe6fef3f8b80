"""LCD panel display with an emoji face and a PWM backlight that fades between levels."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable

from aivox.display import EMOTIONS, Display

logger = logging.getLogger(__name__)

PWM_MAX_DUTY = 1023  # 10-bit duty resolution: 100% brightness
BACKLIGHT_STEP_INTERVAL = 0.005
MAX_BRIGHTNESS = 100

ICON_AI_CHIP = "ai-chip"
INITIALIZING = "Initializing..."

FONT_EMOJI = "emoji"
FONT_ICON = "icon"

_EMOJIS = (
    "😶",
    "🙂",
    "😆",
    "😂",
    "😔",
    "😠",
    "😭",
    "😍",
    "😳",
    "😯",
    "😱",
    "🤔",
    "😉",
    "😎",
    "😌",
    "🤤",
    "😘",
    "😏",
    "😴",
    "😜",
    "🙄",
)
_LCD_EMOTION_ICONS = dict(zip(EMOTIONS, _EMOJIS))
_NEUTRAL = _LCD_EMOTION_ICONS["neutral"]


def lcd_emotion_icon(emotion: str) -> str:
    """Return the emoji for ``emotion``, falling back to the neutral face."""
    return _LCD_EMOTION_ICONS.get(emotion, _NEUTRAL)


class LcdDisplay(Display):
    """A colour LCD whose backlight is driven by ``pwm_writer(duty)``.

    Without a ``pwm_writer`` the backlight is not connected and brightness
    changes are ignored. Changes fade one percent every 5 ms.
    """

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        settings_path: str | os.PathLike | None = None,
        pwm_writer: Callable[[int], None] | None = None,
    ):
        super().__init__(width, height, settings_path)
        self._pwm_writer = pwm_writer
        self.current_brightness = 0
        self._backlight_lock = threading.RLock()
        self._backlight_stop: threading.Event | None = None

        self.emotion = ICON_AI_CHIP
        self.emotion_font = FONT_ICON
        self.status = INITIALIZING

        self.set_backlight(self.brightness)

    def set_emotion(self, emotion: str) -> None:
        with self._lock:
            self.emotion_font = FONT_EMOJI
            self.emotion = lcd_emotion_icon(emotion)

    def set_icon(self, icon: str) -> None:
        with self._lock:
            self.emotion_font = FONT_ICON
            self.emotion = icon

    def set_backlight(self, brightness: int) -> None:
        """Fade the backlight to ``brightness`` percent, capped at 100, and store it."""
        if self._pwm_writer is None:
            return
        if brightness < 0:
            raise ValueError(f"Brightness out of range: {brightness}")
        brightness = min(brightness, MAX_BRIGHTNESS)
        logger.info("Setting LCD backlight: %d%%", brightness)
        with self._backlight_lock:
            self._stop_backlight_timer()
            super().set_backlight(brightness)
            self._start_backlight_timer()

    def on_backlight_timer(self) -> None:
        """Move the backlight one step toward the target and drive the PWM output."""
        with self._backlight_lock:
            if self.current_brightness < self.brightness:
                self.current_brightness += 1
            elif self.current_brightness > self.brightness:
                self.current_brightness -= 1

            if self._pwm_writer is not None:
                self._pwm_writer(PWM_MAX_DUTY * self.current_brightness // MAX_BRIGHTNESS)

            if self.current_brightness == self.brightness:
                self._stop_backlight_timer()

    def _start_backlight_timer(self) -> None:
        stop = threading.Event()
        self._backlight_stop = stop
        thread = threading.Thread(target=self._run_backlight_timer, args=(stop,), daemon=True)
        thread.start()

    def _stop_backlight_timer(self) -> None:
        if self._backlight_stop is not None:
            self._backlight_stop.set()
            self._backlight_stop = None

    def _run_backlight_timer(self, stop: threading.Event) -> None:
        while not stop.wait(BACKLIGHT_STEP_INTERVAL):
            with self._backlight_lock:
                if stop.is_set():
                    return
                self.on_backlight_timer()

    def close(self) -> None:
        with self._backlight_lock:
            self._stop_backlight_timer()
        super().close()