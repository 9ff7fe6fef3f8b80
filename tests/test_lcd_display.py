import time

import pytest

from aivox.lcd_display import (
    FONT_EMOJI,
    FONT_ICON,
    ICON_AI_CHIP,
    PWM_MAX_DUTY,
    LcdDisplay,
    lcd_emotion_icon,
)
from aivox.settings import Settings


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _store_brightness(path, value):
    with Settings("display", True, path) as settings:
        settings.set_int("brightness", value)


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings.json"


def test_emotion_icon_known_and_fallback():
    assert lcd_emotion_icon("happy") == "🙂"
    assert lcd_emotion_icon("thinking") == "🤔"
    assert lcd_emotion_icon("no-such-feeling") == "😶"
    assert lcd_emotion_icon("neutral") == "😶"


def test_initial_face_and_emotion_fonts(settings_path):
    display = LcdDisplay(320, 240, settings_path)
    try:
        assert display.emotion == ICON_AI_CHIP
        assert (display.width, display.height) == (320, 240)
        display.set_emotion("cool")
        assert display.emotion == "😎"
        assert display.emotion_font == FONT_EMOJI
        display.set_icon("wifi")
        assert display.emotion == "wifi"
        assert display.emotion_font == FONT_ICON
    finally:
        display.close()


def test_without_backlight_brightness_changes_are_ignored(settings_path):
    display = LcdDisplay(settings_path=settings_path)
    try:
        display.set_backlight(30)
        assert display.brightness == 100
        assert display.current_brightness == 0
        with Settings("display", path=settings_path) as settings:
            assert settings.get_int("brightness", -1) == -1
    finally:
        display.close()


def test_manual_timer_steps_toward_target(settings_path):
    display = LcdDisplay(settings_path=settings_path)
    try:
        display.on_backlight_timer()
        assert display.current_brightness == 1
        display.on_backlight_timer()
        assert display.current_brightness == 2
    finally:
        display.close()


def test_ramps_up_to_full_duty(settings_path):
    writes = []
    display = LcdDisplay(settings_path=settings_path, pwm_writer=writes.append)
    try:
        assert _wait_for(lambda: display.current_brightness == 100)
        assert _wait_for(lambda: writes and writes[-1] == PWM_MAX_DUTY)
        assert writes == sorted(writes)
        assert len(writes) == 100
    finally:
        display.close()


def test_clamps_to_one_hundred_and_persists(settings_path):
    _store_brightness(settings_path, 95)
    writes = []
    display = LcdDisplay(settings_path=settings_path, pwm_writer=writes.append)
    try:
        assert _wait_for(lambda: display.current_brightness == 95)
        display.set_backlight(200)
        assert display.brightness == 100
        assert _wait_for(lambda: display.current_brightness == 100)
        assert _wait_for(lambda: writes[-1] == PWM_MAX_DUTY)
        with Settings("display", path=settings_path) as settings:
            assert settings.get_int("brightness") == 100
    finally:
        display.close()


def test_ramps_down_to_zero(settings_path):
    _store_brightness(settings_path, 3)
    writes = []
    display = LcdDisplay(settings_path=settings_path, pwm_writer=writes.append)
    try:
        assert _wait_for(lambda: display.current_brightness == 3)
        peak = len(writes)
        display.set_backlight(0)
        assert _wait_for(lambda: display.current_brightness == 0)
        assert _wait_for(lambda: writes[-1] == 0)
        falling = writes[peak:]
        assert falling == sorted(falling, reverse=True)
        assert len(falling) == 3
    finally:
        display.close()


def test_brightness_is_remembered_across_instances(settings_path):
    first = LcdDisplay(settings_path=settings_path, pwm_writer=lambda duty: None)
    first.set_backlight(7)
    first.close()
    second = LcdDisplay(settings_path=settings_path, pwm_writer=lambda duty: None)
    try:
        assert second.brightness == 7
    finally:
        second.close()


def test_negative_brightness_rejected(settings_path):
    display = LcdDisplay(settings_path=settings_path, pwm_writer=lambda duty: None)
    try:
        with pytest.raises(ValueError):
            display.set_backlight(-1)
    finally:
        display.close()