"""Tests for property resolution."""

from audio_echo.domain.sessions import PlaybackConfig
from audio_echo.services.properties import resolve_property


def test_resolve_property_returns_set_field() -> None:
    config = PlaybackConfig(audio_id="rbx://1", name="Theme")

    assert resolve_property(config, "name", "fallback") == "Theme"


def test_resolve_property_falls_back_for_missing_and_falsy_values() -> None:
    config = PlaybackConfig(audio_id="rbx://1", parent="", properties={"pitch": 0})

    assert resolve_property(config, "name", "session-1") == "session-1"
    assert resolve_property(config, "parent", "master") == "master"
    assert resolve_property(config, "pitch", 1.0) == 1.0


def test_resolve_property_reads_pass_through_properties() -> None:
    config = PlaybackConfig(audio_id="rbx://1", properties={"looped": True})

    assert resolve_property(config, "looped", False) is True
    assert resolve_property(config, "unknown", "default") == "default"


def test_resolve_property_ignores_methods_on_the_config() -> None:
    config = PlaybackConfig(audio_id="rbx://1", properties={"to_payload": "custom"})

    assert resolve_property(config, "to_payload", "x") == "custom"
    assert resolve_property(config, "from_payload", "x") == "x"


def test_from_payload_rejects_boolean_volume() -> None:
    config = PlaybackConfig.from_payload({"audio_id": "rbx://1", "volume": True})

    assert config.volume is None


def test_from_payload_accepts_integer_volume() -> None:
    config = PlaybackConfig.from_payload({"audio_id": "rbx://1", "volume": 1})

    assert config.volume == 1.0
    assert isinstance(config.volume, float)
