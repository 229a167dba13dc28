"""Tests for player config storage: defaults, merging and persistence."""

from galmode import storage


def test_get_config_empty():
    """Returns defaults when no config file exists."""
    config = storage.get_config()
    assert config["host_url"] == ""
    assert config["typewriter_enabled"] is True
    assert config["typewriter_speed"] == 50
    assert config["refresh_interval_ms"] == 16
    assert config["max_idle_polls"] == 5
    assert len(config["speaker_palette"]) == 7


def test_update_config_partial():
    """Updates persist and leave other keys at their values."""
    storage.update_config({"typewriter_speed": 20})
    storage.update_config({"host_url": "http://localhost:8000/bridge"})

    config = storage.get_config()
    assert config["typewriter_speed"] == 20
    assert config["host_url"] == "http://localhost:8000/bridge"
    assert config["font_size"] == 26


def test_unknown_keys_ignored():
    result = storage.update_config({"not_a_setting": 1})
    assert "not_a_setting" not in result
    assert "not_a_setting" not in storage.get_config()


def test_palette_replaced_wholesale():
    storage.update_config({"speaker_palette": ["#111111"]})
    assert storage.get_config()["speaker_palette"] == ["#111111"]


def test_defaults_not_shared():
    """Mutating a returned config never leaks into the defaults."""
    config = storage.get_config()
    config["speaker_palette"].append("#000000")
    assert len(storage.get_config()["speaker_palette"]) == 7
