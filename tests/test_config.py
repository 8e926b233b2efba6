import pytest

from regatta_core import config
from regatta_core.config import EngineSettings, get_settings


def test_defaults() -> None:
    settings = get_settings()
    assert settings == EngineSettings()
    assert settings.master_age == 27
    assert settings.swap_max_lane == 8
    assert settings.auto_interval_minutes == 10
    assert settings.standings_depth == 6
    assert settings.default_discipline == "classic"


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REGATTA_MASTER_AGE", "30")
    monkeypatch.setenv("REGATTA_SWAP_MAX_LANE", "20")
    monkeypatch.setenv("REGATTA_DEFAULT_DISCIPLINE", " Coastal ")
    config.get_settings.cache_clear()

    settings = get_settings()
    assert settings.master_age == 30
    assert settings.swap_max_lane == 20
    assert settings.default_discipline == "coastal"
    assert settings.auto_interval_minutes == 10


def test_bad_integer_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    monkeypatch.setenv("REGATTA_AUTO_INTERVAL_MINUTES", "ten")
    config.get_settings.cache_clear()

    assert get_settings().auto_interval_minutes == 10
    assert "REGATTA_AUTO_INTERVAL_MINUTES" in caplog.text


def test_swap_uses_configured_lane_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    from regatta_core import Lane, Race, swap_lanes

    monkeypatch.setenv("REGATTA_SWAP_MAX_LANE", "12")
    config.get_settings.cache_clear()

    race = Race(race_id="r1", category_id="c", journey_index=1, lanes=(Lane(lane=1, athlete_id="a1"),))
    result = swap_lanes([race], "r1", 1, "r1", 11)
    assert result.source.lane(11).athlete_id == "a1"
