import pytest

from regatta_core import config

_ENV_VARS = (
    "REGATTA_MASTER_AGE",
    "REGATTA_SWAP_MAX_LANE",
    "REGATTA_AUTO_INTERVAL_MINUTES",
    "REGATTA_STANDINGS_DEPTH",
    "REGATTA_DEFAULT_DISCIPLINE",
)


@pytest.fixture(autouse=True)
def reset_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
