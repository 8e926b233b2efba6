from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache


logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class EngineSettings:
    """Defaults the host service can tune through the environment."""

    master_age: int = 27
    swap_max_lane: int = 8
    auto_interval_minutes: int = 10
    standings_depth: int = 6
    default_discipline: str = "classic"

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            master_age=_int_from_env("REGATTA_MASTER_AGE", cls.master_age),
            swap_max_lane=_int_from_env("REGATTA_SWAP_MAX_LANE", cls.swap_max_lane),
            auto_interval_minutes=_int_from_env(
                "REGATTA_AUTO_INTERVAL_MINUTES", cls.auto_interval_minutes
            ),
            standings_depth=_int_from_env("REGATTA_STANDINGS_DEPTH", cls.standings_depth),
            default_discipline=(
                os.getenv("REGATTA_DEFAULT_DISCIPLINE", "").strip().lower() or cls.default_discipline
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return EngineSettings.from_env()
