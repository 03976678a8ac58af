"""
Runtime configuration: timings, data location, logging.
Values come from environment variables with sensible defaults so the simulator
runs out of the box and tests can override them.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from season_sim.errors import ConfigError

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _env_number(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


COUNTDOWN_SECONDS = int(_env_number("SEASON_SIM_COUNTDOWN_SECONDS", 30))
FIXTURE_GAP_SECONDS = _env_number("SEASON_SIM_FIXTURE_GAP_SECONDS", 10)
SEASON_GAP_SECONDS = _env_number("SEASON_SIM_SEASON_GAP_SECONDS", 60)
TICK_INTERVAL_MS = int(_env_number("SEASON_SIM_TICK_INTERVAL_MS", 250))
REAL_MATCH_DURATION_MS = int(_env_number("SEASON_SIM_REAL_MATCH_DURATION_MS", 150_000))
DATA_DIR = Path(os.environ.get("SEASON_SIM_DATA_DIR", str(_PROJECT_ROOT / "data" / "leagues")))
LOG_LEVEL = os.environ.get("SEASON_SIM_LOG_LEVEL", "INFO")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass(frozen=True)
class MatchTiming:
    """90 simulated minutes compressed into real_match_duration_ms, ticked every tick_interval_ms."""
    match_duration_minutes: int = 90
    half_time_minute: int = 45
    real_match_duration_ms: int = REAL_MATCH_DURATION_MS
    tick_interval_ms: int = TICK_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.tick_interval_ms <= 0:
            raise ConfigError("tick_interval_ms must be positive")
        if self.real_match_duration_ms < self.tick_interval_ms:
            raise ConfigError("real_match_duration_ms must be at least one tick")

    @property
    def ticks_per_match(self) -> float:
        return self.real_match_duration_ms / self.tick_interval_ms

    @property
    def minutes_per_tick(self) -> float:
        return self.match_duration_minutes / self.ticks_per_match

    @property
    def tick_interval_seconds(self) -> float:
        return self.tick_interval_ms / 1000.0


@dataclass(frozen=True)
class SimulationConfig:
    """Delays between the phases of a league's season loop."""
    countdown_seconds: int = COUNTDOWN_SECONDS
    fixture_gap_seconds: float = FIXTURE_GAP_SECONDS
    season_gap_seconds: float = SEASON_GAP_SECONDS
    timing: MatchTiming = MatchTiming()

    @classmethod
    def from_env(cls) -> SimulationConfig:
        return cls(
            countdown_seconds=int(_env_number("SEASON_SIM_COUNTDOWN_SECONDS", 30)),
            fixture_gap_seconds=_env_number("SEASON_SIM_FIXTURE_GAP_SECONDS", 10),
            season_gap_seconds=_env_number("SEASON_SIM_SEASON_GAP_SECONDS", 60),
            timing=MatchTiming(
                real_match_duration_ms=int(_env_number("SEASON_SIM_REAL_MATCH_DURATION_MS", 150_000)),
                tick_interval_ms=int(_env_number("SEASON_SIM_TICK_INTERVAL_MS", 250)),
            ),
        )

    @classmethod
    def fast(cls) -> SimulationConfig:
        """Compressed profile for demos: 3s countdown, 6s matches."""
        return cls(
            countdown_seconds=3,
            fixture_gap_seconds=1,
            season_gap_seconds=2,
            timing=MatchTiming(real_match_duration_ms=6_000, tick_interval_ms=100),
        )


def configure_logging(level: str | int = LOG_LEVEL) -> None:
    """Attach one stream handler to the season_sim logger tree."""
    logger = logging.getLogger("season_sim")
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    if not any(getattr(h, "_season_sim", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._season_sim = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
