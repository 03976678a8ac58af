"""
Match simulation engine: seeded randomness, per-minute event generation,
time-compressed matches, and the outward message schema.
"""
from .rng import SeededRNG
from .event_generator import EventGenerator, attack_modifier, goal_chance, placeholder_player
from .match_engine import MatchEngine
from .schemas import (
    Topic,
    MatchSnapshot,
    FixtureSnapshot,
    StandingRow,
    StandingsUpdate,
    SeasonStatus,
    SeasonSummary,
    CountdownTick,
    LeagueEvent,
    snapshot_from_match,
    snapshot_from_fixture,
    standings_update,
)
from .emitter import EventPublisher

__all__ = [
    "SeededRNG",
    "EventGenerator",
    "attack_modifier",
    "goal_chance",
    "placeholder_player",
    "MatchEngine",
    "Topic",
    "MatchSnapshot",
    "FixtureSnapshot",
    "StandingRow",
    "StandingsUpdate",
    "SeasonStatus",
    "SeasonSummary",
    "CountdownTick",
    "LeagueEvent",
    "snapshot_from_match",
    "snapshot_from_fixture",
    "standings_update",
    "EventPublisher",
]
