"""
Shared builders for the test suite: small teams and leagues, a scripted RNG,
and a compressed timing profile for the virtual-clock scheduler.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from season_sim.config import MatchTiming, SimulationConfig
from season_sim.models import (
    FootballEventType,
    League,
    Match,
    MatchEvent,
    MatchPhase,
    Player,
    Position,
    Team,
    TeamStrength,
)
from season_sim.simulation.rng import SeededRNG


class ScriptedRNG(SeededRNG):
    """chance() answers from a script (then a default); choice() takes the first item; randint() the low end."""

    def __init__(self, chances: list[bool] | None = None, default: bool = False) -> None:
        super().__init__(0)
        self.chances = list(chances or [])
        self.default = default

    def chance(self, probability: float) -> bool:
        if self.chances:
            return self.chances.pop(0)
        return self.default

    def choice(self, seq):
        return seq[0]

    def randint(self, a: int, b: int) -> int:
        return a


def build_team(team_id: str, strength: TeamStrength | None = None, with_players: bool = True) -> Team:
    players: tuple[Player, ...] = ()
    if with_players:
        players = (
            Player(f"{team_id}-gk", f"{team_id} Keeper", Position.GOALKEEPER, 1, 75),
            Player(f"{team_id}-df", f"{team_id} Defender", Position.DEFENDER, 4, 74),
            Player(f"{team_id}-mf", f"{team_id} Midfielder", Position.MIDFIELDER, 8, 76),
            Player(f"{team_id}-fw", f"{team_id} Forward", Position.FORWARD, 9, 78),
        )
    return Team(
        id=team_id,
        name=f"Team {team_id.upper()}",
        short_name=team_id[:3].upper(),
        strength=strength or TeamStrength(),
        players=players,
    )


def build_league(n: int, league_id: str = "test-league") -> League:
    teams = tuple(build_team(f"t{i}") for i in range(1, n + 1))
    return League(id=league_id, name=f"League {league_id}", country="Nowhere", teams=teams)


def score_goal(match: Match, team: Team, minute: int) -> None:
    """Append a goal for team; moves a not-started match into the first half."""
    if match.phase == MatchPhase.NOT_STARTED:
        match.phase = MatchPhase.FIRST_HALF
    match.add_event(MatchEvent(minute=minute, type=FootballEventType.GOAL, description="goal", team_id=team.id))


def finish(match: Match) -> None:
    match.phase = MatchPhase.FULL_TIME


@pytest.fixture
def test_config() -> SimulationConfig:
    """2s countdown, 1s/2s gaps, 3 simulated minutes per 100ms tick."""
    return SimulationConfig(
        countdown_seconds=2,
        fixture_gap_seconds=1,
        season_gap_seconds=2,
        timing=MatchTiming(real_match_duration_ms=3_000, tick_interval_ms=100),
    )


@pytest.fixture
def four_team_league() -> League:
    return build_league(4)


@pytest.fixture
def five_team_league() -> League:
    return build_league(5, league_id="odd-league")
