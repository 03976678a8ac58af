"""
Double round-robin fixture generation for a league season.

Circle method (Berger tables): fix the first team, rotate the others one place per
round. n teams (n even) give n-1 rounds in which every team meets every other team
once; the second half repeats those rounds with venues swapped, in shuffled order.

BYE handling: when the number of teams is odd, a virtual BYE is added so the count
is even. Any pairing with BYE is left out of the fixture, so each team rests once
per half-season.
"""
from __future__ import annotations

from typing import Sequence

from season_sim.errors import InvalidLeagueError
from season_sim.models import Fixture, League, Match, Team
from season_sim.simulation.rng import SeededRNG

# Sentinel for bye when number of teams is odd
BYE = None


def round_robin_pairings(teams: Sequence[Team]) -> list[list[tuple[Team, Team]]]:
    """
    First-half rounds as (home, away) pairs, byes already removed.
    Deterministic: same team order => same rounds.
    """
    if len(teams) < 2:
        raise InvalidLeagueError(f"Need at least 2 teams for a league, got {len(teams)}")
    ids = [t.id for t in teams]
    if len(set(ids)) != len(ids):
        raise InvalidLeagueError("Team ids must be unique within a league")

    slots: list[Team | None] = list(teams)
    if len(slots) % 2 == 1:
        slots.append(BYE)
    n = len(slots)
    fixed = slots[0]
    rotating = slots[1:]
    rounds: list[list[tuple[Team, Team]]] = []

    for rnd in range(n - 1):
        pairs: list[tuple[Team | None, Team | None]] = []
        # Fixed team meets the head of the rotating list; venue alternates by round
        if rnd % 2 == 0:
            pairs.append((fixed, rotating[0]))
        else:
            pairs.append((rotating[0], fixed))
        # Remaining teams pair from opposite ends of the rotating list
        for i in range(1, n // 2):
            home, away = rotating[i], rotating[n - 1 - i]
            if i % 2 == rnd % 2:
                home, away = away, home
            pairs.append((home, away))
        rounds.append([(h, a) for h, a in pairs if h is not BYE and a is not BYE])
        # Rotate: last element moves to the front
        rotating = [rotating[-1]] + rotating[:-1]
    return rounds


def generate_season_fixtures(league: League, season: int, rng: SeededRNG | None = None) -> list[Fixture]:
    """
    Full season: 2(n-1) matchweeks (n counted after BYE padding).
    Matchweek k+1..2k replay the first-half rounds in shuffled order with home/away swapped.
    """
    rng = rng or SeededRNG()
    first_half_rounds = round_robin_pairings(league.teams)
    half = len(first_half_rounds)
    fixtures: list[Fixture] = []

    for idx, pairs in enumerate(first_half_rounds):
        matchweek = idx + 1
        fixtures.append(_fixture(league.id, season, matchweek, pairs))

    order = list(range(half))
    rng.shuffle(order)
    for i, source_idx in enumerate(order):
        matchweek = half + i + 1
        reversed_pairs = [(away, home) for home, away in first_half_rounds[source_idx]]
        fixtures.append(_fixture(league.id, season, matchweek, reversed_pairs))
    return fixtures


def _fixture(league_id: str, season: int, matchweek: int, pairs: list[tuple[Team, Team]]) -> Fixture:
    matches = tuple(Match(league_id, season, matchweek, home, away) for home, away in pairs)
    return Fixture(league_id=league_id, season=season, matchweek=matchweek, matches=matches)
