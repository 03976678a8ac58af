"""
Tests for double round-robin fixture generation.
Every ordered pair meets once; every team plays 2(n-1) matches, half at home.
"""
from __future__ import annotations

from collections import Counter

import pytest

from conftest import build_league, build_team
from season_sim.errors import InvalidLeagueError
from season_sim.models import League, MatchPhase
from season_sim.services.scheduling import generate_season_fixtures, round_robin_pairings
from season_sim.simulation.rng import SeededRNG


def _ordered_pairs(fixtures):
    return Counter((m.home_team.id, m.away_team.id) for f in fixtures for m in f.matches)


def test_four_team_season():
    """4 teams: 6 matchweeks of 2 matches; each team meets each other team twice."""
    league = build_league(4)
    fixtures = generate_season_fixtures(league, 1, SeededRNG(1))
    assert len(fixtures) == 6
    assert all(f.match_count == 2 for f in fixtures)
    meetings = Counter(frozenset((m.home_team.id, m.away_team.id)) for f in fixtures for m in f.matches)
    assert len(meetings) == 6
    assert set(meetings.values()) == {2}


@pytest.mark.parametrize("n", range(2, 11))
def test_round_robin_completeness(n):
    league = build_league(n)
    fixtures = generate_season_fixtures(league, 1, SeededRNG(n))
    padded = n + (n % 2)
    assert len(fixtures) == 2 * (padded - 1)
    assert all(f.match_count == n // 2 for f in fixtures)

    pairs = _ordered_pairs(fixtures)
    ids = [t.id for t in league.teams]
    expected = {(a, b) for a in ids for b in ids if a != b}
    assert set(pairs) == expected
    assert set(pairs.values()) == {1}

    home = Counter(m.home_team.id for f in fixtures for m in f.matches)
    away = Counter(m.away_team.id for f in fixtures for m in f.matches)
    for team_id in ids:
        assert home[team_id] == n - 1
        assert away[team_id] == n - 1


@pytest.mark.parametrize("n", [3, 4, 7, 8])
def test_no_team_plays_twice_in_a_matchweek(n):
    for fixture in generate_season_fixtures(build_league(n), 1, SeededRNG(0)):
        teams = [t for m in fixture.matches for t in (m.home_team.id, m.away_team.id)]
        assert len(teams) == len(set(teams))


def test_odd_league_rests_each_team_once_per_half():
    league = build_league(5)
    fixtures = generate_season_fixtures(league, 1, SeededRNG(3))
    half = len(fixtures) // 2
    for chunk in (fixtures[:half], fixtures[half:]):
        rests = Counter()
        for f in chunk:
            playing = {t for m in f.matches for t in (m.home_team.id, m.away_team.id)}
            for team in league.teams:
                if team.id not in playing:
                    rests[team.id] += 1
        assert all(rests[t.id] == 1 for t in league.teams)


def test_second_half_mirrors_first_with_venues_swapped():
    league = build_league(6)
    fixtures = generate_season_fixtures(league, 1, SeededRNG(11))
    half = len(fixtures) // 2
    first = [frozenset((m.home_team.id, m.away_team.id) for m in f.matches) for f in fixtures[:half]]
    second = [frozenset((m.away_team.id, m.home_team.id) for m in f.matches) for f in fixtures[half:]]
    assert sorted(map(sorted, first)) == sorted(map(sorted, second))


def test_fixture_metadata_and_fresh_matches():
    league = build_league(4)
    fixtures = generate_season_fixtures(league, 3, SeededRNG(2))
    assert [f.matchweek for f in fixtures] == list(range(1, 7))
    for f in fixtures:
        assert f.league_id == league.id
        assert f.season == 3
        for m in f.matches:
            assert m.phase == MatchPhase.NOT_STARTED
            assert (m.season, m.matchweek) == (3, f.matchweek)
    ids = [m.id for f in fixtures for m in f.matches]
    assert len(ids) == len(set(ids))


def test_same_seed_same_schedule():
    league = build_league(8)
    a = generate_season_fixtures(league, 1, SeededRNG(42))
    b = generate_season_fixtures(league, 1, SeededRNG(42))
    shape = lambda fx: [[(m.home_team.id, m.away_team.id) for m in f.matches] for f in fx]
    assert shape(a) == shape(b)


def test_first_half_pairings_deterministic():
    teams = build_league(6).teams
    assert round_robin_pairings(teams) == round_robin_pairings(teams)


def test_two_team_league():
    league = build_league(2)
    fixtures = generate_season_fixtures(league, 1)
    assert [(f.matches[0].home_team.id, f.matches[0].away_team.id) for f in fixtures] == [("t1", "t2"), ("t2", "t1")]


@pytest.mark.parametrize("n", [0, 1])
def test_fewer_than_two_teams_rejected(n):
    with pytest.raises(InvalidLeagueError):
        generate_season_fixtures(build_league(n), 1)


def test_duplicate_team_ids_rejected():
    league = League(id="dup", name="Dup", teams=(build_team("a"), build_team("a"), build_team("b")))
    with pytest.raises(InvalidLeagueError):
        round_robin_pairings(league.teams)
