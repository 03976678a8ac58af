"""
League tables per league + season.

Mutations (initialize_season, record_result) take the service lock; reads return
copies, so a caller never sees a Standing that is being updated. The live table is
a pure projection over a copy of the committed table.
"""
from __future__ import annotations

import threading
from typing import Iterable

from season_sim.models import Fixture, League, Match, MatchPhase, Standing


def rank_standings(standings: Iterable[Standing]) -> list[Standing]:
    """
    Sort by points, goal difference, goals scored (all descending), then team name.
    Assigns positions 1..n in place and returns the sorted list.
    """
    ordered = sorted(standings, key=Standing.sort_key)
    for i, s in enumerate(ordered):
        s.position = i + 1
    return ordered


class StandingsService:
    """Committed tables keyed by (league_id, season)."""

    def __init__(self) -> None:
        self._tables: dict[tuple[str, int], dict[str, Standing]] = {}
        self._lock = threading.RLock()

    def initialize_season(self, league: League, season: int) -> None:
        """Zero every team of the league for this season, replacing any previous table."""
        table = {t.id: Standing.for_team(t) for t in league.teams}
        rank_standings(table.values())
        with self._lock:
            self._tables[(league.id, season)] = table

    def record_result(self, league_id: str, season: int, match: Match) -> bool:
        """
        Credit one finished match to both teams and re-rank.
        Returns False (and changes nothing) if the table or a team is unknown.
        """
        with self._lock:
            table = self._tables.get((league_id, season))
            if table is None:
                return False
            home = table.get(match.home_team.id)
            away = table.get(match.away_team.id)
            if home is None or away is None:
                return False
            home_score, away_score = match.home_score, match.away_score
            home.record_result(home_score, away_score)
            away.record_result(away_score, home_score)
            rank_standings(table.values())
            return True

    def standings_for(self, league_id: str, season: int) -> list[Standing]:
        """Ranked copy of the committed table; empty if unknown."""
        with self._lock:
            table = self._tables.get((league_id, season))
            if table is None:
                return []
            copies = [s.copy() for s in table.values()]
        return rank_standings(copies)

    def team_standing(self, league_id: str, season: int, team_id: str) -> Standing | None:
        with self._lock:
            table = self._tables.get((league_id, season))
            if table is None or team_id not in table:
                return None
            return table[team_id].copy()

    def live_standings_for(self, league_id: str, season: int, in_progress: Fixture | None) -> list[Standing]:
        """
        Committed table plus the current score of every started match in the fixture,
        each counted once. Committed standings are never touched. Form stays as committed.
        """
        base = self.standings_for(league_id, season)
        if in_progress is None:
            return base
        by_team = {s.team_id: s for s in base}
        for match in in_progress.matches:
            if match.phase == MatchPhase.NOT_STARTED:
                continue
            home = by_team.get(match.home_team.id)
            away = by_team.get(match.away_team.id)
            if home is None or away is None:
                continue
            _apply_provisional(home, match.home_score, match.away_score)
            _apply_provisional(away, match.away_score, match.home_score)
        return rank_standings(by_team.values())

    def seasons_for(self, league_id: str) -> list[int]:
        with self._lock:
            return sorted(season for lid, season in self._tables if lid == league_id)


def _apply_provisional(standing: Standing, scored: int, conceded: int) -> None:
    standing.played += 1
    standing.goals_for += scored
    standing.goals_against += conceded
    if scored > conceded:
        standing.won += 1
    elif scored < conceded:
        standing.lost += 1
    else:
        standing.drawn += 1
