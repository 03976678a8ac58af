"""
Outward message schema: immutable snapshots handed to subscribers.
Taken at publish time so readers never hold a live reference to engine-owned state.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from season_sim.models import Fixture, Match, MatchEvent, SeasonState, Standing


class Topic(str, Enum):
    """What a message is about; subscribers register per topic."""
    EVENT = "event"
    MATCH_STATE = "match_state"
    STANDINGS = "standings"
    FIXTURE = "fixture"
    SEASON_STATE = "season_state"
    COUNTDOWN = "countdown"


@dataclass(frozen=True)
class MatchSnapshot:
    """Score, phase and clock of one match at a point in time."""
    match_id: str
    league_id: str
    season: int
    matchweek: int
    home_team_id: str
    home_team_name: str
    home_team_short_name: str
    home_team_badge: str
    away_team_id: str
    away_team_name: str
    away_team_short_name: str
    away_team_badge: str
    home_score: int
    away_score: int
    phase: str
    time_display: str
    minute: int
    additional_minutes: int
    events_count: int = 0
    phase_display: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "league_id": self.league_id,
            "season": self.season,
            "matchweek": self.matchweek,
            "home_team": {
                "id": self.home_team_id,
                "name": self.home_team_name,
                "short_name": self.home_team_short_name,
                "badge_url": self.home_team_badge,
            },
            "away_team": {
                "id": self.away_team_id,
                "name": self.away_team_name,
                "short_name": self.away_team_short_name,
                "badge_url": self.away_team_badge,
            },
            "home_score": self.home_score,
            "away_score": self.away_score,
            "phase": self.phase,
            "phase_display": self.phase_display,
            "time_display": self.time_display,
            "minute": self.minute,
            "additional_minutes": self.additional_minutes,
            "events_count": self.events_count,
        }


@dataclass(frozen=True)
class FixtureSnapshot:
    league_id: str
    season: int
    matchweek: int
    matches: tuple[MatchSnapshot, ...]
    completed: bool = False
    live: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "season": self.season,
            "matchweek": self.matchweek,
            "completed": self.completed,
            "live": self.live,
            "matches": [m.to_dict() for m in self.matches],
        }


@dataclass(frozen=True)
class StandingRow:
    position: int
    team_id: str
    team_name: str
    team_badge_url: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    form: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "team_badge_url": self.team_badge_url,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
            "form": self.form,
        }


@dataclass(frozen=True)
class StandingsUpdate:
    league_id: str
    season: int
    rows: tuple[StandingRow, ...]
    live: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "season": self.season,
            "live": self.live,
            "standings": [r.to_dict() for r in self.rows],
        }


@dataclass(frozen=True)
class SeasonStatus:
    league_id: str
    league_name: str
    state: SeasonState
    season: int
    current_matchweek: int
    total_matchweeks: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "league_name": self.league_name,
            "state": self.state.value,
            "state_description": self.state.description,
            "season": self.season,
            "current_matchweek": self.current_matchweek,
            "total_matchweeks": self.total_matchweeks,
        }


@dataclass(frozen=True)
class CountdownTick:
    league_id: str
    matchweek: int
    seconds_remaining: int
    upcoming_fixture: FixtureSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "matchweek": self.matchweek,
            "seconds_remaining": self.seconds_remaining,
            "upcoming_fixture": self.upcoming_fixture.to_dict(),
        }


@dataclass(frozen=True)
class LeagueEvent:
    """A MatchEvent tagged with where it happened."""
    league_id: str
    match_id: str
    event: MatchEvent

    def to_dict(self) -> dict[str, Any]:
        return {"league_id": self.league_id, "match_id": self.match_id, **self.event.to_dict()}


# ---------- Snapshot builders ----------
def snapshot_from_match(match: Match) -> MatchSnapshot:
    events = match.events
    return MatchSnapshot(
        match_id=match.id,
        league_id=match.league_id,
        season=match.season,
        matchweek=match.matchweek,
        home_team_id=match.home_team.id,
        home_team_name=match.home_team.name,
        home_team_short_name=match.home_team.short_name,
        home_team_badge=match.home_team.badge_url,
        away_team_id=match.away_team.id,
        away_team_name=match.away_team.name,
        away_team_short_name=match.away_team.short_name,
        away_team_badge=match.away_team.badge_url,
        home_score=match.home_score,
        away_score=match.away_score,
        phase=match.phase.value,
        time_display=match.time_display,
        minute=match.minute,
        additional_minutes=match.additional_minutes,
        events_count=len(events),
        phase_display=match.phase.display_name,
    )


def snapshot_from_fixture(fixture: Fixture) -> FixtureSnapshot:
    return FixtureSnapshot(
        league_id=fixture.league_id,
        season=fixture.season,
        matchweek=fixture.matchweek,
        matches=tuple(snapshot_from_match(m) for m in fixture.matches),
        completed=fixture.is_completed(),
        live=fixture.has_live_matches(),
    )


def row_from_standing(standing: Standing) -> StandingRow:
    return StandingRow(
        position=standing.position,
        team_id=standing.team_id,
        team_name=standing.team_name,
        team_badge_url=standing.team_badge_url,
        played=standing.played,
        won=standing.won,
        drawn=standing.drawn,
        lost=standing.lost,
        goals_for=standing.goals_for,
        goals_against=standing.goals_against,
        goal_difference=standing.goal_difference,
        points=standing.points,
        form=standing.form_string,
    )


def standings_update(league_id: str, season: int, standings: list[Standing], live: bool = False) -> StandingsUpdate:
    return StandingsUpdate(
        league_id=league_id,
        season=season,
        rows=tuple(row_from_standing(s) for s in standings),
        live=live,
    )


@dataclass(frozen=True)
class SeasonSummary:
    """Final word on a finished season, kept after its matches are discarded."""
    league_id: str
    season: int
    champion_team_id: str | None
    champion_team_name: str | None
    matches_played: int
    total_goals: int
    final_table: tuple[StandingRow, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "season": self.season,
            "champion": (
                {"team_id": self.champion_team_id, "team_name": self.champion_team_name}
                if self.champion_team_id is not None else None
            ),
            "matches_played": self.matches_played,
            "total_goals": self.total_goals,
            "final_table": [r.to_dict() for r in self.final_table],
        }
