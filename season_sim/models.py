"""
Data models for the season simulator.
Domain objects only: no scheduling, publishing, or API logic.

Team/Player/League are read-only reference data. Match, Fixture and Standing are
owned by the simulation core for the lifetime of one league season.
"""
from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from season_sim.errors import MatchClosedError

FORM_WINDOW = 5


def _clamp_rating(value: int) -> int:
    return max(1, min(100, int(value)))


# ---------- Reference data ----------
class Position(str, Enum):
    GOALKEEPER = "GOALKEEPER"
    DEFENDER = "DEFENDER"
    MIDFIELDER = "MIDFIELDER"
    FORWARD = "FORWARD"

    @property
    def abbreviation(self) -> str:
        return _POSITION_ABBREVIATIONS[self]


_POSITION_ABBREVIATIONS = {
    Position.GOALKEEPER: "GK",
    Position.DEFENDER: "DEF",
    Position.MIDFIELDER: "MID",
    Position.FORWARD: "FWD",
}


@dataclass(frozen=True)
class TeamStrength:
    """Ratings on a 1-100 scale; out-of-range values are clamped."""
    attack: int = 70
    midfield: int = 70
    defense: int = 70
    goalkeeper: int = 70

    def __post_init__(self) -> None:
        for name in ("attack", "midfield", "defense", "goalkeeper"):
            object.__setattr__(self, name, _clamp_rating(getattr(self, name)))

    def overall(self) -> int:
        return (self.attack * 30 + self.midfield * 25 + self.defense * 30 + self.goalkeeper * 15) // 100

    def to_dict(self) -> dict[str, int]:
        return {
            "attack": self.attack,
            "midfield": self.midfield,
            "defense": self.defense,
            "goalkeeper": self.goalkeeper,
        }


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    position: Position
    shirt_number: int = 0
    rating: int = 70

    def __post_init__(self) -> None:
        object.__setattr__(self, "rating", _clamp_rating(self.rating))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.value,
            "position_short": self.position.abbreviation,
            "shirt_number": self.shirt_number,
            "rating": self.rating,
        }


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    short_name: str
    badge_url: str = ""
    strength: TeamStrength = TeamStrength()
    players: tuple[Player, ...] = ()

    def players_by_position(self, position: Position) -> list[Player]:
        return [p for p in self.players if p.position == position]

    def goalkeeper(self) -> Player | None:
        for p in self.players:
            if p.position == Position.GOALKEEPER:
                return p
        return None

    def to_dict(self, include_players: bool = False) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "badge_url": self.badge_url,
            "strength": self.strength.to_dict(),
            "overall": self.strength.overall(),
        }
        if include_players:
            d["players"] = [p.to_dict() for p in self.players]
        return d


@dataclass(frozen=True)
class League:
    id: str
    name: str
    country: str = ""
    logo_url: str = ""
    teams: tuple[Team, ...] = ()

    @property
    def team_count(self) -> int:
        return len(self.teams)

    @property
    def total_matchweeks(self) -> int:
        """Double round-robin: every team meets every other team home and away; odd counts get a bye slot."""
        n = self.team_count
        if n % 2 == 1:
            n += 1
        return max(0, (n - 1) * 2)

    @property
    def matches_per_matchweek(self) -> int:
        return self.team_count // 2

    def get_team(self, team_id: str) -> Team | None:
        for t in self.teams:
            if t.id == team_id:
                return t
        return None

    def to_dict(self, include_teams: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "logo_url": self.logo_url,
            "team_count": self.team_count,
            "total_matchweeks": self.total_matchweeks,
            "matches_per_matchweek": self.matches_per_matchweek,
        }
        if include_teams:
            d["teams"] = [t.to_dict() for t in self.teams]
        return d


# ---------- Event types ----------
class FootballEventType(str, Enum):
    KICK_OFF = "KICK_OFF"
    HALF_TIME = "HALF_TIME"
    SECOND_HALF_KICK_OFF = "SECOND_HALF_KICK_OFF"
    FULL_TIME = "FULL_TIME"
    GOAL = "GOAL"
    OWN_GOAL = "OWN_GOAL"
    PENALTY_AWARDED = "PENALTY_AWARDED"
    PENALTY_SCORED = "PENALTY_SCORED"
    PENALTY_MISSED = "PENALTY_MISSED"
    PENALTY_SAVED = "PENALTY_SAVED"
    YELLOW_CARD = "YELLOW_CARD"
    SECOND_YELLOW = "SECOND_YELLOW"
    RED_CARD = "RED_CARD"
    SUBSTITUTION = "SUBSTITUTION"
    INJURY_STOPPAGE = "INJURY_STOPPAGE"
    VAR_CHECK = "VAR_CHECK"
    VAR_OVERTURNED = "VAR_OVERTURNED"
    CORNER_KICK = "CORNER_KICK"
    OFFSIDE = "OFFSIDE"
    SHOT_ON_TARGET = "SHOT_ON_TARGET"
    SHOT_OFF_TARGET = "SHOT_OFF_TARGET"
    SAVE = "SAVE"
    FOUL = "FOUL"

    @property
    def display_name(self) -> str:
        return _EVENT_DISPLAY_NAMES[self]


_EVENT_DISPLAY_NAMES = {
    FootballEventType.KICK_OFF: "Kick Off",
    FootballEventType.HALF_TIME: "Half Time",
    FootballEventType.SECOND_HALF_KICK_OFF: "Second Half Kick Off",
    FootballEventType.FULL_TIME: "Full Time",
    FootballEventType.GOAL: "Goal",
    FootballEventType.OWN_GOAL: "Own Goal",
    FootballEventType.PENALTY_AWARDED: "Penalty Awarded",
    FootballEventType.PENALTY_SCORED: "Penalty Scored",
    FootballEventType.PENALTY_MISSED: "Penalty Missed",
    FootballEventType.PENALTY_SAVED: "Penalty Saved",
    FootballEventType.YELLOW_CARD: "Yellow Card",
    FootballEventType.SECOND_YELLOW: "Second Yellow Card",
    FootballEventType.RED_CARD: "Red Card",
    FootballEventType.SUBSTITUTION: "Substitution",
    FootballEventType.INJURY_STOPPAGE: "Injury Stoppage",
    FootballEventType.VAR_CHECK: "VAR Check",
    FootballEventType.VAR_OVERTURNED: "VAR Decision Overturned",
    FootballEventType.CORNER_KICK: "Corner Kick",
    FootballEventType.OFFSIDE: "Offside",
    FootballEventType.SHOT_ON_TARGET: "Shot on Target",
    FootballEventType.SHOT_OFF_TARGET: "Shot off Target",
    FootballEventType.SAVE: "Save",
    FootballEventType.FOUL: "Foul",
}

_GOAL_TYPES = frozenset({
    FootballEventType.GOAL,
    FootballEventType.OWN_GOAL,
    FootballEventType.PENALTY_SCORED,
})
_CARD_TYPES = frozenset({
    FootballEventType.YELLOW_CARD,
    FootballEventType.SECOND_YELLOW,
    FootballEventType.RED_CARD,
})
_SIGNIFICANT_TYPES = _GOAL_TYPES | _CARD_TYPES | frozenset({
    FootballEventType.PENALTY_AWARDED,
    FootballEventType.PENALTY_MISSED,
    FootballEventType.PENALTY_SAVED,
    FootballEventType.SUBSTITUTION,
    FootballEventType.INJURY_STOPPAGE,
    FootballEventType.VAR_CHECK,
    FootballEventType.VAR_OVERTURNED,
})


def is_goal(event_type: FootballEventType) -> bool:
    return event_type in _GOAL_TYPES


def is_card(event_type: FootballEventType) -> bool:
    return event_type in _CARD_TYPES


def is_significant(event_type: FootballEventType) -> bool:
    """Shown in match summaries; flow events and routine play are not."""
    return event_type in _SIGNIFICANT_TYPES


# ---------- Match phase ----------
class MatchPhase(str, Enum):
    """NOT_STARTED → FIRST_HALF → HALF_TIME → SECOND_HALF → FULL_TIME."""
    NOT_STARTED = "NOT_STARTED"
    FIRST_HALF = "FIRST_HALF"
    HALF_TIME = "HALF_TIME"
    SECOND_HALF = "SECOND_HALF"
    FULL_TIME = "FULL_TIME"

    @property
    def is_playing(self) -> bool:
        return self in (MatchPhase.FIRST_HALF, MatchPhase.SECOND_HALF)

    @property
    def is_finished(self) -> bool:
        return self == MatchPhase.FULL_TIME

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


# ---------- Match event ----------
def _display_time(minute: int, additional: int) -> str:
    if additional > 0:
        return f"{minute}+{additional}'"
    return f"{minute}'"


@dataclass(frozen=True)
class MatchEvent:
    """Immutable fact that happened in a match. Ordering = generation order."""
    minute: int
    type: FootballEventType
    description: str
    additional_minutes: int = 0
    team_id: str | None = None
    player_id: str | None = None
    player_name: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def simple(
        cls, minute: int, event_type: FootballEventType, description: str, additional_minutes: int = 0
    ) -> MatchEvent:
        return cls(minute=minute, type=event_type, description=description, additional_minutes=additional_minutes)

    @classmethod
    def with_player(
        cls,
        minute: int,
        additional_minutes: int,
        event_type: FootballEventType,
        team: Team | None,
        player: Player | None,
        description: str,
    ) -> MatchEvent:
        return cls(
            minute=minute,
            type=event_type,
            description=description,
            additional_minutes=additional_minutes,
            team_id=team.id if team is not None else None,
            player_id=player.id if player is not None else None,
            player_name=player.name if player is not None else None,
        )

    @property
    def display_time(self) -> str:
        return _display_time(self.minute, self.additional_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "minute": self.minute,
            "additional_minutes": self.additional_minutes,
            "display_time": self.display_time,
            "type": self.type.value,
            "significant": is_significant(self.type),
            "team_id": self.team_id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
        }


# ---------- Match ----------
class Match:
    """
    One fixture between two teams. Mutated only by its MatchEngine.
    Score is derived from goal events; there is no setter for it.
    """

    def __init__(self, league_id: str, season: int, matchweek: int, home_team: Team, away_team: Team) -> None:
        self.id = str(uuid.uuid4())
        self.league_id = league_id
        self.season = season
        self.matchweek = matchweek
        self.home_team = home_team
        self.away_team = away_team
        self.phase = MatchPhase.NOT_STARTED
        self.minute = 0
        self.additional_minutes = 0
        self._events: list[MatchEvent] = []

    def add_event(self, event: MatchEvent) -> None:
        if self.phase.is_finished:
            raise MatchClosedError(f"Match {self.id} is finished; cannot add {event.type.value}")
        self._events.append(event)

    @property
    def events(self) -> list[MatchEvent]:
        return list(self._events)

    def _goals_for(self, team_id: str) -> int:
        return sum(1 for e in self._events if is_goal(e.type) and e.team_id == team_id)

    @property
    def home_score(self) -> int:
        return self._goals_for(self.home_team.id)

    @property
    def away_score(self) -> int:
        return self._goals_for(self.away_team.id)

    @property
    def score_display(self) -> str:
        return f"{self.home_score} - {self.away_score}"

    @property
    def time_display(self) -> str:
        if self.phase == MatchPhase.NOT_STARTED:
            return "Not Started"
        if self.phase == MatchPhase.HALF_TIME:
            return "HT"
        if self.phase == MatchPhase.FULL_TIME:
            return "FT"
        return _display_time(self.minute, self.additional_minutes)

    def significant_events(self) -> list[MatchEvent]:
        return [e for e in self._events if is_significant(e.type)]

    def is_finished(self) -> bool:
        return self.phase.is_finished

    def is_live(self) -> bool:
        return self.phase.is_playing

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team.id, self.away_team.id)

    def __repr__(self) -> str:
        return (
            f"Match({self.home_team.short_name} {self.score_display} {self.away_team.short_name}, "
            f"mw={self.matchweek}, {self.phase.value})"
        )


# ---------- Fixture ----------
@dataclass(frozen=True)
class Fixture:
    """All matches of one matchweek."""
    league_id: str
    season: int
    matchweek: int
    matches: tuple[Match, ...]

    def is_completed(self) -> bool:
        return all(m.is_finished() for m in self.matches)

    def has_live_matches(self) -> bool:
        return any(m.is_live() for m in self.matches)

    @property
    def match_count(self) -> int:
        return len(self.matches)


# ---------- Standing ----------
@dataclass
class Standing:
    """One team's cumulative record in a league season."""
    team_id: str
    team_name: str
    team_badge_url: str = ""
    position: int = 0
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    form: deque[str] = field(default_factory=lambda: deque(maxlen=FORM_WINDOW))

    @classmethod
    def for_team(cls, team: Team) -> Standing:
        return cls(team_id=team.id, team_name=team.name, team_badge_url=team.badge_url)

    def record_result(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.won += 1
            self.form.append("W")
        elif scored < conceded:
            self.lost += 1
            self.form.append("L")
        else:
            self.drawn += 1
            self.form.append("D")

    @property
    def points(self) -> int:
        return self.won * 3 + self.drawn

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def form_string(self) -> str:
        return "".join(self.form)

    def sort_key(self) -> tuple[int, int, int, str, str]:
        """Ascending sort on this key gives the table order."""
        return (-self.points, -self.goal_difference, -self.goals_for, self.team_name, self.team_id)

    def copy(self) -> Standing:
        return Standing(
            team_id=self.team_id,
            team_name=self.team_name,
            team_badge_url=self.team_badge_url,
            position=self.position,
            played=self.played,
            won=self.won,
            drawn=self.drawn,
            lost=self.lost,
            goals_for=self.goals_for,
            goals_against=self.goals_against,
            form=deque(self.form, maxlen=FORM_WINDOW),
        )

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
            "form": self.form_string,
        }


# ---------- Season state ----------
class SeasonState(str, Enum):
    """Lifecycle of one league's season loop."""
    IDLE = "IDLE"
    COUNTDOWN = "COUNTDOWN"
    RUNNING_FIXTURE = "RUNNING_FIXTURE"
    WAITING_NEXT_FIXTURE = "WAITING_NEXT_FIXTURE"
    SEASON_COMPLETE = "SEASON_COMPLETE"
    WAITING_NEXT_SEASON = "WAITING_NEXT_SEASON"

    @property
    def description(self) -> str:
        return _SEASON_STATE_DESCRIPTIONS[self]


_SEASON_STATE_DESCRIPTIONS = {
    SeasonState.IDLE: "Idle - waiting to start",
    SeasonState.COUNTDOWN: "Countdown to kick-off",
    SeasonState.RUNNING_FIXTURE: "Running fixture matches",
    SeasonState.WAITING_NEXT_FIXTURE: "Waiting for next fixture",
    SeasonState.SEASON_COMPLETE: "Season completed",
    SeasonState.WAITING_NEXT_SEASON: "Waiting for next season to start",
}
