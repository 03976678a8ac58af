"""
Pre-match predictions from team strength ratings.
Pure function of the two teams: same teams, same prediction. No simulation involved.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from season_sim.models import Team, TeamStrength

HOME_ADVANTAGE = 1.08
BASE_HOME_WIN = 45.0
BASE_AWAY_WIN = 30.0
BASE_DRAW = 25.0
BASE_HOME_GOALS = 1.5
BASE_AWAY_GOALS = 1.2
REFERENCE_STRENGTH = 85


def _round(x: float) -> int:
    """Round half up (2.5 -> 3), not to even."""
    return int(math.floor(x + 0.5))


def _pct(x: float) -> int:
    return max(0, min(100, _round(x)))


def prediction_overall(strength: TeamStrength) -> float:
    """Weighting used for win probabilities; differs from TeamStrength.overall()."""
    return strength.attack * 0.3 + strength.midfield * 0.25 + strength.defense * 0.25 + strength.goalkeeper * 0.2


@dataclass(frozen=True)
class WinProbability:
    home_win: int
    draw: int
    away_win: int


@dataclass(frozen=True)
class ExpectedGoals:
    home_xg: float
    away_xg: float
    predicted_home_goals: int
    predicted_away_goals: int


@dataclass(frozen=True)
class Corners:
    home: int
    away: int

    @property
    def total(self) -> int:
        return self.home + self.away


@dataclass(frozen=True)
class EventLikelihood:
    """Percentages, each clamped to 0-100."""
    btts: int
    over_25_goals: int
    over_35_goals: int
    home_clean_sheet: int
    away_clean_sheet: int
    red_card: int
    penalty: int


@dataclass(frozen=True)
class MatchPrediction:
    home_team_id: str
    home_team_name: str
    away_team_id: str
    away_team_name: str
    win_probability: WinProbability
    expected_goals: ExpectedGoals
    corners: Corners
    event_likelihood: EventLikelihood
    match_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        wp, xg, el = self.win_probability, self.expected_goals, self.event_likelihood
        return {
            "match_id": self.match_id,
            "home_team_id": self.home_team_id,
            "home_team_name": self.home_team_name,
            "away_team_id": self.away_team_id,
            "away_team_name": self.away_team_name,
            "win_probability": {"home_win": wp.home_win, "draw": wp.draw, "away_win": wp.away_win},
            "expected_goals": {
                "home_xg": xg.home_xg,
                "away_xg": xg.away_xg,
                "predicted_home_goals": xg.predicted_home_goals,
                "predicted_away_goals": xg.predicted_away_goals,
            },
            "corners": {"home": self.corners.home, "away": self.corners.away, "total": self.corners.total},
            "event_likelihood": {
                "btts": el.btts,
                "over_25_goals": el.over_25_goals,
                "over_35_goals": el.over_35_goals,
                "home_clean_sheet": el.home_clean_sheet,
                "away_clean_sheet": el.away_clean_sheet,
                "red_card": el.red_card,
                "penalty": el.penalty,
            },
        }


def win_probability(home: TeamStrength, away: TeamStrength) -> WinProbability:
    """Home/draw/away percentages summing to exactly 100."""
    diff = prediction_overall(home) * HOME_ADVANTAGE - prediction_overall(away)
    home_win = BASE_HOME_WIN + diff * 1.5
    away_win = BASE_AWAY_WIN - diff * 1.2
    evenness = 100 - abs(diff) * 2
    draw = (BASE_DRAW - 5) + (evenness / 100) * 10
    # Lopsided matchups can push one side negative before normalising
    home_win = max(0.0, home_win)
    away_win = max(0.0, away_win)
    draw = max(0.0, draw)
    total = home_win + draw + away_win
    home_pct = _pct(home_win / total * 100)
    away_pct = _pct(away_win / total * 100)
    away_pct = min(away_pct, 100 - home_pct)
    return WinProbability(home_win=home_pct, draw=100 - home_pct - away_pct, away_win=away_pct)


def expected_goals(home: TeamStrength, away: TeamStrength) -> ExpectedGoals:
    ref = float(REFERENCE_STRENGTH)
    home_factor = (home.attack / ref) * (ref / away.defense) * (home.midfield / ref)
    away_factor = (away.attack / ref) * (ref / home.defense) * (away.midfield / ref)
    home_xg = BASE_HOME_GOALS * home_factor
    away_xg = BASE_AWAY_GOALS * away_factor
    return ExpectedGoals(
        home_xg=round(home_xg, 2),
        away_xg=round(away_xg, 2),
        predicted_home_goals=_round(home_xg),
        predicted_away_goals=_round(away_xg),
    )


def predict_match(home_team: Team, away_team: Team, match_id: str | None = None) -> MatchPrediction:
    home, away = home_team.strength, away_team.strength
    xg = expected_goals(home, away)
    total_xg = xg.home_xg + xg.away_xg

    corners = Corners(
        home=_round(5 + (home.attack - 75) / 10.0 + (85 - away.defense) / 15.0),
        away=_round(5 + (away.attack - 75) / 10.0 + (85 - home.defense) / 15.0),
    )
    # Stable per-pairing variation for rare events
    pairing_seed = (len(home_team.name) + len(away_team.name)) % 10
    likelihood = EventLikelihood(
        btts=_pct(50 + (home.attack + away.attack - home.defense - away.defense) / 8.0),
        over_25_goals=_pct(40 + total_xg * 12),
        over_35_goals=_pct(20 + total_xg * 8),
        home_clean_sheet=_pct(30 + (home.defense - 80) * 2 - (away.attack - 80) * 1.5),
        away_clean_sheet=_pct(25 + (away.defense - 80) * 2 - (home.attack - 80) * 1.5),
        red_card=_pct(6 + pairing_seed * 0.8),
        penalty=_pct(12 + pairing_seed * 0.6),
    )
    return MatchPrediction(
        home_team_id=home_team.id,
        home_team_name=home_team.name,
        away_team_id=away_team.id,
        away_team_name=away_team.name,
        win_probability=win_probability(home, away),
        expected_goals=xg,
        corners=corners,
        event_likelihood=likelihood,
        match_id=match_id,
    )
