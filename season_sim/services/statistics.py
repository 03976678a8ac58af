"""
Deterministic season statistics.
Read-only: consumes completed matches and standings, returns structured stats.
Used by the statistics endpoints and the CLI summary. No simulation, no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from season_sim.models import FootballEventType, Match, Standing, is_goal

_SHOT_ON_TARGET_TYPES = frozenset({
    FootballEventType.SHOT_ON_TARGET,
    FootballEventType.GOAL,
    FootballEventType.PENALTY_SCORED,
})
_YELLOW_TYPES = frozenset({FootballEventType.YELLOW_CARD, FootballEventType.SECOND_YELLOW})


@dataclass
class PlayerStats:
    player_id: str
    player_name: str
    team_id: str
    team_name: str
    goals: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "goals": self.goals,
        }


@dataclass
class TeamStats:
    """Table record plus event counts from the team's completed matches."""
    standing: Standing
    total_shots: int = 0
    shots_on_target: int = 0
    corners: int = 0
    fouls: int = 0
    yellow_cards: int = 0
    red_cards: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.standing.to_dict(),
            "total_shots": self.total_shots,
            "shots_on_target": self.shots_on_target,
            "corners": self.corners,
            "fouls": self.fouls,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
        }


@dataclass
class LeagueSummary:
    league_id: str
    total_matches: int = 0
    total_goals: int = 0
    average_goals_per_match: float = 0.0
    home_wins: int = 0
    away_wins: int = 0
    draws: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    highest_scoring_match: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "total_matches": self.total_matches,
            "total_goals": self.total_goals,
            "average_goals_per_match": self.average_goals_per_match,
            "home_wins": self.home_wins,
            "away_wins": self.away_wins,
            "draws": self.draws,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "highest_scoring_match": self.highest_scoring_match,
        }


def top_scorers(matches: Iterable[Match], limit: int = 10) -> list[PlayerStats]:
    """
    Goal scorers across the given matches, most goals first.
    Goals without a named player are not counted. Ties keep first-scored order.
    """
    by_player: dict[str, PlayerStats] = {}
    for match in matches:
        for event in match.events:
            if not is_goal(event.type) or event.player_id is None:
                continue
            stats = by_player.get(event.player_id)
            if stats is None:
                team = match.home_team if event.team_id == match.home_team.id else match.away_team
                stats = PlayerStats(
                    player_id=event.player_id,
                    player_name=event.player_name or "",
                    team_id=team.id,
                    team_name=team.name,
                )
                by_player[event.player_id] = stats
            stats.goals += 1
    ranked = sorted(by_player.values(), key=lambda s: -s.goals)
    return ranked[:max(0, limit)]


def team_stats(standing: Standing, matches: Iterable[Match]) -> TeamStats:
    team_id = standing.team_id
    stats = TeamStats(standing=standing)
    for match in matches:
        if not match.involves(team_id):
            continue
        for event in match.events:
            if event.team_id != team_id:
                continue
            if event.type in _SHOT_ON_TARGET_TYPES:
                stats.total_shots += 1
                stats.shots_on_target += 1
            elif event.type == FootballEventType.SHOT_OFF_TARGET:
                stats.total_shots += 1
            elif event.type == FootballEventType.CORNER_KICK:
                stats.corners += 1
            elif event.type == FootballEventType.FOUL:
                stats.fouls += 1
            elif event.type in _YELLOW_TYPES:
                stats.yellow_cards += 1
            elif event.type == FootballEventType.RED_CARD:
                stats.red_cards += 1
    return stats


def league_summary(league_id: str, matches: Iterable[Match]) -> LeagueSummary:
    summary = LeagueSummary(league_id=league_id)
    highest = 0
    for match in matches:
        home, away = match.home_score, match.away_score
        goals = home + away
        summary.total_matches += 1
        summary.total_goals += goals
        if home > away:
            summary.home_wins += 1
        elif away > home:
            summary.away_wins += 1
        else:
            summary.draws += 1
        if goals > highest:
            highest = goals
            summary.highest_scoring_match = (
                f"{match.home_team.short_name} {home}-{away} {match.away_team.short_name}"
            )
        for event in match.events:
            if event.type in _YELLOW_TYPES:
                summary.yellow_cards += 1
            elif event.type == FootballEventType.RED_CARD:
                summary.red_cards += 1
    if summary.total_matches:
        summary.average_goals_per_match = round(summary.total_goals / summary.total_matches, 2)
    return summary
