"""
Event Generator: per-minute Bernoulli trials for each side, modulated by team strength.
Returns events only; the MatchEngine applies them to the match.
All base rates are per team per simulated minute.
"""
from __future__ import annotations

from season_sim.models import FootballEventType, Match, MatchEvent, Player, Position, Team
from .rng import SeededRNG

# Per team, per simulated minute
BASE_SHOT_CHANCE = 0.035
BASE_FOUL_CHANCE = 0.012
BASE_CORNER_CHANCE = 0.008

# Shot resolution
SHOT_ON_TARGET_RATE = 0.40
GOAL_CONVERSION_RATE = 0.28
SAVE_RATE = 0.70
GOAL_REFERENCE_RATING = 80.0

# Foul resolution
RED_CARD_RATE = 0.005
YELLOW_CARD_RATE = 0.10
PENALTY_RATE = 0.02
PENALTY_CONVERSION = 0.78

PLACEHOLDER_PLAYER_ID = "unknown"


def attack_modifier(attacking: Team, defending: Team) -> float:
    """Scales shot and corner chances: 0.5 baseline plus attack, midfield and opponent defensive weakness."""
    attack = attacking.strength.attack / 100.0
    midfield = attacking.strength.midfield / 100.0
    defense_weakness = 1.0 - defending.strength.defense / 100.0
    return 0.5 + attack * 0.25 + midfield * 0.15 + defense_weakness * 0.1


def goal_chance(attacking: Team, defending: Team) -> float:
    """Chance an on-target shot goes in."""
    return (
        GOAL_CONVERSION_RATE
        * (attacking.strength.attack / GOAL_REFERENCE_RATING)
        * (GOAL_REFERENCE_RATING / defending.strength.goalkeeper)
    )


def placeholder_player(position: Position) -> Player:
    return Player(id=PLACEHOLDER_PLAYER_ID, name="Unknown Player", position=position, shirt_number=0, rating=70)


class EventGenerator:
    """
    Produces the events of one simulated minute; nothing is applied to the match here.
    Home side is evaluated before away side; within a side: shot, foul, corner.
    """

    def __init__(self, rng: SeededRNG | None = None) -> None:
        self.rng = rng or SeededRNG()

    def events_for_minute(self, match: Match, minute: int, additional_minutes: int = 0) -> list[MatchEvent]:
        home = match.home_team
        away = match.away_team
        events: list[MatchEvent] = []
        events.extend(self._team_events(home, away, minute, additional_minutes, attack_modifier(home, away)))
        events.extend(self._team_events(away, home, minute, additional_minutes, attack_modifier(away, home)))
        return events

    def _team_events(
        self, attacking: Team, defending: Team, minute: int, additional: int, attack_mod: float
    ) -> list[MatchEvent]:
        events: list[MatchEvent] = []
        if self.rng.chance(BASE_SHOT_CHANCE * attack_mod):
            events.extend(self._shot_sequence(attacking, defending, minute, additional))
        if self.rng.chance(BASE_FOUL_CHANCE):
            events.extend(self._foul_sequence(attacking, defending, minute, additional))
        if self.rng.chance(BASE_CORNER_CHANCE * attack_mod):
            taker = self.select_player(attacking, Position.MIDFIELDER, Position.FORWARD)
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.CORNER_KICK, attacking, taker,
                f"{taker.name} takes the corner",
            ))
        return events

    def _shot_sequence(self, attacking: Team, defending: Team, minute: int, additional: int) -> list[MatchEvent]:
        shooter = self.select_player(attacking, Position.FORWARD, Position.MIDFIELDER)
        if not self.rng.chance(SHOT_ON_TARGET_RATE):
            return [MatchEvent.with_player(
                minute, additional, FootballEventType.SHOT_OFF_TARGET, attacking, shooter,
                f"{shooter.name} shoots wide",
            )]
        if self.rng.chance(goal_chance(attacking, defending)):
            return [MatchEvent.with_player(
                minute, additional, FootballEventType.GOAL, attacking, shooter,
                f"GOAL! {shooter.name} scores!",
            )]
        events = [MatchEvent.with_player(
            minute, additional, FootballEventType.SHOT_ON_TARGET, attacking, shooter,
            f"{shooter.name} shoots on target",
        )]
        if self.rng.chance(SAVE_RATE):
            keeper = self._goalkeeper(defending)
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.SAVE, defending, keeper,
                f"Save by {keeper.name}",
            ))
        return events

    def _foul_sequence(self, fouling: Team, fouled: Team, minute: int, additional: int) -> list[MatchEvent]:
        fouler = self.select_player(fouling, Position.DEFENDER, Position.MIDFIELDER)
        events = [MatchEvent.with_player(
            minute, additional, FootballEventType.FOUL, fouling, fouler, f"Foul by {fouler.name}",
        )]
        if self.rng.chance(RED_CARD_RATE):
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.RED_CARD, fouling, fouler, f"RED CARD for {fouler.name}",
            ))
        elif self.rng.chance(YELLOW_CARD_RATE):
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.YELLOW_CARD, fouling, fouler, f"Yellow card for {fouler.name}",
            ))
        if self.rng.chance(PENALTY_RATE):
            events.extend(self._penalty_sequence(fouled, fouling, minute, additional))
        return events

    def _penalty_sequence(self, attacking: Team, defending: Team, minute: int, additional: int) -> list[MatchEvent]:
        taker = self.select_player(attacking, Position.FORWARD, Position.MIDFIELDER)
        events = [MatchEvent.with_player(
            minute, additional, FootballEventType.PENALTY_AWARDED, attacking, taker, "Penalty awarded!",
        )]
        if self.rng.chance(PENALTY_CONVERSION):
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.PENALTY_SCORED, attacking, taker,
                f"GOAL! {taker.name} converts the penalty!",
            ))
        elif self.rng.chance(0.5):
            keeper = self._goalkeeper(defending)
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.PENALTY_SAVED, defending, keeper,
                f"Penalty saved by {keeper.name}!",
            ))
        else:
            events.append(MatchEvent.with_player(
                minute, additional, FootballEventType.PENALTY_MISSED, attacking, taker,
                f"{taker.name} misses the penalty!",
            ))
        return events

    def _goalkeeper(self, team: Team) -> Player:
        keeper = team.goalkeeper()
        if keeper is not None:
            return keeper
        return self.select_player(team, Position.GOALKEEPER, Position.DEFENDER)

    def select_player(self, team: Team, primary: Position, secondary: Position) -> Player:
        """Primary role, then secondary, then anyone; a placeholder if the squad is empty."""
        candidates = team.players_by_position(primary)
        if not candidates:
            candidates = team.players_by_position(secondary)
        if not candidates:
            candidates = list(team.players)
        if not candidates:
            return placeholder_player(primary)
        return self.rng.choice(candidates)
