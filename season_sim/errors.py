"""
Exceptions raised by the simulation core.
Lookups never raise; they return None or an empty list and let callers decide.
"""
from __future__ import annotations


class InvalidLeagueError(ValueError):
    """League cannot be scheduled (fewer than 2 teams, duplicate team ids)."""


class MatchClosedError(ValueError):
    """Events cannot be appended to a match that reached full time."""


class ConfigError(ValueError):
    """Environment variable holds a value that cannot be used."""


class LeagueDataError(ValueError):
    """League reference file is malformed."""


class SeasonTransitionError(ValueError):
    """Season state machine asked to make a move it does not allow."""
