"""
Service layer: fixture scheduling, league tables, timers, the per-league season
loop and the multi-league registry. Statistics and predictions are read-only.
"""
from .scheduling import generate_season_fixtures, round_robin_pairings
from .standings_service import StandingsService, rank_standings
from .timers import AsyncioTaskScheduler, ManualTaskScheduler, TaskHandle, TaskScheduler
from .season_orchestrator import SeasonOrchestrator
from .simulation_service import SimulationService

__all__ = [
    "generate_season_fixtures",
    "round_robin_pairings",
    "StandingsService",
    "rank_standings",
    "AsyncioTaskScheduler",
    "ManualTaskScheduler",
    "TaskHandle",
    "TaskScheduler",
    "SeasonOrchestrator",
    "SimulationService",
]
