"""
Grid simulation engine.
NO UI DEPENDENCIES.
"""

from swipe_nexus.gameplay.grid import Direction, GridPosition
from swipe_nexus.gameplay.obstacles import Obstacle, ObstacleKind
from swipe_nexus.gameplay.levels import DifficultyConfig, Level, get_level_by_id
from swipe_nexus.gameplay.game import Game, GamePhase, GameSnapshot

__all__ = [
    "Direction",
    "GridPosition",
    "Obstacle",
    "ObstacleKind",
    "DifficultyConfig",
    "Level",
    "get_level_by_id",
    "Game",
    "GamePhase",
    "GameSnapshot",
]
