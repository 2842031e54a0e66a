"""
Pytest fixtures for Swipe Nexus tests.
"""
import random

import pytest

from swipe_nexus.gameplay.game import Game
from swipe_nexus.gameplay.levels import DifficultyConfig, Level
from swipe_nexus.storage import MemoryStore, ProgressStore
from swipe_nexus.tick_engine import ManualScheduler


def quiet_level(level_id: int = 99, **config) -> Level:
    """A level whose generator never spawns anything unless told to."""
    config.setdefault("obstacle_chance", 0.0)
    return Level(
        id=level_id,
        name="Quiet",
        description="No random obstacles.",
        difficulty="Test",
        config=DifficultyConfig(**config),
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def progress(memory_store) -> ProgressStore:
    return ProgressStore(memory_store)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def game(scheduler, progress, rng) -> Game:
    """Idle game on a quiet level, driven by a manual clock."""
    return Game(level=quiet_level(), scheduler=scheduler, store=progress, rng=rng)


@pytest.fixture
def running_game(game) -> Game:
    game.start_session()
    return game
