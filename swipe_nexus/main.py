#!/usr/bin/env python3
"""
Swipe Nexus - Main Entry Point

A grid arcade runner. Dodge barriers falling down a 5x8 grid, collect
energy for points, grab speed boosts and shields.

Usage:
    swipe-nexus [--level N] [--seed N] [--database-url URL]
    swipe-nexus --list-levels
    swipe-nexus --reset-progress

Controls:
    Arrow keys / WASD / swipe: Move
    Space / P / tap: Pause or resume
    Enter / tap: Start (or restart after game over)
    Escape: Quit
"""
import argparse
import asyncio
import logging
import random
import sys
from typing import List, Optional

import pygame

from swipe_nexus.config import Settings, get_settings
from swipe_nexus.errors import StorageError
from swipe_nexus.gameplay.achievements import Achievement, AchievementTracker
from swipe_nexus.gameplay.game import Game
from swipe_nexus.gameplay.levels import CLASSIC_LEVEL, Level, get_all_levels, get_level_by_id
from swipe_nexus.storage import (
    KeyValueStore, MemoryStore, PlayerSettings, ProgressRecorder, ProgressStore, SqlKeyValueStore,
)
from swipe_nexus.tick_engine import AsyncioScheduler
from swipe_nexus.ui.input_handler import InputHandler
from swipe_nexus.ui.renderer import Renderer

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]], settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="swipe-nexus", description="Grid arcade runner")
    parser.add_argument("--level", type=int, default=settings.default_level_id,
                        help="Level id to play (0 for Classic)")
    parser.add_argument("--seed", type=int, default=settings.rng_seed,
                        help="Seed for obstacle generation")
    parser.add_argument("--database-url", default=settings.database_url,
                        help="SQLAlchemy URL of the progress store")
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument("--list-levels", action="store_true",
                        help="Print levels with saved progress and exit")
    parser.add_argument("--reset-progress", action="store_true",
                        help="Forget high score and level progress and exit")
    return parser.parse_args(argv)


def open_store(database_url: str, echo: bool) -> KeyValueStore:
    """Progress store, falling back to memory if the database is unusable."""
    try:
        return SqlKeyValueStore(database_url, echo=echo)
    except StorageError as e:
        logger.warning(f"Progress will not be saved: {e}")
        return MemoryStore()


def list_levels(progress: ProgressStore) -> None:
    for level in [CLASSIC_LEVEL] + get_all_levels():
        result = progress.get_level_progress(level.id)
        lock = "" if progress.is_level_unlocked(level.id) else " [locked]"
        stars = "*" * result.stars
        print(f"{level.id}: {level.name} ({level.difficulty}) best {result.high_score} {stars}{lock}")


def select_level(level_id: int, progress: ProgressStore) -> Optional[Level]:
    level = get_level_by_id(level_id)
    if level is None:
        logger.error(f"Unknown level {level_id}")
        return None
    try:
        unlocked = progress.is_level_unlocked(level.id)
    except StorageError as e:
        logger.warning(f"Could not read level progress, allowing level {level.id}: {e}")
        unlocked = True
    if not unlocked:
        logger.error(f"Level {level.id} ({level.name}) is locked. Complete level {level.id - 1} first.")
        return None
    return level


def load_player_settings(progress: ProgressStore) -> PlayerSettings:
    try:
        return progress.load_settings()
    except StorageError as e:
        logger.warning(f"Could not read player settings, using defaults: {e}")
        return PlayerSettings()


async def run(level: Level, progress: ProgressStore, settings: Settings, seed: Optional[int]) -> None:
    """Frame loop. Ticks run on the event loop through the AsyncioScheduler."""
    player_settings = load_player_settings(progress)

    game = Game(
        level=level,
        width=settings.grid_width,
        height=settings.grid_height,
        scheduler=AsyncioScheduler(),
        store=progress,
        rng=random.Random(seed),
        shield_duration_ms=settings.shield_duration_ms,
    )

    recorder = ProgressRecorder(progress)
    recorder.attach(game)
    tracker = AchievementTracker(store=progress)
    tracker.attach(game)

    def announce(achievement: Achievement) -> None:
        print(f"{achievement.icon}  Achievement unlocked: {achievement.title}")

    tracker.on_unlock(announce)

    renderer = Renderer(
        settings.grid_width, settings.grid_height, settings.cell_size,
        debug=settings.debug_mode or player_settings.debug_mode,
    )

    pygame.init()
    try:
        screen = pygame.display.set_mode(renderer.size)
        pygame.display.set_caption(f"Swipe Nexus - {level.name}")
        input_handler = InputHandler(game, window_size=renderer.size)

        frame_s = 1 / settings.fps
        should_quit = False
        while not should_quit:
            for event in pygame.event.get():
                if input_handler.handle_event(event):
                    should_quit = True
                    break

            renderer.render(screen, game.get_snapshot(), level.name)
            pygame.display.flip()
            await asyncio.sleep(frame_s)

        if game.is_active:
            game.end_session()
    finally:
        game.close()
        tracker.detach()
        recorder.detach()
        pygame.quit()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    settings = get_settings()
    args = parse_args(argv, settings)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    store = open_store(args.database_url, echo=settings.debug_mode)
    progress = ProgressStore(store, namespace=settings.storage_namespace)
    try:
        if args.reset_progress:
            progress.reset_progress()
            return 0

        if args.list_levels:
            list_levels(progress)
            return 0

        level = select_level(args.level, progress)
        if level is None:
            return 1

        logger.info(f"Starting Swipe Nexus on level {level.id} ({level.name})")
        asyncio.run(run(level, progress, settings, args.seed))
        return 0
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
