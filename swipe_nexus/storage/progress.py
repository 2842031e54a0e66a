"""
Player progress on top of a key-value store.

Keys are namespaced as ``<namespace>_<name>`` and values are JSON:
    <ns>_highScore      integer best score
    <ns>_levels         {level_id: LevelProgress}
    <ns>_settings       PlayerSettings
    <ns>_achievements   {achievement_id: {progress, is_unlocked}}
"""

import json
import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from swipe_nexus.errors import StorageError
from swipe_nexus.gameplay.game import Game, GameEvent, GameSnapshot, SessionEndedEvent
from swipe_nexus.gameplay.levels import get_level_by_id, stars_for
from swipe_nexus.storage.store import KeyValueStore

logger = logging.getLogger(__name__)


class LevelProgress(BaseModel):
    """Best result on one level."""

    high_score: int = Field(default=0, ge=0)
    stars: int = Field(default=0, ge=0, le=3)
    is_completed: bool = False


class PlayerSettings(BaseModel):
    """Preferences the settings screen edits."""

    vibration_enabled: bool = True
    high_performance_mode: bool = False
    debug_mode: bool = False
    volume: float = Field(default=0.7, ge=0.0, le=1.0)
    muted: bool = False


class ProgressStore:
    """
    High score, level progress, settings and achievement state.

    Implements the engine's HighScoreStore contract. Backend failures
    surface as StorageError; unreadable values are logged and replaced by
    defaults.
    """

    def __init__(self, store: KeyValueStore, namespace: str = "swipeNexus") -> None:
        self.store = store
        self.namespace = namespace

    def key(self, name: str) -> str:
        return f"{self.namespace}_{name}"

    # -------------------------------------------------------------------------
    # JSON helpers
    # -------------------------------------------------------------------------

    def _load_json(self, name: str, default: Any) -> Any:
        raw = self.store.get(self.key(name))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable {self.key(name)}: {e}")
            return default

    def _save_json(self, name: str, value: Any) -> None:
        self.store.set(self.key(name), json.dumps(value, sort_keys=True))

    # -------------------------------------------------------------------------
    # High score
    # -------------------------------------------------------------------------

    def read_high_score(self) -> int:
        value = self._load_json("highScore", 0)
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric high score {value!r}")
            return 0

    def write_high_score(self, score: int) -> None:
        self._save_json("highScore", int(score))

    # -------------------------------------------------------------------------
    # Levels
    # -------------------------------------------------------------------------

    def get_all_level_progress(self) -> dict[int, LevelProgress]:
        data = self._load_json("levels", {})
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed level progress: {data!r}")
            return {}

        progress: dict[int, LevelProgress] = {}
        for level_id, entry in data.items():
            try:
                progress[int(level_id)] = LevelProgress.model_validate(entry)
            except (ValueError, ValidationError) as e:
                logger.warning(f"Ignoring progress for level {level_id!r}: {e}")
        return progress

    def get_level_progress(self, level_id: int) -> LevelProgress:
        return self.get_all_level_progress().get(level_id, LevelProgress())

    def record_level_result(self, level_id: int, score: int, target_score: int | None) -> LevelProgress:
        """
        Merge a finished session into the level's best result.
        Scores, stars and completion only ever improve.
        """
        all_progress = self.get_all_level_progress()
        current = all_progress.get(level_id, LevelProgress())

        updated = LevelProgress(
            high_score=max(current.high_score, score),
            stars=max(current.stars, stars_for(score, target_score)),
            is_completed=current.is_completed or (target_score is not None and score >= target_score),
        )
        all_progress[level_id] = updated
        self._save_json("levels", {str(k): v.model_dump() for k, v in all_progress.items()})
        return updated

    def is_level_unlocked(self, level_id: int) -> bool:
        """Level 1 (and Classic) always; later levels once the previous one is completed."""
        if level_id <= 1:
            return True
        return self.get_level_progress(level_id - 1).is_completed

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def load_settings(self) -> PlayerSettings:
        data = self._load_json("settings", {})
        try:
            return PlayerSettings.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid settings, using defaults: {e}")
            return PlayerSettings()

    def save_settings(self, settings: PlayerSettings) -> None:
        self._save_json("settings", settings.model_dump())

    # -------------------------------------------------------------------------
    # Achievements
    # -------------------------------------------------------------------------

    def load_achievements(self) -> dict[str, dict[str, Any]]:
        data = self._load_json("achievements", {})
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed achievement progress: {data!r}")
            return {}
        return data

    def save_achievements(self, state: dict[str, dict[str, Any]]) -> None:
        self._save_json("achievements", state)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset_progress(self) -> None:
        """Forget high score and level progress. Settings are kept."""
        self.store.delete(self.key("levels"))
        self.store.delete(self.key("highScore"))
        logger.info("Progress reset")


class ProgressRecorder:
    """
    Game listener that records each finished session into level progress.
    """

    def __init__(self, progress: ProgressStore) -> None:
        self.progress = progress
        self._unsubscribe = None

    def attach(self, game: Game) -> None:
        self.detach()
        self._unsubscribe = game.subscribe(self.on_game_update)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_game_update(self, snapshot: GameSnapshot, events: list[GameEvent]) -> None:
        for event in events:
            if isinstance(event, SessionEndedEvent):
                self._record(event, snapshot)

    def _record(self, event: SessionEndedEvent, snapshot: GameSnapshot) -> None:
        target = snapshot.target_score
        if target is None:
            level = get_level_by_id(event.level_id)
            target = level.target_score if level is not None else None

        try:
            result = self.progress.record_level_result(event.level_id, event.score, target)
        except StorageError as e:
            logger.warning(f"Could not record result for level {event.level_id}: {e}")
            return

        logger.info(
            f"Level {event.level_id}: best {result.high_score}, "
            f"{result.stars} stars{', completed' if result.is_completed else ''}"
        )
