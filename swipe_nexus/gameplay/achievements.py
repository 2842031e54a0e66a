"""
Achievement catalogue and tracker.
NO UI DEPENDENCIES.

The tracker listens to a Game and turns its events into achievement
progress. Per-game criteria are measured against counters that reset when
a session starts; cumulative criteria carry across sessions through the
optional store.
"""
import logging
from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Protocol

from swipe_nexus.errors import StorageError

from .game import (
    Game, GameEvent, GameSnapshot,
    ObstacleCollectedEvent, ShieldBlockedEvent, LevelCompletedEvent,
    SessionStartedEvent, SessionEndedEvent,
)
from .obstacles import ObstacleKind

logger = logging.getLogger(__name__)


class CriteriaType(Enum):
    """What an achievement measures."""
    GAMES_PLAYED = auto()
    ENERGY_COLLECTED = auto()
    SPEED_BOOSTS_COLLECTED = auto()
    SHIELD_BLOCKS = auto()
    LEVEL_COMPLETED = auto()     # target is the level id
    HIGH_SCORE = auto()
    PERFECT_LEVEL = auto()       # level target reached without a shield block
    ALL_ACHIEVEMENTS = auto()


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    criteria: CriteriaType
    target: int
    in_single_game: bool = False
    is_secret: bool = False


@dataclass
class AchievementProgress:
    progress: int = 0
    is_unlocked: bool = False


class AchievementStore(Protocol):
    def load_achievements(self) -> Dict[str, Dict[str, Any]]:
        ...

    def save_achievements(self, state: Dict[str, Dict[str, Any]]) -> None:
        ...


ACHIEVEMENTS: List[Achievement] = [
    Achievement('first_game', 'Digital Novice', 'Play your first game.', '🎮',
                CriteriaType.GAMES_PLAYED, 1),
    Achievement('collector', 'Energy Collector', 'Collect 10 energy orbs in a single game.', '⚡',
                CriteriaType.ENERGY_COLLECTED, 10, in_single_game=True),
    Achievement('master_collector', 'Energy Master', 'Collect 50 energy orbs in total.', '🔋',
                CriteriaType.ENERGY_COLLECTED, 50),
    Achievement('speed_demon', 'Speed Demon', 'Collect 3 speed boosts in a single game.', '⚡',
                CriteriaType.SPEED_BOOSTS_COLLECTED, 3, in_single_game=True),
    Achievement('shield_master', 'Shield Bearer', 'Use a shield to survive a collision with a barrier.', '🛡️',
                CriteriaType.SHIELD_BLOCKS, 1),
    Achievement('level_1_complete', 'Neural Explorer', 'Complete the Neural Gateway level.', '🧠',
                CriteriaType.LEVEL_COMPLETED, 1),
    Achievement('level_2_complete', 'Data Surfer', 'Complete the Data Stream level.', '🌊',
                CriteriaType.LEVEL_COMPLETED, 2),
    Achievement('level_3_complete', 'Firewall Hacker', 'Complete the Firewall Breach level.', '🔥',
                CriteriaType.LEVEL_COMPLETED, 3),
    Achievement('level_4_complete', 'Quantum Navigator', 'Complete the Quantum Maze level.', '🌀',
                CriteriaType.LEVEL_COMPLETED, 4),
    Achievement('level_5_complete', 'Neon Master', 'Complete the Neon Nexus level.', '👑',
                CriteriaType.LEVEL_COMPLETED, 5),
    Achievement('high_score_20', 'Digital Prodigy', 'Reach a score of 20 in any level.', '🏆',
                CriteriaType.HIGH_SCORE, 20),
    Achievement('high_score_50', 'Neon Legend', 'Reach a score of 50 in any level.', '🌟',
                CriteriaType.HIGH_SCORE, 50),
    Achievement('perfect_run', 'Flawless Run', 'Complete a level without any collisions.', '✨',
                CriteriaType.PERFECT_LEVEL, 1, is_secret=True),
    Achievement('persistent', 'Digital Persistence', 'Play 10 games in total.', '🔄',
                CriteriaType.GAMES_PLAYED, 10),
    Achievement('game_master', 'Swipe Nexus Master', 'Unlock all other achievements.', '🏅',
                CriteriaType.ALL_ACHIEVEMENTS, 14, is_secret=True),
]

SECRET_DESCRIPTION = "This achievement is still a mystery..."


def get_achievement_by_id(achievement_id: str) -> Optional[Achievement]:
    for achievement in ACHIEVEMENTS:
        if achievement.id == achievement_id:
            return achievement
    return None


class AchievementTracker:
    """
    Tracks achievement progress from game events.

    Usage:
        tracker = AchievementTracker(store=progress_store)
        tracker.attach(game)
        tracker.on_unlock(lambda a: show_toast(a.title))
    """

    def __init__(
        self,
        store: Optional[AchievementStore] = None,
        achievements: Optional[List[Achievement]] = None,
    ):
        self.store = store
        self.achievements = list(achievements) if achievements is not None else list(ACHIEVEMENTS)
        self.progress: Dict[str, AchievementProgress] = {
            a.id: AchievementProgress() for a in self.achievements
        }
        self._load()

        # Per-session counters
        self.session_energy = 0
        self.session_speed_boosts = 0
        self.session_shield_blocks = 0

        self._unlock_callbacks: List[Callable[[Achievement], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    # =========================================================================
    # WIRING
    # =========================================================================

    def attach(self, game: Game) -> None:
        self.detach()
        self._unsubscribe = game.subscribe(self.on_game_update)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_unlock(self, callback: Callable[[Achievement], None]) -> None:
        self._unlock_callbacks.append(callback)

    # =========================================================================
    # EVENT HANDLING
    # =========================================================================

    def on_game_update(self, snapshot: GameSnapshot, events: List[GameEvent]) -> List[Achievement]:
        """
        Apply one batch of game events.
        Returns achievements unlocked by this batch.
        """
        changed = False
        for event in events:
            changed = self._apply(event) or changed

        if snapshot.is_active or snapshot.is_game_over:
            changed = self._raise_to(CriteriaType.HIGH_SCORE, snapshot.score) or changed

        unlocked = self._check_unlocks()
        if changed or unlocked:
            self._save()

        for achievement in unlocked:
            logger.info(f"Achievement unlocked: {achievement.title}")
            for callback in self._unlock_callbacks:
                callback(achievement)

        return unlocked

    def _apply(self, event: GameEvent) -> bool:
        """Update counters for one event. Returns True if progress changed."""
        if isinstance(event, SessionStartedEvent):
            self.session_energy = 0
            self.session_speed_boosts = 0
            self.session_shield_blocks = 0
            return False

        if isinstance(event, SessionEndedEvent):
            return self._add(CriteriaType.GAMES_PLAYED, 1)

        if isinstance(event, ObstacleCollectedEvent):
            if event.kind == ObstacleKind.ENERGY:
                self.session_energy += 1
                changed = self._add(CriteriaType.ENERGY_COLLECTED, 1)
                return self._raise_to(CriteriaType.ENERGY_COLLECTED, self.session_energy, single=True) or changed
            if event.kind == ObstacleKind.SPEED_BOOST:
                self.session_speed_boosts += 1
                return self._raise_to(CriteriaType.SPEED_BOOSTS_COLLECTED, self.session_speed_boosts, single=True)
            return False

        if isinstance(event, ShieldBlockedEvent):
            self.session_shield_blocks += 1
            return self._add(CriteriaType.SHIELD_BLOCKS, 1)

        if isinstance(event, LevelCompletedEvent):
            changed = False
            for achievement in self._of(CriteriaType.LEVEL_COMPLETED):
                if achievement.target == event.level_id:
                    changed = self._set(achievement, 1) or changed
            if self.session_shield_blocks == 0:
                changed = self._add(CriteriaType.PERFECT_LEVEL, 1) or changed
            return changed

        return False

    # =========================================================================
    # PROGRESS HELPERS
    # =========================================================================

    def _of(self, criteria: CriteriaType, single: Optional[bool] = None) -> List[Achievement]:
        return [
            a for a in self.achievements
            if a.criteria == criteria and (single is None or a.in_single_game == single)
        ]

    def _set(self, achievement: Achievement, value: int) -> bool:
        entry = self.progress[achievement.id]
        if entry.is_unlocked or entry.progress == value:
            return False
        entry.progress = value
        return True

    def _add(self, criteria: CriteriaType, amount: int) -> bool:
        changed = False
        for achievement in self._of(criteria, single=False):
            changed = self._set(achievement, self.progress[achievement.id].progress + amount) or changed
        return changed

    def _raise_to(self, criteria: CriteriaType, value: int, single: Optional[bool] = None) -> bool:
        changed = False
        for achievement in self._of(criteria, single=single):
            if value > self.progress[achievement.id].progress:
                changed = self._set(achievement, value) or changed
        return changed

    def _is_met(self, achievement: Achievement) -> bool:
        entry = self.progress[achievement.id]
        if achievement.criteria == CriteriaType.LEVEL_COMPLETED:
            return entry.progress >= 1
        return entry.progress >= achievement.target

    def _check_unlocks(self) -> List[Achievement]:
        unlocked = []
        for achievement in self.achievements:
            if achievement.criteria == CriteriaType.ALL_ACHIEVEMENTS:
                continue
            entry = self.progress[achievement.id]
            if not entry.is_unlocked and self._is_met(achievement):
                entry.is_unlocked = True
                unlocked.append(achievement)

        others = [a for a in self.achievements if a.criteria != CriteriaType.ALL_ACHIEVEMENTS]
        unlocked_others = sum(1 for a in others if self.progress[a.id].is_unlocked)
        for achievement in self._of(CriteriaType.ALL_ACHIEVEMENTS):
            entry = self.progress[achievement.id]
            if entry.is_unlocked:
                continue
            entry.progress = unlocked_others
            if others and unlocked_others == len(others):
                entry.is_unlocked = True
                unlocked.append(achievement)

        return unlocked

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_unlocked(self, achievement_id: str) -> bool:
        entry = self.progress.get(achievement_id)
        return entry is not None and entry.is_unlocked

    def get_unlocked(self) -> List[Achievement]:
        return [a for a in self.achievements if self.progress[a.id].is_unlocked]

    def completion_ratio(self, achievement_id: str) -> float:
        """Progress toward an achievement as 0.0 to 1.0."""
        achievement = next(a for a in self.achievements if a.id == achievement_id)
        entry = self.progress[achievement.id]
        if entry.is_unlocked:
            return 1.0
        if achievement.criteria == CriteriaType.LEVEL_COMPLETED:
            return float(min(entry.progress, 1))
        return min(1.0, entry.progress / achievement.target) if achievement.target > 0 else 0.0

    def describe(self, achievement: Achievement) -> str:
        """Description as shown to the player; secrets stay hidden until unlocked."""
        if achievement.is_secret and not self.is_unlocked(achievement.id):
            return SECRET_DESCRIPTION
        return achievement.description

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self) -> None:
        if self.store is None:
            return
        try:
            saved = self.store.load_achievements()
        except StorageError as e:
            logger.warning(f"Could not load achievements: {e}")
            return

        for achievement_id, entry in saved.items():
            if achievement_id not in self.progress or not isinstance(entry, dict):
                continue
            try:
                progress = int(entry.get('progress', 0) or 0)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring saved progress for {achievement_id}: {entry!r}")
                continue
            self.progress[achievement_id] = AchievementProgress(
                progress=progress,
                is_unlocked=bool(entry.get('is_unlocked', False)),
            )

    def _save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save_achievements({k: asdict(v) for k, v in self.progress.items()})
        except StorageError as e:
            logger.warning(f"Could not save achievements: {e}")
