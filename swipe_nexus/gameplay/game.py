"""
Main Game class - the grid simulation engine.
NO UI DEPENDENCIES.

This is the central gameplay module. It can be fully tested
without any UI framework or real clock.
"""
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from swipe_nexus.errors import StorageError
from swipe_nexus.tick_engine.scheduler import ManualScheduler, Scheduler, TimerHandle

from .constants import GRID_WIDTH, GRID_HEIGHT, SHIELD_DURATION_MS, ENERGY_POINTS
from .grid import Direction, GridPosition, spawn_position
from .levels import CLASSIC_LEVEL, DifficultyConfig, Level, validate_config
from .obstacles import Obstacle, ObstacleField, ObstacleKind
from .player import PlayerState

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """Lifecycle state of the engine."""
    IDLE = auto()      # Nothing started yet
    RUNNING = auto()   # Ticks firing, moves accepted
    PAUSED = auto()    # Session alive, clock for obstacles stopped
    ENDED = auto()     # Game over until the next start_session()


class HighScoreStore(Protocol):
    """Durable best-score storage the engine reads and writes through."""

    def read_high_score(self) -> int:
        ...

    def write_high_score(self, score: int) -> None:
        ...


# =============================================================================
# EVENTS
# =============================================================================

@dataclass
class GameEvent:
    """Something that happened during play (for UI and trackers to react to)."""
    pass


@dataclass
class PhaseChangedEvent(GameEvent):
    """Lifecycle transition, including pause and resume."""
    old_phase: GamePhase
    new_phase: GamePhase


@dataclass
class SessionStartedEvent(GameEvent):
    level_id: int
    high_score: int


@dataclass
class SessionEndedEvent(GameEvent):
    level_id: int
    score: int
    high_score: int
    new_high_score: bool


@dataclass
class PlayerMovedEvent(GameEvent):
    position: GridPosition


@dataclass
class ObstacleCollectedEvent(GameEvent):
    """A powerup was picked up."""
    kind: ObstacleKind
    position: GridPosition


@dataclass
class ShieldBlockedEvent(GameEvent):
    """A shield absorbed a barrier."""
    position: GridPosition


@dataclass
class ShieldExpiredEvent(GameEvent):
    pass


@dataclass
class SpeedChangedEvent(GameEvent):
    tick_interval_ms: int


@dataclass
class LevelCompletedEvent(GameEvent):
    """Score reached the level's target for the first time this session."""
    level_id: int
    score: int


# =============================================================================
# SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class PlayerSnapshot:
    position: GridPosition
    has_shield: bool


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the engine handed to the presentation layer."""
    phase: GamePhase
    is_active: bool
    is_paused: bool
    is_game_over: bool
    score: int
    high_score: int
    player: PlayerSnapshot
    obstacles: Tuple[Obstacle, ...]
    tick_interval_ms: int
    tick_number: int
    level_id: int
    target_score: Optional[int]
    width: int
    height: int

    def obstacle_at(self, x: int, y: int) -> Optional[Obstacle]:
        position = GridPosition(x, y)
        for obstacle in self.obstacles:
            if obstacle.position == position:
                return obstacle
        return None

    def as_dict(self) -> Dict[str, Any]:
        """Plain JSON-friendly dict."""
        return {
            'phase': self.phase.name,
            'isActive': self.is_active,
            'isPaused': self.is_paused,
            'isGameOver': self.is_game_over,
            'score': self.score,
            'highScore': self.high_score,
            'player': {
                'position': {'x': self.player.position.x, 'y': self.player.position.y},
                'hasShield': self.player.has_shield,
            },
            'obstacles': [
                {'kind': o.kind.name, 'position': {'x': o.position.x, 'y': o.position.y}}
                for o in self.obstacles
            ],
            'tickIntervalMs': self.tick_interval_ms,
            'tickNumber': self.tick_number,
            'levelId': self.level_id,
            'targetScore': self.target_score,
        }


Listener = Callable[[GameSnapshot, List[GameEvent]], None]


class Game:
    """
    The grid simulation engine.

    This class is COMPLETELY DECOUPLED from UI.
    It exposes state as a snapshot and accepts commands as method calls.
    Time comes from the injected Scheduler: one repeating timer drives
    tick(), one-shot timers expire shields.

    Usage:
        scheduler = ManualScheduler()
        game = Game(level=get_level_by_id(1), scheduler=scheduler)
        game.subscribe(lambda snapshot, events: render(snapshot))
        game.start_session()
        game.move(Direction.LEFT)
        scheduler.advance(1000)
    """

    def __init__(
        self,
        level: Optional[Level] = None,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        scheduler: Optional[Scheduler] = None,
        store: Optional[HighScoreStore] = None,
        rng: Optional[random.Random] = None,
        shield_duration_ms: int = SHIELD_DURATION_MS,
    ):
        self.width = width
        self.height = height
        self.level = level if level is not None else CLASSIC_LEVEL
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.store = store
        self.rng = rng if rng is not None else random.Random()
        self.shield_duration_ms = shield_duration_ms

        # Session state
        self.phase = GamePhase.IDLE
        self.config = self.level.config if isinstance(self.level.config, DifficultyConfig) else DifficultyConfig()
        self.tick_interval_ms = self.config.initial_tick_interval_ms
        self.score = 0
        self.tick_number = 0
        self.player = PlayerState(spawn_position(width, height))
        self.obstacles = ObstacleField(width, height)
        self.high_score = 0
        self.high_score = self._read_high_score()

        # Timers
        self._tick_timer: Optional[TimerHandle] = None
        self._shield_timer: Optional[TimerHandle] = None
        self._interval_changed = False
        self._level_completed = False

        # Event queue and observers
        self._events: List[GameEvent] = []
        self._listeners: List[Listener] = []

    # =========================================================================
    # STATE FLAGS
    # =========================================================================

    @property
    def is_active(self) -> bool:
        return self.phase in (GamePhase.RUNNING, GamePhase.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self.phase == GamePhase.PAUSED

    @property
    def is_game_over(self) -> bool:
        return self.phase == GamePhase.ENDED

    # =========================================================================
    # LIFECYCLE COMMANDS
    # =========================================================================

    def start_session(self, level: Optional[Level] = None) -> List[GameEvent]:
        """
        Start a fresh run, optionally switching level.

        Raises ConfigurationError if the level's configuration cannot
        produce a playable board; in that case nothing is changed.
        """
        level = level if level is not None else self.level
        config = validate_config(level.config, self.width, self.height)

        self._stop_ticker()
        self._cancel_shield_timer()

        self.level = level
        self.config = config
        self.score = 0
        self.tick_number = 0
        self.tick_interval_ms = config.initial_tick_interval_ms
        self.player.reset(spawn_position(self.width, self.height))
        self.obstacles.resize(self.width, self.height)
        self._interval_changed = False
        self._level_completed = False
        self.high_score = self._read_high_score()

        self._set_phase(GamePhase.RUNNING)
        self._events.append(SessionStartedEvent(level.id, self.high_score))
        self._start_ticker()

        logger.info(
            f"Session started: level {level.id} ({level.name}), "
            f"tick {self.tick_interval_ms}ms, high score {self.high_score}"
        )
        return self._notify()

    def end_session(self) -> List[GameEvent]:
        """End the current run. No-op unless a session is active."""
        if not self.is_active:
            logger.debug(f"end_session ignored in phase {self.phase.name}")
            return []
        self._end()
        return self._notify()

    def toggle_pause(self) -> List[GameEvent]:
        """Pause or resume. No-op unless a session is active."""
        if not self.is_active:
            logger.debug(f"toggle_pause ignored in phase {self.phase.name}")
            return []

        if self.phase == GamePhase.RUNNING:
            self._stop_ticker()
            self._set_phase(GamePhase.PAUSED)
            logger.info(f"Paused at tick {self.tick_number}")
        else:
            self._set_phase(GamePhase.RUNNING)
            self._start_ticker()
            logger.info(f"Resumed at tick {self.tick_number}")

        return self._notify()

    def close(self) -> None:
        """Cancel every timer. The engine does nothing further on its own."""
        self._stop_ticker()
        self._cancel_shield_timer()

    # =========================================================================
    # PLAYER COMMANDS
    # =========================================================================

    def move(self, direction: Union[Direction, str]) -> bool:
        """
        Move the player one cell, clamped to the grid, then resolve collisions.
        Ignored unless running. Returns True if the player changed cell.
        """
        direction = Direction.parse(direction)
        if self.phase != GamePhase.RUNNING:
            logger.debug(f"move {direction.name} ignored in phase {self.phase.name}")
            return False

        moved = self.player.move(direction, self.width, self.height)
        if moved:
            self._events.append(PlayerMovedEvent(self.player.position))

        self._resolve_collisions()
        self._notify()
        return moved

    # =========================================================================
    # TICK
    # =========================================================================

    def tick(self) -> List[GameEvent]:
        """
        Advance the simulation one step: move obstacles down, generate a
        new top row, then resolve collisions.
        Returns list of events that occurred. Does nothing unless running.
        """
        if self.phase != GamePhase.RUNNING:
            return []

        tick_start = time.perf_counter()
        self.tick_number += 1

        self.obstacles.advance()
        self.obstacles.spawn_row(self.config, self.rng)
        self.obstacles.normalize()
        self._resolve_collisions()

        # Speed changes take effect on the tick boundary
        if self._interval_changed and self.phase == GamePhase.RUNNING:
            self._restart_ticker()

        tick_duration = (time.perf_counter() - tick_start) * 1000
        if tick_duration > self.tick_interval_ms:
            logger.warning(
                f"Tick {self.tick_number} took {tick_duration:.1f}ms "
                f"(target: {self.tick_interval_ms}ms)"
            )

        return self._notify()

    # =========================================================================
    # COLLISIONS
    # =========================================================================

    def _resolve_collisions(self) -> None:
        """Apply the effect of whatever shares the player's cell."""
        position = self.player.position
        hits = self.obstacles.all_at(position)
        if not hits:
            return

        if len(hits) > 1:
            logger.warning(f"{len(hits)} obstacles on player cell {position}, keeping the oldest")
            self.obstacles.normalize()

        obstacle = self.obstacles.at(position)
        kind = obstacle.kind

        if kind == ObstacleKind.BARRIER:
            if self.player.has_shield:
                self.player.has_shield = False
                self._cancel_shield_timer()
                self.obstacles.remove(obstacle)
                self._events.append(ShieldBlockedEvent(position))
                logger.info(f"Shield absorbed barrier at {position}")
            else:
                logger.info(f"Barrier hit at {position}")
                self._end()
            return

        self.obstacles.remove(obstacle)

        if kind == ObstacleKind.ENERGY:
            self.score += ENERGY_POINTS
            self._check_target()

        elif kind == ObstacleKind.SPEED_BOOST:
            new_interval = max(
                self.config.floor_tick_interval_ms,
                self.tick_interval_ms - self.config.speed_decrease_step,
            )
            if new_interval != self.tick_interval_ms:
                self.tick_interval_ms = new_interval
                self._interval_changed = True
                self._events.append(SpeedChangedEvent(new_interval))

        elif kind == ObstacleKind.SHIELD:
            self._arm_shield()

        self._events.append(ObstacleCollectedEvent(kind, position))

    def _check_target(self) -> None:
        target = self.config.target_score
        if target is None or self._level_completed or self.score < target:
            return
        self._level_completed = True
        self._events.append(LevelCompletedEvent(self.level.id, self.score))
        logger.info(f"Level {self.level.id} target {target} reached")

    # =========================================================================
    # SHIELD
    # =========================================================================

    def _arm_shield(self) -> None:
        # A new pickup restarts the countdown; the earlier timer is dropped
        self._cancel_shield_timer()
        self.player.has_shield = True
        self._shield_timer = self.scheduler.call_later(self.shield_duration_ms, self._expire_shield)

    def _expire_shield(self) -> None:
        self._shield_timer = None
        if not self.player.has_shield:
            return
        self.player.has_shield = False
        self._events.append(ShieldExpiredEvent())
        self._notify()

    def _cancel_shield_timer(self) -> None:
        if self._shield_timer is not None:
            self._shield_timer.cancel()
            self._shield_timer = None

    # =========================================================================
    # TICK TIMER
    # =========================================================================

    def _start_ticker(self) -> None:
        self._stop_ticker()
        self._interval_changed = False
        self._tick_timer = self.scheduler.call_every(self.tick_interval_ms, self.tick)

    def _stop_ticker(self) -> None:
        if self._tick_timer is not None:
            self._tick_timer.cancel()
            self._tick_timer = None

    def _restart_ticker(self) -> None:
        logger.debug(f"Tick interval now {self.tick_interval_ms}ms")
        self._start_ticker()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _end(self) -> None:
        self._stop_ticker()
        self._cancel_shield_timer()
        self._set_phase(GamePhase.ENDED)

        new_high_score = self.score > self.high_score
        if new_high_score:
            self.high_score = self.score
            self._write_high_score(self.score)

        self._events.append(
            SessionEndedEvent(self.level.id, self.score, self.high_score, new_high_score)
        )
        logger.info(
            f"Session ended: score {self.score}, high score {self.high_score}"
            + (" (new)" if new_high_score else "")
        )

    def _set_phase(self, new_phase: GamePhase) -> None:
        old_phase = self.phase
        self.phase = new_phase
        self._events.append(PhaseChangedEvent(old_phase, new_phase))

    def _read_high_score(self) -> int:
        if self.store is None:
            return self.high_score
        try:
            return max(0, int(self.store.read_high_score()))
        except StorageError as e:
            logger.warning(f"Could not read high score, treating as none: {e}")
            return 0
        except Exception as e:
            logger.warning(f"High score store failed on read, treating as none: {e}", exc_info=True)
            return 0

    def _write_high_score(self, score: int) -> None:
        if self.store is None:
            return
        try:
            self.store.write_high_score(score)
        except StorageError as e:
            logger.warning(f"Could not save high score {score}: {e}")
        except Exception as e:
            logger.warning(f"High score store failed on write of {score}: {e}", exc_info=True)

    # =========================================================================
    # OBSERVERS / STATE QUERIES (for UI to read)
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call listener(snapshot, events) after every command or tick.
        Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> List[GameEvent]:
        events, self._events = self._events, []
        if not self._listeners:
            return events

        snapshot = self.get_snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot, events)
            except Exception as e:
                logger.warning(f"Listener {listener!r} failed: {e}", exc_info=True)
        return events

    def get_snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self.phase,
            is_active=self.is_active,
            is_paused=self.is_paused,
            is_game_over=self.is_game_over,
            score=self.score,
            high_score=self.high_score,
            player=PlayerSnapshot(self.player.position, self.player.has_shield),
            obstacles=self.obstacles.snapshot(),
            tick_interval_ms=self.tick_interval_ms,
            tick_number=self.tick_number,
            level_id=self.level.id,
            target_score=self.config.target_score,
            width=self.width,
            height=self.height,
        )

    def place_obstacle(self, kind: ObstacleKind, x: int, y: int) -> bool:
        """
        Place an obstacle by hand. Returns False if occupied or out of bounds.
        While running, an obstacle dropped on the player's cell collides at once.
        """
        position = GridPosition(x, y)
        placed = self.obstacles.place(Obstacle(kind, position))
        if placed and self.phase == GamePhase.RUNNING and position == self.player.position:
            self._resolve_collisions()
            self._notify()
        return placed

    def __repr__(self) -> str:
        return (
            f"Game({self.phase.name}, level={self.level.id}, score={self.score}, "
            f"player={self.player.position}, {len(self.obstacles)} obstacles)"
        )
