"""
Input Handler - Translates key presses and touch gestures to game commands.
This is a THIN ADAPTER - no game logic here.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

import pygame

from swipe_nexus.errors import ConfigurationError
from swipe_nexus.gameplay.game import Game
from swipe_nexus.gameplay.grid import Direction

logger = logging.getLogger(__name__)


# Key mappings for movement
MOVE_KEYS = {
    pygame.K_UP: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_w: Direction.UP,
    pygame.K_s: Direction.DOWN,
    pygame.K_a: Direction.LEFT,
    pygame.K_d: Direction.RIGHT,
}

PAUSE_KEYS = {pygame.K_SPACE, pygame.K_p}
START_KEYS = {pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_r}


# =============================================================================
# GESTURES
# =============================================================================

class GestureKind(Enum):
    TAP = auto()
    SWIPE = auto()


@dataclass(frozen=True)
class Gesture:
    kind: GestureKind
    direction: Optional[Direction] = None


class SwipeDetector:
    """
    Turns a touch (or mouse drag) into a tap or a four-way swipe.

    A tap travels under `tap_max_distance` pixels in under
    `tap_max_duration_ms`. A swipe must finish within
    `max_swipe_duration_ms` and travel more than `min_swipe_distance`
    along its dominant axis. Anything else is ignored.
    """

    def __init__(
        self,
        min_swipe_distance: float = 50,
        max_swipe_duration_ms: float = 300,
        tap_max_distance: float = 10,
        tap_max_duration_ms: float = 200,
    ):
        self.min_swipe_distance = min_swipe_distance
        self.max_swipe_duration_ms = max_swipe_duration_ms
        self.tap_max_distance = tap_max_distance
        self.tap_max_duration_ms = tap_max_duration_ms

        self.is_swiping = False
        self._start: Tuple[float, float, float] = (0.0, 0.0, 0.0)
        self._end: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def touch_start(self, x: float, y: float, time_ms: float) -> None:
        self.is_swiping = True
        self._start = (x, y, time_ms)
        self._end = (x, y, time_ms)

    def touch_move(self, x: float, y: float, time_ms: float) -> None:
        if not self.is_swiping:
            return
        self._end = (x, y, time_ms)

    def touch_cancel(self) -> None:
        self.is_swiping = False

    def touch_end(self, x: float, y: float, time_ms: float) -> Optional[Gesture]:
        """Finish the touch. Returns the recognized gesture, or None."""
        if not self.is_swiping:
            return None
        self.is_swiping = False
        self._end = (x, y, time_ms)

        start_x, start_y, start_time = self._start
        dx = x - start_x
        dy = y - start_y
        duration = time_ms - start_time
        distance = math.hypot(dx, dy)

        if distance < self.tap_max_distance and duration < self.tap_max_duration_ms:
            return Gesture(GestureKind.TAP)

        if duration > self.max_swipe_duration_ms:
            return None

        if abs(dx) > abs(dy):
            if dx > self.min_swipe_distance:
                return Gesture(GestureKind.SWIPE, Direction.RIGHT)
            if dx < -self.min_swipe_distance:
                return Gesture(GestureKind.SWIPE, Direction.LEFT)
        else:
            if dy > self.min_swipe_distance:
                return Gesture(GestureKind.SWIPE, Direction.DOWN)
            if dy < -self.min_swipe_distance:
                return Gesture(GestureKind.SWIPE, Direction.UP)

        return None


# =============================================================================
# INPUT HANDLER
# =============================================================================

class InputHandler:
    """
    Handles keyboard and pointer input and translates to game commands.

    The input handler:
    - Maps keys to moves, pause and start
    - Feeds mouse drags and finger touches to a SwipeDetector
    - Calls game methods to modify game state
    """

    def __init__(self, game: Game, window_size: Tuple[int, int] = (0, 0),
                 detector: Optional[SwipeDetector] = None):
        self.game = game
        self.window_size = window_size
        self.detector = detector if detector is not None else SwipeDetector()

    def handle_event(self, event: 'pygame.event.Event') -> bool:
        """
        Handle one pygame event.
        Returns True if the game should quit.
        """
        if event.type == pygame.QUIT:
            return True

        if event.type == pygame.KEYDOWN:
            return self.handle_key(event.key)

        now = pygame.time.get_ticks()

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.detector.touch_start(*event.pos, now)
        elif event.type == pygame.MOUSEMOTION:
            self.detector.touch_move(*event.pos, now)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.handle_gesture(self.detector.touch_end(*event.pos, now))

        # Finger events carry coordinates normalized to 0..1
        elif event.type == pygame.FINGERDOWN:
            self.detector.touch_start(*self._finger_pos(event), now)
        elif event.type == pygame.FINGERMOTION:
            self.detector.touch_move(*self._finger_pos(event), now)
        elif event.type == pygame.FINGERUP:
            self.handle_gesture(self.detector.touch_end(*self._finger_pos(event), now))

        return False

    def handle_key(self, key: int) -> bool:
        """
        Handle a single key press.
        Returns True if the game should quit.
        """
        # Quit
        if key == pygame.K_ESCAPE:
            return True

        if key in MOVE_KEYS:
            self.game.move(MOVE_KEYS[key])
        elif key in PAUSE_KEYS:
            self.game.toggle_pause()
        elif key in START_KEYS:
            if not self.game.is_active:
                self._start()

        return False

    def handle_gesture(self, gesture: Optional[Gesture]) -> None:
        if gesture is None:
            return

        if gesture.kind == GestureKind.SWIPE:
            self.game.move(gesture.direction)
        elif self.game.is_active:
            self.game.toggle_pause()
        else:
            self._start()

    def _start(self) -> None:
        try:
            self.game.start_session()
        except ConfigurationError as e:
            logger.error(f"Cannot start level {self.game.level.id}: {e}")

    def _finger_pos(self, event: 'pygame.event.Event') -> Tuple[float, float]:
        width, height = self.window_size
        return (event.x * width, event.y * height)
