"""
Falling obstacles and the row generator.
NO UI DEPENDENCIES.
"""
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING

from .grid import GridPosition

if TYPE_CHECKING:
    from .levels import DifficultyConfig

logger = logging.getLogger(__name__)


class ObstacleKind(Enum):
    """Everything that can fall down the grid."""
    BARRIER = auto()       # ends the run unless shielded
    ENERGY = auto()        # +1 score
    SPEED_BOOST = auto()   # shortens the tick interval
    SHIELD = auto()        # absorbs one barrier hit

    @property
    def is_powerup(self) -> bool:
        return self is not ObstacleKind.BARRIER


# Powerup kinds in the order the weighted pick walks them
POWERUP_KINDS = (ObstacleKind.ENERGY, ObstacleKind.SPEED_BOOST, ObstacleKind.SHIELD)


@dataclass(frozen=True)
class Obstacle:
    """An obstacle occupying one cell."""
    kind: ObstacleKind
    position: GridPosition

    def moved_down(self) -> 'Obstacle':
        return replace(self, position=self.position.offset(0, 1))

    @property
    def is_powerup(self) -> bool:
        return self.kind.is_powerup


def pick_powerup_kind(config: 'DifficultyConfig', rng: random.Random) -> ObstacleKind:
    """Weighted choice among powerup kinds using the configured frequencies."""
    weights = [(kind, config.kind_frequencies.get(kind, 0.0)) for kind in POWERUP_KINDS]
    total = sum(weight for _, weight in weights)
    if total <= 0:
        return ObstacleKind.ENERGY

    roll = rng.random() * total
    cumulative = 0.0
    for kind, weight in weights:
        cumulative += weight
        if roll < cumulative:
            return kind

    # Float rounding can leave roll == total
    return [kind for kind, weight in weights if weight > 0][-1]


def generate_row(width: int, config: 'DifficultyConfig', rng: random.Random) -> List[Obstacle]:
    """
    Sample a new top row.

    Each column independently spawns an obstacle with probability
    `obstacle_chance`. A spawned obstacle is a barrier unless it wins the
    `powerup_chance` roll. If every column ends up holding a barrier, one of
    them (chosen uniformly) is removed so the row is never a wall.
    """
    row: List[Obstacle] = []

    for x in range(width):
        if rng.random() >= config.obstacle_chance:
            continue

        kind = ObstacleKind.BARRIER
        if rng.random() < config.powerup_chance:
            kind = pick_powerup_kind(config, rng)

        row.append(Obstacle(kind, GridPosition(x, 0)))

    barriers = [o for o in row if o.kind is ObstacleKind.BARRIER]
    if width > 0 and len(barriers) == width:
        opened = rng.choice(barriers)
        row.remove(opened)
        logger.debug(f"Full barrier row, opened column {opened.position.x}")

    return row


class ObstacleField:
    """
    The set of obstacles currently on the grid.

    Obstacles enter at row 0, move down one row per tick and are discarded
    when they pass the bottom edge or are consumed by a collision. At most
    one obstacle occupies a cell.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self._obstacles: List[Obstacle] = []

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(list(self._obstacles))

    def __len__(self) -> int:
        return len(self._obstacles)

    def __contains__(self, obstacle: Obstacle) -> bool:
        return obstacle in self._obstacles

    def clear(self) -> None:
        self._obstacles = []

    def resize(self, width: int, height: int) -> None:
        """Change dimensions. Drops every obstacle."""
        self.width = width
        self.height = height
        self.clear()

    def at(self, position: GridPosition) -> Optional[Obstacle]:
        """Get the obstacle at a position, or None."""
        for obstacle in self._obstacles:
            if obstacle.position == position:
                return obstacle
        return None

    def all_at(self, position: GridPosition) -> List[Obstacle]:
        return [o for o in self._obstacles if o.position == position]

    def place(self, obstacle: Obstacle) -> bool:
        """
        Add an obstacle.
        Returns True if successful, False if the cell is occupied or out of bounds.
        """
        if not obstacle.position.in_bounds(self.width, self.height):
            return False
        if self.at(obstacle.position) is not None:
            return False
        self._obstacles.append(obstacle)
        return True

    def inject(self, obstacle: Obstacle) -> None:
        """Append with no occupancy or bounds check."""
        self._obstacles.append(obstacle)

    def remove(self, obstacle: Obstacle) -> bool:
        """Remove an obstacle. Returns False if it was not in the field."""
        try:
            self._obstacles.remove(obstacle)
        except ValueError:
            return False
        return True

    def advance(self) -> int:
        """
        Move every obstacle one row down and drop those leaving the grid.
        Returns the number of obstacles dropped.
        """
        moved = [o.moved_down() for o in self._obstacles]
        self._obstacles = [o for o in moved if o.position.y < self.height]
        return len(moved) - len(self._obstacles)

    def spawn_row(self, config: 'DifficultyConfig', rng: random.Random) -> List[Obstacle]:
        """Generate a new top row and add it. Returns the obstacles added."""
        added = []
        for obstacle in generate_row(self.width, config, rng):
            if self.place(obstacle):
                added.append(obstacle)
            else:
                logger.warning(
                    f"Dropped generated {obstacle.kind.name} at occupied cell {obstacle.position}"
                )
        return added

    def normalize(self) -> int:
        """
        Enforce one obstacle per cell, keeping the oldest.
        Returns the number of duplicates dropped.
        """
        seen = set()
        kept: List[Obstacle] = []
        for obstacle in self._obstacles:
            if obstacle.position in seen:
                logger.warning(
                    f"Duplicate {obstacle.kind.name} at {obstacle.position} dropped"
                )
                continue
            seen.add(obstacle.position)
            kept.append(obstacle)

        dropped = len(self._obstacles) - len(kept)
        self._obstacles = kept
        return dropped

    def count(self, kind: ObstacleKind) -> int:
        return sum(1 for o in self._obstacles if o.kind is kind)

    def snapshot(self) -> Tuple[Obstacle, ...]:
        return tuple(self._obstacles)

    def __repr__(self) -> str:
        return f"ObstacleField({self.width}x{self.height}, {len(self._obstacles)} obstacles)"
