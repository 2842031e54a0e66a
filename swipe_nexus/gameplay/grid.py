"""
Grid coordinates and movement directions.
NO UI DEPENDENCIES.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple, Union


class Direction(Enum):
    """Cardinal directions a player can move in."""
    UP = auto()
    DOWN = auto()
    LEFT = auto()
    RIGHT = auto()

    def delta(self) -> Tuple[int, int]:
        """Return (dx, dy) for this direction."""
        deltas = {
            Direction.UP: (0, -1),
            Direction.DOWN: (0, 1),
            Direction.LEFT: (-1, 0),
            Direction.RIGHT: (1, 0),
        }
        return deltas[self]

    @classmethod
    def parse(cls, value: Union['Direction', str]) -> 'Direction':
        """
        Accept a Direction or its name in any case ('up', 'LEFT', ...).
        Raises ValueError for anything else.
        """
        if isinstance(value, Direction):
            return value
        try:
            return cls[value.strip().upper()]
        except (KeyError, AttributeError):
            raise ValueError(f"Unknown direction: {value!r}") from None


@dataclass(frozen=True)
class GridPosition:
    """
    An immutable cell coordinate.

    Coordinate system:
    - (0, 0) is top-left
    - x increases to the right
    - y increases downward (obstacles fall toward larger y)
    """
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> 'GridPosition':
        return GridPosition(self.x + dx, self.y + dy)

    def step(self, direction: Direction, width: int, height: int) -> 'GridPosition':
        """One cell in `direction`, clamped to a width x height grid."""
        dx, dy = direction.delta()
        return self.offset(dx, dy).clamped(width, height)

    def clamped(self, width: int, height: int) -> 'GridPosition':
        x = min(max(self.x, 0), width - 1)
        y = min(max(self.y, 0), height - 1)
        return GridPosition(x, y)

    def in_bounds(self, width: int, height: int) -> bool:
        return 0 <= self.x < width and 0 <= self.y < height

    def __repr__(self) -> str:
        return f"({self.x}, {self.y})"


def spawn_position(width: int, height: int) -> GridPosition:
    """Center column, one row above the bottom edge."""
    return GridPosition(width // 2, max(height - 2, 0))
