"""
Player token state.
NO UI DEPENDENCIES.
"""
from dataclasses import dataclass

from .grid import Direction, GridPosition


@dataclass
class PlayerState:
    """The player's cell and buffs."""
    position: GridPosition
    has_shield: bool = False

    def move(self, direction: Direction, width: int, height: int) -> bool:
        """
        Step one cell, clamped to the grid.
        Returns False if the player was already against that edge.
        """
        target = self.position.step(direction, width, height)
        if target == self.position:
            return False
        self.position = target
        return True

    def reset(self, position: GridPosition) -> None:
        self.position = position
        self.has_shield = False
