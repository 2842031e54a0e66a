"""
Tests for the obstacle generator and the obstacle field.
"""
import random

import pytest

from swipe_nexus.gameplay.grid import GridPosition
from swipe_nexus.gameplay.levels import DifficultyConfig
from swipe_nexus.gameplay.obstacles import (
    Obstacle, ObstacleField, ObstacleKind, generate_row, pick_powerup_kind,
)


def barrier(x: int, y: int) -> Obstacle:
    return Obstacle(ObstacleKind.BARRIER, GridPosition(x, y))


class TestGenerateRow:
    """Tests for generate_row."""

    def test_zero_chance_spawns_nothing(self):
        """obstacle_chance 0 always yields an empty row."""
        config = DifficultyConfig(obstacle_chance=0.0)
        rng = random.Random(1)
        for _ in range(100):
            assert generate_row(5, config, rng) == []

    def test_rows_spawn_at_top(self):
        """Generated obstacles sit on row 0 in distinct columns."""
        config = DifficultyConfig(obstacle_chance=0.8, powerup_chance=0.5)
        rng = random.Random(2)
        for _ in range(100):
            row = generate_row(5, config, rng)
            assert all(o.position.y == 0 for o in row)
            columns = [o.position.x for o in row]
            assert len(columns) == len(set(columns))
            assert all(0 <= x < 5 for x in columns)

    def test_full_barrier_row_is_opened(self):
        """With every column a barrier, exactly one column is cleared."""
        config = DifficultyConfig(obstacle_chance=1.0, powerup_chance=0.0)
        rng = random.Random(3)
        opened = set()
        for _ in range(200):
            row = generate_row(5, config, rng)
            assert len(row) == 4
            assert all(o.kind == ObstacleKind.BARRIER for o in row)
            missing = set(range(5)) - {o.position.x for o in row}
            opened |= missing
        # The cleared column is chosen at random, not always the same one
        assert opened == set(range(5))

    @pytest.mark.parametrize("seed", range(20))
    def test_never_a_wall_of_barriers(self, seed):
        """No generated row is all barriers, whatever the chances."""
        rng = random.Random(seed)
        for obstacle_chance in (0.5, 0.9, 1.0):
            config = DifficultyConfig(obstacle_chance=obstacle_chance, powerup_chance=0.1)
            for _ in range(200):
                row = generate_row(5, config, rng)
                barriers = [o for o in row if o.kind == ObstacleKind.BARRIER]
                assert len(barriers) < 5

    def test_single_column_grid(self):
        """On a one-column grid a lone barrier is always removed."""
        config = DifficultyConfig(obstacle_chance=1.0, powerup_chance=0.0)
        rng = random.Random(4)
        for _ in range(20):
            assert generate_row(1, config, rng) == []

    def test_all_powerups_when_powerup_chance_is_one(self):
        """powerup_chance 1 turns every obstacle into a powerup."""
        config = DifficultyConfig(obstacle_chance=1.0, powerup_chance=1.0)
        row = generate_row(5, config, random.Random(5))
        assert len(row) == 5
        assert all(o.is_powerup for o in row)


class TestPickPowerupKind:
    """Tests for the weighted powerup pick."""

    def test_single_weight(self):
        """A kind holding all the weight is always chosen."""
        config = DifficultyConfig(kind_frequencies={"SHIELD": 1.0, "ENERGY": 0.0, "SPEED_BOOST": 0.0})
        rng = random.Random(6)
        assert {pick_powerup_kind(config, rng) for _ in range(50)} == {ObstacleKind.SHIELD}

    def test_weights_need_not_sum_to_one(self):
        """Frequencies are relative weights."""
        config = DifficultyConfig(kind_frequencies={"ENERGY": 3, "SPEED_BOOST": 1})
        rng = random.Random(7)
        kinds = [pick_powerup_kind(config, rng) for _ in range(2000)]
        energy_share = kinds.count(ObstacleKind.ENERGY) / len(kinds)
        assert 0.65 < energy_share < 0.85
        assert ObstacleKind.SHIELD not in kinds


class TestObstacleField:
    """Tests for ObstacleField."""

    def test_place_rejects_occupied_and_out_of_bounds(self):
        """place() keeps one obstacle per in-bounds cell."""
        field = ObstacleField(5, 8)
        assert field.place(barrier(1, 1))
        assert not field.place(Obstacle(ObstacleKind.ENERGY, GridPosition(1, 1)))
        assert not field.place(barrier(5, 0))
        assert len(field) == 1

    def test_advance_moves_down_and_drops_off_grid(self):
        """Obstacles fall one row per advance and vanish past the bottom."""
        field = ObstacleField(5, 8)
        field.place(barrier(0, 0))
        field.place(barrier(1, 7))

        dropped = field.advance()

        assert dropped == 1
        assert field.at(GridPosition(0, 1)) is not None
        assert field.at(GridPosition(1, 7)) is None
        assert len(field) == 1

    def test_obstacle_leaves_after_height_advances(self):
        """An obstacle spends one tick on each row."""
        field = ObstacleField(5, 8)
        field.place(barrier(2, 0))
        for _ in range(7):
            field.advance()
        assert field.at(GridPosition(2, 7)) is not None
        field.advance()
        assert len(field) == 0

    def test_normalize_keeps_oldest(self):
        """Duplicates on a cell collapse to the first one added."""
        field = ObstacleField(5, 8)
        field.inject(Obstacle(ObstacleKind.ENERGY, GridPosition(3, 3)))
        field.inject(barrier(3, 3))

        assert field.normalize() == 1
        assert field.at(GridPosition(3, 3)).kind == ObstacleKind.ENERGY
        assert len(field) == 1

    def test_spawn_row_skips_occupied_cells(self):
        """A generated obstacle landing on an occupied cell is dropped."""
        field = ObstacleField(5, 8)
        for x in range(5):
            field.place(Obstacle(ObstacleKind.ENERGY, GridPosition(x, 0)))

        config = DifficultyConfig(obstacle_chance=1.0, powerup_chance=1.0)
        added = field.spawn_row(config, random.Random(8))

        assert added == []
        assert len(field) == 5

    def test_count_and_snapshot(self):
        """Counts are per kind and snapshots are copies."""
        field = ObstacleField(5, 8)
        field.place(barrier(0, 0))
        field.place(Obstacle(ObstacleKind.SHIELD, GridPosition(1, 0)))
        assert field.count(ObstacleKind.BARRIER) == 1
        assert field.count(ObstacleKind.SHIELD) == 1
        snapshot = field.snapshot()
        field.clear()
        assert len(snapshot) == 2
