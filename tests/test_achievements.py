"""
Tests for achievement tracking.
"""
from swipe_nexus.gameplay.achievements import (
    ACHIEVEMENTS, SECRET_DESCRIPTION, AchievementTracker, CriteriaType, get_achievement_by_id,
)
from swipe_nexus.gameplay.game import Game
from swipe_nexus.gameplay.obstacles import ObstacleKind
from swipe_nexus.storage import MemoryStore, ProgressStore
from swipe_nexus.tick_engine import ManualScheduler

from conftest import quiet_level


def make_game(level_id: int = 99, **config) -> Game:
    return Game(level=quiet_level(level_id, **config), scheduler=ManualScheduler())


class TestCatalogue:
    """Tests for the achievement list."""

    def test_ids_are_unique(self):
        """Fifteen achievements with distinct ids."""
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == len(set(ids)) == 15

    def test_master_counts_every_other_achievement(self):
        """The master achievement targets all the others."""
        master = get_achievement_by_id("game_master")
        assert master.criteria == CriteriaType.ALL_ACHIEVEMENTS
        assert master.target == len(ACHIEVEMENTS) - 1

    def test_unknown_id(self):
        """Unknown ids return None."""
        assert get_achievement_by_id("nope") is None


class TestTracker:
    """Tests for AchievementTracker."""

    def test_first_game(self):
        """Finishing a game unlocks the first achievement."""
        game = make_game()
        tracker = AchievementTracker()
        tracker.attach(game)

        game.start_session()
        assert not tracker.is_unlocked("first_game")
        game.end_session()

        assert tracker.is_unlocked("first_game")
        assert tracker.completion_ratio("persistent") == 0.1

    def test_single_game_energy(self):
        """Ten energy in one game unlocks the collector; counters reset per game."""
        game = make_game()
        tracker = AchievementTracker()
        tracker.attach(game)

        game.start_session()
        for _ in range(6):
            game.place_obstacle(ObstacleKind.ENERGY, 2, 6)
        game.end_session()
        game.start_session()
        for _ in range(6):
            game.place_obstacle(ObstacleKind.ENERGY, 2, 6)

        assert not tracker.is_unlocked("collector")
        assert tracker.progress["master_collector"].progress == 12

        for _ in range(4):
            game.place_obstacle(ObstacleKind.ENERGY, 2, 6)
        assert tracker.is_unlocked("collector")

    def test_speed_demon(self):
        """Three speed boosts in one game unlock Speed Demon."""
        game = make_game()
        tracker = AchievementTracker()
        tracker.attach(game)
        game.start_session()
        for _ in range(3):
            game.place_obstacle(ObstacleKind.SPEED_BOOST, 2, 6)
        assert tracker.is_unlocked("speed_demon")

    def test_shield_block(self):
        """Surviving a barrier with a shield unlocks Shield Bearer."""
        game = make_game()
        tracker = AchievementTracker()
        tracker.attach(game)
        game.start_session()
        game.place_obstacle(ObstacleKind.SHIELD, 2, 6)
        game.place_obstacle(ObstacleKind.BARRIER, 2, 6)
        assert tracker.is_unlocked("shield_master")

    def test_level_completion_and_perfect_run(self):
        """Reaching a target completes only that level's achievement."""
        game = make_game(level_id=2, target_score=1)
        tracker = AchievementTracker()
        tracker.attach(game)
        game.start_session()
        game.place_obstacle(ObstacleKind.ENERGY, 2, 6)

        assert tracker.is_unlocked("level_2_complete")
        assert not tracker.is_unlocked("level_1_complete")
        assert tracker.is_unlocked("perfect_run")

    def test_shield_block_spoils_perfect_run(self):
        """A shield block during the level denies the perfect run."""
        game = make_game(level_id=1, target_score=1)
        tracker = AchievementTracker()
        tracker.attach(game)
        game.start_session()
        game.place_obstacle(ObstacleKind.SHIELD, 2, 6)
        game.place_obstacle(ObstacleKind.BARRIER, 2, 6)
        game.place_obstacle(ObstacleKind.ENERGY, 2, 6)

        assert tracker.is_unlocked("level_1_complete")
        assert not tracker.is_unlocked("perfect_run")

    def test_unlock_callback_and_return_value(self):
        """Unlocks are reported to callbacks and returned once."""
        game = make_game()
        tracker = AchievementTracker()
        unlocked = []
        tracker.on_unlock(unlocked.append)
        tracker.attach(game)

        game.start_session()
        game.end_session()

        assert [a.id for a in unlocked] == ["first_game"]
        assert tracker.on_game_update(game.get_snapshot(), []) == []

    def test_game_master(self, progress):
        """Unlocking every other achievement unlocks the master."""
        progress.save_achievements({
            a.id: {"progress": a.target, "is_unlocked": True}
            for a in ACHIEVEMENTS if a.id != "game_master"
        })
        tracker = AchievementTracker(store=progress)
        game = make_game()

        unlocked = tracker.on_game_update(game.get_snapshot(), [])

        assert [a.id for a in unlocked] == ["game_master"]

    def test_corrupt_saved_progress_is_skipped(self):
        """Unreadable saved entries are ignored and the rest still load."""
        store = MemoryStore({
            "swipeNexus_achievements":
                '{"first_game": {"progress": "abc"}, "collector": {"progress": [1]},'
                ' "persistent": {"progress": 3}}',
        })
        tracker = AchievementTracker(store=ProgressStore(store))

        assert tracker.progress["first_game"].progress == 0
        assert tracker.progress["collector"].progress == 0
        assert tracker.progress["persistent"].progress == 3

    def test_progress_persists(self, progress):
        """A new tracker picks up saved progress."""
        game = make_game()
        tracker = AchievementTracker(store=progress)
        tracker.attach(game)
        game.start_session()
        game.end_session()

        reloaded = AchievementTracker(store=progress)
        assert reloaded.is_unlocked("first_game")
        assert reloaded.progress["persistent"].progress == 1

    def test_secret_descriptions(self):
        """Secret achievements hide their description until unlocked."""
        tracker = AchievementTracker()
        secret = get_achievement_by_id("perfect_run")
        public = get_achievement_by_id("first_game")
        assert tracker.describe(secret) == SECRET_DESCRIPTION
        assert tracker.describe(public) == public.description

        tracker.progress["perfect_run"].is_unlocked = True
        assert tracker.describe(secret) == secret.description

    def test_detach(self):
        """A detached tracker ignores the game."""
        game = make_game()
        tracker = AchievementTracker()
        tracker.attach(game)
        tracker.detach()
        game.start_session()
        game.end_session()
        assert tracker.get_unlocked() == []
