"""
Game constants - all magic numbers in one place.
NO UI DEPENDENCIES.
"""

# =============================================================================
# GRID
# =============================================================================
GRID_WIDTH = 5    # columns
GRID_HEIGHT = 8   # rows

# =============================================================================
# TIMING (all in milliseconds)
# =============================================================================
INITIAL_TICK_INTERVAL_MS = 1000   # time between obstacle steps at session start
FLOOR_TICK_INTERVAL_MS = 300      # fastest the game can get
SPEED_DECREASE_STEP_MS = 50       # interval shaved off per speed boost
SHIELD_DURATION_MS = 5000         # shield lifetime, wall clock

# =============================================================================
# GENERATION
# =============================================================================
OBSTACLE_CHANCE = 0.4    # per column, per tick
POWERUP_CHANCE = 0.2     # chance a spawned obstacle is a powerup

# Relative frequencies inside the powerup branch
ENERGY_FREQUENCY = 0.5
SPEED_BOOST_FREQUENCY = 0.3
SHIELD_FREQUENCY = 0.2

# =============================================================================
# SCORING
# =============================================================================
ENERGY_POINTS = 1
STAR_THRESHOLDS = (1.0, 1.5, 2.0)   # multiples of target score for 1..3 stars
