"""
Difficulty configuration and level definitions.
NO UI DEPENDENCIES.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from swipe_nexus.errors import ConfigurationError

from .constants import (
    INITIAL_TICK_INTERVAL_MS, FLOOR_TICK_INTERVAL_MS, SPEED_DECREASE_STEP_MS,
    OBSTACLE_CHANCE, POWERUP_CHANCE,
    ENERGY_FREQUENCY, SPEED_BOOST_FREQUENCY, SHIELD_FREQUENCY,
    STAR_THRESHOLDS,
)
from .obstacles import ObstacleKind, POWERUP_KINDS


def _default_frequencies() -> Dict[ObstacleKind, float]:
    return {
        ObstacleKind.ENERGY: ENERGY_FREQUENCY,
        ObstacleKind.SPEED_BOOST: SPEED_BOOST_FREQUENCY,
        ObstacleKind.SHIELD: SHIELD_FREQUENCY,
    }


class DifficultyConfig(BaseModel):
    """
    Per-level tuning, read once when a session starts.

    Interval values are milliseconds. Chances are probabilities in [0, 1].
    `kind_frequencies` are relative weights inside the powerup branch and
    need not sum to 1.
    """

    initial_tick_interval_ms: int = Field(default=INITIAL_TICK_INTERVAL_MS, gt=0)
    floor_tick_interval_ms: int = Field(default=FLOOR_TICK_INTERVAL_MS, gt=0)
    speed_decrease_step: int = Field(default=SPEED_DECREASE_STEP_MS, ge=0)
    obstacle_chance: float = Field(default=OBSTACLE_CHANCE, ge=0.0, le=1.0)
    powerup_chance: float = Field(default=POWERUP_CHANCE, ge=0.0, le=1.0)
    kind_frequencies: Dict[ObstacleKind, float] = Field(default_factory=_default_frequencies)
    target_score: Optional[int] = Field(default=None, gt=0)

    @field_validator("kind_frequencies", mode="before")
    @classmethod
    def _parse_kind_names(cls, value: Any) -> Any:
        """Accept kind names ('ENERGY', 'speed_boost') as keys."""
        if not isinstance(value, Mapping):
            return value
        parsed = {}
        for key, weight in value.items():
            if isinstance(key, str):
                try:
                    key = ObstacleKind[key.strip().upper()]
                except KeyError:
                    raise ValueError(f"unknown obstacle kind {key!r}") from None
            parsed[key] = weight
        return parsed

    @field_validator("kind_frequencies")
    @classmethod
    def _check_frequencies(cls, value: Dict[ObstacleKind, float]) -> Dict[ObstacleKind, float]:
        for kind, weight in value.items():
            if kind not in POWERUP_KINDS:
                raise ValueError(f"{kind.name} is not a powerup kind")
            if weight < 0:
                raise ValueError(f"frequency for {kind.name} must be >= 0, got {weight}")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> 'DifficultyConfig':
        if self.floor_tick_interval_ms > self.initial_tick_interval_ms:
            raise ValueError(
                f"floor_tick_interval_ms ({self.floor_tick_interval_ms}) exceeds "
                f"initial_tick_interval_ms ({self.initial_tick_interval_ms})"
            )
        if self.powerup_chance > 0 and sum(self.kind_frequencies.values()) <= 0:
            raise ValueError("powerup_chance is positive but every kind frequency is zero")
        return self


@dataclass
class Level:
    """A named difficulty preset."""
    id: int
    name: str
    description: str = ""
    difficulty: str = ""
    config: Union[DifficultyConfig, Dict[str, Any]] = field(default_factory=DifficultyConfig)

    @property
    def target_score(self) -> Optional[int]:
        if isinstance(self.config, DifficultyConfig):
            return self.config.target_score
        return self.config.get("target_score")


def validate_config(
    config: Union[DifficultyConfig, Mapping[str, Any], None],
    width: int,
    height: int,
) -> DifficultyConfig:
    """
    Check a difficulty configuration against a grid size.
    Returns a validated DifficultyConfig or raises ConfigurationError.
    """
    if width < 1 or height < 1:
        raise ConfigurationError(f"Grid must be at least 1x1, got {width}x{height}")

    if config is None:
        return DifficultyConfig()

    if isinstance(config, DifficultyConfig):
        # Re-run validation: instances can be mutated or built with model_construct
        data: Any = config.model_dump()
    else:
        data = config

    try:
        return DifficultyConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid difficulty configuration: {problems}") from e


def stars_for(score: int, target_score: Optional[int]) -> int:
    """0-3 stars for a score against a level target."""
    if not target_score:
        return 0
    return sum(1 for multiple in STAR_THRESHOLDS if score >= target_score * multiple)


# =============================================================================
# LEVEL TABLE
# =============================================================================

CLASSIC_LEVEL = Level(
    id=0,
    name="Classic",
    description="Endless run with the default speed ramp.",
    difficulty="Normal",
)


def _level(id: int, name: str, description: str, difficulty: str, **config: Any) -> Level:
    return Level(id=id, name=name, description=description, difficulty=difficulty,
                 config=DifficultyConfig(**config))


LEVELS: List[Level] = [
    _level(
        1, "Neural Gateway",
        "Enter the digital realm and learn the basics of movement and energy collection.",
        "Easy",
        initial_tick_interval_ms=1000, floor_tick_interval_ms=800, speed_decrease_step=20,
        obstacle_chance=0.3, powerup_chance=0.4,
        kind_frequencies={"ENERGY": 0.4, "SPEED_BOOST": 0.3, "SHIELD": 0.3},
        target_score=10,
    ),
    _level(
        2, "Data Stream",
        "Navigate through faster data streams with increasing obstacles.",
        "Medium",
        initial_tick_interval_ms=800, floor_tick_interval_ms=600, speed_decrease_step=25,
        obstacle_chance=0.4, powerup_chance=0.35,
        kind_frequencies={"ENERGY": 0.4, "SPEED_BOOST": 0.4, "SHIELD": 0.2},
        target_score=15,
    ),
    _level(
        3, "Firewall Breach",
        "Bypass security systems and avoid detection protocols.",
        "Hard",
        initial_tick_interval_ms=700, floor_tick_interval_ms=500, speed_decrease_step=30,
        obstacle_chance=0.5, powerup_chance=0.3,
        kind_frequencies={"ENERGY": 0.3, "SPEED_BOOST": 0.5, "SHIELD": 0.2},
        target_score=20,
    ),
    _level(
        4, "Quantum Maze",
        "Master unpredictable quantum shifts and collect unstable energy patterns.",
        "Expert",
        initial_tick_interval_ms=600, floor_tick_interval_ms=400, speed_decrease_step=35,
        obstacle_chance=0.55, powerup_chance=0.25,
        kind_frequencies={"ENERGY": 0.3, "SPEED_BOOST": 0.4, "SHIELD": 0.3},
        target_score=25,
    ),
    _level(
        5, "Neon Nexus",
        "Reach the core of the system where reality bends to your will.",
        "Insane",
        initial_tick_interval_ms=500, floor_tick_interval_ms=300, speed_decrease_step=40,
        obstacle_chance=0.6, powerup_chance=0.2,
        kind_frequencies={"ENERGY": 0.2, "SPEED_BOOST": 0.4, "SHIELD": 0.4},
        target_score=30,
    ),
]


def get_level_by_id(level_id: int) -> Optional[Level]:
    """Level with this id (0 is Classic), or None."""
    if level_id == CLASSIC_LEVEL.id:
        return CLASSIC_LEVEL
    for level in LEVELS:
        if level.id == level_id:
            return level
    return None


def get_all_levels() -> List[Level]:
    return list(LEVELS)
