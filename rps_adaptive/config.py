"""Difficulty tiers and the tunables behind each AI strategy.

Defaults live in frozen dataclasses so every engine gets its own copy of
the starting values. ``EngineConfig.from_env()`` lets a deployment nudge
the most commonly tuned knobs without code changes.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import os

from .errors import InvalidDifficulty


class Difficulty(Enum):
    """AI tiers, one strategy per tier."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value) -> "Difficulty":
        """Coerce a Difficulty or a case-insensitive tier name.

        Raises InvalidDifficulty for anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidDifficulty(value)


# ---------------------------------------------------------------------------
# Shared limits
# ---------------------------------------------------------------------------

RECENT_WINDOW_SIZE = 5
OUTCOME_BUFFER_SIZE = 10
SEQUENCE_HISTORY_SIZE = 50


@dataclass(frozen=True)
class ThinkingTimeConfig:
    """Advisory "thinking" delay ranges in milliseconds, per tier."""
    easy: tuple[int, int] = (500, 1500)
    medium: tuple[int, int] = (800, 2000)
    hard: tuple[int, int] = (1000, 2500)
    max_complexity_bonus: float = 0.5


@dataclass(frozen=True)
class FrequencyPatternConfig:
    """Medium tier tunables."""
    min_history: int = 2
    pattern_confidence_threshold: float = 0.6
    threshold_bounds: tuple[float, float] = (0.4, 0.8)
    threshold_step: float = 0.05
    fallback_rate: float = 0.2
    fallback_bounds: tuple[float, float] = (0.1, 0.3)
    fallback_step: float = 0.02
    # Lowest random-play probability regardless of accuracy
    fallback_floor: float = 0.1
    sequence_acceptance: float = 0.45
    predictor_weights: tuple[float, float, float] = (0.4, 0.35, 0.25)
    frequency_windows: tuple[tuple[int, float], ...] = ((3, 0.5), (7, 0.3), (15, 0.2))
    frequency_acceptance: float = 0.28
    avoided_window: int = 8
    avoided_penalty: float = 0.3
    cyclic_boost: float = 1.5
    psychology_min_history: int = 5
    min_moves_before_tuning: int = 5
    high_accuracy: float = 0.6
    low_accuracy: float = 0.3


@dataclass(frozen=True)
class AdaptiveEnsembleConfig:
    """Hard tier tunables."""
    min_history: int = 2
    markov_order: int = 3
    markov_fallback_order: int = 2
    markov_fallback_factor: float = 0.85
    markov_entropy_boost: float = 0.3
    confidence_threshold: float = 0.5
    exploration_rate: float = 0.15
    exploration_bounds: tuple[float, float] = (0.05, 0.30)
    # Ceiling reached by the reactive increase; stays inside exploration_bounds
    exploration_reactive_cap: float = 0.25
    exploration_decay: float = 0.8
    exploration_growth: float = 1.3
    high_win_rate: float = 0.6
    low_win_rate: float = 0.4
    bluff_accuracy: float = 0.6
    bluff_probability: float = 0.15
    agreement_bonus: float = 1.2
    predictor_weights: dict = field(default_factory=lambda: {
        "markov": 0.30,
        "pattern": 0.25,
        "frequency": 0.20,
        "counter": 0.15,
    })
    frequency_horizons: tuple[tuple[int, float], ...] = ((3, 0.55), (7, 0.3), (15, 0.15))
    trend_rising: float = 1.3
    trend_falling: float = 0.9
    cycle_lengths: tuple[int, int] = (2, 5)
    cycle_confidence: float = 0.8
    cycle_min_history: int = 6
    counter_min_history: int = 3
    counter_min_situations: int = 2
    chaos_window: int = 5


@dataclass(frozen=True)
class EngineConfig:
    """Everything an AIEngine needs to build its strategy."""
    medium: FrequencyPatternConfig = field(default_factory=FrequencyPatternConfig)
    hard: AdaptiveEnsembleConfig = field(default_factory=AdaptiveEnsembleConfig)
    thinking: ThinkingTimeConfig = field(default_factory=ThinkingTimeConfig)

    @classmethod
    def from_env(cls, environ=None) -> "EngineConfig":
        """Load defaults, overridden by RPS_AI_* environment variables."""
        env = os.environ if environ is None else environ
        config = cls()

        medium_overrides = {}
        if "RPS_AI_FALLBACK_RATE" in env:
            medium_overrides["fallback_rate"] = _env_fraction(env, "RPS_AI_FALLBACK_RATE")

        hard_overrides = {}
        if "RPS_AI_EXPLORATION_RATE" in env:
            hard_overrides["exploration_rate"] = _env_fraction(env, "RPS_AI_EXPLORATION_RATE")
        if "RPS_AI_CONFIDENCE_THRESHOLD" in env:
            hard_overrides["confidence_threshold"] = _env_fraction(env, "RPS_AI_CONFIDENCE_THRESHOLD")
        if "RPS_AI_BLUFF_PROBABILITY" in env:
            hard_overrides["bluff_probability"] = _env_fraction(env, "RPS_AI_BLUFF_PROBABILITY")

        return replace(
            config,
            medium=replace(config.medium, **medium_overrides),
            hard=replace(config.hard, **hard_overrides),
        )


def _env_fraction(env, key: str) -> float:
    raw = env[key]
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{key} must be between 0 and 1, got {value}")
    return value
