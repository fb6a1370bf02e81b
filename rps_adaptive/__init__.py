"""Adaptive rock-paper-scissors opponent."""

from .ai_engine import AIEngine
from .config import Difficulty, EngineConfig
from .engine import Move, Result, RoundOutcome, counter, judge
from .errors import EngineError, InvalidDifficulty, InvalidMove, InvalidResult

__version__ = "1.0.0"

__all__ = [
    "AIEngine",
    "Difficulty",
    "EngineConfig",
    "EngineError",
    "InvalidDifficulty",
    "InvalidMove",
    "InvalidResult",
    "Move",
    "Result",
    "RoundOutcome",
    "counter",
    "judge",
]
