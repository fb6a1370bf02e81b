"""AIEngine: the synthetic opponent one game talks to.

One engine models one human player for one game. Collaborators drive it
once per round, strictly in this order::

    engine.record_player_move(move)
    ai_move = engine.make_move()
    ...round is judged...
    engine.update_strategy(ai_move, player_move, result)

The engine is a single-owner object with no internal locking.
"""

from dataclasses import replace
from types import MappingProxyType
import logging
import random
from typing import Optional

from .config import Difficulty, EngineConfig
from .engine import MOVES, Move, Result, RoundOutcome, _FrozenHistory
from .patterns import MarkovModel, PatternSnapshot, PatternStore
from .strategies import StrategyStats, create_strategy

logger = logging.getLogger(__name__)

ADAPTATION_WIN_STEP = 0.02
ADAPTATION_LOSS_STEP = 0.01


class AIEngine:
    """Owns the pattern store, Markov model, strategy and history of one game."""

    def __init__(
        self,
        difficulty=Difficulty.EASY,
        opponent_id: str = "human",
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.difficulty = Difficulty.parse(difficulty)
        self.opponent_id = opponent_id
        self.config = config or EngineConfig()
        if rng is None:
            rng = random.Random(seed)
        elif seed is not None:
            rng.seed(seed)
        self.rng = rng

        self._history: list[Move] = []
        self._patterns = PatternStore()
        self._markov = None
        if self.difficulty is Difficulty.HARD:
            hard = self.config.hard
            self._markov = MarkovModel((hard.markov_fallback_order, hard.markov_order))
        self.strategy = create_strategy(self.difficulty, self.rng, self.config, self._markov)
        self._adaptation_level = 0.0

        logger.info("AI engine created: difficulty=%s opponent=%s",
                    self.difficulty.value, self.opponent_id)

    # -- round protocol ------------------------------------------------------

    def record_player_move(self, move):
        """Record the player's move. Raises InvalidMove and changes nothing on bad input."""
        move = Move.parse(move)
        self.strategy.observe(move, _FrozenHistory(self._history))
        self._patterns.record(move)
        self._history.append(move)

    def make_move(self) -> Move:
        """Choose the AI's move. Always returns a valid move."""
        move = self.strategy.decide(_FrozenHistory(self._history), self._patterns.snapshot())
        if not isinstance(move, Move):
            logger.warning("%s strategy returned %r; playing a random move",
                           self.difficulty.value, move)
            return self.rng.choice(MOVES)
        return move

    def update_strategy(self, ai_move, player_move, result):
        """Feed back a resolved round.

        Raises InvalidMove or InvalidResult before touching any state.
        """
        outcome = RoundOutcome(Move.parse(ai_move), Move.parse(player_move), Result.parse(result))
        self.strategy.adapt(outcome)
        self._update_adaptation_level(outcome.result)

    def _update_adaptation_level(self, result: Result):
        if result is Result.WIN:
            step = ADAPTATION_WIN_STEP
        elif result is Result.LOSE:
            step = -ADAPTATION_LOSS_STEP
        else:
            step = 0.0
        self._adaptation_level = max(0.0, min(1.0, self._adaptation_level + step))

    # -- read-only views -----------------------------------------------------

    def get_thinking_time(self) -> int:
        """Advisory delay in milliseconds before revealing the AI's move."""
        return self.strategy.thinking_time()

    def get_strategy_stats(self) -> StrategyStats:
        stats = self.strategy.stats()
        details = dict(stats.details)
        details["model_adaptation"] = round(stats.adaptation_level, 4)
        details["opponent_id"] = self.opponent_id
        return replace(stats, adaptation_level=self._adaptation_level,
                       details=MappingProxyType(details))

    def get_player_history(self) -> tuple:
        return tuple(self._history)

    def get_patterns(self) -> PatternSnapshot:
        return self._patterns.snapshot()

    def get_adaptation_level(self) -> float:
        return self._adaptation_level

    @property
    def last_decision(self):
        return self.strategy.last_decision

    # -- lifecycle -----------------------------------------------------------

    def reset(self):
        """Forget everything learned; only call between games."""
        self._history = []
        self._patterns.reset()
        if self._markov is not None:
            self._markov.reset()
        self.strategy.reset()
        self._adaptation_level = 0.0
        logger.info("AI engine reset: difficulty=%s opponent=%s",
                    self.difficulty.value, self.opponent_id)

    def reseed(self, seed: Optional[int]):
        """Re-seed the shared RNG in place so replays are deterministic."""
        self.rng.seed(seed)

    def __repr__(self):
        return (f"AIEngine(difficulty={self.difficulty.value!r}, "
                f"opponent_id={self.opponent_id!r}, moves={len(self._history)})")
