"""Online tuning of strategy parameters from round outcomes.

Each adaptive strategy embeds one controller. The controller owns the
prediction scorecard (moves analyzed vs. successful predictions) and the
tunables that react to it: confidence threshold and random fallback rate
for the medium tier, exploration rate and the recent-outcome buffer for
the hard tier.
"""

from collections import Counter, deque
import logging
from typing import Optional, Sequence

from .config import AdaptiveEnsembleConfig, FrequencyPatternConfig, OUTCOME_BUFFER_SIZE
from .engine import Move, Result, RoundOutcome

logger = logging.getLogger(__name__)


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


class AdaptationController:
    """Scores the opponent model and tunes parameters after each round."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.moves_analyzed = 0
        self.successful_predictions = 0

    @property
    def accuracy(self) -> float:
        if self.moves_analyzed == 0:
            return 0.0
        return self.successful_predictions / self.moves_analyzed

    def note_move(self, move: Move, prior_history: Sequence[Move]):
        self.moves_analyzed += 1

    def record(self, outcome: RoundOutcome):
        # The model counts as right when the player answered the AI's move
        # with its counter and took the round
        if outcome.ai_was_countered:
            self.successful_predictions += 1
        self._tune(outcome)

    def _tune(self, outcome: RoundOutcome):
        pass


class ThresholdController(AdaptationController):
    """Medium tier: confidence threshold and random fallback rate."""

    def __init__(self, config: Optional[FrequencyPatternConfig] = None):
        self.config = config or FrequencyPatternConfig()
        super().__init__()

    def reset(self):
        super().reset()
        self.confidence_threshold = _clamp(
            self.config.pattern_confidence_threshold, self.config.threshold_bounds)
        self.fallback_rate = _clamp(self.config.fallback_rate, self.config.fallback_bounds)

    def adaptive_fallback(self) -> float:
        """Probability of a random move this round.

        Shrinks as the model proves itself, but never below the floor.
        """
        success_ratio = self.successful_predictions / max(self.moves_analyzed, 1)
        return max(self.fallback_rate * (1 - success_ratio), self.config.fallback_floor)

    def _tune(self, outcome: RoundOutcome):
        cfg = self.config
        if self.moves_analyzed <= cfg.min_moves_before_tuning:
            return

        accuracy = self.accuracy
        if accuracy > cfg.high_accuracy:
            self.confidence_threshold = max(
                cfg.threshold_bounds[0], self.confidence_threshold - cfg.threshold_step)
            self.fallback_rate = max(cfg.fallback_bounds[0], self.fallback_rate - cfg.fallback_step)
            logger.debug("accuracy %.2f: tightened to threshold=%.2f fallback=%.2f",
                         accuracy, self.confidence_threshold, self.fallback_rate)
        elif accuracy < cfg.low_accuracy:
            self.confidence_threshold = min(
                cfg.threshold_bounds[1], self.confidence_threshold + cfg.threshold_step)
            self.fallback_rate = min(cfg.fallback_bounds[1], self.fallback_rate + cfg.fallback_step)
            logger.debug("accuracy %.2f: loosened to threshold=%.2f fallback=%.2f",
                         accuracy, self.confidence_threshold, self.fallback_rate)


class ExplorationController(AdaptationController):
    """Hard tier: recent outcomes, player tendencies and exploration rate.

    Predictor weights are fixed at construction; only the exploration
    rate reacts to how the AI is doing.
    """

    def __init__(self, config: Optional[AdaptiveEnsembleConfig] = None,
                 buffer_size: int = OUTCOME_BUFFER_SIZE):
        self.config = config or AdaptiveEnsembleConfig()
        self._buffer_size = buffer_size
        super().__init__()

    def reset(self):
        super().reset()
        # (outcome, model was right) pairs, oldest first
        self.recent: deque = deque(maxlen=self._buffer_size)
        self.exploration_rate = _clamp(self.config.exploration_rate, self.config.exploration_bounds)
        self.repeat_tendency = {"same": 0, "different": 0}
        self.alternate_tendency = {"alternates": 0, "doesnt": 0}
        self.follow_ups: dict[Result, Counter] = {r: Counter() for r in Result}
        self._previous_result: Optional[Result] = None

    def note_move(self, move: Move, prior_history: Sequence[Move]):
        super().note_move(move, prior_history)
        if len(prior_history) >= 1:
            key = "same" if move is prior_history[-1] else "different"
            self.repeat_tendency[key] += 1
        if len(prior_history) >= 2:
            key = "alternates" if move is prior_history[-2] else "doesnt"
            self.alternate_tendency[key] += 1

    def record(self, outcome: RoundOutcome):
        self.recent.append((outcome, outcome.ai_was_countered))
        if self._previous_result is not None:
            self.follow_ups[self._previous_result][outcome.player_move] += 1
        self._previous_result = outcome.result
        super().record(outcome)

    @property
    def recent_outcomes(self) -> tuple:
        return tuple(outcome for outcome, _ in self.recent)

    @property
    def recent_win_rate(self) -> float:
        if not self.recent:
            return 0.0
        wins = sum(1 for outcome, _ in self.recent if outcome.result is Result.WIN)
        return wins / len(self.recent)

    @property
    def recent_accuracy(self) -> float:
        if not self.recent:
            return 0.0
        return sum(1 for _, hit in self.recent if hit) / len(self.recent)

    def follow_up_counts(self, result: Result) -> Counter:
        """Player moves seen right after rounds with `result`, recent buffer only."""
        outcomes = self.recent_outcomes
        counts = Counter()
        for earlier, later in zip(outcomes, outcomes[1:]):
            if earlier.result is result:
                counts[later.player_move] += 1
        return counts

    def _tune(self, outcome: RoundOutcome):
        cfg = self.config
        before = self.exploration_rate
        win_rate = self.recent_win_rate
        if win_rate > cfg.high_win_rate:
            rate = max(cfg.exploration_bounds[0], self.exploration_rate * cfg.exploration_decay)
        elif win_rate < cfg.low_win_rate and before < cfg.exploration_reactive_cap:
            rate = min(cfg.exploration_reactive_cap, before * cfg.exploration_growth)
        else:
            rate = self.exploration_rate
        self.exploration_rate = _clamp(rate, cfg.exploration_bounds)
        if self.exploration_rate != before:
            logger.debug("recent win rate %.2f: exploration %.3f -> %.3f",
                         win_rate, before, self.exploration_rate)
