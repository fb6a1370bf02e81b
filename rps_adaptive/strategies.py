"""The three AI tiers: trivial random, frequency/pattern voting, adaptive ensemble."""

from abc import ABC, abstractmethod
from collections import Counter, deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence
import logging
import random

import numpy as np

from .adaptation import ExplorationController, ThresholdController
from .config import (
    AdaptiveEnsembleConfig,
    Difficulty,
    EngineConfig,
    FrequencyPatternConfig,
    SEQUENCE_HISTORY_SIZE,
    ThinkingTimeConfig,
)
from .engine import MOVES, Move, RoundOutcome, counter, double_counter
from .patterns import MarkovModel, PatternSnapshot, sequence_key

logger = logging.getLogger(__name__)

_MAX_ENTROPY = float(np.log2(len(MOVES)))


@dataclass(frozen=True)
class Prediction:
    """A guess at the player's next move."""
    move: Move
    confidence: float
    source: str


@dataclass(frozen=True)
class Decision:
    """Why the last move was chosen. Diagnostic only."""
    move: Move
    source: str
    predicted: Optional[Move] = None
    confidence: float = 0.0


@dataclass(frozen=True)
class StrategyStats:
    """Read-only snapshot of a strategy for telemetry and UI."""
    name: str
    description: str
    adaptation_level: float
    moves_analyzed: int
    successful_predictions: int
    prediction_accuracy: float
    expected_win_rate: float
    details: Mapping = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "adaptation_level": round(self.adaptation_level, 4),
            "moves_analyzed": self.moves_analyzed,
            "successful_predictions": self.successful_predictions,
            "prediction_accuracy": round(self.prediction_accuracy, 4),
            "expected_win_rate": round(self.expected_win_rate, 4),
            **dict(self.details),
        }


def _best_count(counts: Mapping[Move, int]) -> tuple[Optional[Move], float]:
    """Most common move and its share of the total, ties broken by move order."""
    best, best_count, total = None, 0, 0
    for move in MOVES:
        count = counts.get(move, 0)
        total += count
        if count > best_count:
            best, best_count = move, count
    if best is None:
        return None, 0.0
    return best, best_count / total


class Strategy(ABC):
    """Base class for AI tiers.

    Every tier implements the whole lifecycle: ``decide`` a move, ``observe``
    each player move, ``adapt`` to each resolved round, report ``stats``,
    suggest a ``thinking_time`` and ``reset`` between games.
    """
    name: str = ""
    description: str = ""
    difficulty: Difficulty

    def __init__(self, rng: Optional[random.Random] = None,
                 thinking: Optional[ThinkingTimeConfig] = None):
        self.rng: random.Random = rng if rng is not None else random.Random()
        self.thinking = thinking or ThinkingTimeConfig()
        self.last_decision: Optional[Decision] = None
        self.reset()

    @abstractmethod
    def decide(self, history: Sequence[Move], patterns: PatternSnapshot) -> Move:
        ...

    @abstractmethod
    def observe(self, move: Move, prior_history: Sequence[Move]):
        """Learn from a player move. `prior_history` excludes `move`."""

    @abstractmethod
    def adapt(self, outcome: RoundOutcome):
        ...

    @abstractmethod
    def stats(self) -> StrategyStats:
        ...

    @abstractmethod
    def thinking_time(self) -> int:
        ...

    @abstractmethod
    def reset(self):
        ...

    def _random_move(self) -> Move:
        return self.rng.choice(MOVES)

    def _decided(self, move: Move, source: str,
                 predicted: Optional[Move] = None, confidence: float = 0.0) -> Move:
        self.last_decision = Decision(move, source, predicted, confidence)
        logger.debug("%s chose %s via %s (predicted=%s, confidence=%.2f)",
                     self.name, move.value, source,
                     predicted.value if predicted else None, confidence)
        return move

    def _draw_thinking_time(self, bounds: tuple[int, int], complexity: float = 0.0) -> int:
        low, high = bounds
        base = self.rng.uniform(low, high)
        bonus = min(complexity, self.thinking.max_complexity_bonus)
        return max(1, int(base * (1 + bonus)))

    def __repr__(self):
        return f"<{self.name} strategy>"


# ---------------------------------------------------------------------------
# Easy: uniform random
# ---------------------------------------------------------------------------

class TrivialStrategy(Strategy):
    """Plays a uniformly random move and never learns.

    **Tier**: Easy
    **Expected win rate**: 1/3 against anyone
    """
    name = "Easy"
    description = "Random move selection with no strategy"
    difficulty = Difficulty.EASY

    def reset(self):
        self.moves_analyzed = 0
        self.last_decision = None

    def decide(self, history, patterns):
        return self._decided(self._random_move(), "random")

    def observe(self, move, prior_history):
        self.moves_analyzed += 1

    def adapt(self, outcome):
        pass

    def stats(self):
        return StrategyStats(
            name=self.name,
            description=self.description,
            adaptation_level=0.0,
            moves_analyzed=self.moves_analyzed,
            successful_predictions=0,
            prediction_accuracy=0.0,
            expected_win_rate=1 / 3,
        )

    def thinking_time(self):
        return self._draw_thinking_time(self.thinking.easy)


# ---------------------------------------------------------------------------
# Medium: weighted vote of three weak predictors
# ---------------------------------------------------------------------------

class FrequencyPatternStrategy(Strategy):
    """Counters a confidence-weighted vote of three weak predictors.

    1. Sequence: most frequent continuation of the player's last move.
    2. Frequency: move shares over 3/7/15-move windows, with avoided
       moves damped and simple cycles boosted.
    3. Psychology: a broken double (returns to the doubled move) or a
       window that used all three moves (repeats the oldest).

    A shrinking share of rounds is played at random to stay unpredictable.

    **Tier**: Medium
    """
    name = "Medium"
    description = "Pattern recognition with frequency analysis"
    difficulty = Difficulty.MEDIUM

    def __init__(self, rng=None, config: Optional[FrequencyPatternConfig] = None, thinking=None):
        self.config = config or FrequencyPatternConfig()
        self.controller = ThresholdController(self.config)
        super().__init__(rng, thinking)

    def reset(self):
        self.controller.reset()
        self.pattern_matches: Counter = Counter()
        self.last_decision = None

    def observe(self, move, prior_history):
        self.controller.note_move(move, prior_history)
        if prior_history:
            self.pattern_matches[sequence_key((prior_history[-1], move))] += 1

    def adapt(self, outcome):
        self.controller.record(outcome)

    def decide(self, history, patterns):
        if len(history) < self.config.min_history:
            return self._decided(self._random_move(), "insufficient-history")

        if self.rng.random() < self.controller.adaptive_fallback():
            return self._decided(self._random_move(), "random-fallback")

        predictions = self.predict(history, patterns)
        if predictions:
            predicted, share = self._weighted_vote(predictions)
            return self._decided(counter(predicted), "vote", predicted, share)

        return self._decided(self._random_move(), "no-prediction")

    def predict(self, history: Sequence[Move], patterns: PatternSnapshot) -> list[Prediction]:
        """Run all three predictors; each contributes at its fixed weight."""
        seq_w, freq_w, psych_w = self.config.predictor_weights
        predictions = []

        move = self.predict_sequence(history, patterns)
        if move is not None:
            predictions.append(Prediction(move, seq_w, "sequence"))

        move = self.predict_frequency(history, patterns)
        if move is not None:
            predictions.append(Prediction(move, freq_w, "frequency"))

        move = self.predict_psychology(history)
        if move is not None:
            predictions.append(Prediction(move, psych_w, "psychology"))

        return predictions

    def _weighted_vote(self, predictions: list[Prediction]) -> tuple[Move, float]:
        votes: dict[Move, float] = {}
        for pred in predictions:
            votes[pred.move] = votes.get(pred.move, 0.0) + pred.confidence
        winner = max(votes, key=votes.get)
        return winner, votes[winner] / sum(votes.values())

    def predict_sequence(self, history, patterns) -> Optional[Move]:
        if not history:
            return None
        last = history[-1]
        acceptance = self.config.sequence_acceptance

        move, share = _best_count(patterns.continuations(last))
        if move is not None and share >= acceptance:
            return move

        # Fall back to the pairs this strategy learned itself
        local = {m: self.pattern_matches.get(sequence_key((last, m)), 0) for m in MOVES}
        move, share = _best_count(local)
        if move is not None and share >= acceptance:
            return move
        return None

    def predict_frequency(self, history, patterns) -> Optional[Move]:
        if patterns.total == 0 or not history:
            return None

        scores = {m: 0.0 for m in MOVES}
        for size, weight in self.config.frequency_windows:
            window_size = min(size, len(history))
            counts = Counter(history[-window_size:])
            for m in MOVES:
                scores[m] += counts[m] / window_size * weight

        avoided = self._avoided_move(history)
        if avoided is not None:
            scores[avoided] *= self.config.avoided_penalty

        cyclic = self._cycle_continuation(history)
        if cyclic is not None:
            scores[cyclic] *= self.config.cyclic_boost

        predicted = max(MOVES, key=scores.get)
        if scores[predicted] > self.config.frequency_acceptance:
            return predicted
        return None

    def predict_psychology(self, history) -> Optional[Move]:
        if len(history) < self.config.psychology_min_history:
            return None
        a, b, c = history[-3:]
        if a is b and b is not c:
            # Broke a repetition; expect a return to it
            return a
        if len({a, b, c}) == 3:
            return a
        return None

    def _avoided_move(self, history) -> Optional[Move]:
        window = self.config.avoided_window
        if len(history) < window:
            return None
        counts = Counter(history[-window:])
        for m in MOVES:
            if counts[m] <= 1:
                return m
        return None

    @staticmethod
    def _cycle_continuation(history) -> Optional[Move]:
        if len(history) < 4:
            return None
        last4 = list(history[-4:])
        if last4[0] is last4[2] and last4[1] is last4[3] and last4[0] is not last4[1]:
            return last4[0]
        if len(history) >= 6:
            last6 = list(history[-6:])
            if last6[:3] == last6[3:]:
                return last6[0]
        return None

    def stats(self):
        accuracy = self.controller.accuracy
        return StrategyStats(
            name=self.name,
            description=self.description,
            adaptation_level=min(accuracy * 2, 1.0),
            moves_analyzed=self.controller.moves_analyzed,
            successful_predictions=self.controller.successful_predictions,
            prediction_accuracy=accuracy,
            expected_win_rate=0.5 + accuracy * 0.2,
            details=MappingProxyType({
                "patterns_detected": len(self.pattern_matches),
                "pattern_confidence_threshold": round(self.controller.confidence_threshold, 4),
                "fallback_rate": round(self.controller.fallback_rate, 4),
            }),
        )

    def thinking_time(self):
        return self._draw_thinking_time(self.thinking.medium, len(self.pattern_matches) / 10)


# ---------------------------------------------------------------------------
# Hard: Markov + frequency + pattern + counter ensemble
# ---------------------------------------------------------------------------

def chaos_move(history: Sequence[Move], window: int = 5) -> Move:
    """Deterministic move from a rolling 32-bit hash of the last few moves."""
    text = sequence_key(list(history[-window:])) if window else ""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return MOVES[abs(h) % len(MOVES)]


class AdaptiveEnsembleStrategy(Strategy):
    """Ensemble of four predictors with exploration and bluffing.

    Predictors (fixed weights):
      - **markov** (0.30): order-3 transition lookup, entropy-boosted
        confidence; falls back to order 2 at 0.85x.
      - **pattern** (0.25): repeating block of length 2-5 at confidence
        0.8, else the most common continuation of the last move.
      - **frequency** (0.20): 3/7/15-move horizons with a trend bonus.
      - **counter** (0.15): what the player did after past rounds with
        the same result as the last one.

    Per candidate move the ensemble sums confidence x weight, with a 1.2x
    bonus when at least two predictors agree. A winner whose share of the
    total score clears the gate is countered, or double-countered as a
    bluff when the model has been reading the player well. Otherwise a
    move is sampled from the weighted candidates.

    Exploration replaces the whole decision with a random, anti-frequency
    or hash-derived "chaos" move at a rate driven by the recent win rate.

    **Tier**: Hard
    """
    name = "Hard"
    description = "Advanced AI with Markov chains and adaptive learning"
    difficulty = Difficulty.HARD

    EXPLORATION_MODES = ("random", "anti-frequency", "chaos")

    def __init__(self, rng=None, config: Optional[AdaptiveEnsembleConfig] = None,
                 thinking=None, markov: Optional[MarkovModel] = None):
        self.config = config or AdaptiveEnsembleConfig()
        self.markov = markov or MarkovModel(
            (self.config.markov_fallback_order, self.config.markov_order))
        self.controller = ExplorationController(self.config)
        self.weights = MappingProxyType(dict(self.config.predictor_weights))
        super().__init__(rng, thinking)

    def reset(self):
        self.controller.reset()
        self.markov.reset()
        self.sequence_history: deque = deque(maxlen=SEQUENCE_HISTORY_SIZE)
        self.cyclic_patterns: Counter = Counter()
        self.last_decision = None

    # -- learning ----------------------------------------------------------

    def observe(self, move, prior_history):
        self.controller.note_move(move, prior_history)
        self.sequence_history.append(move)
        self._count_cycles()

    def _count_cycles(self):
        recent = list(self.sequence_history)
        if len(recent) < self.config.cycle_min_history:
            return
        for length in range(2, 5):
            if len(recent) < length * 3:
                continue
            block = recent[-length:]
            if block == recent[-2 * length:-length]:
                self.cyclic_patterns[sequence_key(block)] += 1

    def adapt(self, outcome):
        self.controller.record(outcome)

    # -- deciding ----------------------------------------------------------

    def decide(self, history, patterns):
        if len(history) < self.config.min_history:
            return self._decided(self._random_move(), "insufficient-history")

        self.markov.update(history)

        if self.rng.random() < self.controller.exploration_rate:
            return self._explore(history, patterns)

        predictions = self.predict(history, patterns)
        best = self.combine(predictions)

        if best is not None and best.confidence >= self.config.confidence_threshold:
            if (self.controller.recent_accuracy > self.config.bluff_accuracy
                    and self.rng.random() < self.config.bluff_probability):
                logger.debug("bluffing against predicted %s", best.move.value)
                return self._decided(double_counter(best.move), "bluff", best.move, best.confidence)
            return self._decided(counter(best.move), "ensemble", best.move, best.confidence)

        return self._sample_fallback(predictions)

    def predict(self, history: Sequence[Move], patterns: PatternSnapshot) -> list[Prediction]:
        predictions = []
        for predictor in (self.predict_markov, self.predict_frequency,
                          self.predict_pattern, self.predict_counter):
            prediction = predictor(history, patterns)
            if prediction is not None:
                predictions.append(prediction)
        return predictions

    def combine(self, predictions: list[Prediction]) -> Optional[Prediction]:
        """Merge predictions into one move and its share of the total score."""
        if not predictions:
            return None
        scores: dict[Move, float] = {}
        votes: Counter = Counter()
        for pred in predictions:
            scores[pred.move] = scores.get(pred.move, 0.0) + pred.confidence * self.weights[pred.source]
            votes[pred.move] += 1
        for move, n in votes.items():
            if n >= 2:
                scores[move] *= self.config.agreement_bonus

        total = sum(scores.values())
        if total <= 0:
            return None
        winner = max(scores, key=scores.get)
        return Prediction(winner, scores[winner] / total, "ensemble")

    def _sample_fallback(self, predictions: list[Prediction]) -> Move:
        scores: dict[Move, float] = {}
        for pred in predictions:
            scores[pred.move] = scores.get(pred.move, 0.0) + pred.confidence * self.weights[pred.source]
        total = sum(scores.values())
        if total <= 0:
            return self._decided(self._random_move(), "random-fallback")

        draw = self.rng.random() * total
        for move, score in scores.items():
            draw -= score
            if draw <= 0:
                return self._decided(counter(move), "weighted-fallback", move, score / total)
        # Rounding left a sliver of the draw; take the last candidate
        return self._decided(counter(move), "weighted-fallback", move, score / total)

    def _explore(self, history, patterns) -> Move:
        mode = self.rng.choice(self.EXPLORATION_MODES)
        if mode == "anti-frequency" and patterns.total > 0:
            least = min(MOVES, key=patterns.frequency)
            return self._decided(counter(least), "explore:anti-frequency", least)
        if mode == "chaos":
            return self._decided(chaos_move(history, self.config.chaos_window), "explore:chaos")
        return self._decided(self._random_move(), "explore:random")

    # -- predictors --------------------------------------------------------

    def predict_markov(self, history, patterns=None) -> Optional[Prediction]:
        order = self.config.markov_order
        if len(history) >= order:
            prediction = self._markov_from(history[-order:])
            if prediction is not None:
                return prediction

        fallback = self.config.markov_fallback_order
        if len(history) >= fallback:
            prediction = self._markov_from(history[-fallback:])
            if prediction is not None:
                return Prediction(
                    prediction.move,
                    prediction.confidence * self.config.markov_fallback_factor,
                    "markov",
                )
        return None

    def _markov_from(self, state) -> Optional[Prediction]:
        transitions = self.markov.lookup(list(state))
        if not transitions:
            return None
        counts = np.array([transitions.get(m, 0) for m in MOVES], dtype=float)
        total = counts.sum()
        best = int(np.argmax(counts))
        share = counts[best] / total

        probs = counts[counts > 0] / total
        entropy = float(-(probs * np.log2(probs)).sum())
        boost = 1 + self.config.markov_entropy_boost * (1 - entropy / _MAX_ENTROPY)
        return Prediction(MOVES[best], min(float(share * boost), 1.0), "markov")

    def predict_frequency(self, history, patterns) -> Optional[Prediction]:
        if patterns.total == 0 or not history:
            return None

        n = len(history)
        scores = {m: 0.0 for m in MOVES}
        for size, weight in self.config.frequency_horizons:
            window_size = min(size, n)
            counts = Counter(history[-window_size:])
            for m in MOVES:
                scores[m] += counts[m] / window_size * weight

        # Trend: compare the shortest horizon with the longest
        short_size = min(self.config.frequency_horizons[0][0], n)
        long_size = min(self.config.frequency_horizons[-1][0], n)
        short = Counter(history[-short_size:])
        long = Counter(history[-long_size:])
        for m in MOVES:
            short_share = short[m] / short_size
            long_share = long[m] / long_size
            if short_share > long_share:
                scores[m] *= self.config.trend_rising
            elif short_share < long_share:
                scores[m] *= self.config.trend_falling

        total = sum(scores.values())
        if total <= 0:
            return None
        predicted = max(MOVES, key=scores.get)
        return Prediction(predicted, scores[predicted] / total, "frequency")

    def detect_cycle(self, history) -> Optional[Prediction]:
        """Find a block of 2-5 moves repeated back to back at the end of history."""
        n = len(history)
        if n < self.config.cycle_min_history:
            return None
        shortest, longest = self.config.cycle_lengths
        for length in range(shortest, longest + 1):
            if n < length * 2:
                continue
            recent = list(history[-length * 2:])
            if recent[:length] == recent[length:]:
                # The next move restarts the block
                return Prediction(recent[0], self.config.cycle_confidence, "pattern")
        return None

    def predict_pattern(self, history, patterns) -> Optional[Prediction]:
        cyclic = self.detect_cycle(history)
        if cyclic is not None:
            return cyclic

        if len(history) < 2:
            return None
        move, share = _best_count(patterns.continuations(history[-1]))
        if move is None:
            return None
        return Prediction(move, share, "pattern")

    def predict_counter(self, history, patterns=None) -> Optional[Prediction]:
        if len(history) < self.config.counter_min_history:
            return None
        outcomes = self.controller.recent_outcomes
        if not outcomes:
            return None

        last_result = outcomes[-1].result
        similar = sum(1 for o in outcomes if o.result is last_result)
        if similar < self.config.counter_min_situations:
            return None

        move, share = _best_count(self.controller.follow_up_counts(last_result))
        if move is None:
            return None
        return Prediction(move, share, "counter")

    # -- reporting ---------------------------------------------------------

    @property
    def top_strategy(self) -> str:
        return max(self.weights, key=self.weights.get)

    def stats(self):
        ctl = self.controller
        accuracy = ctl.accuracy
        return StrategyStats(
            name=self.name,
            description=self.description,
            adaptation_level=min(accuracy * 1.5, 1.0),
            moves_analyzed=ctl.moves_analyzed,
            successful_predictions=ctl.successful_predictions,
            prediction_accuracy=accuracy,
            expected_win_rate=0.7 + accuracy * 0.15,
            details=MappingProxyType({
                "recent_win_rate": round(ctl.recent_win_rate, 4),
                "recent_prediction_accuracy": round(ctl.recent_accuracy, 4),
                "markov_states": self.markov.state_count(),
                "cyclic_patterns": len(self.cyclic_patterns),
                "exploration_rate": round(ctl.exploration_rate, 4),
                "top_strategy": self.top_strategy,
                "predictor_weights": dict(self.weights),
                "repeat_tendency": dict(ctl.repeat_tendency),
                "alternate_tendency": dict(ctl.alternate_tendency),
                "follow_ups": {
                    result.value: {m.value: n for m, n in counts.items()}
                    for result, counts in ctl.follow_ups.items()
                },
            }),
        )

    def thinking_time(self):
        complexity = self.markov.state_count() / 20 + len(self.cyclic_patterns) / 10
        return self._draw_thinking_time(self.thinking.hard, complexity)


STRATEGY_CLASSES = {
    Difficulty.EASY: TrivialStrategy,
    Difficulty.MEDIUM: FrequencyPatternStrategy,
    Difficulty.HARD: AdaptiveEnsembleStrategy,
}


def create_strategy(difficulty, rng: Optional[random.Random] = None, config=None,
                    markov: Optional[MarkovModel] = None) -> Strategy:
    """Build the strategy for a tier from an EngineConfig."""
    difficulty = Difficulty.parse(difficulty)
    config = config or EngineConfig()
    if difficulty is Difficulty.EASY:
        return TrivialStrategy(rng, thinking=config.thinking)
    if difficulty is Difficulty.MEDIUM:
        return FrequencyPatternStrategy(rng, config.medium, thinking=config.thinking)
    return AdaptiveEnsembleStrategy(rng, config.hard, thinking=config.thinking, markov=markov)
