"""
Tests for the three AI tiers and their predictors.
"""

import sys
import os
import math
import random

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from rps_adaptive.config import AdaptiveEnsembleConfig, Difficulty, FrequencyPatternConfig
from rps_adaptive.engine import MOVES, Move, RoundOutcome, counter, judge
from rps_adaptive.patterns import PatternStore
from rps_adaptive.strategies import (
    AdaptiveEnsembleStrategy,
    FrequencyPatternStrategy,
    Prediction,
    STRATEGY_CLASSES,
    TrivialStrategy,
    chaos_move,
    create_strategy,
)

R, P, S = Move.ROCK, Move.PAPER, Move.SCISSORS

# Medium with random fallback switched off entirely
NO_FALLBACK = FrequencyPatternConfig(fallback_rate=0.0, fallback_bounds=(0.0, 0.3),
                                     fallback_floor=0.0)


def outcome(ai, player):
    return RoundOutcome(ai, player, judge(ai, player))


def snapshot_of(moves):
    store = PatternStore()
    for m in moves:
        store.record(m)
    return store.snapshot()


def feed(strategy, moves):
    """Let a strategy observe `moves`; return the history and pattern snapshot."""
    history = []
    for m in moves:
        strategy.observe(m, list(history))
        history.append(m)
    return history, snapshot_of(history)


class TestCreateStrategy:
    def test_one_class_per_tier(self):
        for difficulty, cls in STRATEGY_CLASSES.items():
            strategy = create_strategy(difficulty, random.Random(0))
            assert type(strategy) is cls
            assert strategy.difficulty is difficulty

    def test_accepts_names(self):
        assert isinstance(create_strategy("hard"), AdaptiveEnsembleStrategy)


class TestTrivialStrategy:
    def test_plays_every_move(self):
        strategy = TrivialStrategy(random.Random(1))
        seen = {strategy.decide([], snapshot_of([])) for _ in range(60)}
        assert seen == set(MOVES)

    def test_never_learns(self):
        strategy = TrivialStrategy(random.Random(1))
        feed(strategy, [R] * 10)
        strategy.adapt(outcome(R, P))
        stats = strategy.stats()
        assert stats.moves_analyzed == 10
        assert stats.successful_predictions == 0
        assert stats.adaptation_level == 0.0
        assert stats.expected_win_rate == pytest.approx(1 / 3)

    def test_thinking_time_range(self):
        strategy = TrivialStrategy(random.Random(2))
        for _ in range(50):
            assert 500 <= strategy.thinking_time() <= 1500


class TestFrequencyPatternStrategy:
    def test_random_with_short_history(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        history, snap = feed(strategy, [R])
        assert strategy.decide(history, snap) in MOVES
        assert strategy.last_decision.source == "insufficient-history"

    def test_alternating_player_ending_on_rock(self):
        strategy = FrequencyPatternStrategy(random.Random(0), NO_FALLBACK)
        history, snap = feed(strategy, [R, P] * 4 + [R])
        move = strategy.decide(history, snap)
        assert strategy.last_decision.predicted is P
        assert move is S

    def test_alternating_player_ending_on_paper(self):
        strategy = FrequencyPatternStrategy(random.Random(0), NO_FALLBACK)
        history, snap = feed(strategy, [R, P] * 4)
        move = strategy.decide(history, snap)
        assert strategy.last_decision.predicted is R
        assert move is P

    def test_sequence_predictor(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        history, snap = feed(strategy, [R, P, R, P, R])
        assert strategy.predict_sequence(history, snap) is P

    def test_sequence_predictor_needs_a_clear_favourite(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        history, snap = feed(strategy, [R, P, R, S, R, R, R])
        # After rock: paper, scissors, rock, rock -> rock at exactly half
        assert strategy.predict_sequence(history, snap) is R

        fresh = FrequencyPatternStrategy(random.Random(0))
        history, snap = feed(fresh, [R, P, R, S, R, R])
        # After rock: paper, scissors, rock -> no move reaches the bar
        assert fresh.predict_sequence(history, snap) is None

    def test_frequency_predictor(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        history, snap = feed(strategy, [S, S, S, S])
        assert strategy.predict_frequency(history, snap) is S

    def test_psychology_predictor(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        assert strategy.predict_psychology([R, R, R, R, P]) is R
        assert strategy.predict_psychology([S, S, R, P, S]) is R
        assert strategy.predict_psychology([R, R, R, R, R]) is None
        assert strategy.predict_psychology([R, P, S]) is None

    def test_weighted_vote(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        move, share = strategy._weighted_vote([
            Prediction(R, 0.4, "sequence"),
            Prediction(P, 0.35, "frequency"),
            Prediction(P, 0.25, "psychology"),
        ])
        assert move is P
        assert share == pytest.approx(0.6)

    def test_beats_constant_player(self):
        strategy = FrequencyPatternStrategy(random.Random(3), NO_FALLBACK)
        history, snap = feed(strategy, [S] * 6)
        assert strategy.decide(history, snap) is R

    def test_stats(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        feed(strategy, [R, P, S])
        stats = strategy.stats()
        assert stats.name == "Medium"
        assert stats.moves_analyzed == 3
        assert stats.details["patterns_detected"] == 2
        assert stats.details["fallback_rate"] == pytest.approx(0.2)
        assert stats.expected_win_rate == pytest.approx(0.5)
        with pytest.raises(TypeError):
            stats.details["patterns_detected"] = 0

    def test_reset(self):
        strategy = FrequencyPatternStrategy(random.Random(0))
        history, snap = feed(strategy, [R, P, R, P])
        strategy.decide(history, snap)
        strategy.reset()
        assert strategy.stats().moves_analyzed == 0
        assert not strategy.pattern_matches
        assert strategy.last_decision is None

    def test_thinking_time_range(self):
        strategy = FrequencyPatternStrategy(random.Random(4))
        for _ in range(50):
            assert 800 <= strategy.thinking_time() <= 3000


class TestChaosMove:
    def test_known_values(self):
        assert chaos_move([]) is R
        assert chaos_move([R]) is S

    def test_deterministic(self):
        history = [R, P, P, S, R, S, P]
        assert chaos_move(history) is chaos_move(list(history))

    def test_only_last_moves_matter(self):
        assert chaos_move([P] + [R] * 5) is chaos_move([R] * 5)


class TestAdaptiveEnsembleDetectCycle:
    def setup_method(self):
        self.strategy = AdaptiveEnsembleStrategy(random.Random(0))

    def test_two_cycle(self):
        assert self.strategy.detect_cycle([R, P] * 3) == Prediction(R, 0.8, "pattern")

    def test_two_cycle_midway(self):
        assert self.strategy.detect_cycle([R, P] * 3 + [R]) == Prediction(P, 0.8, "pattern")

    def test_three_cycle(self):
        assert self.strategy.detect_cycle([R, P, S] * 2) == Prediction(R, 0.8, "pattern")

    def test_repeated_move(self):
        assert self.strategy.detect_cycle([S] * 6).move is S

    def test_needs_six_moves(self):
        assert self.strategy.detect_cycle([R, P, R, P, R]) is None

    def test_no_cycle(self):
        assert self.strategy.detect_cycle([R, R, P, S, S, P, R]) is None


class TestAdaptiveEnsemblePredictors:
    def setup_method(self):
        self.strategy = AdaptiveEnsembleStrategy(random.Random(0))

    def test_markov_certain_transition(self):
        history = [R, P, S] * 3
        self.strategy.markov.update(history)
        assert self.strategy.predict_markov(history) == Prediction(R, 1.0, "markov")

    def test_markov_entropy_scales_confidence(self):
        history = [R, P, S, R, P, S, P, R, P, S]
        self.strategy.markov.update(history)
        prediction = self.strategy.predict_markov(history)
        expected = 0.5 * (1 + 0.3 * (1 - 1 / math.log2(3)))
        assert prediction.move is R
        assert prediction.confidence == pytest.approx(expected)

    def test_markov_falls_back_to_order_two(self):
        history = [S, P, R, S, P]
        self.strategy.markov.update(history)
        prediction = self.strategy.predict_markov(history)
        assert prediction.move is R
        assert prediction.confidence == pytest.approx(0.85)

    def test_markov_unknown_state(self):
        history = [R, P]
        self.strategy.markov.update(history)
        assert self.strategy.predict_markov(history) is None

    def test_frequency_constant_player(self):
        history = [R] * 5
        prediction = self.strategy.predict_frequency(history, snapshot_of(history))
        assert prediction.move is R
        assert prediction.confidence == pytest.approx(1.0)

    def test_frequency_trend_bonus(self):
        history = [P] * 10 + [R] * 3
        prediction = self.strategy.predict_frequency(history, snapshot_of(history))
        assert prediction.move is R
        assert prediction.confidence > 0.75

    def test_frequency_without_observations(self):
        assert self.strategy.predict_frequency([], snapshot_of([])) is None

    def test_pattern_uses_continuations_without_cycle(self):
        history = [R, P, S, R, P, R]
        prediction = self.strategy.predict_pattern(history, snapshot_of(history))
        assert prediction.move is P
        assert prediction.confidence == pytest.approx(1.0)

    def test_counter_predicts_follow_up(self):
        for ai, player in ((R, P), (S, P), (P, S), (S, P), (S, R)):
            self.strategy.adapt(outcome(ai, player))
        prediction = self.strategy.predict_counter([R] * 5)
        assert prediction == Prediction(P, 1.0, "counter")

    def test_counter_needs_repeated_situation(self):
        self.strategy.adapt(outcome(R, P))
        assert self.strategy.predict_counter([R] * 5) is None

    def test_combine_with_agreement_bonus(self):
        best = self.strategy.combine([
            Prediction(R, 0.8, "markov"),
            Prediction(R, 0.5, "pattern"),
            Prediction(P, 1.0, "frequency"),
        ])
        rock = (0.8 * 0.30 + 0.5 * 0.25) * 1.2
        paper = 1.0 * 0.20
        assert best.move is R
        assert best.confidence == pytest.approx(rock / (rock + paper))

    def test_combine_nothing(self):
        assert self.strategy.combine([]) is None


class TestAdaptiveEnsembleDecide:
    def _strategy(self, **overrides):
        config = AdaptiveEnsembleConfig(exploration_rate=0.0, exploration_bounds=(0.0, 0.3),
                                        **overrides)
        strategy = AdaptiveEnsembleStrategy(random.Random(0), config)
        # The player has countered the AI five times running
        for _ in range(5):
            strategy.adapt(outcome(R, P))
        return strategy

    def test_counters_ensemble_prediction(self):
        strategy = self._strategy(bluff_probability=0.0)
        history = [R, P] * 3
        move = strategy.decide(history, snapshot_of(history))
        assert strategy.last_decision.source == "ensemble"
        assert strategy.last_decision.predicted is R
        assert move is counter(R)

    def test_bluffs_when_reading_well(self):
        strategy = self._strategy(bluff_probability=1.0)
        history = [R, P] * 3
        move = strategy.decide(history, snapshot_of(history))
        assert strategy.last_decision.source == "bluff"
        assert move is S

    def test_random_with_short_history(self):
        strategy = self._strategy()
        assert strategy.decide([R], snapshot_of([R])) in MOVES
        assert strategy.last_decision.source == "insufficient-history"

    def test_exploration_modes(self):
        config = AdaptiveEnsembleConfig(exploration_rate=1.0, exploration_bounds=(0.0, 1.0))
        strategy = AdaptiveEnsembleStrategy(random.Random(5), config)
        history = [R, R, R, P]
        sources = set()
        for _ in range(60):
            move = strategy.decide(history, snapshot_of(history))
            sources.add(strategy.last_decision.source)
            if strategy.last_decision.source == "explore:anti-frequency":
                # Scissors is the least played move
                assert move is R
            if strategy.last_decision.source == "explore:chaos":
                assert move is chaos_move(history)
        assert sources == {"explore:random", "explore:anti-frequency", "explore:chaos"}

    def test_always_valid_on_random_histories(self):
        rng = random.Random(9)
        strategy = AdaptiveEnsembleStrategy(random.Random(9))
        history = []
        for _ in range(200):
            move = rng.choice(MOVES)
            strategy.observe(move, list(history))
            history.append(move)
            ai_move = strategy.decide(history, snapshot_of(history))
            assert ai_move in MOVES
            strategy.adapt(outcome(ai_move, move))


class TestAdaptiveEnsembleState:
    def test_sequence_history_keeps_last_fifty(self):
        strategy = AdaptiveEnsembleStrategy(random.Random(0))
        rng = random.Random(11)
        moves = [rng.choice(MOVES) for _ in range(120)]
        feed(strategy, moves)
        assert len(strategy.sequence_history) == 50
        assert list(strategy.sequence_history) == moves[-50:]

    def test_counts_cycles(self):
        strategy = AdaptiveEnsembleStrategy(random.Random(0))
        feed(strategy, [R, P] * 3)
        assert dict(strategy.cyclic_patterns) == {"rockpaper": 1}

    def test_weights_are_static(self):
        strategy = AdaptiveEnsembleStrategy(random.Random(0))
        before = dict(strategy.weights)
        for _ in range(30):
            strategy.adapt(outcome(R, P))
        assert dict(strategy.weights) == before
        assert strategy.top_strategy == "markov"

    def test_stats(self):
        strategy = AdaptiveEnsembleStrategy(random.Random(0))
        history, snap = feed(strategy, [R, P, S, R])
        strategy.decide(history, snap)
        stats = strategy.stats()
        assert stats.name == "Hard"
        assert stats.moves_analyzed == 4
        assert stats.details["markov_states"] == 1
        assert stats.details["exploration_rate"] == pytest.approx(0.15)
        assert stats.details["predictor_weights"]["counter"] == pytest.approx(0.15)
        assert stats.to_dict()["top_strategy"] == "markov"

    def test_reset(self):
        strategy = AdaptiveEnsembleStrategy(random.Random(0))
        history, snap = feed(strategy, [R, P] * 4)
        strategy.decide(history, snap)
        strategy.adapt(outcome(R, P))
        strategy.reset()
        assert strategy.markov.state_count() == 0
        assert not strategy.cyclic_patterns
        assert not strategy.sequence_history
        assert strategy.stats().moves_analyzed == 0
        assert strategy.controller.exploration_rate == pytest.approx(0.15)

    def test_thinking_time_range(self):
        strategy = AdaptiveEnsembleStrategy(random.Random(4))
        for _ in range(50):
            assert 1000 <= strategy.thinking_time() <= 3750

    def test_difficulty(self):
        assert AdaptiveEnsembleStrategy.difficulty is Difficulty.HARD
