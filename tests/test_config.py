"""
Tests for difficulty parsing and environment configuration.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from rps_adaptive.config import (
    AdaptiveEnsembleConfig, Difficulty, EngineConfig, FrequencyPatternConfig,
)
from rps_adaptive.errors import InvalidDifficulty


class TestDifficulty:
    def test_parse(self):
        assert Difficulty.parse("easy") is Difficulty.EASY
        assert Difficulty.parse("Hard") is Difficulty.HARD
        assert Difficulty.parse(Difficulty.MEDIUM) is Difficulty.MEDIUM

    def test_parse_rejects_unknown(self):
        with pytest.raises(InvalidDifficulty) as excinfo:
            Difficulty.parse("expert")
        assert excinfo.value.difficulty == "expert"


class TestDefaults:
    def test_medium_weights(self):
        assert FrequencyPatternConfig().predictor_weights == (0.4, 0.35, 0.25)

    def test_hard_weights(self):
        weights = AdaptiveEnsembleConfig().predictor_weights
        assert weights == {"markov": 0.30, "pattern": 0.25, "frequency": 0.20, "counter": 0.15}

    def test_configs_are_frozen(self):
        config = EngineConfig()
        with pytest.raises(Exception):
            config.hard = AdaptiveEnsembleConfig()


class TestFromEnv:
    def test_no_overrides(self):
        assert EngineConfig.from_env({}) == EngineConfig()

    def test_overrides(self):
        config = EngineConfig.from_env({
            "RPS_AI_EXPLORATION_RATE": "0.1",
            "RPS_AI_CONFIDENCE_THRESHOLD": "0.6",
            "RPS_AI_FALLBACK_RATE": "0.25",
            "RPS_AI_BLUFF_PROBABILITY": "0",
        })
        assert config.hard.exploration_rate == pytest.approx(0.1)
        assert config.hard.confidence_threshold == pytest.approx(0.6)
        assert config.hard.bluff_probability == 0.0
        assert config.medium.fallback_rate == pytest.approx(0.25)

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("RPS_AI_BLUFF_PROBABILITY", "0.5")
        assert EngineConfig.from_env().hard.bluff_probability == pytest.approx(0.5)

    @pytest.mark.parametrize("raw", ["abc", "1.5", "-0.1", ""])
    def test_rejects_bad_values(self, raw):
        with pytest.raises(ValueError, match="RPS_AI_EXPLORATION_RATE"):
            EngineConfig.from_env({"RPS_AI_EXPLORATION_RATE": raw})
