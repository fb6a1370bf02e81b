"""
Tests for the command-line interface.
"""

import sys
import os
import json

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rps_adaptive.main import main


class TestCli:
    def test_list(self, capsys):
        assert main(["--list"]) == 0
        out = capsys.readouterr().out
        assert "AI Difficulties" in out
        assert "Win-Stay-Lose-Shift" in out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_simulate(self, capsys):
        assert main(["simulate", "--difficulty", "hard", "--bot", "Cycle",
                     "--rounds", "30", "--seed", "1"]) == 0
        out = capsys.readouterr().out
        assert "Hard AI  vs  Cycle" in out
        assert "Winner" in out

    def test_simulate_unknown_bot(self, capsys):
        assert main(["simulate", "--difficulty", "easy", "--bot", "Skynet"]) == 2
        assert "Unknown bot" in capsys.readouterr().err

    def test_simulate_export(self, tmp_path):
        path = tmp_path / "session.json"
        assert main(["simulate", "--difficulty", "medium", "--bot", "Spiral",
                     "--rounds", "20", "--seed", "4",
                     "--export", "json", "--output", str(path)]) == 0
        data = json.loads(path.read_text())
        assert data["sessions"][0]["bot"] == "Spiral"

    def test_benchmark(self, capsys):
        assert main(["benchmark", "--rounds", "5", "--seed", "2"]) == 0
        out = capsys.readouterr().out
        assert "39 sessions played" in out
        assert "AI round win % by difficulty" in out

    def test_play_quits(self, monkeypatch, capsys):
        moves = iter(["r", "lizard", "stats", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(moves))
        assert main(["play", "--difficulty", "easy", "--seed", "0"]) == 0
        out = capsys.readouterr().out
        assert "Invalid move" in out
        assert "moves_analyzed" in out
        assert "Final:" in out
