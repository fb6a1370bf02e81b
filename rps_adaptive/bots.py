"""Scripted players that stand in for a human when simulating games.

Each bot sees its own history and the AI's history (read-only views) and
commits a move before the AI decides.
"""

from abc import ABC, abstractmethod
from collections import Counter
import random

from .engine import MOVES, Move, Result, counter, judge
from .patterns import MarkovModel


class ScriptedPlayer(ABC):
    """Base class for simulated human players."""

    def __init__(self):
        self.rng: random.Random = random.Random()
        self.reset()

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def choose(self, round_num: int, my_history: list[Move], opp_history: list[Move]) -> Move:
        ...

    def reset(self):
        """Reset any internal state between sessions."""
        pass

    def __repr__(self):
        return f"<{self.name}>"


# ---------------------------------------------------------------------------
# Constant players
# ---------------------------------------------------------------------------

class AlwaysRock(ScriptedPlayer):
    """Only ever throws Rock. Any tier above Easy should learn to play Paper."""
    name = "Always Rock"

    def choose(self, round_num, my_history, opp_history):
        return Move.ROCK


class AlwaysPaper(ScriptedPlayer):
    """Only ever throws Paper."""
    name = "Always Paper"

    def choose(self, round_num, my_history, opp_history):
        return Move.PAPER


class AlwaysScissors(ScriptedPlayer):
    """Only ever throws Scissors."""
    name = "Always Scissors"

    def choose(self, round_num, my_history, opp_history):
        return Move.SCISSORS


# ---------------------------------------------------------------------------
# Random players
# ---------------------------------------------------------------------------

class PureRandom(ScriptedPlayer):
    """Uniformly random. Nothing to exploit, so every tier hovers near 1/3."""
    name = "Pure Random"

    def choose(self, round_num, my_history, opp_history):
        return self.rng.choice(MOVES)


class PersistentRandom(ScriptedPlayer):
    """Holds a random move for 5-15 rounds, then switches.

    Tests how fast the tiers drop stale frequencies: the 3-move windows
    and the order-2/3 Markov states should catch each new streak.
    """
    name = "Persistent Random"

    def reset(self):
        self._current_move = self.rng.choice(MOVES)
        self._remaining = 0

    def choose(self, round_num, my_history, opp_history):
        if self._remaining <= 0:
            self._current_move = self.rng.choice(MOVES)
            self._remaining = self.rng.randint(5, 15)
        self._remaining -= 1
        return self._current_move


# ---------------------------------------------------------------------------
# Cyclic players
# ---------------------------------------------------------------------------

class Cycle(ScriptedPlayer):
    """Rock, Paper, Scissors, repeat."""
    name = "Cycle"

    def choose(self, round_num, my_history, opp_history):
        return MOVES[round_num % 3]


class Alternator(ScriptedPlayer):
    """Rock, Paper, Rock, Paper... the two-cycle the pattern detector looks for."""
    name = "Alternator"

    def choose(self, round_num, my_history, opp_history):
        return MOVES[round_num % 2]


class Spiral(ScriptedPlayer):
    """Each move twice: R, R, P, P, S, S...

    A six-move block, so only the Hard tier's cycle detector and order-3
    Markov states can read it; Medium sees a broken repetition.
    """
    name = "Spiral"

    def choose(self, round_num, my_history, opp_history):
        return MOVES[(round_num // 2) % 3]


# ---------------------------------------------------------------------------
# Reactive players
# ---------------------------------------------------------------------------

class TitForTat(ScriptedPlayer):
    """Copies the AI's previous move, opening with Rock."""
    name = "Tit-for-Tat"

    def choose(self, round_num, my_history, opp_history):
        if not opp_history:
            return Move.ROCK
        return opp_history[-1]


class AntiTitForTat(ScriptedPlayer):
    """Plays whatever beats the AI's previous move."""
    name = "Anti-Tit-for-Tat"

    def choose(self, round_num, my_history, opp_history):
        if not opp_history:
            return self.rng.choice(MOVES)
        return counter(opp_history[-1])


class FrequencyAnalyzer(ScriptedPlayer):
    """Counters the AI's most frequent move so far."""
    name = "Frequency Analyzer"

    def choose(self, round_num, my_history, opp_history):
        if not opp_history:
            return self.rng.choice(MOVES)
        most_common = Counter(opp_history).most_common(1)[0][0]
        return counter(most_common)


class MarkovPredictor(ScriptedPlayer):
    """Counters the AI's likeliest next move from its own move transitions.

    Punishes an AI whose choices are predictable, which is what the
    Hard tier's exploration and bluffing are there to resist.
    """
    name = "Markov Predictor"

    def reset(self):
        self._model = MarkovModel((1,))

    def choose(self, round_num, my_history, opp_history):
        if len(opp_history) < 2:
            return self.rng.choice(MOVES)
        self._model.update(opp_history)
        following = self._model.lookup(opp_history[-1:])
        if not following:
            return self.rng.choice(MOVES)
        return counter(max(MOVES, key=lambda m: following.get(m, 0)))


class WinStayLoseShift(ScriptedPlayer):
    """Keeps a winning or drawn move; after a loss switches to what would have won.

    Its next move depends on the last result, the situation the Hard
    tier's counter-strategy predictor keys on.
    """
    name = "Win-Stay-Lose-Shift"

    def choose(self, round_num, my_history, opp_history):
        if not my_history:
            return self.rng.choice(MOVES)
        my_last = my_history[-1]
        if judge(my_last, opp_history[-1]) is Result.LOSE:
            return counter(opp_history[-1])
        return my_last


ALL_BOT_CLASSES = [
    AlwaysRock,
    AlwaysPaper,
    AlwaysScissors,
    PureRandom,
    PersistentRandom,
    Cycle,
    Alternator,
    Spiral,
    TitForTat,
    AntiTitForTat,
    FrequencyAnalyzer,
    MarkovPredictor,
    WinStayLoseShift,
]


def get_all_bots() -> list[ScriptedPlayer]:
    """Return fresh instances of all bots."""
    return [cls() for cls in ALL_BOT_CLASSES]


def get_bot_by_name(name: str) -> ScriptedPlayer:
    """Get a single bot instance by name (case-insensitive)."""
    name_lower = name.lower()
    for cls in ALL_BOT_CLASSES:
        if cls.name.lower() == name_lower:
            return cls()
    available = ", ".join(cls.name for cls in ALL_BOT_CLASSES)
    raise ValueError(f"Unknown bot: '{name}'. Available: {available}")
