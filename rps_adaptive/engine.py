"""Move and outcome model, plus the round protocol runner for AI sessions."""

from enum import Enum
from dataclasses import dataclass, field
from collections import Counter
import random
from typing import Optional

from .errors import InvalidMove, InvalidResult


class Move(Enum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"

    @classmethod
    def parse(cls, value) -> "Move":
        """Coerce a Move or a case-insensitive move name into a Move.

        Raises InvalidMove for anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidMove(value)


MOVES = (Move.ROCK, Move.PAPER, Move.SCISSORS)

# What each move beats
BEATS = {
    Move.ROCK: Move.SCISSORS,
    Move.SCISSORS: Move.PAPER,
    Move.PAPER: Move.ROCK,
}

# What beats each move
BEATEN_BY = {v: k for k, v in BEATS.items()}

# (move_a, move_b) → 1 if A wins, -1 if B wins, 0 for a draw
_WINNER_TABLE = {
    (a, b): 0 if a is b else (1 if BEATS[a] is b else -1)
    for a in MOVES
    for b in MOVES
}


def determine_winner(move_a: Move, move_b: Move) -> int:
    """Return 1 if A wins, -1 if B wins, 0 for draw."""
    return _WINNER_TABLE[move_a, move_b]


def counter(move: Move) -> Move:
    """Return the move that beats `move`."""
    return BEATEN_BY[move]


def double_counter(move: Move) -> Move:
    """Return the move that beats the counter of `move`."""
    return BEATEN_BY[BEATEN_BY[move]]


class Result(Enum):
    """Round result from the AI's point of view."""
    WIN = "win"
    LOSE = "lose"
    TIE = "tie"

    @classmethod
    def parse(cls, value) -> "Result":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidResult(value)


_RESULT_BY_OUTCOME = {1: Result.WIN, -1: Result.LOSE, 0: Result.TIE}


def judge(ai_move: Move, player_move: Move) -> Result:
    """Judge a round with the fixed beats-relation."""
    return _RESULT_BY_OUTCOME[_WINNER_TABLE[ai_move, player_move]]


@dataclass(frozen=True)
class RoundOutcome:
    """One resolved round, as fed back to the AI."""
    ai_move: Move
    player_move: Move
    result: Result

    @property
    def ai_was_countered(self) -> bool:
        """True when the player played the move that beats the AI's move and won.

        This is how both adaptive tiers score a "successful prediction".
        """
        return self.player_move is counter(self.ai_move) and self.result is Result.LOSE


class _FrozenHistory:
    """O(1) immutable view of a move history list.

    Wraps a reference to an internal history list without copying.
    Supports indexing, slicing, iteration, len, ``in`` and bool but has
    no mutating methods. The view sees new moves as the list grows.
    """
    __slots__ = ('_data',)

    def __init__(self, data: list):
        self._data = data

    def __getitem__(self, key):
        return self._data[key]

    def __len__(self):
        return len(self._data)

    def __iter__(self):
        return iter(self._data)

    def __contains__(self, item):
        return item in self._data

    def __bool__(self):
        return bool(self._data)

    def __repr__(self):
        return f"FrozenHistory({self._data!r})"


@dataclass
class SessionResult:
    """Result of a session between an AI engine and a scripted player."""
    difficulty: str
    bot_name: str
    rounds: int
    ai_wins: int = 0
    player_wins: int = 0
    ties: int = 0
    ai_moves: list = field(default_factory=list)
    player_moves: list = field(default_factory=list)
    final_stats: dict = field(default_factory=dict)

    @property
    def ai_name(self) -> str:
        return f"{self.difficulty.title()} AI"

    @property
    def ai_win_pct(self) -> float:
        return (self.ai_wins / self.rounds * 100) if self.rounds else 0.0

    @property
    def player_win_pct(self) -> float:
        return (self.player_wins / self.rounds * 100) if self.rounds else 0.0

    @property
    def tie_pct(self) -> float:
        return (self.ties / self.rounds * 100) if self.rounds else 0.0

    @property
    def ai_move_distribution(self) -> dict[str, int]:
        return dict(Counter(m.value for m in self.ai_moves))

    @property
    def player_move_distribution(self) -> dict[str, int]:
        return dict(Counter(m.value for m in self.player_moves))

    def to_dict(self) -> dict:
        return {
            "difficulty": self.difficulty,
            "bot": self.bot_name,
            "rounds": self.rounds,
            "ai_wins": self.ai_wins,
            "player_wins": self.player_wins,
            "ties": self.ties,
            "ai_win_pct": round(self.ai_win_pct, 2),
            "player_win_pct": round(self.player_win_pct, 2),
            "tie_pct": round(self.tie_pct, 2),
            "ai_move_distribution": self.ai_move_distribution,
            "player_move_distribution": self.player_move_distribution,
            "final_stats": self.final_stats,
        }


def run_session(
    ai,
    bot,
    rounds: int = 100,
    seed: Optional[int] = None,
    record_moves: bool = True,
) -> SessionResult:
    """Play `rounds` rounds of an AIEngine against a scripted player.

    Every round follows the collaborator protocol: the bot commits its
    move, the engine records it, the engine picks its own move, the round
    is judged and the outcome is fed back through update_strategy.

    The engine and the bot each get their own RNG seed derived from the
    master seed, so a given seed replays the same session.
    """
    master_rng = random.Random(seed)
    ai.reseed(master_rng.randint(0, 2**31))
    bot.rng = random.Random(master_rng.randint(0, 2**31))
    ai.reset()
    bot.reset()

    result = SessionResult(
        difficulty=ai.difficulty.value,
        bot_name=bot.name,
        rounds=rounds,
    )

    # Only this loop appends; the bot sees read-only views
    player_history: list[Move] = []
    ai_history: list[Move] = []
    player_view = _FrozenHistory(player_history)
    ai_view = _FrozenHistory(ai_history)

    for round_num in range(rounds):
        player_move = bot.choose(round_num, player_view, ai_view)
        ai.record_player_move(player_move)
        ai_move = ai.make_move()

        outcome = judge(ai_move, player_move)
        if outcome is Result.WIN:
            result.ai_wins += 1
        elif outcome is Result.LOSE:
            result.player_wins += 1
        else:
            result.ties += 1
        ai.update_strategy(ai_move, player_move, outcome)

        player_history.append(player_move)
        ai_history.append(ai_move)

    if record_moves:
        result.player_moves = list(player_history)
        result.ai_moves = list(ai_history)
    result.final_stats = ai.get_strategy_stats().to_dict()
    return result
