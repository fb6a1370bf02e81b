"""Aggregated statistics over a player's move history.

PatternStore keeps the cheap always-on counts every tier can read:
per-move frequencies, the last few moves and 2/3-move sequence counts.
MarkovModel is only built for the hard tier and maps the last k moves to
the counts of what followed them.
"""

from collections import Counter, deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from .config import RECENT_WINDOW_SIZE
from .engine import Move, MOVES


def sequence_key(moves: Sequence[Move]) -> str:
    """Key for a run of moves, e.g. ``"rockpaper"``."""
    return "".join(m.value for m in moves)


@dataclass(frozen=True)
class PatternSnapshot:
    """Immutable copy of a PatternStore at one point in time."""
    frequencies: Mapping[Move, int]
    recent_window: tuple
    sequence_counts: Mapping[str, int]
    total: int

    def frequency(self, move: Move) -> int:
        return self.frequencies.get(move, 0)

    def continuations(self, last_move: Move) -> dict[Move, int]:
        """Counts of each move observed right after `last_move`."""
        counts = {}
        for move in MOVES:
            count = self.sequence_counts.get(sequence_key((last_move, move)), 0)
            if count > 0:
                counts[move] = count
        return counts


class PatternStore:
    """Frequency, recency and short-sequence counts for one player."""

    def __init__(self, window_size: int = RECENT_WINDOW_SIZE):
        self._window_size = window_size
        self.reset()

    def reset(self):
        self._frequencies: Counter = Counter()
        self._recent: deque = deque(maxlen=self._window_size)
        self._sequences: Counter = Counter()
        # Last two moves, independent of the window size
        self._tail: deque = deque(maxlen=2)
        self._total = 0

    def record(self, move) -> Move:
        """Add one move. Raises InvalidMove without touching any count."""
        move = Move.parse(move)

        self._frequencies[move] += 1
        self._recent.append(move)

        if len(self._tail) >= 1:
            self._sequences[sequence_key((self._tail[-1], move))] += 1
        if len(self._tail) >= 2:
            self._sequences[sequence_key((self._tail[-2], self._tail[-1], move))] += 1

        self._tail.append(move)
        self._total += 1
        return move

    @property
    def total(self) -> int:
        return self._total

    @property
    def recent_window(self) -> tuple:
        return tuple(self._recent)

    def frequency(self, move: Move) -> int:
        return self._frequencies.get(move, 0)

    def sequence_count(self, key: str) -> int:
        return self._sequences.get(key, 0)

    def snapshot(self) -> PatternSnapshot:
        return PatternSnapshot(
            frequencies=MappingProxyType(dict(self._frequencies)),
            recent_window=tuple(self._recent),
            sequence_counts=MappingProxyType(dict(self._sequences)),
            total=self._total,
        )

    def __len__(self):
        return self._total

    def __repr__(self):
        return f"PatternStore(total={self._total}, recent={[m.value for m in self._recent]})"


class MarkovModel:
    """Order-k transition counts over a move history.

    Several orders are tracked side by side so the hard tier can fall back
    from order 3 to order 2. ``update`` is incremental: it remembers how
    much of the history it has already ingested and only adds the new
    transitions.
    """

    def __init__(self, orders: Sequence[int] = (2, 3)):
        self.orders = tuple(sorted(set(orders)))
        self.reset()

    def reset(self):
        self._tables: dict[int, dict[str, Counter]] = {k: {} for k in self.orders}
        self._consumed = 0

    def update(self, history: Sequence[Move]) -> int:
        """Ingest transitions ending at positions not seen before.

        Returns the number of new positions consumed.
        """
        n = len(history)
        if n < self._consumed:
            # History was replaced by a shorter one; rebuild from scratch
            self.reset()
        start = self._consumed
        for i in range(start, n):
            nxt = history[i]
            for k in self.orders:
                if i < k:
                    continue
                state = sequence_key(history[i - k:i])
                self._tables[k].setdefault(state, Counter())[nxt] += 1
        self._consumed = n
        return n - start

    def lookup(self, state: Sequence[Move]) -> Optional[dict[Move, int]]:
        """Transition counts out of `state`, or None if it was never seen."""
        k = len(state)
        table = self._tables.get(k)
        if table is None:
            return None
        transitions = table.get(sequence_key(state))
        if not transitions:
            return None
        return dict(transitions)

    def state_count(self, order: Optional[int] = None) -> int:
        """Distinct states seen for `order` (the highest order by default)."""
        if order is None:
            order = self.orders[-1]
        return len(self._tables.get(order, {}))

    @property
    def consumed(self) -> int:
        return self._consumed

    def __repr__(self):
        sizes = {k: len(t) for k, t in self._tables.items()}
        return f"MarkovModel(orders={self.orders}, states={sizes})"
