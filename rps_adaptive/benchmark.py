"""Pit AI tiers against scripted players: one session or a full grid.

Supports parallel execution via ProcessPoolExecutor and an optional
on_session_done callback for live progress tracking.
"""

import logging
import os
from typing import Callable, Optional
from concurrent.futures import ProcessPoolExecutor, as_completed

from .ai_engine import AIEngine
from .bots import ALL_BOT_CLASSES, get_bot_by_name
from .config import Difficulty, EngineConfig
from .engine import SessionResult, run_session

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Worker function for parallel execution (must be top-level for pickling)
# ---------------------------------------------------------------------------

def play_session(
    difficulty: str,
    bot_name: str,
    rounds: int = 100,
    seed: Optional[int] = None,
    record_moves: bool = False,
    config: Optional[EngineConfig] = None,
) -> SessionResult:
    """Play one session with a fresh engine and a fresh bot.

    Builds both inside the call so worker processes never receive
    stateful objects.
    """
    ai = AIEngine(difficulty, opponent_id=bot_name, config=config)
    bot = get_bot_by_name(bot_name)
    return run_session(ai, bot, rounds=rounds, seed=seed, record_moves=record_moves)


def benchmark(
    difficulties: Optional[list] = None,
    bot_names: Optional[list[str]] = None,
    rounds: int = 100,
    seed: Optional[int] = None,
    parallel: bool = True,
    on_session_done: Optional[Callable[[int, int, SessionResult], None]] = None,
) -> list[SessionResult]:
    """Run every difficulty against every bot.

    Args:
        parallel: If True, run sessions across multiple CPU cores.
        on_session_done: Optional callback(completed, total, result) called
                         after each session finishes.
    """
    if difficulties is None:
        difficulties = list(Difficulty)
    if bot_names is None:
        bot_names = [cls.name for cls in ALL_BOT_CLASSES]

    jobs = []
    session_idx = 0
    for difficulty in difficulties:
        tier = Difficulty.parse(difficulty).value
        for bot_name in bot_names:
            session_seed = (seed * 10000 + session_idx) if seed is not None else None
            jobs.append((tier, bot_name, rounds, session_seed))
            session_idx += 1

    logger.info("benchmark: %d sessions of %d rounds (parallel=%s)", len(jobs), rounds, parallel)

    if parallel and len(jobs) > 1:
        return _run_parallel(jobs, on_session_done=on_session_done)

    results = []
    for i, (tier, bot_name, rds, ss) in enumerate(jobs):
        result = play_session(tier, bot_name, rds, ss)
        results.append(result)
        if on_session_done:
            on_session_done(i + 1, len(jobs), result)
    return results


# ---------------------------------------------------------------------------
# Parallel execution helper
# ---------------------------------------------------------------------------

def _run_parallel(
    jobs: list[tuple[str, str, int, Optional[int]]],
    on_session_done: Optional[Callable[[int, int, SessionResult], None]] = None,
) -> list[SessionResult]:
    """Run sessions on a process pool, keeping results in job order."""
    max_workers = min(os.cpu_count() or 4, len(jobs))
    total = len(jobs)

    results: list[Optional[SessionResult]] = [None] * total
    completed = 0

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_idx = {}
        for idx, (tier, bot_name, rounds, sseed) in enumerate(jobs):
            future = executor.submit(play_session, tier, bot_name, rounds, sseed)
            future_to_idx[future] = idx

        for future in as_completed(future_to_idx):
            idx = future_to_idx[future]
            result = future.result()
            results[idx] = result
            completed += 1

            if on_session_done:
                on_session_done(completed, total, result)

    return results  # type: ignore[return-value]
