"""Stats computation and pretty-printing for AI sessions."""

from dataclasses import dataclass
from collections import defaultdict
from .engine import SessionResult

# ---------------------------------------------------------------------------
# Elo Rating System
# ---------------------------------------------------------------------------

ELO_INITIAL = 1500
ELO_K_FACTOR = 32


def _elo_expected(rating_a: float, rating_b: float) -> float:
    """Expected score for player A given both ratings."""
    return 1.0 / (1.0 + 10.0 ** ((rating_b - rating_a) / 400.0))


def _elo_update(rating: float, expected: float, actual: float, k: float = ELO_K_FACTOR) -> float:
    """Update a single Elo rating."""
    return rating + k * (actual - expected)


def _session_scores(r: SessionResult) -> tuple[float, float]:
    """(AI score, player score) for one session: 1 / 0.5 / 0."""
    if r.ai_wins > r.player_wins:
        return 1.0, 0.0
    if r.player_wins > r.ai_wins:
        return 0.0, 1.0
    return 0.5, 0.5


def compute_elo_ratings(
    results: list[SessionResult],
    initial: float = ELO_INITIAL,
    k: float = ELO_K_FACTOR,
) -> dict[str, float]:
    """Compute Elo ratings for AI tiers and bots, processing sessions in order."""
    ratings: dict[str, float] = defaultdict(lambda: initial)

    for r in results:
        ra = ratings[r.ai_name]
        rb = ratings[r.bot_name]
        sa, sb = _session_scores(r)
        ratings[r.ai_name] = _elo_update(ra, _elo_expected(ra, rb), sa, k)
        ratings[r.bot_name] = _elo_update(rb, _elo_expected(rb, ra), sb, k)

    return dict(ratings)


@dataclass
class LeaderboardEntry:
    """Aggregated stats for one AI tier or bot across sessions."""
    name: str
    total_wins: int = 0
    total_losses: int = 0
    total_ties: int = 0
    sessions_played: int = 0
    session_wins: int = 0
    session_losses: int = 0
    session_draws: int = 0
    elo: float = ELO_INITIAL

    @property
    def score(self) -> int:
        """3 points for a session win, 1 for a draw, 0 for a loss."""
        return self.session_wins * 3 + self.session_draws

    @property
    def win_pct(self) -> float:
        total = self.total_wins + self.total_losses + self.total_ties
        return (self.total_wins / total * 100) if total else 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "elo": round(self.elo, 1),
            "sessions_played": self.sessions_played,
            "session_wins": self.session_wins,
            "session_losses": self.session_losses,
            "session_draws": self.session_draws,
            "score": self.score,
            "total_round_wins": self.total_wins,
            "total_round_losses": self.total_losses,
            "total_round_ties": self.total_ties,
            "round_win_pct": round(self.win_pct, 2),
        }


def compute_leaderboard(results: list[SessionResult]) -> list[LeaderboardEntry]:
    """Build a leaderboard of AI tiers and bots, sorted by Elo."""
    entries: dict[str, LeaderboardEntry] = {}

    for r in results:
        ai = entries.setdefault(r.ai_name, LeaderboardEntry(name=r.ai_name))
        bot = entries.setdefault(r.bot_name, LeaderboardEntry(name=r.bot_name))

        ai.total_wins += r.ai_wins
        ai.total_losses += r.player_wins
        ai.total_ties += r.ties
        ai.sessions_played += 1

        bot.total_wins += r.player_wins
        bot.total_losses += r.ai_wins
        bot.total_ties += r.ties
        bot.sessions_played += 1

        sa, _ = _session_scores(r)
        if sa == 1.0:
            ai.session_wins += 1
            bot.session_losses += 1
        elif sa == 0.0:
            bot.session_wins += 1
            ai.session_losses += 1
        else:
            ai.session_draws += 1
            bot.session_draws += 1

    elo_ratings = compute_elo_ratings(results)
    for name, entry in entries.items():
        entry.elo = elo_ratings.get(name, ELO_INITIAL)

    return sorted(entries.values(), key=lambda e: (-e.elo, -e.score, -e.win_pct))


def difficulty_matrix(results: list[SessionResult]) -> dict[str, dict[str, float]]:
    """AI round win % per difficulty and bot.

    Returns: {difficulty: {bot_name: ai_win_pct}}
    """
    matrix: dict[str, dict[str, float]] = defaultdict(dict)
    for r in results:
        matrix[r.difficulty][r.bot_name] = round(r.ai_win_pct, 1)
    return dict(matrix)


# ---------------------------------------------------------------------------
# Pretty-printing
# ---------------------------------------------------------------------------

def print_session_summary(result: SessionResult):
    """Print a detailed summary of a single session."""
    print("=" * 60)
    print(f"  {result.ai_name}  vs  {result.bot_name}")
    print(f"  Rounds: {result.rounds}")
    print("=" * 60)
    print(f"  {'':20s} {'AI':>10s} {'Player':>10s}")
    print(f"  {'Wins':20s} {result.ai_wins:>10d} {result.player_wins:>10d}")
    print(f"  {'Ties':20s} {result.ties:>10d} {result.ties:>10d}")
    print(f"  {'Win %':20s} {result.ai_win_pct:>9.1f}% {result.player_win_pct:>9.1f}%")
    if result.ai_moves:
        print()
        print(f"  AI move distribution:     {result.ai_move_distribution}")
        print(f"  Player move distribution: {result.player_move_distribution}")

    stats = result.final_stats
    if stats:
        print()
        print(f"  Prediction accuracy: {stats.get('prediction_accuracy', 0.0):.2f}  |  "
              f"Adaptation: {stats.get('adaptation_level', 0.0):.2f}  |  "
              f"Moves analyzed: {stats.get('moves_analyzed', 0)}")
        if "exploration_rate" in stats:
            print(f"  Exploration rate: {stats['exploration_rate']:.3f}  |  "
                  f"Markov states: {stats.get('markov_states', 0)}")

    if result.ai_wins > result.player_wins:
        winner = result.ai_name
    elif result.player_wins > result.ai_wins:
        winner = result.bot_name
    else:
        winner = "DRAW"
    print(f"\n  ★ Winner: {winner}")
    print("=" * 60)


def print_leaderboard(leaderboard: list[LeaderboardEntry]):
    """Print a formatted leaderboard table."""
    print()
    print("=" * 100)
    print(f"  {'#':>3s}  {'Name':<22s} {'Elo':>7s} {'Score':>6s} {'SW':>4s} {'SL':>4s} {'SD':>4s} "
          f"{'RndW':>6s} {'RndL':>6s} {'RndT':>6s} {'Win%':>7s}")
    print("-" * 100)
    for i, e in enumerate(leaderboard, 1):
        print(f"  {i:>3d}  {e.name:<22s} {e.elo:>7.1f} {e.score:>6d} {e.session_wins:>4d} "
              f"{e.session_losses:>4d} {e.session_draws:>4d} "
              f"{e.total_wins:>6d} {e.total_losses:>6d} {e.total_ties:>6d} "
              f"{e.win_pct:>6.1f}%")
    print("=" * 100)
    print(f"  Elo = Elo rating (K={ELO_K_FACTOR}, start={ELO_INITIAL})")
    print(f"  SW=Session Wins  SL=Session Losses  SD=Session Draws")
    print(f"  Score = SW×3 + SD×1  |  Sorted by Elo")
    print()


def print_difficulty_matrix(matrix: dict[str, dict[str, float]], bot_names: list[str]):
    """Print AI win % for each difficulty against each bot."""
    tiers = list(matrix)
    print()
    print("AI round win % by difficulty:")
    print()
    print(f"  {'':>22s} " + " ".join(f"{t:>8s}" for t in tiers))
    print("  " + "-" * (22 + 1 + 9 * len(tiers)))
    for bot in bot_names:
        row = f"  {bot:>22s} "
        for tier in tiers:
            pct = matrix.get(tier, {}).get(bot)
            row += f"{pct:>7.1f}% " if pct is not None else f"{'?':>8s} "
        print(row)
    print()
