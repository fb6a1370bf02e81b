"""Export session results to JSON or CSV."""

import json
import csv
from pathlib import Path
from .engine import SessionResult
from .stats import compute_leaderboard, difficulty_matrix


def export_json(results: list[SessionResult], path: str):
    """Export sessions, leaderboard and difficulty matrix to a JSON file."""
    leaderboard = compute_leaderboard(results)

    data = {
        "sessions": [r.to_dict() for r in results],
        "leaderboard": [e.to_dict() for e in leaderboard],
        "difficulty_matrix": difficulty_matrix(results),
    }

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as f:
        json.dump(data, f, indent=2)
    print(f"  ✓ Results exported to {out}")


def export_csv(results: list[SessionResult], path: str):
    """Export one row per session to a CSV file."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "difficulty", "bot", "rounds",
        "ai_wins", "player_wins", "ties",
        "ai_win_pct", "prediction_accuracy", "adaptation_level",
    ]

    with open(out, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for r in results:
            writer.writerow({
                "difficulty": r.difficulty,
                "bot": r.bot_name,
                "rounds": r.rounds,
                "ai_wins": r.ai_wins,
                "player_wins": r.player_wins,
                "ties": r.ties,
                "ai_win_pct": round(r.ai_win_pct, 2),
                "prediction_accuracy": r.final_stats.get("prediction_accuracy", 0.0),
                "adaptation_level": r.final_stats.get("adaptation_level", 0.0),
            })
    print(f"  ✓ Sessions exported to {out}")
