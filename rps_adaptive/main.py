"""CLI entry point: play against the AI, or simulate it against scripted bots."""

import argparse
import logging
import sys

from .ai_engine import AIEngine
from .benchmark import benchmark, play_session
from .bots import ALL_BOT_CLASSES
from .config import Difficulty, EngineConfig
from .engine import Result, judge
from .errors import InvalidMove
from .export import export_json, export_csv
from .stats import (
    compute_leaderboard,
    difficulty_matrix,
    print_session_summary,
    print_leaderboard,
    print_difficulty_matrix,
)
from .strategies import STRATEGY_CLASSES

_SHORTCUTS = {"r": "rock", "p": "paper", "s": "scissors"}


def list_options():
    """Print AI tiers and scripted bots."""
    print("\nAI Difficulties:")
    print("-" * 40)
    for difficulty, cls in STRATEGY_CLASSES.items():
        print(f"  {difficulty.value:<8s} {cls.description}")
    print("\nScripted Bots:")
    print("-" * 40)
    for i, cls in enumerate(ALL_BOT_CLASSES, 1):
        print(f"  {i:>2d}. {cls.name}")
    print()


def cmd_play(args):
    """Interactive game in the terminal."""
    config = EngineConfig.from_env()
    ai = AIEngine(args.difficulty, opponent_id="terminal", seed=args.seed, config=config)
    print(f"\n🎮 You vs {ai.difficulty.value.title()} AI  |  first to {args.rounds} wins")
    print("  Enter rock/paper/scissors (or r/p/s), 'stats' or 'quit'.\n")

    score = {Result.WIN: 0, Result.LOSE: 0, Result.TIE: 0}
    while max(score[Result.WIN], score[Result.LOSE]) < args.rounds:
        try:
            raw = input("  Your move: ").strip().lower()
        except EOFError:
            print()
            break
        if raw in ("q", "quit", "exit"):
            break
        if raw == "stats":
            for key, value in ai.get_strategy_stats().to_dict().items():
                print(f"    {key}: {value}")
            continue

        try:
            ai.record_player_move(_SHORTCUTS.get(raw, raw))
        except InvalidMove as e:
            print(f"  ✗ {e}")
            continue
        player_move = ai.get_player_history()[-1]
        thinking = ai.get_thinking_time()
        ai_move = ai.make_move()
        result = judge(ai_move, player_move)
        ai.update_strategy(ai_move, player_move, result)
        score[result] += 1

        verdict = {Result.WIN: "AI wins", Result.LOSE: "You win", Result.TIE: "Tie"}[result]
        print(f"  AI thought for {thinking}ms and played {ai_move.value}  →  {verdict}  "
              f"(you {score[Result.LOSE]} - {score[Result.WIN]} AI, ties {score[Result.TIE]})")

    print(f"\n  Final: you {score[Result.LOSE]} - {score[Result.WIN]} AI")


def cmd_simulate(args):
    """Run one difficulty against one bot."""
    print(f"\n⚔️  Simulation")
    print(f"  {args.difficulty} AI vs {args.bot}  |  {args.rounds} rounds"
          + (f"  |  seed={args.seed}" if args.seed is not None else ""))

    result = play_session(args.difficulty, args.bot, rounds=args.rounds,
                          seed=args.seed, record_moves=True,
                          config=EngineConfig.from_env())
    print_session_summary(result)

    if args.export and args.output:
        _export(args, [result])


def cmd_benchmark(args):
    """Run every difficulty against every bot."""
    bot_names = [cls.name for cls in ALL_BOT_CLASSES]
    total = len(Difficulty) * len(bot_names)
    print(f"\n🏆 Benchmark")
    print(f"  {len(Difficulty)} difficulties × {len(bot_names)} bots  |  {total} sessions  |  "
          f"{args.rounds} rounds each"
          + (f"  |  seed={args.seed}" if args.seed is not None else ""))
    print(f"  Running...", end="", flush=True)

    results = benchmark(rounds=args.rounds, seed=args.seed, parallel=args.parallel)
    print(f" done! ({len(results)} sessions played)")

    print_leaderboard(compute_leaderboard(results))
    print_difficulty_matrix(difficulty_matrix(results), bot_names)

    if args.export and args.output:
        _export(args, results)


def _export(args, results):
    """Handle export based on CLI args."""
    fmt = args.export.lower()
    if fmt == "json":
        export_json(results, args.output)
    elif fmt == "csv":
        export_csv(results, args.output)
    else:
        print(f"  ✗ Unknown export format: {fmt}. Use 'json' or 'csv'.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rps_adaptive",
        description="🎮 Rock-Paper-Scissors against an adaptive AI",
    )
    parser.add_argument("--list", action="store_true", help="List difficulties and scripted bots")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine decisions")

    subparsers = parser.add_subparsers(dest="command")
    tiers = [d.value for d in Difficulty]

    play = subparsers.add_parser("play", help="Play against the AI in the terminal")
    play.add_argument("--difficulty", choices=tiers, default="medium", help="AI tier (default: medium)")
    play.add_argument("--rounds", type=int, default=3, help="Wins needed to finish (default: 3)")
    play.add_argument("--seed", type=int, default=None, help="RNG seed for reproducibility")

    sim = subparsers.add_parser("simulate", help="One AI tier vs one scripted bot")
    sim.add_argument("--difficulty", choices=tiers, required=True, help="AI tier")
    sim.add_argument("--bot", required=True, help="Name of the scripted bot")
    sim.add_argument("--rounds", type=int, default=100, help="Number of rounds (default: 100)")
    sim.add_argument("--seed", type=int, default=None, help="RNG seed for reproducibility")
    sim.add_argument("--export", choices=["json", "csv"], help="Export format")
    sim.add_argument("--output", help="Export file path")

    bench = subparsers.add_parser("benchmark", help="Every AI tier vs every scripted bot")
    bench.add_argument("--rounds", type=int, default=100, help="Rounds per session (default: 100)")
    bench.add_argument("--seed", type=int, default=None, help="RNG seed for reproducibility")
    bench.add_argument("--parallel", action="store_true", help="Use all CPU cores")
    bench.add_argument("--export", choices=["json", "csv"], help="Export format")
    bench.add_argument("--output", help="Export file path")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.list:
        list_options()
        return 0

    commands = {
        "play": cmd_play,
        "simulate": cmd_simulate,
        "benchmark": cmd_benchmark,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        handler(args)
    except ValueError as e:
        print(f"  ✗ {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
