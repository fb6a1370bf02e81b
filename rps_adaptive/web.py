"""Flask JSON API that hosts live AI opponents.

Each game id owns one AIEngine. The server plays the collaborator role:
it records the player's move, asks the engine for its move, judges the
round and feeds the outcome back, all under the game's lock.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field

from flask import Flask, jsonify, request

from .ai_engine import AIEngine
from .benchmark import play_session
from .bots import ALL_BOT_CLASSES, get_bot_by_name
from .config import Difficulty, EngineConfig
from .engine import judge
from .errors import EngineError
from .strategies import STRATEGY_CLASSES

logger = logging.getLogger(__name__)

app = Flask(__name__)

MAX_SIMULATION_ROUNDS = 10000
# Games untouched for this many seconds are dropped from the registry
GAME_IDLE_TIMEOUT = 30 * 60


@dataclass
class _Game:
    engine: AIEngine
    lock: threading.Lock = field(default_factory=threading.Lock)
    rounds_played: int = 0
    last_active: float = field(default_factory=time.monotonic)


_games: dict[str, _Game] = {}
_games_lock = threading.Lock()


class GameNotFound(LookupError):
    pass


def _evict_idle_games(now: float):
    """Drop idle games. Caller holds _games_lock."""
    for game_id in [gid for gid, g in _games.items() if now - g.last_active > GAME_IDLE_TIMEOUT]:
        del _games[game_id]
        logger.info("game %s expired after %ds idle", game_id, GAME_IDLE_TIMEOUT)


def _get_game(game_id: str) -> _Game:
    now = time.monotonic()
    with _games_lock:
        _evict_idle_games(now)
        game = _games.get(game_id)
        if game is not None:
            game.last_active = now
    if game is None:
        raise GameNotFound(game_id)
    return game


def _valid_seed(seed) -> bool:
    return seed is None or (isinstance(seed, int) and not isinstance(seed, bool))


@app.errorhandler(EngineError)
def _engine_error(error):
    return jsonify({"error": str(error)}), 400


@app.errorhandler(GameNotFound)
def _game_not_found(error):
    return jsonify({"error": f"Unknown game: {error.args[0]}"}), 404


@app.route("/api/difficulties")
def api_difficulties():
    return jsonify([
        {"difficulty": d.value, "name": cls.name, "description": cls.description}
        for d, cls in STRATEGY_CLASSES.items()
    ])


@app.route("/api/bots")
def api_bots():
    return jsonify([cls.name for cls in ALL_BOT_CLASSES])


@app.route("/api/games", methods=["POST"])
def api_create_game():
    data = request.get_json(silent=True) or {}
    if not _valid_seed(data.get("seed")):
        return jsonify({"error": "seed must be an integer"}), 400
    engine = AIEngine(
        data.get("difficulty", Difficulty.MEDIUM.value),
        opponent_id=str(data.get("opponent_id", "human")),
        seed=data.get("seed"),
        config=EngineConfig.from_env(),
    )
    game_id = uuid.uuid4().hex
    with _games_lock:
        _evict_idle_games(time.monotonic())
        _games[game_id] = _Game(engine)
    logger.info("game %s created (%s)", game_id, engine.difficulty.value)
    return jsonify({
        "game_id": game_id,
        "difficulty": engine.difficulty.value,
        "stats": engine.get_strategy_stats().to_dict(),
    }), 201


@app.route("/api/games/<game_id>/rounds", methods=["POST"])
def api_play_round(game_id):
    game = _get_game(game_id)
    data = request.get_json(silent=True) or {}

    with game.lock:
        engine = game.engine
        engine.record_player_move(data.get("move"))
        player_move = engine.get_player_history()[-1]
        thinking_time = engine.get_thinking_time()
        ai_move = engine.make_move()
        result = judge(ai_move, player_move)
        engine.update_strategy(ai_move, player_move, result)
        game.rounds_played += 1

        return jsonify({
            "round": game.rounds_played,
            "player_move": player_move.value,
            "ai_move": ai_move.value,
            "result": result.value,
            "thinking_time_ms": thinking_time,
            "stats": engine.get_strategy_stats().to_dict(),
        })


@app.route("/api/games/<game_id>/stats")
def api_game_stats(game_id):
    game = _get_game(game_id)
    with game.lock:
        return jsonify({
            "game_id": game_id,
            "rounds_played": game.rounds_played,
            "history": [m.value for m in game.engine.get_player_history()],
            "stats": game.engine.get_strategy_stats().to_dict(),
        })


@app.route("/api/games/<game_id>/reset", methods=["POST"])
def api_reset_game(game_id):
    game = _get_game(game_id)
    with game.lock:
        game.engine.reset()
        game.rounds_played = 0
        return jsonify({"game_id": game_id, "stats": game.engine.get_strategy_stats().to_dict()})


@app.route("/api/games/<game_id>", methods=["DELETE"])
def api_delete_game(game_id):
    with _games_lock:
        game = _games.pop(game_id, None)
    if game is None:
        raise GameNotFound(game_id)
    return "", 204


@app.route("/api/simulate", methods=["POST"])
def api_simulate():
    data = request.get_json(silent=True) or {}
    difficulty = Difficulty.parse(data.get("difficulty", Difficulty.HARD.value))
    bot_name = data.get("bot", "Cycle")
    rounds = data.get("rounds", 100)
    seed = data.get("seed")

    if isinstance(rounds, bool) or not isinstance(rounds, int) or not 0 < rounds <= MAX_SIMULATION_ROUNDS:
        return jsonify({"error": f"rounds must be between 1 and {MAX_SIMULATION_ROUNDS}"}), 400
    if not _valid_seed(seed):
        return jsonify({"error": "seed must be an integer"}), 400
    if not isinstance(bot_name, str):
        return jsonify({"error": "bot must be a bot name"}), 400
    try:
        get_bot_by_name(bot_name)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    result = play_session(difficulty.value, bot_name, rounds=rounds, seed=seed,
                          config=EngineConfig.from_env())
    return jsonify(result.to_dict())


def main():
    logging.basicConfig(level=logging.INFO)
    print("\n🎮 RPS Adaptive AI API")
    print("  → http://localhost:5000\n")
    app.run(debug=True, port=5000)


if __name__ == "__main__":
    main()
