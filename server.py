"""
Minimal Flask API that wires the Battleship engine and players into the UI.

Endpoints:
- POST   /api/battleship/games                 -> create a match session (players: llm | random)
- GET    /api/battleship/games                 -> list match sessions
- GET    /api/battleship/games/<id>            -> spectator-safe state (no boat positions)
- POST   /api/battleship/games/<id>/turn       -> let the current player take one turn; returns commentary
- POST   /api/battleship/games/<id>/reset      -> start over with freshly placed boats
- GET    /api/battleship/games/<id>/visualize  -> both boards for the spectator UI
- GET    /api/battleship/games/<id>/history    -> structured history of the match so far
- DELETE /api/battleship/games/<id>            -> drop a session

Sessions live in memory only; each owns its own engine and is guarded by its own lock.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Dict, Optional

from flask import Flask, jsonify, request

from src.llmbattleship.config import SETTINGS
from src.llmbattleship.engine import BattleshipEngine
from src.llmbattleship.llm_player import LLMPlayer
from src.llmbattleship.match import MatchConfig, MatchRunner, default_players
from src.llmbattleship.models import PLAYER1, PLAYER2, PLAYERS
from src.llmbattleship.prompting import player_label
from src.llmbattleship.random_player import RandomPlayer

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

app = Flask(__name__)
sessions_lock = threading.Lock()

MATCHES: Dict[str, dict] = {}
MATCH_TTL_S = 3600  # drop inactive matches after an hour to avoid leaks
DEFAULT_MODELS = {PLAYER1: SETTINGS.player1_model, PLAYER2: SETTINGS.player2_model}


class PayloadError(ValueError):
    pass


def _player_from_payload(player: str, payload: Optional[dict], seed: Optional[int]):
    payload = payload or {}
    if not isinstance(payload, dict):
        raise PayloadError(f"{player} must be an object like {{\"type\": \"random\"}}")
    kind = str(payload.get("type", "llm")).lower()
    if kind == "random":
        move_probability = float(payload.get("move_probability", 0.0))
        return RandomPlayer(seed=None if seed is None else seed + (1 if player == PLAYER2 else 0), move_probability=move_probability)
    if kind == "llm":
        model = payload.get("model") or DEFAULT_MODELS[player]
        if not model:
            raise PayloadError(f"model is required for {player}")
        return LLMPlayer(model=model, name=payload.get("name"))
    raise PayloadError(f"unknown player type '{kind}' for {player}")


def _cleanup_stale_matches(max_age_s: int = MATCH_TTL_S):
    cutoff = time.time() - max_age_s
    with sessions_lock:
        for match_id in [k for k, s in MATCHES.items() if s["updated_at"] < cutoff]:
            MATCHES.pop(match_id, None)
            logging.info("Dropped stale match %s", match_id)


def _get_session(match_id: str) -> Optional[dict]:
    _cleanup_stale_matches()
    with sessions_lock:
        return MATCHES.get(match_id)


def _summary(session: dict) -> dict:
    runner: MatchRunner = session["runner"]
    state = runner.engine.public_summary()
    state["terminationReason"] = runner.termination_reason
    return state


@app.route("/api/battleship/games", methods=["POST"])
def create_match():
    data = request.get_json(silent=True) or {}
    seed = data.get("seed", SETTINGS.seed)
    try:
        seed = None if seed is None else int(seed)
        players = default_players(
            _player_from_payload(PLAYER1, data.get(PLAYER1), seed),
            _player_from_payload(PLAYER2, data.get(PLAYER2), seed),
        )
    except (PayloadError, TypeError, ValueError) as e:
        return jsonify({"error": "invalid_payload", "message": str(e)}), 400

    engine = BattleshipEngine(seed=seed)
    runner = MatchRunner(engine, players, MatchConfig(max_plies=SETTINGS.max_plies, game_log=True))
    match_id = data.get("match_id") or f"bs_{int(time.time())}_{uuid.uuid4().hex[:6]}"
    session = {
        "id": match_id,
        "runner": runner,
        "created_at": time.time(),
        "updated_at": time.time(),
        "lock": threading.Lock(),
    }
    _cleanup_stale_matches()
    with sessions_lock:
        if match_id in MATCHES:
            return jsonify({"error": "conflict", "message": f"match '{match_id}' already exists"}), 409
        MATCHES[match_id] = session
    return jsonify({"match_id": match_id, "state": _summary(session), "message": "Game created"})


@app.route("/api/battleship/games", methods=["GET"])
def list_matches():
    _cleanup_stale_matches()
    with sessions_lock:
        values = list(MATCHES.values())
    return jsonify([
        {
            "match_id": s["id"],
            "status": "finished" if s["runner"].is_over() else "running",
            "players": {p: s["runner"].label_of(p) for p in PLAYERS},
            "state": _summary(s),
        }
        for s in values
    ])


@app.route("/api/battleship/games/<match_id>", methods=["GET"])
def match_state(match_id: str):
    session = _get_session(match_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    with session["lock"]:
        return jsonify({"state": _summary(session)})


@app.route("/api/battleship/games/<match_id>", methods=["DELETE"])
def delete_match(match_id: str):
    with sessions_lock:
        session = MATCHES.pop(match_id, None)
    if not session:
        return jsonify({"error": "not found"}), 404
    return jsonify({"status": "deleted", "match_id": match_id})


@app.route("/api/battleship/games/<match_id>/turn", methods=["POST"])
def match_turn(match_id: str):
    session = _get_session(match_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    with session["lock"]:
        runner: MatchRunner = session["runner"]
        session["updated_at"] = time.time()
        state = runner.engine.get_game_state()
        if state.is_game_over:
            return jsonify({"state": _summary(session), "message": "Game is already over", "commentary": state.win_reason})
        if runner.is_over():
            return jsonify({"state": _summary(session), "message": f"Match stopped: {runner.termination_reason}"})
        rec = runner.step()
        if rec is None:
            return jsonify({"state": _summary(session), "message": f"Match stopped: {runner.termination_reason}"})
        return jsonify({
            "state": _summary(session),
            "commentary": rec["commentary"],
            "agent": player_label(rec["player"]),
            "actions": rec["actions"],
            "salvage_used": bool(rec["meta"].get("salvage_used")),
            "error": rec["meta"].get("error"),
        })


@app.route("/api/battleship/games/<match_id>/reset", methods=["POST"])
def match_reset(match_id: str):
    session = _get_session(match_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    with session["lock"]:
        session["runner"].reset()
        session["updated_at"] = time.time()
        return jsonify({"state": _summary(session), "message": "Game reset"})


@app.route("/api/battleship/games/<match_id>/visualize", methods=["GET"])
def match_visualize(match_id: str):
    """Omniscient view for the spectator UI; never route this to a player agent."""
    session = _get_session(match_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    with session["lock"]:
        engine = session["runner"].engine
        payload = {}
        for player in PLAYERS:
            view = engine.get_player_view(player).to_dict()
            payload[player] = {"boat": view["myBoat"], "shots": view["myShotsHistory"]}
        payload["state"] = _summary(session)
        return jsonify(payload)


@app.route("/api/battleship/games/<match_id>/history", methods=["GET"])
def match_history(match_id: str):
    session = _get_session(match_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    with session["lock"]:
        return jsonify(session["runner"].export_structured_history())


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    # Prevent caching so the UI always sees the freshest state
    response.headers["Cache-Control"] = "no-store, max-age=0"
    return response


@app.route("/api/<path:path>", methods=["OPTIONS"])
def cors_preflight(path: str):
    resp = app.make_response(("", 204))
    resp.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    resp.headers["Access-Control-Allow-Credentials"] = "true"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    resp.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    return resp


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000, debug=True)
