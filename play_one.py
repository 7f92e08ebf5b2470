import argparse
import json
import logging
from src.llmbattleship.config import SETTINGS
from src.llmbattleship.engine import BattleshipEngine
from src.llmbattleship.llm_player import LLMPlayer
from src.llmbattleship.match import MatchConfig, MatchRunner, default_players
from src.llmbattleship.models import PLAYERS
from src.llmbattleship.random_player import RandomPlayer


def load_json_config(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logging.getLogger("play_one").error("Failed to read config %s: %s", path, e)
        return {}


def build_player(kind: str, model: str | None, seed: int | None, move_probability: float):
    if kind == "random":
        return RandomPlayer(seed=seed, move_probability=move_probability)
    if not model:
        raise ValueError("Model is required for an llm player. Provide --model1/--model2 or set it in settings.")
    return LLMPlayer(model=model)


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default=None, help="Optional JSON config file to load defaults from.")
    ap.add_argument("--player1", choices=["llm", "random"], default=None, help="Player 1 type")
    ap.add_argument("--player2", choices=["llm", "random"], default=None, help="Player 2 type")
    ap.add_argument("--model1", default=None, help="Model for player 1 (overrides settings)")
    ap.add_argument("--model2", default=None, help="Model for player 2 (overrides settings)")
    ap.add_argument("--move-probability", type=float, default=None, help="Chance a random player moves instead of firing")
    ap.add_argument("--seed", type=int, default=None, help="Seed for boat placement and random players")
    ap.add_argument("--max-plies", type=int, default=None)
    ap.add_argument("--history-log", default=None, help="Path to JSON file or directory for the structured history (default: settings log dir; 'none' disables)")
    ap.add_argument("--show-boards", action="store_true", help="Print both players' boards at the end")
    ap.add_argument("--log-level", default=None, help="Python logging level (e.g., INFO, DEBUG)")

    args = ap.parse_args()

    cfg_dict = load_json_config(args.config) if args.config else {}

    # Resolve values with precedence: CLI arg if provided -> config -> default
    def pick(*keys, default=None):
        for k in keys:
            v = getattr(args, k, None)
            if v is not None:
                return v
            if k in cfg_dict and cfg_dict[k] is not None:
                return cfg_dict[k]
        return default

    log_level = pick("log_level", default="INFO").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("play_one")

    seed = pick("seed", default=SETTINGS.seed)
    move_probability = float(pick("move_probability", default=0.0))
    p1 = build_player(pick("player1", default="llm"), pick("model1", default=SETTINGS.player1_model), seed, move_probability)
    p2 = build_player(pick("player2", default="llm"), pick("model2", default=SETTINGS.player2_model),
                      None if seed is None else seed + 1, move_probability)

    history_log = pick("history_log", default=SETTINGS.log_dir)
    if str(history_log).lower() == "none":
        history_log = None

    engine = BattleshipEngine(seed=seed)
    mcfg = MatchConfig(
        max_plies=int(pick("max_plies", default=SETTINGS.max_plies)),
        game_log=True,
        history_log_path=history_log,
    )
    runner = MatchRunner(engine, default_players(p1, p2), mcfg)
    log.info("Starting match: %s vs %s seed=%s", runner.label_of("player1"), runner.label_of("player2"), seed)
    winner = runner.play()

    print("Winner:", winner)
    print("Reason:", engine.get_game_state().win_reason or runner.termination_reason)
    print("Metrics:", json.dumps(runner.metrics(), indent=2))

    if args.show_boards:
        for player in PLAYERS:
            print(f"\n=== {player} ===")
            print(engine.visualize_board(player))

    p1.close()
    p2.close()
