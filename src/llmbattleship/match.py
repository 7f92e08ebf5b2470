"""
Single-match runner and config.

- MatchConfig: knobs for max plies, stall limit, console logging, and history export.
- MatchRunner: orchestrates one match between two players on one BattleshipEngine.
  - Each ply hands the acting player a fresh PlayerTools bound to that player only.
  - Records per-ply actions/commentary and exports structured history JSON for visualization.
  - Exposes step() for orchestrated runs (HTTP API) and play() for a full match, plus metrics().

"""
from __future__ import annotations
import time, logging, statistics, json, threading
from dataclasses import dataclass
import os
from datetime import datetime

from .engine import BattleshipEngine, boat_cells
from .models import PLAYER1, PLAYER2, PLAYERS
from .tools import PlayerTools


@dataclass
class MatchConfig:
    max_plies: int = 200
    max_stalled_plies: int = 3  # consecutive plies without a completed action before giving up
    # Console logging of actions as they happen
    game_log: bool = False
    # Structured history export: file path or directory
    history_log_path: str | None = None
    history_log_every_turn: bool = False
    cancel_event: threading.Event | None = None


class MatchRunner:
    def __init__(self, engine: BattleshipEngine, players: dict, cfg: MatchConfig | None = None):
        self.log = logging.getLogger("MatchRunner")
        missing = [p for p in PLAYERS if p not in players]
        if missing:
            raise ValueError(f"Missing players: {', '.join(missing)}")
        self.engine = engine
        self.players = players
        self.cfg = cfg or MatchConfig()
        self.cancel_event = self.cfg.cancel_event
        self.records: list[dict] = []
        self.termination_reason: str | None = None
        self.start_ts = time.time()
        self._stalled = 0
        self._prepare_history_path()

    def _cancelled(self) -> bool:
        return bool(self.cancel_event and self.cancel_event.is_set())

    def label_of(self, player: str) -> str:
        p = self.players[player]
        label = getattr(p, "label", None)
        if callable(label):
            return label()
        return getattr(p, "name", None) or player

    def _player_type(self, player: str) -> str:
        return "llm" if hasattr(self.players[player], "model") else "other"

    def _prepare_history_path(self):
        p = self.cfg.history_log_path
        if not p:
            return
        try:
            if os.path.isdir(p) or os.path.splitext(p)[1] == "":
                os.makedirs(p, exist_ok=True)
                ts = datetime.now().strftime("%Y%m%d-%H%M%S")
                resolved = os.path.join(p, f"battleship_{ts}.json")
            else:
                dir_path = os.path.dirname(p)
                if dir_path:
                    os.makedirs(dir_path, exist_ok=True)
                resolved = p
            self.cfg.history_log_path = resolved
        except OSError:
            self.log.exception("Failed to prepare history log path; disabling history logging")
            self.cfg.history_log_path = None

    # ---------------- Orchestrated steps -----------------
    def reset(self) -> None:
        """Start a new match on the same engine and players."""
        self.engine.reset()
        self.records = []
        self.termination_reason = None
        self._stalled = 0
        self.start_ts = time.time()

    def is_over(self) -> bool:
        return self.engine.get_player_view(PLAYER1).is_game_over or self.termination_reason is not None

    def step(self) -> dict | None:
        """Play one ply for whoever's turn it is. Returns the ply record, or None if the match is over."""
        if self.is_over():
            return None
        if self._cancelled():
            self.termination_reason = "cancelled"
            return None
        view = self.engine.get_player_view(PLAYER1)
        player = view.current_turn
        tools = PlayerTools(self.engine, player)
        out = self.players[player].take_turn(tools) or {}
        rec = {
            "ply": len(self.records) + 1,
            "player": player,
            "turn_number": view.turn_number,
            "actions": list(tools.actions),
            "ok": tools.acted,
            "commentary": out.get("commentary", ""),
            "ms": out.get("latency_ms"),
            "meta": out.get("meta") or {},
        }
        self.records.append(rec)
        self._after_ply(rec)
        return rec

    def _after_ply(self, rec: dict) -> None:
        mutating = [a for a in rec["actions"] if a["tool"] in ("fire", "move_boat")]
        last = mutating[-1] if mutating else None
        # the call that ended the game, not any rejected call made after it
        decisive = next((a for a in reversed(mutating) if a["result"].get("success")), None)
        if self.cfg.game_log:
            commentary = (rec["commentary"] or "").replace("\n", " ")
            if len(commentary) > 140:
                commentary = commentary[:140] + "…"
            self.log.info("[ply %d] %s: %s ok=%s '%s'", rec["ply"], rec["player"],
                          last["result"]["message"] if last else "(no action)", rec["ok"], commentary)
        else:
            self.log.debug("Ply %d %s ok=%s actions=%d", rec["ply"], rec["player"], rec["ok"], len(rec["actions"]))

        state = self.engine.get_game_state()
        if state.is_game_over:
            self.termination_reason = "collision" if decisive and decisive["result"].get("collision") else "sunk"
        elif rec["ok"]:
            self._stalled = 0
        else:
            self._stalled += 1
            if self._stalled >= self.cfg.max_stalled_plies:
                self.termination_reason = "stalled"
                self.log.error("Terminating: %s made no action for %d plies", rec["player"], self._stalled)
        if self.termination_reason is None and len(self.records) >= self.cfg.max_plies:
            self.termination_reason = "max_plies_reached"
        if self.cfg.history_log_path and (self.cfg.history_log_every_turn or self.termination_reason):
            self.dump_structured_history_json()

    def play(self) -> str | None:
        """Run until the game ends or a limit is hit. Returns the winner, if any."""
        while not self.is_over():
            if self.step() is None:
                break
        state = self.engine.get_game_state()
        self.log.info("Match finished winner=%s reason=%s plies=%d", state.winner, self.termination_reason, len(self.records))
        self.dump_structured_history_json()
        return state.winner

    # ---------------- Export -----------------
    def export_structured_history(self) -> dict:
        """Spectator record of the match: participants, plies, and final boards of both sides."""
        state = self.engine.get_game_state()
        final = {}
        for player in PLAYERS:
            ps = state.players[player]
            final[player] = {
                "boat": {
                    "anchor": ps.boat.position.to_dict(),
                    "orientation": ps.boat.orientation,
                    "cells": [c.to_dict() for c in boat_cells(ps.boat.position, ps.boat.orientation, self.engine.boat_length)],
                    "hits": sorted(ps.boat.hits),
                },
                "shots": [{"position": pos.to_dict(), "result": res} for pos, res in ps.shots_history.items()],
            }
        data = {
            "grid_size": state.grid_size,
            "participants": {
                p: {"label": self.label_of(p), "type": self._player_type(p), "model": getattr(self.players[p], "model", None)}
                for p in PLAYERS
            },
            "winner": state.winner,
            "win_reason": state.win_reason,
            "termination_reason": self.termination_reason,
            "turn_number": state.turn_number,
            "plies": list(self.records),
            "final": final,
        }
        if self.termination_reason:
            data["plies"].append({
                "event": "termination",
                "ply": len(self.records),
                "winner": state.winner,
                "reason": self.termination_reason,
            })
        return data

    def dump_structured_history_json(self):
        path = self.cfg.history_log_path
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.export_structured_history(), f, ensure_ascii=False, indent=2)
            self.log.info("Wrote structured history to %s", path)
        except (OSError, TypeError):
            self.log.exception("Failed writing structured history")

    # ---------------- Metrics -----------------
    def metrics(self) -> dict:
        state = self.engine.get_game_state()
        latencies = [r["ms"] for r in self.records if r.get("ms") is not None]
        per_player = {}
        for player in PLAYERS:
            recs = [r for r in self.records if r["player"] == player]
            shots = state.players[player].shots_history
            moves = sum(
                1 for r in recs for a in r["actions"]
                if a["tool"] == "move_boat" and a["result"].get("success")
            )
            per_player[player] = {
                "plies": len(recs),
                "shots": len(shots),
                "hits": sum(1 for v in shots.values() if v == "hit"),
                "misses": sum(1 for v in shots.values() if v == "miss"),
                "moves": moves,
                "stalled_plies": sum(1 for r in recs if not r["ok"]),
                "salvaged_plies": sum(1 for r in recs if r["meta"].get("salvage_used")),
                "label": self.label_of(player),
            }
        return {
            "plies_total": len(self.records),
            "turn_number": state.turn_number,
            "players": per_player,
            "latency_ms_avg": statistics.mean(latencies) if latencies else 0,
            "winner": state.winner,
            "win_reason": state.win_reason,
            "termination_reason": self.termination_reason,
            "duration_s": round(time.time() - self.start_ts, 2),
        }


def default_players(player1, player2) -> dict:
    return {PLAYER1: player1, PLAYER2: player2}
