"""
RandomPlayer: fires at a uniformly random cell it has not fired at yet.

- Fast baseline for bulk runs and for exercising the match loop without API calls.
- With move_probability > 0 it sometimes moves 1-2 spaces in a random on-board direction instead.
- Only sees its own PlayerView (through PlayerTools), like any other player.
"""
from __future__ import annotations
import random

from .models import DIRECTION_DELTAS, Position


class RandomPlayer:
    name: str = "Random"

    def __init__(self, seed: int | None = None, move_probability: float = 0.0):
        self.rng = random.Random(seed)
        self.move_probability = move_probability

    def label(self) -> str:
        return self.name

    def _legal_moves(self, view) -> list[tuple[str, int]]:
        moves = []
        for direction, (dr, dc) in DIRECTION_DELTAS.items():
            for spaces in (1, 2):
                cells = [c.offset(dr * spaces, dc * spaces) for c in view.my_boat.cells]
                if all(c.in_bounds(view.grid_size) for c in cells):
                    moves.append((direction, spaces))
        return moves

    def take_turn(self, tools) -> dict:
        view = tools.engine.get_player_view(tools.player)
        if self.move_probability and self.rng.random() < self.move_probability:
            moves = self._legal_moves(view)
            if moves:
                direction, spaces = self.rng.choice(moves)
                res = tools.move_boat(direction, spaces)
                return {"commentary": f"Moving {direction} {spaces}. {res['message']}", "latency_ms": 0, "meta": {}}
        fired = {s.position for s in view.my_shots_history}
        open_cells = [
            Position(r, c)
            for r in range(view.grid_size)
            for c in range(view.grid_size)
            if Position(r, c) not in fired
        ]
        if not open_cells:
            return {"commentary": "No cells left to fire at.", "latency_ms": 0, "meta": {}}
        target = self.rng.choice(open_cells)
        res = tools.fire(target.row, target.col)
        return {"commentary": res["message"], "latency_ms": 0, "meta": {}}

    def close(self):
        # No resources to release
        pass
