"""
Player-scoped tool layer: the only surface an agent (or any single-player caller) gets.

- PlayerTools is bound to one engine and one player at construction; there is no global "current player".
- Every call returns a JSON-ready dict and is appended to `actions` so the caller can audit the turn.
- as_function_tools() exposes the same four operations to the OpenAI Agents SDK.
- Nothing here reads the opponent's boat; all reads go through engine.get_player_view().
"""
import json
from typing import Literal

from agents import FunctionTool, function_tool

from .engine import BattleshipEngine
from .models import Position

MUTATING_TOOLS = ("fire", "move_boat")


class PlayerTools:
    def __init__(self, engine: BattleshipEngine, player: str):
        engine.get_player_view(player)  # validates the player id
        self.engine = engine
        self.player = player
        self.actions: list[dict] = []

    def _record(self, tool: str, args: dict, result: dict) -> dict:
        self.actions.append({"tool": tool, "args": args, "result": result})
        return result

    @property
    def acted(self) -> bool:
        """True once a fire/move call succeeded for this player."""
        return any(a["tool"] in MUTATING_TOOLS and a["result"].get("success") for a in self.actions)

    # ---------------- Reads -----------------
    def visualize_ocean(self) -> dict:
        return self._record("visualize_ocean", {}, {"visualization": self.engine.visualize_board(self.player)})

    def get_my_status(self) -> dict:
        view = self.engine.get_player_view(self.player)
        hits = [s.position.to_dict() for s in view.my_shots_history if s.result == "hit"]
        misses = [s.position.to_dict() for s in view.my_shots_history if s.result == "miss"]
        status = {
            "player": self.player,
            "boatCells": [c.to_dict() for c in view.my_boat.cells],
            "hitsOnMyBoat": view.my_boat.hits,
            "maxHits": self.engine.boat_length,
            "myHitsOnEnemy": hits,
            "myMisses": misses,
            "totalShots": len(view.my_shots_history),
            "currentTurn": view.current_turn,
            "isMyTurn": view.current_turn == self.player,
            "turnNumber": view.turn_number,
            "isGameOver": view.is_game_over,
            "winner": view.winner,
            "winReason": view.win_reason,
        }
        return self._record("get_my_status", {}, status)

    # ---------------- Actions -----------------
    def fire(self, row: int, col: int) -> dict:
        args = {"row": row, "col": col}
        if not isinstance(row, int) or not isinstance(col, int):
            return self._record("fire", args, {"success": False, "hit": False, "message": "Row and col must be integers"})
        result = self.engine.fire(self.player, Position(row, col))
        return self._record("fire", args, result.to_dict())

    def move_boat(self, direction: str, spaces: int = 2) -> dict:
        result = self.engine.move(self.player, direction, spaces)
        return self._record("move_boat", {"direction": direction, "spaces": spaces}, result.to_dict())

    # ---------------- Agents SDK bindings -----------------
    def as_function_tools(self) -> list[FunctionTool]:
        tools = self
        last = self.engine.grid_size - 1

        @function_tool(
            name_override="visualize_ocean",
            description_override=(
                "See the ocean grid with your boat position and shot history. "
                "Shows water (~), your boat (█), hits (X), and misses (○)."
            ),
        )
        def visualize_ocean() -> str:
            return json.dumps(tools.visualize_ocean(), ensure_ascii=False)

        @function_tool(
            name_override="get_my_status",
            description_override=(
                "Get your current game status: boat position, hits taken, shot history with results, "
                "and whose turn it is."
            ),
        )
        def get_my_status() -> str:
            return json.dumps(tools.get_my_status())

        @function_tool(
            name_override="fire",
            description_override=f"Fire at a position on the grid. Provide row (0-{last}) and col (0-{last}). Returns HIT or MISS.",
        )
        def fire(row: int, col: int) -> str:
            """Fire at a cell.

            Args:
                row: Row to fire at.
                col: Column to fire at.
            """
            return json.dumps(tools.fire(row, col))

        @function_tool(
            name_override="move_boat",
            description_override=(
                "Move your boat in a direction. Can move 1 or 2 spaces. "
                "WARNING: If you collide with enemy boat, you LOSE!"
            ),
        )
        def move_boat(direction: Literal["up", "down", "left", "right"], spaces: int) -> str:
            """Move your boat.

            Args:
                direction: Direction to move.
                spaces: Number of spaces to move (1 or 2).
            """
            return json.dumps(tools.move_boat(direction, spaces))

        return [visualize_ocean, get_my_status, fire, move_boat]
