"""
Value types for the Battleship variant.

- Position: hashable (row, col) cell; used directly as a dict key for shot history.
- Boat / PlayerState / GameState: mutable engine state (owned by BattleshipEngine only).
- FireResult / MoveResult: outcomes of the two mutating operations; failures are values, not exceptions.
- PlayerView: the sanitized per-player projection (never carries the opponent's boat).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Player = Literal["player1", "player2"]
Orientation = Literal["horizontal", "vertical"]
Direction = Literal["up", "down", "left", "right"]
ShotResult = Literal["hit", "miss"]

PLAYER1: Player = "player1"
PLAYER2: Player = "player2"
PLAYERS: tuple[Player, Player] = (PLAYER1, PLAYER2)
ORIENTATIONS: tuple[Orientation, Orientation] = ("horizontal", "vertical")
DIRECTIONS: tuple[Direction, ...] = ("up", "down", "left", "right")

# (row delta, col delta) per unit step
DIRECTION_DELTAS: dict[str, tuple[int, int]] = {
    "up": (-1, 0),
    "down": (1, 0),
    "left": (0, -1),
    "right": (0, 1),
}


def opponent_of(player: str) -> Player:
    if player == PLAYER1:
        return PLAYER2
    if player == PLAYER2:
        return PLAYER1
    raise ValueError(f"Unknown player '{player}'")


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    def offset(self, d_row: int, d_col: int) -> "Position":
        return Position(self.row + d_row, self.col + d_col)

    def in_bounds(self, grid_size: int) -> bool:
        return 0 <= self.row < grid_size and 0 <= self.col < grid_size

    def manhattan(self, other: "Position") -> int:
        return abs(self.row - other.row) + abs(self.col - other.col)

    def to_dict(self) -> dict[str, int]:
        return {"row": self.row, "col": self.col}


@dataclass
class Boat:
    position: Position  # anchor: lowest row/col of the occupied cells
    orientation: Orientation
    hits: set[int] = field(default_factory=set)  # struck cell indices 0..length-1


@dataclass
class PlayerState:
    boat: Boat
    shots_history: dict[Position, ShotResult] = field(default_factory=dict)


@dataclass
class GameState:
    grid_size: int
    players: dict[str, PlayerState]
    current_turn: Player = PLAYER1
    is_game_over: bool = False
    winner: Player | None = None
    win_reason: str | None = None
    turn_number: int = 1


@dataclass
class FireResult:
    success: bool
    hit: bool
    message: str
    sunk: bool | None = None

    def to_dict(self) -> dict:
        d = {"success": self.success, "hit": self.hit, "message": self.message}
        if self.sunk is not None:
            d["sunk"] = self.sunk
        return d


@dataclass
class MoveResult:
    success: bool
    message: str
    collision: bool | None = None

    def to_dict(self) -> dict:
        d = {"success": self.success, "message": self.message}
        if self.collision is not None:
            d["collision"] = self.collision
        return d


@dataclass(frozen=True)
class ShotRecord:
    position: Position
    result: ShotResult

    def to_dict(self) -> dict:
        return {"position": self.position.to_dict(), "result": self.result}


@dataclass(frozen=True)
class BoatView:
    cells: tuple[Position, ...]
    hits: int

    def to_dict(self) -> dict:
        return {"cells": [c.to_dict() for c in self.cells], "hits": self.hits}


@dataclass(frozen=True)
class PlayerView:
    """What a single player is allowed to know about the match."""

    player: Player
    grid_size: int
    my_boat: BoatView
    my_shots_history: tuple[ShotRecord, ...]
    current_turn: Player
    is_game_over: bool
    winner: Player | None
    win_reason: str | None
    turn_number: int

    def to_dict(self) -> dict:
        return {
            "player": self.player,
            "gridSize": self.grid_size,
            "myBoat": self.my_boat.to_dict(),
            "myShotsHistory": [s.to_dict() for s in self.my_shots_history],
            "currentTurn": self.current_turn,
            "isGameOver": self.is_game_over,
            "winner": self.winner,
            "winReason": self.win_reason,
            "turnNumber": self.turn_number,
        }
