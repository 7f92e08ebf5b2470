"""
BattleshipEngine: rule engine for the one-boat Battleship variant.

- 10x10 ocean, one 3x1 boat per side, placed at random with a minimum spawn separation.
- Each turn the current player either fires at a cell or moves its boat 1-2 spaces.
- A side wins by landing 3 hits, or when the opponent moves into its boat.
- Rule violations come back as FireResult/MoveResult with success=False; state is untouched.
- get_player_view()/visualize_board() are the only player-facing reads; get_game_state() is spectator-only.

"""
from __future__ import annotations
import copy, logging, random
from typing import Optional

from .models import (
    Boat,
    DIRECTION_DELTAS,
    FireResult,
    GameState,
    MoveResult,
    ORIENTATIONS,
    PLAYER1,
    PLAYER2,
    PLAYERS,
    BoatView,
    PlayerState,
    PlayerView,
    Position,
    ShotRecord,
    opponent_of,
)

GRID_SIZE = 10
BOAT_LENGTH = 3
MIN_SPAWN_DISTANCE = 4  # manhattan distance between closest cells of the two boats
MAX_SPAWN_ATTEMPTS = 100

WATER = "~"
BOAT_CELL = "█"
HIT_MARK = "X"
MISS_MARK = "○"


# ---------------- Geometry -----------------
def boat_cells(anchor: Position, orientation: str, length: int = BOAT_LENGTH) -> tuple[Position, ...]:
    """Cells covered by a boat, in index order starting at the anchor."""
    if orientation == "horizontal":
        return tuple(Position(anchor.row, anchor.col + i) for i in range(length))
    return tuple(Position(anchor.row + i, anchor.col) for i in range(length))


def min_boat_distance(cells_a, cells_b) -> int:
    return min(a.manhattan(b) for a in cells_a for b in cells_b)


def boats_too_close(boat_a: Boat, boat_b: Boat, min_distance: int = MIN_SPAWN_DISTANCE,
                    length: int = BOAT_LENGTH) -> bool:
    cells_a = boat_cells(boat_a.position, boat_a.orientation, length)
    cells_b = boat_cells(boat_b.position, boat_b.orientation, length)
    return min_boat_distance(cells_a, cells_b) < min_distance


def as_position(value) -> Position:
    """Accept a Position or a (row, col) pair."""
    if isinstance(value, Position):
        return value
    row, col = value
    return Position(int(row), int(col))


class BattleshipEngine:
    """Owns the GameState of one match. Not thread-safe; callers serialize access."""

    def __init__(self, grid_size: int = GRID_SIZE, boat_length: int = BOAT_LENGTH,
                 min_spawn_distance: int = MIN_SPAWN_DISTANCE, max_spawn_attempts: int = MAX_SPAWN_ATTEMPTS,
                 seed: Optional[int] = None, rng: Optional[random.Random] = None):
        if grid_size <= 0:
            raise ValueError("grid_size must be positive")
        if not 0 < boat_length <= grid_size:
            raise ValueError("boat_length must fit on the grid")
        self.log = logging.getLogger("BattleshipEngine")
        self.grid_size = grid_size
        self.boat_length = boat_length
        self.min_spawn_distance = min_spawn_distance
        self.max_spawn_attempts = max_spawn_attempts
        self.rng = rng or random.Random(seed)
        self._state = self._initialize_game()

    @classmethod
    def from_boats(cls, player1_boat: Boat, player2_boat: Boat, **kwargs) -> "BattleshipEngine":
        """Build an engine with fixed boat placements (fixtures, replays). Placements must fit the grid."""
        engine = cls(**kwargs)
        for boat in (player1_boat, player2_boat):
            if not engine._fits(boat_cells(boat.position, boat.orientation, engine.boat_length)):
                raise ValueError(f"Boat at {boat.position} does not fit the grid")
        if set(engine._cells(player1_boat)) & set(engine._cells(player2_boat)):
            raise ValueError("Boats overlap")
        engine._state = engine._new_state(copy.deepcopy(player1_boat), copy.deepcopy(player2_boat))
        return engine

    # ---------------- Setup -----------------
    def _initialize_game(self) -> GameState:
        player1_boat = self._random_boat()
        player2_boat = self._random_boat()
        # best effort: after max_spawn_attempts the last placement is kept even if too close
        attempts = 0
        while attempts < self.max_spawn_attempts and boats_too_close(
                player1_boat, player2_boat, self.min_spawn_distance, self.boat_length):
            player2_boat = self._random_boat()
            attempts += 1
        self.log.debug("Spawned boats p1=%s p2=%s after %d retries", player1_boat, player2_boat, attempts)
        return self._new_state(player1_boat, player2_boat)

    def _new_state(self, player1_boat: Boat, player2_boat: Boat) -> GameState:
        return GameState(
            grid_size=self.grid_size,
            players={
                PLAYER1: PlayerState(boat=player1_boat),
                PLAYER2: PlayerState(boat=player2_boat),
            },
        )

    def _random_boat(self) -> Boat:
        orientation = self.rng.choice(ORIENTATIONS)
        max_row = self.grid_size - 1
        max_col = self.grid_size - 1
        if orientation == "horizontal":
            max_col = self.grid_size - self.boat_length
        else:
            max_row = self.grid_size - self.boat_length
        anchor = Position(self.rng.randint(0, max_row), self.rng.randint(0, max_col))
        return Boat(position=anchor, orientation=orientation)

    def reset(self) -> GameState:
        self._state = self._initialize_game()
        self.log.info("Game reset")
        return self.get_game_state()

    # ---------------- Queries -----------------
    def _cells(self, boat: Boat, anchor: Optional[Position] = None) -> tuple[Position, ...]:
        return boat_cells(anchor or boat.position, boat.orientation, self.boat_length)

    def _fits(self, cells) -> bool:
        return all(c.in_bounds(self.grid_size) for c in cells)

    def get_game_state(self) -> GameState:
        """Omniscient snapshot (both boats). Spectator/test use only; never hand it to a player."""
        return copy.deepcopy(self._state)

    def get_player_view(self, player: str) -> PlayerView:
        if player not in PLAYERS:
            raise ValueError(f"Unknown player '{player}'")
        ps = self._state.players[player]
        return PlayerView(
            player=player,
            grid_size=self._state.grid_size,
            my_boat=BoatView(cells=self._cells(ps.boat), hits=len(ps.boat.hits)),
            my_shots_history=tuple(ShotRecord(pos, res) for pos, res in ps.shots_history.items()),
            current_turn=self._state.current_turn,
            is_game_over=self._state.is_game_over,
            winner=self._state.winner,
            win_reason=self._state.win_reason,
            turn_number=self._state.turn_number,
        )

    def public_summary(self) -> dict:
        """Spectator-safe summary: public fields plus hits taken by each boat, no geometry."""
        s = self._state
        return {
            "gridSize": s.grid_size,
            "currentTurn": s.current_turn,
            "isGameOver": s.is_game_over,
            "winner": s.winner,
            "winReason": s.win_reason,
            "turnNumber": s.turn_number,
            "player1Hits": len(s.players[PLAYER1].boat.hits),
            "player2Hits": len(s.players[PLAYER2].boat.hits),
        }

    # ---------------- Actions -----------------
    def fire(self, player: str, target: Position) -> FireResult:
        target = as_position(target)
        if self._state.is_game_over:
            return FireResult(success=False, hit=False, message="Game is already over")
        if self._state.current_turn != player:
            return FireResult(success=False, hit=False, message="Not your turn")
        if not target.in_bounds(self.grid_size):
            return FireResult(success=False, hit=False, message="Invalid target position")
        shooter = self._state.players[player]
        if target in shooter.shots_history:
            return FireResult(success=False, hit=False, message="Already fired at this position")

        opponent = opponent_of(player)
        enemy_boat = self._state.players[opponent].boat
        hit_index = next((i for i, cell in enumerate(self._cells(enemy_boat)) if cell == target), None)
        shooter.shots_history[target] = "miss" if hit_index is None else "hit"

        if hit_index is None:
            self._switch_turn()
            return FireResult(success=True, hit=False, message=f"MISS at ({target.row}, {target.col}).")

        enemy_boat.hits.add(hit_index)
        if len(enemy_boat.hits) >= self.boat_length:
            self._end_game(winner=player, reason=f"{player} sunk {opponent}'s boat!")
            return FireResult(success=True, hit=True, sunk=True, message="HIT! You sunk the enemy boat!")

        self._switch_turn()
        return FireResult(
            success=True,
            hit=True,
            message=(f"HIT at ({target.row}, {target.col})! "
                     f"Enemy boat has {len(enemy_boat.hits)}/{self.boat_length} hits."),
        )

    def move(self, player: str, direction: str, spaces: int = 2) -> MoveResult:
        if self._state.is_game_over:
            return MoveResult(success=False, message="Game is already over")
        if self._state.current_turn != player:
            return MoveResult(success=False, message="Not your turn")
        if isinstance(spaces, bool) or not isinstance(spaces, int) or spaces not in (1, 2):
            return MoveResult(success=False, message="Can only move 1 or 2 spaces")
        delta = DIRECTION_DELTAS.get(direction)
        if delta is None:
            return MoveResult(success=False, message=f"Invalid direction '{direction}'")

        boat = self._state.players[player].boat
        new_anchor = boat.position.offset(delta[0] * spaces, delta[1] * spaces)
        new_cells = self._cells(boat, new_anchor)
        if not self._fits(new_cells):
            return MoveResult(success=False, message="Move would go out of bounds")

        opponent = opponent_of(player)
        enemy_cells = set(self._cells(self._state.players[opponent].boat))
        if enemy_cells.intersection(new_cells):
            # the move happened; its consequence is the mover's loss
            self._end_game(winner=opponent, reason=f"{player} collided with {opponent}'s boat!")
            return MoveResult(success=True, collision=True, message="You collided with the enemy boat! You lose!")

        boat.position = new_anchor
        self._switch_turn()
        return MoveResult(
            success=True,
            message=f"Moved {direction} {spaces} space(s). New position: ({new_anchor.row}, {new_anchor.col})",
        )

    def _switch_turn(self) -> None:
        self._state.current_turn = opponent_of(self._state.current_turn)
        if self._state.current_turn == PLAYER1:
            self._state.turn_number += 1
        self.log.debug("Turn %d: %s to act", self._state.turn_number, self._state.current_turn)

    def _end_game(self, winner: str, reason: str) -> None:
        self._state.is_game_over = True
        self._state.winner = winner
        self._state.win_reason = reason
        self.log.info("Game over at turn %d: %s", self._state.turn_number, reason)

    # ---------------- Rendering -----------------
    def visualize_board(self, player: str) -> str:
        """Text grid of the player's own boat with their shots overlaid (shots win over boat cells)."""
        view = self.get_player_view(player)
        size = view.grid_size
        grid = [[WATER] * size for _ in range(size)]
        for cell in view.my_boat.cells:
            grid[cell.row][cell.col] = BOAT_CELL
        for shot in view.my_shots_history:
            grid[shot.position.row][shot.position.col] = HIT_MARK if shot.result == "hit" else MISS_MARK

        lines = ["   " + "".join(f"{c} " for c in range(size))]
        for r in range(size):
            lines.append(f"{r:>2} " + " ".join(grid[r]))
        out = "\n".join(lines) + "\n"
        out += f"\nLegend: {WATER} = water, {BOAT_CELL} = your boat, {HIT_MARK} = hit, {MISS_MARK} = miss\n"
        out += f"Your boat hits taken: {view.my_boat.hits}/{self.boat_length}\n"
        out += f"Turn: {view.turn_number}, Current: {view.current_turn}\n"
        return out
