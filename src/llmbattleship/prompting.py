"""
Prompt builders and config for agent turns using a modular template.

Callers supply system instructions and a per-turn template string with placeholders
that are substituted each turn.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

DEFAULT_SYSTEM_INSTRUCTIONS = """Play Battleship. You are {PLAYER_LABEL}.
1. Call visualize_ocean to see board
2. Call get_my_status for hits/misses
3. Choose: fire at a position OR move_boat
Rows and columns go from 0 to {GRID_MAX}. Your boat is 3 cells long; 3 hits sink it.
Strategy: Track hits to find enemy boat. Avoid firing same spot twice.
Moving into the enemy boat loses the game.
After acting, reply with one short sentence of commentary."""

DEFAULT_TURN_TEMPLATE = "Your turn. Check status and make a move."

# Used when a reply has to be salvaged by the action parser
ACTION_HINT = "If you cannot call tools, answer with 'FIRE row,col' or 'MOVE direction spaces'."


@dataclass
class PromptConfig:
    """Configuration for shaping agent prompts."""

    system_instructions: str = DEFAULT_SYSTEM_INSTRUCTIONS
    template: str = DEFAULT_TURN_TEMPLATE
    include_action_hint: bool = True


def render_custom_prompt(template: str, values: Dict[str, str]) -> str:
    """Replace known placeholders in the template. Unknown tokens are left intact."""
    rendered = template or ""
    for key, val in values.items():
        rendered = rendered.replace(f"{{{key}}}", val)
    return rendered


def player_label(player: str) -> str:
    return "Player 1" if player == "player1" else "Player 2"


def prompt_values(player: str, turn_number: int, grid_size: int) -> Dict[str, str]:
    return {
        "PLAYER": player,
        "PLAYER_LABEL": player_label(player),
        "TURN_NUMBER": str(turn_number),
        "GRID_MAX": str(grid_size - 1),
    }


def build_turn_prompt(cfg: PromptConfig, values: Dict[str, str]) -> tuple[str, str]:
    """Return (instructions, user prompt) for one agent turn."""
    instructions = render_custom_prompt(cfg.system_instructions, values)
    if cfg.include_action_hint:
        instructions = f"{instructions}\n{ACTION_HINT}"
    return instructions, render_custom_prompt(cfg.template, values)
