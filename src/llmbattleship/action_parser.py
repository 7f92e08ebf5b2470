"""
Salvage parser for free-text agent replies.

Used when an agent ends its turn without a successful tool call: look for the first
fire/move action described in the text and turn it into a structured action.

- fire: "fire at (3, 4)", "FIRE 3,4", "shoot row 3 col 4"
- move: "move up 2", "move boat left 1 space", "move_boat(direction='up', spaces=1)"

Coordinates and distances are not range-checked here; the engine rejects bad values.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional

DEFAULT_MOVE_SPACES = 2

FIRE_RE = re.compile(
    r"\b(?:fire|fires|firing|shoot|shoots|shooting|attack|attacking)\b"
    r"\D{0,30}?(\d{1,2})"
    r"(?:\s*[,;/]\s*|\s+)(?:and\s+)?(?:col(?:umn)?\s*)?"
    r"(\d{1,2})\b",
    re.I,
)
MOVE_RE = re.compile(
    r"\b(?:move(?:_boat)?|moving|moves)\b\D{0,20}?\b(up|down|left|right)\b"
    r"(?:['\"]?\s*,?\s*(?:spaces\s*=\s*|by\s+)?(\d)\b)?",
    re.I,
)


@dataclass(frozen=True)
class ParsedAction:
    kind: Literal["fire", "move"]
    row: Optional[int] = None
    col: Optional[int] = None
    direction: Optional[str] = None
    spaces: Optional[int] = None

    def to_dict(self) -> dict:
        if self.kind == "fire":
            return {"kind": "fire", "row": self.row, "col": self.col}
        return {"kind": "move", "direction": self.direction, "spaces": self.spaces}


def _strip_code_fence(text: str) -> str:
    """Remove simple ``` fences if present."""
    text = text.strip()
    if text.startswith("```") and text.endswith("```"):
        inner = text.split("\n", 1)
        if len(inner) == 2:
            return inner[1].rsplit("\n", 1)[0].strip()
    return text


def parse_action(text: str | None) -> ParsedAction | None:
    """Return the first action described in text, or None."""
    if not text:
        return None
    text = _strip_code_fence(text)
    fire_m = FIRE_RE.search(text)
    move_m = MOVE_RE.search(text)
    if fire_m and (not move_m or fire_m.start() <= move_m.start()):
        return ParsedAction(kind="fire", row=int(fire_m.group(1)), col=int(fire_m.group(2)))
    if move_m:
        spaces = int(move_m.group(2)) if move_m.group(2) else DEFAULT_MOVE_SPACES
        return ParsedAction(kind="move", direction=move_m.group(1).lower(), spaces=spaces)
    return None


def apply_action(tools, action: ParsedAction) -> dict:
    """Execute a parsed action through a PlayerTools instance and return the tool result."""
    if action.kind == "fire":
        return tools.fire(action.row, action.col)
    return tools.move_boat(action.direction, action.spaces)
