"""
Configuration and environment loading for LLM Battleship.

- Loads settings.yml (YAML) from repo root if present; falls back to environment variables.
- Exposes SETTINGS with keys used across the project (API access, agent models, match limits).
"""
from dataclasses import dataclass
import os
from typing import Any, Callable

from dotenv import load_dotenv
import yaml

load_dotenv()


def _repo_root() -> str:
    # this file: src/llmbattleship/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


_cfg = _load_yaml(os.path.join(_repo_root(), "settings.yml"))


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    if name in _cfg:
        val = _cfg[name]
        return cast(val) if cast else val
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


def _as_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _as_optional_int(val: Any) -> int | None:
    if val is None or str(val).strip() == "":
        return None
    return int(val)


@dataclass(frozen=True)
class Settings:
    # Auth / endpoint (OpenAI-compatible)
    llm_api_key: str
    api_base: str

    # Agents
    player1_model: str
    player2_model: str
    agent_max_turns: int
    temperature: float
    tracing_enabled: bool

    # Match
    max_plies: int
    seed: int | None
    log_dir: str


SETTINGS = Settings(
    llm_api_key=_get("LLMBATTLESHIP_LLM_API_KEY", _get("OPENAI_API_KEY", "")),
    api_base=_get("LLMBATTLESHIP_LLM_BASE_URL", ""),
    player1_model=_get("LLMBATTLESHIP_PLAYER1_MODEL", "gpt-4o-mini"),
    player2_model=_get("LLMBATTLESHIP_PLAYER2_MODEL", "gpt-4o-mini"),
    agent_max_turns=int(_get("LLMBATTLESHIP_AGENT_MAX_TURNS", 6, cast=int)),
    temperature=float(_get("LLMBATTLESHIP_TEMPERATURE", 0.7, cast=float)),
    tracing_enabled=_get("LLMBATTLESHIP_TRACING", False, cast=_as_bool),
    max_plies=int(_get("LLMBATTLESHIP_MAX_PLIES", 200, cast=int)),
    seed=_get("LLMBATTLESHIP_SEED", None, cast=_as_optional_int),
    log_dir=_get("LLMBATTLESHIP_LOG_DIR", "runs/battleship"),
)
