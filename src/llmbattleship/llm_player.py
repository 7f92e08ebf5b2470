from __future__ import annotations
"""
LLM-backed player built on the OpenAI Agents SDK.

- One agent turn = Runner.run_sync() with the player's PlayerTools bound as function tools.
- The agent's final text is the move commentary shown in the UI.
- SDK/API failures are logged and returned as data; they never escape into the match loop.
- If the agent finished without a successful fire/move, the reply is salvaged via action_parser.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from agents import (
    Agent,
    ModelSettings,
    Runner,
    set_default_openai_api,
    set_default_openai_client,
    set_tracing_disabled,
)
from agents.exceptions import AgentsException
from openai import AsyncOpenAI, OpenAIError

from .action_parser import apply_action, parse_action
from .config import SETTINGS
from .prompting import PromptConfig, build_turn_prompt, player_label, prompt_values
from .tools import PlayerTools

log = logging.getLogger("llm_player")

_CLIENT_CONFIGURED = False


def configure_agents_client() -> None:
    """Point the Agents SDK at the configured endpoint once per process."""
    global _CLIENT_CONFIGURED
    if _CLIENT_CONFIGURED:
        return
    if SETTINGS.api_base or SETTINGS.llm_api_key:
        client = AsyncOpenAI(api_key=SETTINGS.llm_api_key or None, base_url=SETTINGS.api_base or None)
        set_default_openai_client(client, use_for_tracing=False)
    if SETTINGS.api_base:
        # OpenAI-compatible gateways generally implement chat completions only
        set_default_openai_api("chat_completions")
    set_tracing_disabled(not SETTINGS.tracing_enabled)
    _CLIENT_CONFIGURED = True


@dataclass
class LLMPlayer:
    model: str
    prompt_cfg: Optional[PromptConfig] = None
    name: Optional[str] = None
    max_turns: int = SETTINGS.agent_max_turns
    temperature: Optional[float] = SETTINGS.temperature
    salvage_with_parser: bool = True

    def label(self) -> str:
        return self.name or self.model

    def _turn_prompt(self, tools: PlayerTools) -> tuple[str, str]:
        cfg = self.prompt_cfg or PromptConfig()
        view = tools.engine.get_player_view(tools.player)
        return build_turn_prompt(cfg, prompt_values(tools.player, view.turn_number, view.grid_size))

    def build_agent(self, tools: PlayerTools, instructions: Optional[str] = None) -> Agent:
        if instructions is None:
            instructions, _ = self._turn_prompt(tools)
        return Agent(
            name=f"Battleship {player_label(tools.player)}",
            instructions=instructions,
            model=self.model,
            tools=tools.as_function_tools(),
            model_settings=ModelSettings(temperature=self.temperature),
        )

    def take_turn(self, tools: PlayerTools) -> dict:
        """Run one agent turn against the bound tools and return commentary plus metadata."""
        configure_agents_client()
        instructions, prompt = self._turn_prompt(tools)
        agent = self.build_agent(tools, instructions)
        meta: dict = {"model": self.model, "prompt": prompt, "salvage_used": False}
        t0 = time.time()
        commentary = ""
        try:
            result = Runner.run_sync(agent, prompt, max_turns=self.max_turns)
            commentary = str(result.final_output or "").strip()
        except (AgentsException, OpenAIError) as e:
            log.exception("Agent turn failed for %s (%s)", tools.player, self.model)
            meta["error"] = f"{type(e).__name__}: {e}"
        meta["latency_ms"] = int((time.time() - t0) * 1000)

        if not tools.acted and self.salvage_with_parser:
            action = parse_action(commentary)
            if action is not None:
                res = apply_action(tools, action)
                meta["salvage_used"] = True
                meta["salvage_action"] = action.to_dict()
                log.info("Salvaged %s action from reply for %s: success=%s", action.kind, tools.player, res.get("success"))
        return {"commentary": commentary, "latency_ms": meta["latency_ms"], "meta": meta}

    def close(self):
        # Nothing to release for API-based players
        return
