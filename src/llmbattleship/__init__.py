"""
LLM Battleship package.

Components:
- engine/models: the one-boat Battleship variant rules (fire or move, 3 hits or collision ends it)
- tools: player-scoped tool surface handed to agents (never exposes the opponent's boat)
- llm_player/random_player: players (an Agents SDK agent or a random baseline)
- match: single-match orchestration, history export and metrics
- prompting/action_parser: agent instructions and salvage of free-text replies
"""
# Package exports are intentionally minimal; import modules directly as needed.
