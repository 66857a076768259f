"""
Uros bots: baselines, alpha-beta minimax and Monte-Carlo playout search.

Bots are created by strategy id through create_bot; each id carries its own
defaults which caller options override.
"""

import logging
from typing import Any, Dict, Optional

from bots.baselines import DeterministicBot, RandomBot
from bots.interface import BotConfig, SearchResult, SearchStatus, Strategy, run_search
from bots.mcts import MonteCarloBot
from bots.minimax import MinimaxBot

logger = logging.getLogger(__name__)

# strategy id -> (bot class, default options)
BOTS: Dict[str, tuple] = {
    "deterministic": (DeterministicBot, {}),
    "random": (RandomBot, {}),
    "minimax": (MinimaxBot, {"randomize": False}),
    "minimax-some-rng": (MinimaxBot, {"randomize": True, "random_threshold": 0.1}),
    "mcts": (MonteCarloBot, {"randomize": True}),
}


def create_bot(strategy_id: str, player_id: str, config: Optional[Dict[str, Any]] = None,
               **options) -> Strategy:
    """
    Create a bot by strategy id.

    Args:
        strategy_id: One of BOTS
        player_id: Side the bot plays ('red' or 'blue')
        config: Engine config supplying search defaults
        **options: BotConfig overrides such as thinking_time_ms or seed

    Returns:
        Configured bot

    Raises:
        ValueError: for an unknown strategy id or option
    """
    if strategy_id not in BOTS:
        raise ValueError(f"Unknown strategy '{strategy_id}'. Available: {', '.join(sorted(BOTS))}")
    bot_class, defaults = BOTS[strategy_id]
    bot_config = BotConfig.from_config(config, **{**defaults, **options})
    logger.debug("Creating %s bot for %s: %s", strategy_id, player_id, bot_config)
    return bot_class(player_id, bot_config)


__all__ = [
    "BOTS", "BotConfig", "DeterministicBot", "MinimaxBot", "MonteCarloBot",
    "RandomBot", "SearchResult", "SearchStatus", "Strategy", "create_bot", "run_search",
]
