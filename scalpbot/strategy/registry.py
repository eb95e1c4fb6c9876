"""Strategy registry — maps strategy names to signal rules.

Used by ``evaluate_signal`` to dispatch on ``StrategyConfig.active_strategy``.
"""

from typing import Callable, Optional

from scalpbot.strategy.indicator_engine import IndicatorSnapshot
from scalpbot.strategy.signals import (
    SignalDecision,
    breakout_rule,
    ema_crossover_rule,
    reversal_rule,
    rsi_divergence_rule,
)

StrategyRule = Callable[[IndicatorSnapshot], Optional[SignalDecision]]


STRATEGY_REGISTRY: dict[str, StrategyRule] = {
    "ema_crossover": ema_crossover_rule,
    "rsi_divergence": rsi_divergence_rule,
    "breakout": breakout_rule,
    "reversal": reversal_rule,
}

STRATEGY_DISPLAY_NAMES: dict[str, str] = {
    "ema_crossover": "EMA Crossover",
    "rsi_divergence": "RSI Divergence",
    "breakout": "Breakout",
    "reversal": "Reversal",
}


def get_strategy_rule(name: str) -> StrategyRule:
    """Look up a strategy rule by registry key.

    Raises ``KeyError`` if the strategy name is not registered.
    """
    if name not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{name}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[name]
