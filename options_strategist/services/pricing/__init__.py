"""
Pricing Module

Provides:
- Expiration payoff sampling and breakeven interpolation
- StrategyCard construction (net premium, max profit/loss, net Greeks)
- Delta-based probability of profit

Usage:
    from options_strategist.services.pricing.payoff import build_strategy_card
    from options_strategist.services.pricing.probability import ProbabilityCalculator
"""

from options_strategist.services.pricing.payoff import (
    build_strategy_card, find_breakevens, position_pnl, sample_payoff,
)
from options_strategist.services.pricing.probability import ProbabilityCalculator

__all__ = [
    'build_strategy_card',
    'find_breakevens',
    'position_pnl',
    'sample_payoff',
    'ProbabilityCalculator',
]
