"""
Options Strategist - option strategy construction and risk analytics.

Entry points:
    normalize_chain        provider chain records -> StrikeData rows
    select_strategy_labels IV rank -> Tier-1 strategy suggestions
    generate_strategies    chain + IV rank -> analyzed StrategyCards
    build_custom_card      user legs -> named, analyzed StrategyCard
    render_payoff_chart    payoff curve -> SVG markup
"""

from options_strategist.services.chain_normalizer import normalize_chain
from options_strategist.services.custom_strategy import build_custom_card, detect_strategy_name
from options_strategist.services.strategy_builder import generate_strategies
from options_strategist.services.strategy_selector import select_strategy_labels
from options_strategist.ui.payoff_chart import render_payoff_chart

__version__ = '0.1.0'

__all__ = [
    'normalize_chain',
    'select_strategy_labels',
    'generate_strategies',
    'build_custom_card',
    'detect_strategy_name',
    'render_payoff_chart',
]
