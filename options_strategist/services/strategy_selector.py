"""
Strategy Selector (Tier 1) - IV rank -> suggested strategy labels.

Pure lookup, no chain access. The table is immutable module data.
"""

from decimal import Decimal
from typing import Any, List, Tuple

from options_strategist.core.models.domain import StrategyBias, StrategyLabel
from options_strategist.services.chain_normalizer import to_decimal

_CREDIT = StrategyBias.CREDIT
_DEBIT = StrategyBias.DEBIT
_NEUTRAL = StrategyBias.NEUTRAL

# (rank% strictly above, labels); first match wins, last row is the floor
LABEL_BUCKETS: Tuple[Tuple[Decimal, Tuple[StrategyLabel, ...]], ...] = (
    (Decimal('70'), (
        StrategyLabel('Iron Condor', _CREDIT),
        StrategyLabel('Put Credit Spread', _CREDIT),
        StrategyLabel('Short Strangle', _CREDIT),
    )),
    (Decimal('50'), (
        StrategyLabel('Iron Condor', _CREDIT),
        StrategyLabel('Put Credit Spread', _CREDIT),
        StrategyLabel('Call Credit Spread', _CREDIT),
    )),
    (Decimal('30'), (
        StrategyLabel('Bull Call Spread', _DEBIT),
        StrategyLabel('Iron Condor', _NEUTRAL),
        StrategyLabel('Jade Lizard', _CREDIT),
    )),
    (Decimal('20'), (
        StrategyLabel('Bull Call Spread', _DEBIT),
        StrategyLabel('Calendar Spread', _NEUTRAL),
        StrategyLabel('Diagonal Spread', _NEUTRAL),
    )),
)

LOW_IV_LABELS: Tuple[StrategyLabel, ...] = (
    StrategyLabel('Long Straddle', _DEBIT),
    StrategyLabel('Long Strangle', _DEBIT),
    StrategyLabel('Debit Spread', _DEBIT),
)


def iv_rank_percent(iv_rank: Any) -> Decimal:
    """IV rank (0-1 fraction) as a percentage; unusable input reads as 0."""
    rank = to_decimal(iv_rank)
    if rank is None or rank < 0:
        return Decimal('0')
    return rank * 100


def select_strategy_labels(iv_rank: Any) -> List[StrategyLabel]:
    """Ordered (name, bias) suggestions for an IV rank given as a fraction."""
    pct = iv_rank_percent(iv_rank)
    for threshold, labels in LABEL_BUCKETS:
        if pct > threshold:
            return list(labels)
    return list(LOW_IV_LABELS)
