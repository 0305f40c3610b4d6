"""
Probability of Profit - delta heuristic

Not a priced probability. No lognormal model, no simulation:

- Credit strategies: 1 - sum(|delta| of short legs), clamped to [0, 1].
  Read as "chance the underlying stays inside the short strikes".
- Debit strategies: |delta| of the long legs, read as a rough chance of
  finishing in-the-money. 'mean' averages all long legs, 'first' uses the
  first long leg only.
"""

from decimal import Decimal
from typing import Optional, Sequence
import logging

from options_strategist.core.models.domain import StrategyLeg

logger = logging.getLogger(__name__)

_ZERO = Decimal('0')
_ONE = Decimal('1')


class ProbabilityCalculator:
    """
    Delta-based probability-of-profit estimates.

    Usage:
        calc = ProbabilityCalculator(debit_method='mean')
        pop = calc.probability_of_profit(legs, is_credit=True)
    """

    def __init__(self, debit_method: str = 'mean'):
        self.debit_method = debit_method

    def credit_pop(self, legs: Sequence[StrategyLeg]) -> Decimal:
        short_delta = sum((abs(leg.greeks.delta) for leg in legs if leg.is_sold), _ZERO)
        return min(_ONE, max(_ZERO, _ONE - short_delta))

    def debit_pop(self, legs: Sequence[StrategyLeg]) -> Optional[Decimal]:
        long_deltas = [abs(leg.greeks.delta) for leg in legs if not leg.is_sold]
        if not long_deltas:
            return None
        if self.debit_method == 'first':
            return long_deltas[0]
        return sum(long_deltas, _ZERO) / len(long_deltas)

    def probability_of_profit(
        self,
        legs: Sequence[StrategyLeg],
        is_credit: bool,
    ) -> Optional[Decimal]:
        """
        Estimate probability of profit (0-1).

        Args:
            legs: priced, sign-adjusted legs
            is_credit: True when net premium was received

        Returns:
            Estimate, or None for a debit position with no long leg.
        """
        if is_credit:
            return self.credit_pop(legs)
        return self.debit_pop(legs)
