"""
Payoff & Risk Calculator

Builds a StrategyCard from a priced leg set:
- Net credit / debit from signed cash flow
- Expiration P&L sampled across a band around the current price
- Max profit / max loss, breakevens by linear interpolation
- Net Greeks, theta per day, delta-based POP, risk/reward

All math is Decimal; results are rounded half-up the same way every time
so cards are reproducible byte for byte.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence
import logging

from options_strategist.config.strategy_config_loader import (
    DEFAULT_STRATEGY_CONFIG, PayoffConfig, StrategyConfig,
)
from options_strategist.core.models.domain import (
    Greeks, PnlPoint, StrategyCard, StrategyLeg,
)
from options_strategist.services.chain_normalizer import to_decimal
from options_strategist.services.pricing.probability import ProbabilityCalculator

logger = logging.getLogger(__name__)

_ZERO = Decimal('0')
CENTS = Decimal('0.01')


def quantize(value: Decimal, places: int = 2) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


# ============================================================================
# Pure payoff functions
# ============================================================================

def intrinsic_value(leg: StrategyLeg, price: Decimal) -> Decimal:
    if leg.is_call:
        return max(_ZERO, price - leg.strike)
    return max(_ZERO, leg.strike - price)


def position_pnl(legs: Sequence[StrategyLeg], price: Decimal, multiplier: int = 100) -> Decimal:
    """Total P&L at expiration if the underlying settles at price."""
    pnl = _ZERO
    for leg in legs:
        intrinsic = intrinsic_value(leg, price)
        if leg.is_sold:
            pnl += (leg.price - intrinsic) * multiplier
        else:
            pnl += (intrinsic - leg.price) * multiplier
    return pnl


def net_cash_flow(legs: Sequence[StrategyLeg]) -> Decimal:
    """Premium received minus premium paid, per share."""
    return sum((leg.price if leg.is_sold else -leg.price for leg in legs), _ZERO)


def sample_payoff(
    legs: Sequence[StrategyLeg],
    current_price: Decimal,
    payoff: PayoffConfig = DEFAULT_STRATEGY_CONFIG.payoff,
) -> List[PnlPoint]:
    """Evenly spaced P&L samples over [band_low, band_high] x current price."""
    lo = current_price * payoff.band_low
    hi = current_price * payoff.band_high
    step = (hi - lo) / (payoff.samples - 1)

    points: List[PnlPoint] = []
    for i in range(payoff.samples):
        price = lo + step * i
        pnl = position_pnl(legs, price, payoff.multiplier)
        points.append(PnlPoint(price=quantize(price), pnl=quantize(pnl)))
    return points


def find_breakevens(points: Sequence[PnlPoint]) -> List[Decimal]:
    """
    Every zero crossing between consecutive samples, interpolated linearly.

    A pair counts when P&L goes from <= 0 to > 0 or from >= 0 to < 0.
    """
    breakevens: List[Decimal] = []
    for prev, curr in zip(points, points[1:]):
        rising = prev.pnl <= 0 and curr.pnl > 0
        falling = prev.pnl >= 0 and curr.pnl < 0
        if not (rising or falling):
            continue
        ratio = abs(prev.pnl) / (abs(prev.pnl) + abs(curr.pnl))
        breakevens.append(quantize(prev.price + ratio * (curr.price - prev.price)))
    return breakevens


def net_greeks(legs: Sequence[StrategyLeg]) -> Greeks:
    total = Greeks()
    for leg in legs:
        total = total + leg.greeks
    return total


# ============================================================================
# Card builder
# ============================================================================

def build_strategy_card(
    name: str,
    label: str,
    legs: Sequence[StrategyLeg],
    expiration: str,
    dte: int,
    current_price: Decimal,
    is_unlimited: bool = False,
    config: Optional[StrategyConfig] = None,
) -> StrategyCard:
    """
    Analyze a completed leg set.

    Args:
        name: display name ("Iron Condor")
        label: slot label ("A", "B", "C" or "Custom")
        legs: priced legs, Greeks already sign-adjusted
        expiration: expiration identifier, passed through
        dte: days to expiration, passed through
        current_price: underlying price the payoff band is centred on
        is_unlimited: caller's judgement that loss is unbounded beyond the band

    Returns:
        StrategyCard. Always returns a card, even for an empty leg set.
    """
    config = config or DEFAULT_STRATEGY_CONFIG
    legs = tuple(legs)
    current_price = to_decimal(current_price) or _ZERO

    cash_flow = net_cash_flow(legs)
    is_credit = cash_flow >= 0
    net_credit = quantize(cash_flow) if is_credit else None
    net_debit = None if is_credit else quantize(abs(cash_flow))

    points = sample_payoff(legs, current_price, config.payoff)
    pnls = [p.pnl for p in points]
    best = max(pnls)
    worst = min(pnls)

    max_profit = best if best > 0 else None
    max_loss = None if is_unlimited else abs(worst)

    breakevens = find_breakevens(points)

    greeks = net_greeks(legs)
    theta_per_day = quantize(greeks.theta * config.payoff.multiplier)

    calc = ProbabilityCalculator(debit_method=config.probability.debit_method)
    pop = calc.probability_of_profit(legs, is_credit)

    risk_reward = None
    if max_profit is not None and max_loss is not None and max_loss > 0:
        risk_reward = quantize(max_profit / max_loss)

    card = StrategyCard(
        name=name,
        label=label,
        legs=legs,
        expiration=expiration,
        dte=dte,
        net_credit=net_credit,
        net_debit=net_debit,
        max_profit=max_profit,
        max_loss=max_loss,
        breakevens=tuple(breakevens),
        pop=quantize(pop) if pop is not None else None,
        risk_reward=risk_reward,
        net_greeks=Greeks(
            delta=quantize(greeks.delta, 3),
            gamma=quantize(greeks.gamma, 4),
            theta=quantize(greeks.theta, 3),
            vega=quantize(greeks.vega, 3),
        ),
        theta_per_day=theta_per_day,
        is_unlimited=is_unlimited,
        pnl_points=tuple(points),
    )

    logger.debug(
        f"[{label}] {name}: legs={len(legs)} credit={net_credit} debit={net_debit} "
        f"max_profit={max_profit} max_loss={max_loss} breakevens={breakevens} pop={card.pop}"
    )
    return card
