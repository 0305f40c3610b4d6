"""
Leg Factory - the single place a priced StrategyLeg is made.

Used by the strategy generator (from StrikeData) and the custom builder
(from a symbol's quote record), so the sign convention cannot drift:
sold legs carry the negated quote Greeks.
"""

from decimal import Decimal
from typing import Optional
import logging

from options_strategist.core.models.domain import (
    OptionQuote, OptionType, OrderSide, StrategyLeg, StrikeData,
)

logger = logging.getLogger(__name__)


def make_leg(
    option_type: OptionType,
    side: OrderSide,
    strike: Decimal,
    quote: OptionQuote,
) -> Optional[StrategyLeg]:
    """
    Price one leg from its quote.

    Buys fill at the ask, sells at the bid. Returns None when that price is
    missing or not positive.
    """
    price = quote.price_for(side)
    if price is None or price <= 0:
        logger.debug(
            f"No executable {side.value} price for {option_type.value} {strike} "
            f"(bid={quote.bid}, ask={quote.ask})"
        )
        return None

    greeks = quote.greeks()
    if side == OrderSide.SELL:
        greeks = -greeks

    return StrategyLeg(
        option_type=option_type,
        side=side,
        strike=strike,
        price=price,
        greeks=greeks,
        symbol=quote.symbol,
    )


def leg_from_strike(
    strike: StrikeData,
    option_type: OptionType,
    side: OrderSide,
) -> Optional[StrategyLeg]:
    """Price a leg on one side of a chain row."""
    if strike.strike is None:
        return None
    return make_leg(option_type, side, strike.strike, strike.quote(option_type))
