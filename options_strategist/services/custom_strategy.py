"""
Custom Strategy Detector - name and analyze a user-assembled leg set.

Recognized structures (legs sorted by strike):
    1 leg   Long/Short Call, Long/Short Put
    2 legs  Bull/Bear Call Spread, Bull/Bear Put Spread,
            Long/Short Straddle, Long/Short Strangle
    3 legs  Jade Lizard (short put + short call + long call)
    4 legs  Iron Butterfly (shorts share a strike), Iron Condor

Anything else is "Custom Strategy". Detection never raises.
"""

from typing import Any, Mapping, Optional, Sequence
import logging

from options_strategist.config.strategy_config_loader import StrategyConfig
from options_strategist.core.models.domain import (
    CustomLeg, OptionType, OrderSide, StrategyCard, StrategyLeg,
)
from options_strategist.services.chain_normalizer import quote_from_record, to_decimal
from options_strategist.services.leg_factory import make_leg
from options_strategist.services.pricing.payoff import build_strategy_card

logger = logging.getLogger(__name__)

CUSTOM_STRATEGY = 'Custom Strategy'
CUSTOM_LABEL = 'Custom'

CALL = OptionType.CALL
PUT = OptionType.PUT
BUY = OrderSide.BUY
SELL = OrderSide.SELL


def _single_leg_name(leg) -> str:
    direction = 'Long' if leg.side == BUY else 'Short'
    kind = 'Call' if leg.option_type == CALL else 'Put'
    return f"{direction} {kind}"


def _two_leg_name(lo, hi) -> Optional[str]:
    if lo.option_type == hi.option_type and lo.side != hi.side:
        lower_bought = lo.side == BUY
        if lo.option_type == CALL:
            return 'Bull Call Spread' if lower_bought else 'Bear Call Spread'
        return 'Bull Put Spread' if lower_bought else 'Bear Put Spread'

    if lo.option_type == hi.option_type or lo.side != hi.side:
        return None

    direction = 'Long' if lo.side == BUY else 'Short'
    if lo.strike == hi.strike:
        return f"{direction} Straddle"
    if lo.option_type == PUT and hi.option_type == CALL:
        return f"{direction} Strangle"
    return None


def _three_leg_name(legs) -> Optional[str]:
    short_puts = [l for l in legs if l.option_type == PUT and l.side == SELL]
    short_calls = [l for l in legs if l.option_type == CALL and l.side == SELL]
    long_calls = [l for l in legs if l.option_type == CALL and l.side == BUY]
    if len(short_puts) == 1 and len(short_calls) == 1 and len(long_calls) == 1:
        return 'Jade Lizard'
    return None


def _four_leg_name(legs) -> Optional[str]:
    # Checked before the condor: a butterfly also has a long and short per side
    shorts = [l for l in legs if l.side == SELL]
    if len(shorts) == 2 and shorts[0].strike == shorts[1].strike:
        return 'Iron Butterfly'

    puts = [l for l in legs if l.option_type == PUT]
    calls = [l for l in legs if l.option_type == CALL]
    if len(puts) != 2 or len(calls) != 2:
        return None
    if {l.side for l in puts} == {BUY, SELL} and {l.side for l in calls} == {BUY, SELL}:
        return 'Iron Condor'
    return None


def detect_strategy_name(legs: Sequence[Any]) -> str:
    """
    Best-effort strategy name for a leg set.

    Accepts anything with option_type, side and strike (CustomLeg or
    StrategyLeg).
    """
    if not legs:
        return CUSTOM_STRATEGY

    ordered = sorted(legs, key=lambda l: l.strike)
    count = len(ordered)

    name = None
    if count == 1:
        name = _single_leg_name(ordered[0])
    elif count == 2:
        name = _two_leg_name(*ordered)
    elif count == 3:
        name = _three_leg_name(ordered)
    elif count == 4:
        name = _four_leg_name(ordered)

    return name or CUSTOM_STRATEGY


def has_uncovered_short(legs: Sequence[StrategyLeg]) -> bool:
    """True when a sold leg has no bought leg of the same type at another strike."""
    for leg in legs:
        if not leg.is_sold:
            continue
        covered = any(
            not other.is_sold
            and other.option_type == leg.option_type
            and other.strike != leg.strike
            for other in legs
        )
        if not covered:
            return True
    return False


def price_custom_legs(
    custom_legs: Sequence[CustomLeg],
    greeks_by_symbol: Optional[Mapping[str, Mapping[str, Any]]],
) -> list:
    """Price each leg from its symbol's live quote; unpriceable legs are dropped."""
    greeks_by_symbol = greeks_by_symbol or {}
    legs = []
    for custom in custom_legs:
        quote = quote_from_record(custom.symbol, greeks_by_symbol.get(custom.symbol))
        leg = make_leg(custom.option_type, custom.side, custom.strike, quote)
        if leg is None:
            logger.debug(f"Custom leg {custom.symbol} has no executable price, skipped")
            continue
        legs.append(leg)
    return legs


def build_custom_card(
    custom_legs: Sequence[CustomLeg],
    greeks_by_symbol: Optional[Mapping[str, Mapping[str, Any]]],
    expiration: str,
    dte: int,
    current_price: Any,
    config: Optional[StrategyConfig] = None,
) -> Optional[StrategyCard]:
    """
    Name and analyze a user-assembled strategy.

    Returns:
        StrategyCard, or None when no leg could be priced or the price is
        missing or not positive.
    """
    if not custom_legs:
        return None

    spot = to_decimal(current_price)
    if spot is None or spot <= 0:
        logger.warning(f"Cannot analyze custom legs without a positive price (got {current_price!r})")
        return None

    legs = price_custom_legs(custom_legs, greeks_by_symbol)
    if not legs:
        logger.info(f"None of {len(custom_legs)} custom legs could be priced")
        return None

    name = detect_strategy_name(custom_legs)
    return build_strategy_card(
        name=name,
        label=CUSTOM_LABEL,
        legs=legs,
        expiration=expiration,
        dte=dte,
        current_price=spot,
        is_unlimited=has_uncovered_short(legs),
        config=config,
    )
