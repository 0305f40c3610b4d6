"""
Strategy Builder (Tier 2) - Generates fully analyzed strategy cards for one
expiration of an option chain.

Uses the IV-rank band to pick a short catalog of shapes, searches the chain
for strikes nearest the target deltas, prices every leg from live quotes and
hands each complete leg set to the payoff calculator.

Each shape has its own construction function so the selection heuristics
stay auditable per strategy. A shape whose legs cannot all be priced is
simply absent from the result; illiquid strikes are normal.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging

from options_strategist.config.strategy_config_loader import (
    DEFAULT_STRATEGY_CONFIG, DeltaTargets, StrategyConfig,
)
from options_strategist.core.models.domain import (
    OptionType, OrderSide, StrategyCard, StrategyLeg, StrikeData,
)
from options_strategist.services.chain_normalizer import to_decimal
from options_strategist.services.leg_factory import leg_from_strike
from options_strategist.services.pricing.payoff import build_strategy_card
from options_strategist.services.strategy_selector import iv_rank_percent

logger = logging.getLogger(__name__)

CALL = OptionType.CALL
PUT = OptionType.PUT
BUY = OrderSide.BUY
SELL = OrderSide.SELL

LegSpec = Tuple[Optional[StrikeData], OptionType, OrderSide]
Builder = Callable[[Sequence[StrikeData], DeltaTargets], Optional[List[StrategyLeg]]]


# ---------------------------------------------------------------------------
# Strategy Catalog
# ---------------------------------------------------------------------------

STRATEGY_CATALOG: Dict[str, Dict[str, Any]] = {
    'iron_condor': {
        'display_name': 'Iron Condor',
        'legs': 4,
        'risk_profile': 'defined',
    },
    'put_credit_spread': {
        'display_name': 'Put Credit Spread',
        'legs': 2,
        'risk_profile': 'defined',
    },
    'short_strangle': {
        'display_name': 'Short Strangle',
        'legs': 2,
        'risk_profile': 'undefined',
    },
    'bull_call_spread': {
        'display_name': 'Bull Call Spread',
        'legs': 2,
        'risk_profile': 'defined',
    },
    'wide_iron_condor': {
        'display_name': 'Iron Condor (wide)',
        'legs': 4,
        'risk_profile': 'defined',
    },
    'mid_put_credit_spread': {
        'display_name': 'Put Credit Spread',
        'legs': 2,
        'risk_profile': 'defined',
    },
    'long_straddle': {
        'display_name': 'Long Straddle',
        'legs': 2,
        'risk_profile': 'defined',
    },
    'long_strangle': {
        'display_name': 'Long Strangle',
        'legs': 2,
        'risk_profile': 'defined',
    },
    'debit_spread': {
        'display_name': 'Debit Spread',
        'legs': 2,
        'risk_profile': 'defined',
    },
}

# IV band -> strategies, in slot order (labels A, B, C)
BAND_STRATEGIES: Dict[str, Tuple[str, ...]] = {
    'high': ('iron_condor', 'put_credit_spread', 'short_strangle'),
    'mid': ('bull_call_spread', 'wide_iron_condor', 'mid_put_credit_spread'),
    'low': ('long_straddle', 'long_strangle', 'debit_spread'),
}

SLOT_LABELS = ('A', 'B', 'C')


# ---------------------------------------------------------------------------
# Strike search
# ---------------------------------------------------------------------------

def find_by_delta(
    strikes: Sequence[StrikeData],
    target: Decimal,
    option_type: OptionType,
) -> Optional[StrikeData]:
    """Strike whose delta on one side is nearest target; first wins a tie."""
    best: Optional[StrikeData] = None
    best_diff: Optional[Decimal] = None
    for s in strikes:
        delta = s.quote(option_type).delta
        if delta is None:
            continue
        diff = abs(delta - target)
        if best_diff is None or diff < best_diff:
            best, best_diff = s, diff
    return best


def next_strike_below(strikes: Sequence[StrikeData], ref_strike: Decimal) -> Optional[StrikeData]:
    below = [s for s in strikes if s.strike < ref_strike]
    return max(below, key=lambda s: s.strike) if below else None


def next_strike_above(strikes: Sequence[StrikeData], ref_strike: Decimal) -> Optional[StrikeData]:
    above = [s for s in strikes if s.strike > ref_strike]
    return min(above, key=lambda s: s.strike) if above else None


def searchable_strikes(strikes: Sequence[StrikeData]) -> List[StrikeData]:
    return [s for s in strikes if s.is_searchable]


def volatility_band(iv_rank: Any, config: StrategyConfig = DEFAULT_STRATEGY_CONFIG) -> str:
    """'high' above the sell threshold, 'low' below the buy threshold, else 'mid'."""
    pct = iv_rank_percent(iv_rank)
    if pct > config.bands.high_above:
        return 'high'
    if pct >= config.bands.low_below:
        return 'mid'
    return 'low'


# ---------------------------------------------------------------------------
# Leg Construction
# ---------------------------------------------------------------------------

def _price_legs(specs: Sequence[LegSpec]) -> Optional[List[StrategyLeg]]:
    """Price every leg or none: a missing strike or price voids the set."""
    legs: List[StrategyLeg] = []
    for strike, option_type, side in specs:
        if strike is None:
            return None
        leg = leg_from_strike(strike, option_type, side)
        if leg is None:
            return None
        legs.append(leg)
    return legs


def _iron_condor(
    strikes: Sequence[StrikeData],
    put_delta: Decimal,
    call_delta: Decimal,
) -> Optional[List[StrategyLeg]]:
    short_put = find_by_delta(strikes, put_delta, PUT)
    short_call = find_by_delta(strikes, call_delta, CALL)
    if short_put is None or short_call is None:
        return None
    long_put = next_strike_below(strikes, short_put.strike)
    long_call = next_strike_above(strikes, short_call.strike)
    return _price_legs([
        (short_put, PUT, SELL),
        (long_put, PUT, BUY),
        (short_call, CALL, SELL),
        (long_call, CALL, BUY),
    ])


def _put_credit_spread(strikes: Sequence[StrikeData], put_delta: Decimal) -> Optional[List[StrategyLeg]]:
    short_put = find_by_delta(strikes, put_delta, PUT)
    if short_put is None:
        return None
    long_put = next_strike_below(strikes, short_put.strike)
    return _price_legs([
        (short_put, PUT, SELL),
        (long_put, PUT, BUY),
    ])


def _call_debit_spread(
    strikes: Sequence[StrikeData],
    long_delta: Decimal,
    short_delta: Decimal,
) -> Optional[List[StrategyLeg]]:
    long_call = find_by_delta(strikes, long_delta, CALL)
    short_call = find_by_delta(strikes, short_delta, CALL)
    if long_call is None or short_call is None or long_call.strike == short_call.strike:
        return None
    return _price_legs([
        (long_call, CALL, BUY),
        (short_call, CALL, SELL),
    ])


def build_iron_condor(strikes, deltas: DeltaTargets):
    return _iron_condor(strikes, deltas.iron_condor_put, deltas.iron_condor_call)


def build_put_credit_spread(strikes, deltas: DeltaTargets):
    return _put_credit_spread(strikes, deltas.put_credit_spread)


def build_short_strangle(strikes, deltas: DeltaTargets):
    short_put = find_by_delta(strikes, deltas.short_strangle_put, PUT)
    short_call = find_by_delta(strikes, deltas.short_strangle_call, CALL)
    return _price_legs([
        (short_put, PUT, SELL),
        (short_call, CALL, SELL),
    ])


def build_bull_call_spread(strikes, deltas: DeltaTargets):
    return _call_debit_spread(strikes, deltas.bull_call_long, deltas.bull_call_short)


def build_wide_iron_condor(strikes, deltas: DeltaTargets):
    return _iron_condor(strikes, deltas.wide_condor_put, deltas.wide_condor_call)


def build_mid_put_credit_spread(strikes, deltas: DeltaTargets):
    return _put_credit_spread(strikes, deltas.mid_put_credit_spread)


def build_long_straddle(strikes, deltas: DeltaTargets):
    atm = find_by_delta(strikes, deltas.straddle_call, CALL)
    return _price_legs([
        (atm, CALL, BUY),
        (atm, PUT, BUY),
    ])


def build_long_strangle(strikes, deltas: DeltaTargets):
    long_call = find_by_delta(strikes, deltas.strangle_call, CALL)
    long_put = find_by_delta(strikes, deltas.strangle_put, PUT)
    if long_call is None or long_put is None or long_call.strike == long_put.strike:
        return None
    return _price_legs([
        (long_call, CALL, BUY),
        (long_put, PUT, BUY),
    ])


def build_debit_spread(strikes, deltas: DeltaTargets):
    return _call_debit_spread(strikes, deltas.debit_spread_long, deltas.debit_spread_short)


BUILDERS: Dict[str, Builder] = {
    'iron_condor': build_iron_condor,
    'put_credit_spread': build_put_credit_spread,
    'short_strangle': build_short_strangle,
    'bull_call_spread': build_bull_call_spread,
    'wide_iron_condor': build_wide_iron_condor,
    'mid_put_credit_spread': build_mid_put_credit_spread,
    'long_straddle': build_long_straddle,
    'long_strangle': build_long_strangle,
    'debit_spread': build_debit_spread,
}


# ---------------------------------------------------------------------------
# Core: Generate Strategy Cards
# ---------------------------------------------------------------------------

def generate_strategies(
    strikes: Sequence[StrikeData],
    current_price: Any,
    iv_rank: Any,
    expiration: str,
    dte: int,
    config: Optional[StrategyConfig] = None,
) -> List[StrategyCard]:
    """
    Build up to three strategy cards for the IV regime.

    Args:
        strikes: normalized chain for one expiration
        current_price: underlying price
        iv_rank: IV rank as a 0-1 fraction
        expiration: expiration identifier, copied onto each card
        dte: days to expiration, copied onto each card

    Returns:
        Cards in slot order. Empty when the chain has too few usable strikes.
    """
    config = config or DEFAULT_STRATEGY_CONFIG

    spot = to_decimal(current_price)
    if spot is None or spot <= 0:
        logger.warning(f"Cannot generate strategies without a positive price (got {current_price!r})")
        return []

    strikes = list(strikes or [])
    valid = searchable_strikes(strikes)
    if len(valid) < config.min_strikes:
        logger.debug(f"Only {len(valid)} usable strikes (need {config.min_strikes}), nothing to search")
        return []

    band = volatility_band(iv_rank, config)
    cards: List[StrategyCard] = []

    for label, stype in zip(SLOT_LABELS, BAND_STRATEGIES[band]):
        catalog = STRATEGY_CATALOG[stype]
        legs = BUILDERS[stype](valid, config.deltas)
        if legs is None:
            logger.debug(f"  [{label}] {stype}: legs incomplete -> SKIP")
            continue
        if len(legs) != catalog['legs']:
            logger.warning(f"  [{label}] {stype}: built {len(legs)} legs, expected {catalog['legs']} -> SKIP")
            continue

        cards.append(build_strategy_card(
            name=catalog['display_name'],
            label=label,
            legs=legs,
            expiration=expiration,
            dte=dte,
            current_price=spot,
            is_unlimited=catalog['risk_profile'] == 'undefined',
            config=config,
        ))

    logger.info(
        f"Generated {len(cards)} strategies for {expiration} "
        f"(band={band}, strikes={len(valid)}/{len(strikes)})"
    )
    return cards
