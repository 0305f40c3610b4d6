"""
Domain Models - Immutable Option Chain and Strategy Objects

DESIGN PRINCIPLES:
1. Absent is not zero - every quote/Greek field is Optional[Decimal]
2. Immutable snapshots - built once per analysis request, never mutated
3. Sign convention lives on the leg - sold legs carry negated Greeks
4. A StrategyCard owns its legs (tuple), nothing is shared between cards

USAGE:
    strikes = normalize_chain(raw_strikes, greeks_by_symbol)
    cards = generate_strategies(strikes, current_price=Decimal('100'),
                                iv_rank=0.65, expiration='2026-03-20', dte=30)
    for card in cards:
        print(card.name, card.net_credit, card.breakevens)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ============================================================================
# Enumerations
# ============================================================================

class OptionType(Enum):
    CALL = "call"
    PUT = "put"


class OrderSide(Enum):
    BUY = "buy"
    SELL = "sell"


class StrategyBias(Enum):
    """How a strategy is entered: premium received, paid, or either."""
    CREDIT = "credit"
    DEBIT = "debit"
    NEUTRAL = "neutral"


# ============================================================================
# Value Objects (Immutable)
# ============================================================================

@dataclass(frozen=True)
class Greeks:
    """Sensitivity measures for one contract or a whole position."""
    delta: Decimal = Decimal('0')
    gamma: Decimal = Decimal('0')
    theta: Decimal = Decimal('0')
    vega: Decimal = Decimal('0')

    def __add__(self, other: "Greeks") -> "Greeks":
        return Greeks(
            delta=self.delta + other.delta,
            gamma=self.gamma + other.gamma,
            theta=self.theta + other.theta,
            vega=self.vega + other.vega,
        )

    def __neg__(self) -> "Greeks":
        return Greeks(
            delta=-self.delta,
            gamma=-self.gamma,
            theta=-self.theta,
            vega=-self.vega,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            'delta': float(self.delta),
            'gamma': float(self.gamma),
            'theta': float(self.theta),
            'vega': float(self.vega),
        }


@dataclass(frozen=True)
class OptionQuote:
    """Quote and Greeks for one side (call or put) of one strike."""
    symbol: Optional[str] = None
    bid: Optional[Decimal] = None
    ask: Optional[Decimal] = None
    delta: Optional[Decimal] = None
    gamma: Optional[Decimal] = None
    theta: Optional[Decimal] = None
    vega: Optional[Decimal] = None
    iv: Optional[Decimal] = None
    volume: Optional[int] = None
    open_interest: Optional[int] = None

    @property
    def has_quote(self) -> bool:
        return self.bid is not None or self.ask is not None

    @property
    def has_greeks(self) -> bool:
        return self.delta is not None

    @property
    def mid(self) -> Optional[Decimal]:
        """Mid price, or whichever side is quoted."""
        if self.bid is not None and self.ask is not None:
            return (self.bid + self.ask) / 2
        if self.bid is not None:
            return self.bid
        return self.ask

    def price_for(self, side: OrderSide) -> Optional[Decimal]:
        """Executable price: pay the ask to buy, hit the bid to sell."""
        return self.ask if side == OrderSide.BUY else self.bid

    def greeks(self) -> Greeks:
        """Greeks with absent values read as zero (for aggregation only)."""
        return Greeks(
            delta=self.delta if self.delta is not None else Decimal('0'),
            gamma=self.gamma if self.gamma is not None else Decimal('0'),
            theta=self.theta if self.theta is not None else Decimal('0'),
            vega=self.vega if self.vega is not None else Decimal('0'),
        )


@dataclass(frozen=True)
class StrikeData:
    """One row of the chain: a strike with its call and put side-by-side."""
    strike: Optional[Decimal]
    call: OptionQuote = field(default_factory=OptionQuote)
    put: OptionQuote = field(default_factory=OptionQuote)

    def quote(self, option_type: OptionType) -> OptionQuote:
        return self.call if option_type == OptionType.CALL else self.put

    @property
    def is_searchable(self) -> bool:
        """Usable for strategy search: known strike, some delta, some quote."""
        if self.strike is None:
            return False
        has_delta = self.call.has_greeks or self.put.has_greeks
        has_quote = self.call.has_quote or self.put.has_quote
        return has_delta and has_quote


@dataclass(frozen=True)
class StrategyLeg:
    """
    One contract position inside a strategy.

    price is always positive (premium paid or received). greeks are already
    sign-adjusted: a sold leg carries the negated quote Greeks.
    """
    option_type: OptionType
    side: OrderSide
    strike: Decimal
    price: Decimal
    greeks: Greeks = field(default_factory=Greeks)
    symbol: Optional[str] = None

    @property
    def is_call(self) -> bool:
        return self.option_type == OptionType.CALL

    @property
    def is_sold(self) -> bool:
        return self.side == OrderSide.SELL

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.option_type.value,
            'side': self.side.value,
            'strike': float(self.strike),
            'price': float(self.price),
            'symbol': self.symbol,
            **self.greeks.to_dict(),
        }


@dataclass(frozen=True)
class CustomLeg:
    """Caller-supplied leg; symbol is used to look up live quote/Greeks."""
    option_type: OptionType
    side: OrderSide
    strike: Decimal
    symbol: str


@dataclass(frozen=True)
class PnlPoint:
    """P&L at expiration for one underlying price."""
    price: Decimal
    pnl: Decimal


@dataclass(frozen=True)
class StrategyLabel:
    """Tier-1 strategy suggestion: a name and how it is entered."""
    name: str
    bias: StrategyBias


@dataclass(frozen=True)
class StrategyCard:
    """
    A fully analyzed strategy.

    Exactly one of net_credit / net_debit is set. max_loss is None when the
    risk is unlimited. pop is a delta-based heuristic, not a priced
    probability.
    """
    name: str
    label: str
    legs: Tuple[StrategyLeg, ...]
    expiration: str
    dte: int
    net_credit: Optional[Decimal]
    net_debit: Optional[Decimal]
    max_profit: Optional[Decimal]
    max_loss: Optional[Decimal]
    breakevens: Tuple[Decimal, ...]
    pop: Optional[Decimal]
    risk_reward: Optional[Decimal]
    net_greeks: Greeks
    theta_per_day: Decimal
    is_unlimited: bool
    pnl_points: Tuple[PnlPoint, ...]

    @property
    def is_credit(self) -> bool:
        return self.net_credit is not None

    @property
    def net_delta(self) -> Decimal:
        return self.net_greeks.delta

    @property
    def net_gamma(self) -> Decimal:
        return self.net_greeks.gamma

    @property
    def net_theta(self) -> Decimal:
        return self.net_greeks.theta

    @property
    def net_vega(self) -> Decimal:
        return self.net_greeks.vega

    def to_dict(self) -> Dict[str, Any]:
        """Convert card to dict for JSON serialization"""
        def _f(value: Optional[Decimal]) -> Optional[float]:
            return float(value) if value is not None else None

        return {
            'name': self.name,
            'label': self.label,
            'legs': [leg.to_dict() for leg in self.legs],
            'expiration': self.expiration,
            'dte': self.dte,
            'net_credit': _f(self.net_credit),
            'net_debit': _f(self.net_debit),
            'max_profit': _f(self.max_profit),
            'max_loss': _f(self.max_loss),
            'breakevens': [float(b) for b in self.breakevens],
            'pop': _f(self.pop),
            'risk_reward': _f(self.risk_reward),
            'net_delta': float(self.net_delta),
            'net_gamma': float(self.net_gamma),
            'net_theta': float(self.net_theta),
            'net_vega': float(self.net_vega),
            'theta_per_day': float(self.theta_per_day),
            'is_unlimited': self.is_unlimited,
            'pnl_points': [
                {'price': float(p.price), 'pnl': float(p.pnl)}
                for p in self.pnl_points
            ],
        }
