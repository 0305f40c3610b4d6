"""
Test Fixtures - Shared across all unit tests.

Provides:
- A provider-shaped SPY chain around spot 100 (strikes 85..115 step 5;
  80 and 120 wings available through chain_factory)
- The same chain normalized into StrikeData rows
- Known Decimal constants for reproducibility

Chain layout (puts mirror calls):

    strike  put delta  put bid/ask   call delta  call bid/ask
      80     -0.05     0.20/0.30       0.95     20.00/20.30
      85     -0.10     0.40/0.50       0.90     15.00/15.30
      90     -0.16     0.80/0.90       0.84     10.20/10.50
      95     -0.22     1.50/1.60       0.78      5.80/6.00
     100     -0.50     3.00/3.20       0.50      3.00/3.20
     105     -0.78     5.80/6.00       0.22      1.50/1.60
     110     -0.84    10.20/10.50      0.16      0.80/0.90
     115     -0.90    15.00/15.30      0.10      0.40/0.50
     120     -0.95    20.00/20.30      0.05      0.20/0.30
"""

import json
import pytest
from decimal import Decimal

from options_strategist.core.models.domain import (
    CustomLeg, OptionType, OrderSide,
)
from options_strategist.services.chain_normalizer import normalize_chain


# =============================================================================
# Known constants for deterministic tests
# =============================================================================

KNOWN_SPOT = Decimal('100')
KNOWN_EXPIRATION = '2026-03-20'
KNOWN_DTE = 30
KNOWN_IV_RANK = 0.65

STRIKES = [85, 90, 95, 100, 105, 110, 115]

# strike: (delta, bid, ask, gamma, theta, vega) for the OTM-side quote
_OTM_PUTS = {
    80: (-0.05, 0.20, 0.30, 0.005, -0.01, 0.03),
    85: (-0.10, 0.40, 0.50, 0.01, -0.02, 0.05),
    90: (-0.16, 0.80, 0.90, 0.02, -0.04, 0.08),
    95: (-0.22, 1.50, 1.60, 0.03, -0.06, 0.11),
    100: (-0.50, 3.00, 3.20, 0.04, -0.08, 0.14),
    105: (-0.78, 5.80, 6.00, 0.03, -0.06, 0.11),
    110: (-0.84, 10.20, 10.50, 0.02, -0.04, 0.08),
    115: (-0.90, 15.00, 15.30, 0.01, -0.02, 0.05),
    120: (-0.95, 20.00, 20.30, 0.005, -0.01, 0.03),
}


def symbol(strike: int, option_type: str) -> str:
    """Streamer symbol for a chain strike, e.g. '.SPY260320P90'."""
    return f".SPY260320{option_type[0].upper()}{strike}"


def _record(delta, bid, ask, gamma, theta, vega):
    return {
        'bid': bid, 'ask': ask,
        'delta': delta, 'gamma': gamma, 'theta': theta, 'vega': vega,
        'iv': 0.25, 'volume': 100, 'openInterest': 1000,
    }


def build_raw_chain(strikes=STRIKES):
    """Provider-shaped strike records plus quote lookup keyed by symbol."""
    raw_strikes = []
    greeks = {}
    for strike in strikes:
        put = _OTM_PUTS[strike]
        mirror = _OTM_PUTS[200 - strike]  # call at K mirrors put at 200-K
        raw_strikes.append({
            'strike': strike,
            'callStreamerSymbol': symbol(strike, 'call'),
            'putStreamerSymbol': symbol(strike, 'put'),
        })
        greeks[symbol(strike, 'put')] = _record(*put)
        greeks[symbol(strike, 'call')] = _record(-mirror[0], *mirror[1:])
    return raw_strikes, greeks


# =============================================================================
# Chain fixtures
# =============================================================================

@pytest.fixture
def raw_chain():
    """(raw_strikes, greeks_by_symbol) for the full 85..115 chain."""
    return build_raw_chain()


@pytest.fixture
def greeks_by_symbol(raw_chain):
    return raw_chain[1]


@pytest.fixture
def chain(raw_chain):
    """Normalized StrikeData rows for the full chain."""
    raw_strikes, greeks = raw_chain
    return normalize_chain(raw_strikes, greeks)


@pytest.fixture
def custom_leg():
    """Factory: custom_leg('buy', 'call', 100) -> CustomLeg on the fixture chain."""
    def _make(side: str, option_type: str, strike: int) -> CustomLeg:
        return CustomLeg(
            option_type=OptionType(option_type),
            side=OrderSide(side),
            strike=Decimal(strike),
            symbol=symbol(strike, option_type),
        )
    return _make


@pytest.fixture
def make_symbol():
    """Streamer symbol factory for the fixture chain."""
    return symbol


@pytest.fixture
def chain_factory():
    """Factory: chain_factory([95, 100]) -> normalized chain on those strikes only."""
    def _make(strikes=STRIKES):
        raw_strikes, greeks = build_raw_chain(strikes)
        return normalize_chain(raw_strikes, greeks)
    return _make


@pytest.fixture
def snapshot_file(tmp_path, raw_chain):
    """Chain snapshot JSON on disk, in the analyze_chain input format."""
    raw_strikes, greeks = raw_chain
    path = tmp_path / 'spy_chain.json'
    path.write_text(json.dumps({
        'symbol': 'SPY',
        'underlying_price': float(KNOWN_SPOT),
        'iv_rank': KNOWN_IV_RANK,
        'expiration': KNOWN_EXPIRATION,
        'dte': KNOWN_DTE,
        'strikes': raw_strikes,
        'greeks': greeks,
    }))
    return path
