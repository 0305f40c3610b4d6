"""
Chain Normalizer - Provider records -> StrikeData rows

Turns the per-strike records of a nested option chain plus a quote/Greeks
lookup keyed by streamer symbol into one StrikeData per strike.

Rules:
- Missing or non-numeric values become None, never zero
- No strike is dropped here; searchability is decided by the generator
- Never raises on bad data
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging
import math

from options_strategist.core.models.domain import OptionQuote, StrikeData

logger = logging.getLogger(__name__)

# Accepted spellings per field, first match wins
_SYMBOL_KEYS = {
    'call': ('callStreamerSymbol', 'call_streamer_symbol', 'call-streamer-symbol'),
    'put': ('putStreamerSymbol', 'put_streamer_symbol', 'put-streamer-symbol'),
}
_STRIKE_KEYS = ('strike', 'strike-price', 'strike_price')
_IV_KEYS = ('iv', 'volatility')
_OI_KEYS = ('openInterest', 'open_interest', 'open-interest')


def to_decimal(value: Any) -> Optional[Decimal]:
    """Null-safe numeric extraction. Zero stays zero; junk becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    return None


def to_int(value: Any) -> Optional[int]:
    number = to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def _first(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def occ_to_streamer_symbol(occ: Optional[str]) -> Optional[str]:
    """
    Convert an OCC option symbol to the streamer form.

    "SPY   260221P00690000" -> ".SPY260221P690"
    "SPY   260221C00690500" -> ".SPY260221C690.5"
    """
    if not isinstance(occ, str) or len(occ) < 21:
        return None
    root = occ[0:6].strip()
    expiry = occ[6:12]
    option_type = occ[12:13]
    strike_raw = occ[13:21]
    if not strike_raw.isdigit():
        return None
    strike = Decimal(strike_raw) / 1000
    strike_text = format(strike.normalize(), 'f')
    return f".{root}{expiry}{option_type}{strike_text}"


def quote_from_record(symbol: Optional[str], record: Optional[Mapping[str, Any]]) -> OptionQuote:
    """Build one side's OptionQuote from a provider quote/Greeks record."""
    if not isinstance(record, Mapping):
        record = {}
    return OptionQuote(
        symbol=symbol,
        bid=to_decimal(record.get('bid')),
        ask=to_decimal(record.get('ask')),
        delta=to_decimal(record.get('delta')),
        gamma=to_decimal(record.get('gamma')),
        theta=to_decimal(record.get('theta')),
        vega=to_decimal(record.get('vega')),
        iv=to_decimal(_first(record, _IV_KEYS)),
        volume=to_int(record.get('volume')),
        open_interest=to_int(_first(record, _OI_KEYS)),
    )


def _side_symbol(raw: Mapping[str, Any], side: str) -> Optional[str]:
    symbol = _first(raw, _SYMBOL_KEYS[side])
    if isinstance(symbol, str) and symbol:
        return symbol
    return occ_to_streamer_symbol(raw.get(side))


def normalize_chain(
    raw_strikes: Optional[Iterable[Mapping[str, Any]]],
    greeks_by_symbol: Optional[Mapping[str, Mapping[str, Any]]],
) -> List[StrikeData]:
    """
    Build StrikeData rows for one expiration.

    Args:
        raw_strikes: provider strike records (strike + call/put symbols)
        greeks_by_symbol: quote/Greeks records keyed by streamer symbol

    Returns:
        One StrikeData per input record, in input order.
    """
    greeks_by_symbol = greeks_by_symbol or {}
    rows: List[StrikeData] = []

    for raw in raw_strikes or []:
        if not isinstance(raw, Mapping):
            raw = {}
        call_symbol = _side_symbol(raw, 'call')
        put_symbol = _side_symbol(raw, 'put')
        rows.append(StrikeData(
            strike=to_decimal(_first(raw, _STRIKE_KEYS)),
            call=quote_from_record(call_symbol, greeks_by_symbol.get(call_symbol) if call_symbol else None),
            put=quote_from_record(put_symbol, greeks_by_symbol.get(put_symbol) if put_symbol else None),
        ))

    logger.debug(f"Normalized {len(rows)} strikes ({len(greeks_by_symbol)} quote records)")
    return rows


def build_greeks_lookup(records: Iterable[Mapping[str, Any]], key: str = 'symbol') -> Dict[str, Mapping[str, Any]]:
    """Index a flat list of quote records by their symbol field."""
    lookup: Dict[str, Mapping[str, Any]] = {}
    for record in records or []:
        if isinstance(record, Mapping) and isinstance(record.get(key), str):
            lookup[record[key]] = record
    return lookup
