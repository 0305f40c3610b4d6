"""
Tests for chain normalization: null-safe numbers, symbol resolution, no dropping.
"""

import pytest
from decimal import Decimal

from options_strategist.core.models.domain import OptionType
from options_strategist.services.chain_normalizer import (
    build_greeks_lookup, normalize_chain, occ_to_streamer_symbol,
    quote_from_record, to_decimal, to_int,
)


class TestToDecimal:
    """Missing or junk values become None; zero stays zero."""

    def test_zero_is_kept(self):
        assert to_decimal(0) == Decimal('0')
        assert to_decimal('0') == Decimal('0')

    def test_float_goes_through_str(self):
        assert to_decimal(0.8) == Decimal('0.8')

    @pytest.mark.parametrize('value', [None, '', '   ', 'abc', True, float('nan'), float('inf'), [], {}])
    def test_junk_is_none(self, value):
        assert to_decimal(value) is None

    def test_numeric_string(self):
        assert to_decimal(' 1.25 ') == Decimal('1.25')

    def test_to_int(self):
        assert to_int('100') == 100
        assert to_int(12.0) == 12
        assert to_int(12.5) is None
        assert to_int(None) is None


class TestOccConversion:

    def test_put(self):
        assert occ_to_streamer_symbol("SPY   260221P00690000") == ".SPY260221P690"

    def test_fractional_strike(self):
        assert occ_to_streamer_symbol("SPY   260221C00690500") == ".SPY260221C690.5"

    def test_short_or_bad_input(self):
        assert occ_to_streamer_symbol("SPY") is None
        assert occ_to_streamer_symbol(None) is None
        assert occ_to_streamer_symbol("SPY   260221P0069X000") is None


class TestQuoteFromRecord:

    def test_missing_fields_are_none(self):
        quote = quote_from_record('.X', {'bid': 1.0})
        assert quote.bid == Decimal('1.0')
        assert quote.ask is None
        assert quote.delta is None
        assert quote.open_interest is None

    def test_alternate_keys(self):
        quote = quote_from_record('.X', {'volatility': 0.3, 'open-interest': 42})
        assert quote.iv == Decimal('0.3')
        assert quote.open_interest == 42

    def test_non_mapping_record(self):
        quote = quote_from_record('.X', 'garbage')
        assert quote.symbol == '.X'
        assert not quote.has_quote


class TestNormalizeChain:

    def test_one_row_per_strike(self, chain):
        assert [int(s.strike) for s in chain] == [85, 90, 95, 100, 105, 110, 115]

    def test_quotes_attached(self, chain, make_symbol):
        row = chain[1]  # 90
        assert row.put.symbol == make_symbol(90, "put")
        assert row.put.delta == Decimal('-0.16')
        assert row.put.bid == Decimal('0.8')
        assert row.call.delta == Decimal('0.84')
        assert row.is_searchable

    def test_strike_without_quotes_is_kept(self):
        rows = normalize_chain(
            [{'strike': 100, 'callStreamerSymbol': '.C', 'putStreamerSymbol': '.P'}], {}
        )
        assert len(rows) == 1
        assert rows[0].strike == Decimal('100')
        assert rows[0].call.bid is None
        assert not rows[0].is_searchable

    def test_occ_fallback_symbols(self):
        greeks = {'.SPY260221P690': {'bid': 1.0, 'ask': 1.1, 'delta': -0.2}}
        rows = normalize_chain(
            [{'strike-price': '690', 'put': "SPY   260221P00690000", 'call': "SPY   260221C00690000"}],
            greeks,
        )
        assert rows[0].put.symbol == '.SPY260221P690'
        assert rows[0].put.delta == Decimal('-0.2')
        assert rows[0].call.symbol == '.SPY260221C690'
        assert rows[0].quote(OptionType.CALL).delta is None

    def test_junk_input_never_raises(self):
        rows = normalize_chain([None, 'x', {'strike': 'abc'}], None)
        assert len(rows) == 3
        assert all(r.strike is None for r in rows)
        assert normalize_chain(None, None) == []


class TestGreeksLookup:

    def test_indexes_by_symbol(self):
        lookup = build_greeks_lookup([{'symbol': '.A', 'delta': 0.1}, {'delta': 0.2}, 'x'])
        assert list(lookup) == ['.A']
