"""
Tests for the payoff & risk calculator and the POP heuristic.
"""

import pytest
from decimal import Decimal

from options_strategist.config.strategy_config_loader import (
    PayoffConfig, ProbabilityConfig, StrategyConfig,
)
from options_strategist.core.models.domain import (
    Greeks, OptionType, OrderSide, PnlPoint, StrategyLeg,
)
from options_strategist.services.pricing import (
    ProbabilityCalculator, build_strategy_card, find_breakevens, position_pnl, sample_payoff,
)
from options_strategist.services.pricing.payoff import net_cash_flow, quantize

CALL, PUT = OptionType.CALL, OptionType.PUT
BUY, SELL = OrderSide.BUY, OrderSide.SELL


def leg(option_type, side, strike, price, delta='0', theta='0'):
    return StrategyLeg(
        option_type=option_type,
        side=side,
        strike=Decimal(str(strike)),
        price=Decimal(str(price)),
        greeks=Greeks(delta=Decimal(delta), theta=Decimal(theta)),
    )


def card_for(legs, spot='100', config=None, is_unlimited=False):
    return build_strategy_card(
        name='Test', label='A', legs=legs, expiration='2026-03-20', dte=30,
        current_price=Decimal(spot), is_unlimited=is_unlimited, config=config,
    )


# =============================================================================
# Pure functions
# =============================================================================

class TestPositionPnl:

    def test_long_call(self):
        legs = [leg(CALL, BUY, 100, '2.00')]
        assert position_pnl(legs, Decimal('110')) == Decimal('800.00')
        assert position_pnl(legs, Decimal('90')) == Decimal('-200.00')

    def test_short_put(self):
        legs = [leg(PUT, SELL, 100, '1.50')]
        assert position_pnl(legs, Decimal('105')) == Decimal('150.00')
        assert position_pnl(legs, Decimal('95')) == Decimal('-350.00')

    def test_multiplier(self):
        legs = [leg(CALL, BUY, 100, '2.00')]
        assert position_pnl(legs, Decimal('110'), multiplier=1) == Decimal('8.00')

    def test_net_cash_flow_signs(self):
        legs = [leg(CALL, BUY, 100, '3.20'), leg(CALL, SELL, 105, '1.50')]
        assert net_cash_flow(legs) == Decimal('-1.70')


class TestSamplePayoff:

    def test_band_and_count(self):
        points = sample_payoff([leg(CALL, BUY, 100, '2')], Decimal('100'))
        assert len(points) == 51
        assert points[0].price == Decimal('85.00')
        assert points[25].price == Decimal('100.00')
        assert points[-1].price == Decimal('115.00')

    def test_custom_band(self):
        payoff = PayoffConfig(band_low=Decimal('0.9'), band_high=Decimal('1.1'), samples=5)
        points = sample_payoff([], Decimal('200'), payoff)
        assert [p.price for p in points] == [Decimal(v) for v in ('180.00', '190.00', '200.00', '210.00', '220.00')]
        assert all(p.pnl == 0 for p in points)

    def test_rounding_is_half_up(self):
        assert quantize(Decimal('0.125')) == Decimal('0.13')
        assert quantize(Decimal('-0.125')) == Decimal('-0.13')
        assert quantize(Decimal('0.0005'), 3) == Decimal('0.001')


class TestFindBreakevens:

    def test_interpolates_between_samples(self):
        points = [PnlPoint(Decimal('96'), Decimal('-200')), PnlPoint(Decimal('100'), Decimal('200'))]
        assert find_breakevens(points) == [Decimal('98.00')]

    def test_falling_crossing(self):
        points = [PnlPoint(Decimal('10'), Decimal('30')), PnlPoint(Decimal('11'), Decimal('-10'))]
        assert find_breakevens(points) == [Decimal('10.75')]

    def test_touching_zero_reported_once(self):
        points = [
            PnlPoint(Decimal('1'), Decimal('-10')),
            PnlPoint(Decimal('2'), Decimal('0')),
            PnlPoint(Decimal('3'), Decimal('10')),
        ]
        assert find_breakevens(points) == [Decimal('2.00')]

    def test_no_crossing(self):
        points = [PnlPoint(Decimal('1'), Decimal('5')), PnlPoint(Decimal('2'), Decimal('7'))]
        assert find_breakevens(points) == []


# =============================================================================
# Probability of profit
# =============================================================================

class TestProbabilityCalculator:

    def test_credit_uses_short_deltas(self):
        legs = [
            leg(PUT, SELL, 90, '1', delta='0.16'),
            leg(PUT, BUY, 85, '0.5', delta='-0.10'),
            leg(CALL, SELL, 110, '1', delta='-0.16'),
        ]
        assert ProbabilityCalculator().credit_pop(legs) == Decimal('0.68')

    def test_credit_is_clamped(self):
        legs = [leg(PUT, SELL, 100, '3', delta='0.7'), leg(CALL, SELL, 100, '3', delta='-0.6')]
        assert ProbabilityCalculator().credit_pop(legs) == Decimal('0')

    def test_debit_mean_vs_first(self):
        legs = [leg(CALL, BUY, 100, '3', delta='0.60'), leg(PUT, BUY, 95, '2', delta='-0.20')]
        assert ProbabilityCalculator('mean').debit_pop(legs) == Decimal('0.40')
        assert ProbabilityCalculator('first').debit_pop(legs) == Decimal('0.60')

    def test_skewed_straddle_mean_differs_from_first(self):
        legs = [leg(CALL, BUY, 100, '3.20', delta='0.52'), leg(PUT, BUY, 100, '2.80', delta='-0.48')]
        assert ProbabilityCalculator('mean').debit_pop(legs) == Decimal('0.50')
        assert ProbabilityCalculator('first').debit_pop(legs) == Decimal('0.52')

    def test_debit_without_long_legs(self):
        assert ProbabilityCalculator().debit_pop([leg(PUT, SELL, 100, '1', delta='0.5')]) is None

    def test_dispatch(self):
        legs = [leg(CALL, BUY, 100, '3', delta='0.55')]
        calc = ProbabilityCalculator()
        assert calc.probability_of_profit(legs, is_credit=False) == Decimal('0.55')
        assert calc.probability_of_profit(legs, is_credit=True) == Decimal('1')


# =============================================================================
# Card builder
# =============================================================================

class TestBuildStrategyCard:

    def test_credit_card(self):
        card = card_for([leg(PUT, SELL, 95, '1.50', delta='0.22'), leg(PUT, BUY, 90, '0.90', delta='-0.16')])
        assert card.is_credit
        assert card.net_credit == Decimal('0.60')
        assert card.net_debit is None
        assert card.max_profit == Decimal('60.00')
        assert card.max_loss == Decimal('440.00')
        assert card.pop == Decimal('0.78')

    def test_debit_card(self):
        card = card_for([leg(CALL, BUY, 100, '3.20', delta='0.50'), leg(CALL, SELL, 105, '1.50', delta='-0.22')])
        assert not card.is_credit
        assert card.net_credit is None
        assert card.net_debit == Decimal('1.70')
        assert card.pop == Decimal('0.50')
        assert card.risk_reward == Decimal('1.94')

    def test_breakevens_are_zeros_of_the_curve(self):
        legs = [leg(CALL, BUY, 100, '3.20'), leg(CALL, SELL, 105, '1.50')]
        card = card_for(legs)
        step = Decimal('0.6')
        for be in card.breakevens:
            at_be = abs(position_pnl(legs, be))
            assert at_be < abs(position_pnl(legs, be - step))
            assert at_be < abs(position_pnl(legs, be + step))

    def test_unlimited_has_no_max_loss(self):
        card = card_for([leg(CALL, SELL, 105, '1.50', delta='-0.22')], is_unlimited=True)
        assert card.max_loss is None
        assert card.risk_reward is None
        assert card.max_profit == Decimal('150.00')

    def test_loss_everywhere_has_no_max_profit(self):
        # Deep OTM call bought at a price it never recovers inside the band
        card = card_for([leg(CALL, BUY, 200, '1.00', delta='0.01')])
        assert card.max_profit is None
        assert card.max_loss == Decimal('100.00')
        assert card.risk_reward is None
        assert card.breakevens == ()

    def test_profit_everywhere_reports_smallest_profit_as_max_loss(self):
        # Far OTM short put keeps its full credit across the band
        card = card_for([leg(PUT, SELL, 50, '1.00', delta='0.01')])
        assert card.max_profit == Decimal('100.00')
        assert card.max_loss == Decimal('100.00')
        assert card.risk_reward == Decimal('1.00')
        assert card.breakevens == ()

    def test_empty_legs(self):
        card = card_for([])
        assert card.legs == ()
        assert card.net_credit == Decimal('0.00')
        assert card.max_profit is None
        assert card.max_loss == Decimal('0.00')
        assert card.breakevens == ()
        assert card.pop == Decimal('1.00')
        assert card.net_greeks == Greeks(Decimal('0'), Decimal('0'), Decimal('0'), Decimal('0'))

    def test_theta_per_day_scales_by_multiplier(self):
        card = card_for([leg(PUT, SELL, 95, '1.50', delta='0.22', theta='0.0612')])
        assert card.net_theta == Decimal('0.061')
        assert card.theta_per_day == Decimal('6.12')

    def test_config_is_honored(self):
        config = StrategyConfig(
            payoff=PayoffConfig(samples=11, multiplier=10),
            probability=ProbabilityConfig(debit_method='first'),
        )
        legs = [leg(CALL, BUY, 100, '3', delta='0.60'), leg(PUT, BUY, 95, '2', delta='-0.20')]
        card = card_for(legs, config=config)
        assert len(card.pnl_points) == 11
        assert card.max_loss == Decimal('50.00')
        assert card.pop == Decimal('0.60')

    def test_to_dict_is_json_ready(self):
        card = card_for([leg(CALL, BUY, 100, '3.20', delta='0.50')])
        data = card.to_dict()
        assert data['name'] == 'Test'
        assert data['net_debit'] == pytest.approx(3.20)
        assert data['net_credit'] is None
        assert len(data['pnl_points']) == 51
