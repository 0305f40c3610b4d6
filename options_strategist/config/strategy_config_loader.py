"""
Strategy Rules Loader

Loads strategy construction rules from YAML configuration file.
Provides typed, immutable access to volatility bands, target deltas,
payoff sampling and probability settings.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging
import yaml

logger = logging.getLogger(__name__)

_CONFIG_DIR = Path(__file__).parent

DEBIT_POP_METHODS = ('mean', 'first')


class StrategyConfigError(ValueError):
    """Raised when a strategy rules file holds a value of the wrong shape."""


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass(frozen=True)
class VolatilityBands:
    """IV-rank percentage thresholds for Tier-2 generation"""
    high_above: Decimal = Decimal('50')    # rank% > high_above -> sell premium
    low_below: Decimal = Decimal('20')     # rank% < low_below  -> buy premium


@dataclass(frozen=True)
class DeltaTargets:
    """Target deltas per constructed shape (puts negative, calls positive)"""
    iron_condor_put: Decimal = Decimal('-0.16')
    iron_condor_call: Decimal = Decimal('0.16')
    put_credit_spread: Decimal = Decimal('-0.20')
    short_strangle_put: Decimal = Decimal('-0.16')
    short_strangle_call: Decimal = Decimal('0.16')
    bull_call_long: Decimal = Decimal('0.50')
    bull_call_short: Decimal = Decimal('0.30')
    wide_condor_put: Decimal = Decimal('-0.10')
    wide_condor_call: Decimal = Decimal('0.10')
    mid_put_credit_spread: Decimal = Decimal('-0.25')
    straddle_call: Decimal = Decimal('0.50')
    strangle_call: Decimal = Decimal('0.30')
    strangle_put: Decimal = Decimal('-0.30')
    debit_spread_long: Decimal = Decimal('0.50')
    debit_spread_short: Decimal = Decimal('0.30')


@dataclass(frozen=True)
class PayoffConfig:
    """Payoff curve sampling"""
    band_low: Decimal = Decimal('0.85')    # fraction of current price
    band_high: Decimal = Decimal('1.15')
    samples: int = 51
    multiplier: int = 100                  # contract multiplier


@dataclass(frozen=True)
class ProbabilityConfig:
    """Probability-of-profit heuristic"""
    debit_method: str = 'mean'             # 'mean' of long-leg deltas or 'first' long leg


@dataclass(frozen=True)
class StrategyConfig:
    """Complete strategy rules configuration"""
    bands: VolatilityBands = field(default_factory=VolatilityBands)
    deltas: DeltaTargets = field(default_factory=DeltaTargets)
    payoff: PayoffConfig = field(default_factory=PayoffConfig)
    probability: ProbabilityConfig = field(default_factory=ProbabilityConfig)
    min_strikes: int = 3


DEFAULT_STRATEGY_CONFIG = StrategyConfig()


# =============================================================================
# Parsing
# =============================================================================

def _decimal(section: str, key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise StrategyConfigError(f"{section}.{key} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise StrategyConfigError(f"{section}.{key} must be a number, got {value!r}")


def _positive_int(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise StrategyConfigError(f"{section}.{key} must be a positive integer, got {value!r}")
    return value


def _parse_bands(raw: Dict[str, Any]) -> VolatilityBands:
    defaults = VolatilityBands()
    bands = VolatilityBands(
        high_above=_decimal('bands', 'high_above', raw.get('high_above', defaults.high_above)),
        low_below=_decimal('bands', 'low_below', raw.get('low_below', defaults.low_below)),
    )
    if bands.low_below > bands.high_above:
        raise StrategyConfigError(
            f"bands.low_below ({bands.low_below}) exceeds bands.high_above ({bands.high_above})"
        )
    return bands


def _parse_deltas(raw: Dict[str, Any]) -> DeltaTargets:
    defaults = DeltaTargets()
    unknown = set(raw) - set(defaults.__dataclass_fields__)
    if unknown:
        raise StrategyConfigError(f"Unknown delta targets: {sorted(unknown)}")
    values = {
        name: _decimal('deltas', name, raw.get(name, getattr(defaults, name)))
        for name in defaults.__dataclass_fields__
    }
    return DeltaTargets(**values)


def _parse_payoff(raw: Dict[str, Any]) -> PayoffConfig:
    defaults = PayoffConfig()
    payoff = PayoffConfig(
        band_low=_decimal('payoff', 'band_low', raw.get('band_low', defaults.band_low)),
        band_high=_decimal('payoff', 'band_high', raw.get('band_high', defaults.band_high)),
        samples=_positive_int('payoff', 'samples', raw.get('samples', defaults.samples)),
        multiplier=_positive_int('payoff', 'multiplier', raw.get('multiplier', defaults.multiplier)),
    )
    if payoff.samples < 2:
        raise StrategyConfigError("payoff.samples must be at least 2")
    if not Decimal('0') < payoff.band_low < payoff.band_high:
        raise StrategyConfigError(
            f"payoff band must satisfy 0 < band_low < band_high, got "
            f"{payoff.band_low}..{payoff.band_high}"
        )
    return payoff


def _parse_probability(raw: Dict[str, Any]) -> ProbabilityConfig:
    method = raw.get('debit_method', ProbabilityConfig().debit_method)
    if method not in DEBIT_POP_METHODS:
        raise StrategyConfigError(
            f"probability.debit_method must be one of {DEBIT_POP_METHODS}, got {method!r}"
        )
    return ProbabilityConfig(debit_method=method)


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise StrategyConfigError(f"Section '{name}' must be a mapping")
    return value


def load_strategy_config(path: Optional[Union[str, Path]] = None) -> StrategyConfig:
    """
    Load strategy rules from YAML.

    Args:
        path: Override path. Default: config/strategy_rules.yaml

    Returns:
        StrategyConfig. Missing file falls back to defaults.

    Raises:
        StrategyConfigError: when a value has the wrong type or range.
    """
    path = Path(path) if path is not None else _CONFIG_DIR / 'strategy_rules.yaml'

    if not path.exists():
        logger.warning(f"Strategy rules not found at {path}, using defaults")
        return DEFAULT_STRATEGY_CONFIG

    with open(path, 'r') as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise StrategyConfigError(f"Strategy rules at {path} are not valid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise StrategyConfigError(f"Strategy rules at {path} must be a mapping")

    min_strikes = _positive_int(
        'strategy', 'min_strikes', raw.get('min_strikes', DEFAULT_STRATEGY_CONFIG.min_strikes)
    )
    config = StrategyConfig(
        bands=_parse_bands(_section(raw, 'bands')),
        deltas=_parse_deltas(_section(raw, 'deltas')),
        payoff=_parse_payoff(_section(raw, 'payoff')),
        probability=_parse_probability(_section(raw, 'probability')),
        min_strikes=min_strikes,
    )

    logger.info(f"Loaded strategy rules from {path}")
    return config
