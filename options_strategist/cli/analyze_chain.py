"""
CLI: Analyze one expiration of an option chain snapshot.

Prints the Tier-1 strategy suggestions for the IV rank, then a table of
fully built strategy cards. Optionally analyzes a custom leg set and writes
one payoff chart (SVG) per card.

Usage:
    python -m options_strategist.cli.analyze_chain --snapshot spy_2026-03-20.json
    python -m options_strategist.cli.analyze_chain --snapshot chain.json --custom legs.json --charts out/
    python -m options_strategist.cli.analyze_chain --snapshot chain.json --rules my_rules.yaml --labels

Snapshot JSON:
    {"symbol": "SPY", "underlying_price": 100.0, "iv_rank": 0.65,
     "expiration": "2026-03-20", "dte": 30,
     "strikes": [{"strike": 95, "callStreamerSymbol": "...", "putStreamerSymbol": "..."}],
     "greeks": {"<symbol>": {"bid": 1.1, "ask": 1.2, "delta": -0.16, ...}}}

Custom legs JSON:
    [{"type": "call", "side": "buy", "strike": 100, "symbol": "..."}]
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from options_strategist.config.settings import get_settings, setup_logging
from options_strategist.config.strategy_config_loader import StrategyConfigError, load_strategy_config
from options_strategist.core.models.domain import CustomLeg, OptionType, OrderSide, StrategyCard
from options_strategist.services.chain_normalizer import (
    build_greeks_lookup, normalize_chain, to_decimal, to_int,
)
from options_strategist.services.custom_strategy import build_custom_card
from options_strategist.services.strategy_builder import generate_strategies
from options_strategist.services.strategy_selector import select_strategy_labels
from options_strategist.ui.payoff_chart import render_payoff_chart

logger = logging.getLogger(__name__)


class ChainSnapshotError(Exception):
    """Snapshot or custom-leg file missing, unreadable or malformed."""


def _read_json(path: Path) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except OSError as e:
        raise ChainSnapshotError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ChainSnapshotError(f"Invalid JSON in {path}: {e}") from e


def load_snapshot(path: Path) -> Dict[str, Any]:
    """Read a chain snapshot; greeks may be a symbol-keyed dict or a list."""
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise ChainSnapshotError(f"Snapshot {path} must be a JSON object")

    greeks = raw.get('greeks') or {}
    if isinstance(greeks, list):
        greeks = build_greeks_lookup(greeks)

    return {
        'symbol': raw.get('symbol', ''),
        'underlying_price': to_decimal(raw.get('underlying_price')),
        'iv_rank': raw.get('iv_rank'),
        'expiration': str(raw.get('expiration', '')),
        'dte': to_int(raw.get('dte')) or 0,
        'strikes': raw.get('strikes') or [],
        'greeks': greeks,
    }


def load_custom_legs(path: Path) -> List[CustomLeg]:
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ChainSnapshotError(f"Custom legs file {path} must be a JSON list")

    legs: List[CustomLeg] = []
    for i, item in enumerate(raw):
        try:
            strike = to_decimal(item['strike'])
            if strike is None:
                raise ValueError(f"bad strike {item['strike']!r}")
            legs.append(CustomLeg(
                option_type=OptionType(str(item['type']).lower()),
                side=OrderSide(str(item['side']).lower()),
                strike=strike,
                symbol=str(item['symbol']),
            ))
        except (KeyError, TypeError, ValueError) as e:
            raise ChainSnapshotError(f"Custom leg #{i + 1} in {path} is invalid: {e}") from e
    return legs


def _money(value) -> str:
    return f"${float(value):,.2f}" if value is not None else "-"


def _card_row(card: StrategyCard) -> List[Any]:
    premium = f"CR {_money(card.net_credit)}" if card.is_credit else f"DR {_money(card.net_debit)}"
    strikes = "/".join(f"{leg.strike.normalize():f}" for leg in card.legs)
    return [
        card.label,
        card.name,
        strikes,
        premium,
        _money(card.max_profit),
        "Unlimited" if card.is_unlimited else _money(card.max_loss),
        ", ".join(f"{float(b):.2f}" for b in card.breakevens) or "-",
        f"{float(card.pop):.0%}" if card.pop is not None else "-",
        f"{float(card.risk_reward):.2f}" if card.risk_reward is not None else "-",
        f"{float(card.net_delta):+.3f}",
        f"{float(card.theta_per_day):+.2f}",
    ]


def _print_cards(title: str, cards: List[StrategyCard]):
    print(f"\n{title} ({len(cards)}):")
    print("=" * 80)
    if not cards:
        print("  No strategy could be built from this chain.")
        return
    print(tabulate(
        [_card_row(c) for c in cards],
        headers=["", "Strategy", "Strikes", "Premium", "Max Profit", "Max Loss",
                 "Breakevens", "POP", "R:R", "Delta", "Theta/day"],
        tablefmt="rounded_grid",
    ))


def _chart_filename(card: StrategyCard) -> str:
    slug = re.sub(r'[^a-z0-9]+', '_', card.name.lower()).strip('_')
    return f"{card.label.lower()}_{slug}.svg"


def _write_charts(cards: List[StrategyCard], current_price, out_dir: Path) -> int:
    settings = get_settings()
    out_dir.mkdir(parents=True, exist_ok=True)
    written = 0
    for card in cards:
        svg = render_payoff_chart(
            card.pnl_points, card.breakevens, current_price,
            width=settings.chart_width, height=settings.chart_height,
        )
        if not svg:
            continue
        (out_dir / _chart_filename(card)).write_text(svg, encoding='utf-8')
        written += 1
    return written


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build and analyze option strategies for one chain expiration"
    )
    parser.add_argument('--snapshot', type=Path, required=True, help='Chain snapshot JSON file')
    parser.add_argument('--custom', type=Path, default=None, help='Custom legs JSON file to analyze')
    parser.add_argument('--charts', type=Path, default=None, help='Directory to write payoff SVGs into')
    parser.add_argument('--rules', type=Path, default=None, help='Strategy rules YAML (overrides settings)')
    parser.add_argument('--labels', action='store_true', help='Only print Tier-1 strategy labels')
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings)

    try:
        snapshot = load_snapshot(args.snapshot)
        custom_legs = load_custom_legs(args.custom) if args.custom else []
    except ChainSnapshotError as e:
        logger.error(str(e))
        print(f"ERROR: {e}")
        return 1

    labels = select_strategy_labels(snapshot['iv_rank'])
    print(f"\n{snapshot['symbol'] or 'Chain'} {snapshot['expiration']} "
          f"(DTE {snapshot['dte']}, IV rank {snapshot['iv_rank']})")
    print(tabulate(
        [[i, label.name, label.bias.value] for i, label in enumerate(labels, 1)],
        headers=["#", "Suggested", "Type"],
        tablefmt="rounded_grid",
    ))
    if args.labels:
        return 0

    try:
        config = load_strategy_config(args.rules or settings.strategy_rules_path)
    except StrategyConfigError as e:
        logger.error(str(e))
        print(f"ERROR: {e}")
        return 1

    strikes = normalize_chain(snapshot['strikes'], snapshot['greeks'])
    cards = generate_strategies(
        strikes,
        current_price=snapshot['underlying_price'],
        iv_rank=snapshot['iv_rank'],
        expiration=snapshot['expiration'],
        dte=snapshot['dte'],
        config=config,
    )
    _print_cards("Strategies", cards)

    if custom_legs:
        custom = build_custom_card(
            custom_legs, snapshot['greeks'],
            snapshot['expiration'], snapshot['dte'], snapshot['underlying_price'],
            config=config,
        )
        _print_cards("Custom", [custom] if custom else [])
        if custom:
            cards = cards + [custom]

    if args.charts:
        written = _write_charts(cards, snapshot['underlying_price'], args.charts)
        print(f"\nWrote {written} payoff chart(s) to {args.charts}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
