"""
Payoff Chart - expiration P&L curve as a compact SVG string.

Profit (P&L >= 0) and loss (P&L < 0) areas are separate filled paths built
one sample segment at a time. A segment that crosses zero is split at the
linearly interpolated crossing, so the colored edge sits on the exact
breakeven rather than the nearest sample.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Mapping, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

PADDING = {'top': 15, 'right': 10, 'bottom': 20, 'left': 40}

PROFIT_FILL = '#bbf7d0'
LOSS_FILL = '#fecaca'
CURVE_STROKE = '#374151'
ZERO_STROKE = '#d1d5db'
BREAKEVEN_STROKE = '#9ca3af'
CURRENT_PRICE_STROKE = '#6366f1'
PROFIT_TEXT = '#16a34a'
LOSS_TEXT = '#dc2626'
AXIS_TEXT = '#9ca3af'


def _point(p: Any) -> Tuple[float, float]:
    if isinstance(p, Mapping):
        return float(p['price']), float(p['pnl'])
    return float(p.price), float(p.pnl)


def _fmt(value: float) -> str:
    return f"{value:.1f}"


def _whole(value: float) -> int:
    """Nearest whole number, halves rounded away from zero."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _area(x1: float, y1: float, x2: float, y2: float, zero_y: float) -> str:
    """Closed quad from the zero line up to a curve segment and back."""
    return (
        f"M{_fmt(x1)},{_fmt(zero_y)} L{_fmt(x1)},{_fmt(y1)} "
        f"L{_fmt(x2)},{_fmt(y2)} L{_fmt(x2)},{_fmt(zero_y)} Z "
    )


def _wedge_from_left(x1: float, y1: float, x_cross: float, zero_y: float) -> str:
    return f"M{_fmt(x1)},{_fmt(zero_y)} L{_fmt(x1)},{_fmt(y1)} L{_fmt(x_cross)},{_fmt(zero_y)} Z "


def _wedge_to_right(x_cross: float, x2: float, y2: float, zero_y: float) -> str:
    return f"M{_fmt(x_cross)},{_fmt(zero_y)} L{_fmt(x2)},{_fmt(y2)} L{_fmt(x2)},{_fmt(zero_y)} Z "


def _vertical_line(x: float, top: float, bottom: float, stroke: str, dash: str) -> str:
    return (
        f'<line x1="{_fmt(x)}" y1="{top}" x2="{_fmt(x)}" y2="{bottom}" '
        f'stroke="{stroke}" stroke-width="1" stroke-dasharray="{dash}"/>'
    )


def render_payoff_chart(
    pnl_points: Sequence[Any],
    breakevens: Sequence[Any],
    current_price: Any,
    width: int = 280,
    height: int = 140,
) -> str:
    """
    Render a payoff curve as SVG markup.

    Args:
        pnl_points: ordered PnlPoint (or {'price', 'pnl'} mappings)
        breakevens: breakeven prices; those outside the band are not drawn
        current_price: underlying price marker
        width, height: drawing size in pixels

    Returns:
        SVG string, or '' when fewer than 2 points are given.
    """
    points = [_point(p) for p in pnl_points or []]
    if len(points) < 2:
        return ''

    pad = PADDING
    w = width - pad['left'] - pad['right']
    h = height - pad['top'] - pad['bottom']
    top = pad['top']
    bottom = pad['top'] + h

    prices = [p for p, _ in points]
    pnls = [v for _, v in points]
    min_p, max_p = min(prices), max(prices)
    min_pnl = min(min(pnls), 0.0)
    max_pnl = max(max(pnls), 0.0)
    price_range = (max_p - min_p) or 1.0
    pnl_range = (max_pnl - min_pnl) or 1.0

    def scale_x(price: float) -> float:
        return pad['left'] + ((price - min_p) / price_range) * w

    def scale_y(pnl: float) -> float:
        return pad['top'] + h - ((pnl - min_pnl) / pnl_range) * h

    zero_y = scale_y(0.0)

    line_points = ' '.join(f"{_fmt(scale_x(p))},{_fmt(scale_y(v))}" for p, v in points)

    profit: List[str] = []
    loss: List[str] = []
    for (p1, v1), (p2, v2) in zip(points, points[1:]):
        x1, x2 = scale_x(p1), scale_x(p2)
        y1, y2 = scale_y(v1), scale_y(v2)

        if v1 >= 0 and v2 >= 0:
            profit.append(_area(x1, y1, x2, y2, zero_y))
        elif v1 <= 0 and v2 <= 0:
            loss.append(_area(x1, y1, x2, y2, zero_y))
        else:
            ratio = abs(v1) / (abs(v1) + abs(v2))
            x_cross = x1 + ratio * (x2 - x1)
            left, right = (profit, loss) if v1 > 0 else (loss, profit)
            left.append(_wedge_from_left(x1, y1, x_cross, zero_y))
            right.append(_wedge_to_right(x_cross, x2, y2, zero_y))

    breakeven_lines = ''.join(
        _vertical_line(scale_x(float(be)), top, bottom, BREAKEVEN_STROKE, '4,3')
        for be in breakevens or []
        if min_p <= float(be) <= max_p
    )

    current = float(current_price) if current_price is not None else None
    current_line = ''
    if current is not None and min_p <= current <= max_p:
        current_line = _vertical_line(scale_x(current), top, bottom, CURRENT_PRICE_STROKE, '2,2')

    best, worst = max(pnls), min(pnls)
    profit_label = (
        f'<text x="{pad["left"] + 2}" y="{pad["top"] + 10}" font-size="9" '
        f'fill="{PROFIT_TEXT}">+${_whole(best)}</text>'
        if best > 0 else ''
    )
    loss_label = (
        f'<text x="{pad["left"] + 2}" y="{pad["top"] + h - 2}" font-size="9" '
        f'fill="{LOSS_TEXT}">-${_whole(abs(worst))}</text>'
        if worst < 0 else ''
    )

    zero_line = (
        f'<line x1="{pad["left"]}" y1="{_fmt(zero_y)}" x2="{pad["left"] + w}" y2="{_fmt(zero_y)}" '
        f'stroke="{ZERO_STROKE}" stroke-width="1"/>'
    )

    axis_labels = (
        f'<text x="{pad["left"]}" y="{height - 3}" font-size="8" fill="{AXIS_TEXT}">{_whole(min_p)}</text>'
        f'<text x="{width - pad["right"]}" y="{height - 3}" font-size="8" fill="{AXIS_TEXT}" '
        f'text-anchor="end">{_whole(max_p)}</text>'
    )

    logger.debug(f"Rendered payoff chart: {len(points)} points, {len(profit)} profit / {len(loss)} loss segments")

    return '\n'.join([
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">',
        f'  <path d="{"".join(profit)}" fill="{PROFIT_FILL}" opacity="0.6"/>',
        f'  <path d="{"".join(loss)}" fill="{LOSS_FILL}" opacity="0.6"/>',
        f'  {zero_line}',
        f'  {breakeven_lines}',
        f'  {current_line}',
        f'  <polyline points="{line_points}" fill="none" stroke="{CURVE_STROKE}" stroke-width="1.5"/>',
        f'  {profit_label}',
        f'  {loss_label}',
        f'  {axis_labels}',
        '</svg>',
    ])
