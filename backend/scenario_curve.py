"""
Scenario Curve Module

Sweeps the underlying price around a reference level and reports the
book's expiry-payoff P&L at each sampled price:

- Call:   max(0, price - strike) - premium
- Put:    max(0, strike - price) - premium
- Future: price - reference_price

Each point also carries a relative-likelihood weight from a fixed-width
Gaussian density centred on the reference price (one sigma = 50 price
units).  The weights are NOT a probability mass function: they are the
raw density values and do not sum to 1 over the sampled grid.
"""

import logging
import numbers
from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd
from scipy.stats import norm

from errors import InvalidParameter
from instruments import check_reference_price, resolve_models

logger = logging.getLogger(__name__)

DEFAULT_CURVE_RANGE = 150
DEFAULT_CURVE_STEP = 5
CURVE_STD_DEV = 50.0


@dataclass(frozen=True)
class ScenarioPoint:
    underlying_price: float
    pnl: float
    probability: float

    def to_dict(self):
        return asdict(self)


def _check_grid(curve_range, curve_step):
    for name, value in (('curve_range', curve_range), ('curve_step', curve_step)):
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidParameter(name, value, 'must be an integer')
        if value <= 0:
            raise InvalidParameter(name, value, 'must be strictly positive')
    if curve_step > curve_range:
        raise InvalidParameter(
            'curve_step', curve_step, f'must not exceed curve_range ({curve_range})'
        )


def book_pnl(resolved, reference_price, price):
    """
    Unrounded P&L of a resolved book if the underlying settles at ``price``.

    ``resolved`` is the ``(position, model)`` list from
    ``instruments.resolve_models``.
    """
    total = 0.0
    for position, model in resolved:
        payoff = model.payoff(price, reference_price, position.underlying_strike)
        premium = position.premium if model.charges_premium else 0.0
        total += (payoff - premium) * position.quantity * position.direction
    return total


def generate_curve(positions, reference_price, curve_range=DEFAULT_CURVE_RANGE,
                   curve_step=DEFAULT_CURVE_STEP, treat_as_linear=False):
    """
    Build the P&L-versus-price curve.

    Parameters:
        positions: list of Position records (may be empty).
        reference_price (float): strictly positive centre of the sweep.
        curve_range (int): sweep half-width in price units (default 150).
        curve_step (int): spacing between sampled offsets (default 5).
        treat_as_linear (bool): evaluate formula-less instruments as futures.

    Returns:
        tuple of ScenarioPoint in ascending price order.
    """
    reference_price = check_reference_price(reference_price)
    _check_grid(curve_range, curve_step)
    resolved = resolve_models(positions, treat_as_linear)

    offsets = list(range(-curve_range, curve_range + 1, curve_step))
    weights = norm.pdf(np.asarray(offsets, dtype=float) / CURVE_STD_DEV)

    points = []
    for offset, weight in zip(offsets, weights):
        price = reference_price + offset
        pnl = round(book_pnl(resolved, reference_price, price), 2)
        points.append(ScenarioPoint(
            underlying_price=price,
            pnl=pnl,
            probability=float(weight),
        ))

    logger.debug(
        "Generated %d curve points for %d positions around %.4f",
        len(points), len(resolved), reference_price,
    )
    return tuple(points)


def curve_to_frame(curve):
    """Return the curve as a DataFrame (underlying_price, pnl, probability)."""
    return pd.DataFrame(
        [point.to_dict() for point in curve],
        columns=['underlying_price', 'pnl', 'probability'],
    )


def summarize_curve(curve):
    """
    Summarize a scenario curve.

    Returns a dict with:
        - max_profit / max_loss: best and worst sampled P&L
        - breakevens: prices where P&L changes sign (linear interpolation
          between neighbouring points, or the first sampled price of the
          zero stretch between them); touching zero without a sign change
          is not a breakeven
        - expected_pnl: P&L weighted by the curve weights after normalizing
          them over the sampled grid
    """
    if not curve:
        return {
            'max_profit': 0.0,
            'max_loss': 0.0,
            'breakevens': [],
            'expected_pnl': 0.0,
        }

    frame = curve_to_frame(curve)
    prices = frame['underlying_price'].to_numpy()
    pnl = frame['pnl'].to_numpy()
    weights = frame['probability'].to_numpy()

    breakevens = []
    last_sign = 0
    last_index = None
    zero_start = None
    for i, value in enumerate(pnl):
        if value == 0:
            if zero_start is None:
                zero_start = i
            continue
        sign = 1 if value > 0 else -1
        if last_sign and sign != last_sign:
            if zero_start is not None:
                # Crossing through a flat zero run: first zero of the run
                breakevens.append(float(prices[zero_start]))
            else:
                prev_price, prev_pnl = prices[last_index], pnl[last_index]
                fraction = prev_pnl / (prev_pnl - value)
                breakevens.append(round(float(prev_price + fraction * (prices[i] - prev_price)), 2))
        last_sign = sign
        last_index = i
        zero_start = None

    total_weight = weights.sum()
    expected = float(np.dot(pnl, weights) / total_weight) if total_weight > 0 else 0.0

    return {
        'max_profit': float(pnl.max()),
        'max_loss': float(pnl.min()),
        'breakevens': breakevens,
        'expected_pnl': round(expected, 2),
    }
