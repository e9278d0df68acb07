"""
Instrument Table Module

Per-instrument sensitivity and payoff formulas, keyed by instrument type.

Adding a new instrument (e.g. a swap) means adding one row to
``INSTRUMENT_MODELS``; the Greeks aggregator and the scenario curve read
everything they need from the row.  Types without a row are rejected with
``UnsupportedInstrument`` unless the caller explicitly opted into linear
(future-like) treatment.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Callable, Dict, NamedTuple

from errors import InvalidParameter, InvalidPosition, UnsupportedInstrument
from positions import InstrumentType

logger = logging.getLogger(__name__)


class BaseSensitivities(NamedTuple):
    """Unscaled per-unit sensitivities of a single position."""
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass(frozen=True)
class InstrumentModel:
    """One row of the instrument table."""
    name: str
    strike_required: bool
    charges_premium: bool
    # (moneyness, implied_volatility_pct) -> BaseSensitivities
    sensitivities: Callable[[float, float], BaseSensitivities]
    # (price, reference_price, strike) -> payoff per unit
    payoff: Callable[[float, float, float], float]


def _option_sensitivities(moneyness, iv):
    return BaseSensitivities(
        delta=0.5 * moneyness,
        gamma=0.05 / moneyness,
        theta=-0.1 * iv,
        vega=0.2 * math.sqrt(iv),
        rho=0.05,
    )


def _linear_sensitivities(moneyness, iv):
    return BaseSensitivities(delta=1.0, gamma=0.0, theta=0.0, vega=0.0, rho=0.01)


def _call_payoff(price, reference_price, strike):
    return max(0.0, price - strike)


def _put_payoff(price, reference_price, strike):
    return max(0.0, strike - price)


def _linear_payoff(price, reference_price, strike):
    return price - reference_price


INSTRUMENT_MODELS: Dict[InstrumentType, InstrumentModel] = {
    InstrumentType.CALL: InstrumentModel(
        name='Call',
        strike_required=True,
        charges_premium=True,
        sensitivities=_option_sensitivities,
        payoff=_call_payoff,
    ),
    InstrumentType.PUT: InstrumentModel(
        name='Put',
        strike_required=True,
        charges_premium=True,
        sensitivities=_option_sensitivities,
        payoff=_put_payoff,
    ),
    InstrumentType.FUTURE: InstrumentModel(
        name='Future',
        strike_required=False,
        charges_premium=False,
        sensitivities=_linear_sensitivities,
        payoff=_linear_payoff,
    ),
}

# Used in place of a missing row when degraded mode is enabled
LINEAR_MODEL = INSTRUMENT_MODELS[InstrumentType.FUTURE]


def lookup_model(instrument_type):
    """Return the table row for a tag, or ``None`` if there is none."""
    try:
        key = InstrumentType(instrument_type)
    except ValueError:
        return None
    return INSTRUMENT_MODELS.get(key)


def check_reference_price(reference_price):
    """Return the reference price as a float, or raise ``InvalidParameter``."""
    if isinstance(reference_price, bool) or not isinstance(reference_price, numbers.Real):
        raise InvalidParameter('reference_price', reference_price, 'must be a number')
    if not math.isfinite(reference_price) or reference_price <= 0:
        raise InvalidParameter('reference_price', reference_price, 'must be strictly positive')
    return float(reference_price)


def _position_issues(position, model):
    """Return the list of invariant violations for one position."""
    issues = []

    quantity = position.quantity
    if not isinstance(quantity, numbers.Real) or not math.isfinite(quantity) or quantity <= 0:
        issues.append(f'quantity must be strictly positive, got {quantity!r}')

    iv = position.implied_volatility_pct
    if not isinstance(iv, numbers.Real) or not math.isfinite(iv) or iv < 0:
        issues.append(f'implied_volatility_pct must be non-negative, got {iv!r}')

    premium = position.premium
    if not isinstance(premium, numbers.Real) or not math.isfinite(premium):
        issues.append(f'premium must be a finite number, got {premium!r}')

    if not isinstance(position.is_long, bool):
        issues.append(f'is_long must be a boolean, got {position.is_long!r}')

    # Degraded (linear) positions skip the strike checks
    if model is None:
        return issues

    strike = position.underlying_strike
    if model.strike_required:
        if strike is None:
            issues.append(f'{model.name} requires an underlying_strike')
        elif not math.isfinite(strike) or strike <= 0:
            issues.append(f'underlying_strike must be strictly positive, got {strike!r}')
    elif strike is not None:
        issues.append(f'{model.name} must not carry an underlying_strike, got {strike!r}')

    return issues


def resolve_models(positions, treat_as_linear=False):
    """
    Validate a book and pair every position with its instrument row.

    Parameters
    ----------
    positions : list[Position]
        The book, in caller order.
    treat_as_linear : bool
        When True, instrument types with no table row are evaluated with
        the linear (future) row instead of raising.

    Returns
    -------
    list[tuple[Position, InstrumentModel]]

    Raises
    ------
    UnsupportedInstrument
        First position whose type has no row (strict mode only).
    InvalidPosition
        Every position that breaks an invariant (including a repeated id),
        reported together.
    """
    resolved = []
    issues = []
    seen_ids = set()

    for position in positions:
        if position.id in seen_ids:
            issues.append((position.id, 'duplicate position id'))
        seen_ids.add(position.id)

        model = lookup_model(position.instrument_type)
        degraded = False
        if model is None:
            if not treat_as_linear:
                raise UnsupportedInstrument(position.id, position.instrument_type)
            logger.warning(
                "Treating unsupported instrument %r (position %r) as linear",
                getattr(position.instrument_type, 'value', position.instrument_type),
                position.id,
            )
            model = LINEAR_MODEL
            degraded = True

        for reason in _position_issues(position, None if degraded else model):
            issues.append((position.id, reason))
        resolved.append((position, model))

    if issues:
        raise InvalidPosition(issues)

    return resolved
