"""
Position Store Module

Immutable position records for a derivatives book.

Each position carries:
- id: opaque caller-assigned identifier
- instrument_type: 'Call', 'Put', 'Future' (plus the declared but
  formula-less 'Swap' and 'StructuredProduct' tags)
- underlying_strike: strike price (options only, None for futures)
- premium: price paid/received per unit (ignored for futures)
- quantity: strictly positive unit count
- is_long: direction flag (required boolean)
- implied_volatility_pct: implied vol in percentage points (15 == 15%)

The engine never mutates positions; the caller owns the book.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class InstrumentType(str, Enum):
    CALL = 'Call'
    PUT = 'Put'
    FUTURE = 'Future'
    # Declared by the book model but without sensitivity / payoff formulas
    SWAP = 'Swap'
    STRUCTURED_PRODUCT = 'StructuredProduct'


@dataclass(frozen=True)
class Position:
    """A single derivative or linear exposure."""
    id: Union[int, str]
    instrument_type: Union[InstrumentType, str]
    underlying_strike: Optional[float]
    premium: float
    quantity: float
    is_long: bool
    implied_volatility_pct: float
    asset: Optional[str] = None
    expiry: Optional[str] = None

    @property
    def direction(self):
        """+1 for long, -1 for short."""
        return 1 if self.is_long else -1

    def to_dict(self):
        return {
            'id': self.id,
            'instrument_type': getattr(self.instrument_type, 'value', self.instrument_type),
            'underlying_strike': self.underlying_strike,
            'premium': self.premium,
            'quantity': self.quantity,
            'is_long': self.is_long,
            'implied_volatility_pct': self.implied_volatility_pct,
            'asset': self.asset,
            'expiry': self.expiry,
        }


# camelCase field names accepted as aliases by ``build_position``
_FIELD_ALIASES = {
    'id': ('id',),
    'instrument_type': ('instrument_type', 'instrumentType', 'type'),
    'underlying_strike': ('underlying_strike', 'underlyingStrike', 'strike'),
    'premium': ('premium',),
    'quantity': ('quantity', 'qty'),
    'is_long': ('is_long', 'isLong'),
    'implied_volatility_pct': ('implied_volatility_pct', 'impliedVolatilityPct', 'iv'),
    'asset': ('asset',),
    'expiry': ('expiry',),
}


def _lookup(data, field, default=None):
    for key in _FIELD_ALIASES[field]:
        if key in data:
            return data[key]
    return default


def coerce_instrument_type(value: Any):
    """Return the matching ``InstrumentType``, or the raw tag when unknown."""
    if isinstance(value, InstrumentType):
        return value
    try:
        return InstrumentType(value)
    except ValueError:
        return value


def coerce_direction(value):
    """Return a bool for real bools and 'true'/'false' strings, else the raw value."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    return value


def build_position(data):
    """
    Construct a ``Position`` from a mapping.

    Accepts both the snake_case field names and the camelCase names used
    by the trading desk UI (``instrumentType``, ``isLong``, ``iv`` ...).
    Invariants are *not* checked here; the engine validates every book it
    is handed and reports all offending positions together.
    """
    if isinstance(data, Position):
        return data

    strike = _lookup(data, 'underlying_strike')
    return Position(
        id=_lookup(data, 'id'),
        instrument_type=coerce_instrument_type(_lookup(data, 'instrument_type')),
        underlying_strike=float(strike) if strike is not None else None,
        premium=float(_lookup(data, 'premium', 0.0)),
        quantity=float(_lookup(data, 'quantity', 0.0)),
        is_long=coerce_direction(_lookup(data, 'is_long')),
        implied_volatility_pct=float(_lookup(data, 'implied_volatility_pct', 0.0)),
        asset=_lookup(data, 'asset'),
        expiry=_lookup(data, 'expiry'),
    )


def build_positions(items):
    """Build an ordered list of positions, preserving caller order."""
    return [build_position(item) for item in (items or [])]
