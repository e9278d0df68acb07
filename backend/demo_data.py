"""
Demo Mode - Sample derivatives book for running without a live position feed
"""

from positions import build_positions

DEMO_REFERENCE_PRICE = 4500.0

DEMO_POSITIONS = [
    {
        'id': 1,
        'instrument_type': 'Call',
        'asset': 'SPX_FUT',
        'underlying_strike': 4500,
        'expiry': '2024-09-30',
        'premium': 100,
        'quantity': 10,
        'is_long': True,
        'implied_volatility_pct': 15,
    },
    {
        'id': 2,
        'instrument_type': 'Put',
        'asset': 'SPX_FUT',
        'underlying_strike': 4400,
        'expiry': '2024-09-30',
        'premium': 80,
        'quantity': 10,
        'is_long': False,
        'implied_volatility_pct': 16,
    },
    {
        'id': 3,
        'instrument_type': 'Future',
        'asset': 'SPX_FUT',
        'underlying_strike': None,
        'expiry': '2024-12-15',
        'premium': 0,
        'quantity': 5,
        'is_long': True,
        'implied_volatility_pct': 0,
    },
]


def get_demo_positions():
    """Return a fresh list of demo ``Position`` records."""
    return build_positions(DEMO_POSITIONS)


def get_demo_reference_price():
    return DEMO_REFERENCE_PRICE
