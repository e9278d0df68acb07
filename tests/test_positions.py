"""Tests for position records, the book builder and instrument-table validation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import dataclasses
import pytest
from positions import InstrumentType, build_position, build_positions
from instruments import INSTRUMENT_MODELS, lookup_model, resolve_models
from errors import InvalidPosition, UnsupportedInstrument
from demo_data import get_demo_positions, get_demo_reference_price


def _pos(**overrides):
    data = {
        'id': 1, 'instrument_type': 'Call', 'underlying_strike': 4500,
        'premium': 100, 'quantity': 10, 'is_long': True,
        'implied_volatility_pct': 15,
    }
    data.update(overrides)
    return build_position(data)


class TestBuildPosition:
    def test_snake_case_fields(self):
        p = _pos()
        assert p.id == 1
        assert p.instrument_type is InstrumentType.CALL
        assert p.underlying_strike == 4500.0
        assert p.quantity == 10.0
        assert p.is_long is True

    def test_camel_case_aliases(self):
        p = build_position({
            'id': 'A1', 'type': 'Put', 'strike': 4400, 'premium': 80,
            'quantity': 10, 'isLong': False, 'iv': 16, 'asset': 'SPX_FUT',
            'expiry': '2024-09-30',
        })
        assert p.instrument_type is InstrumentType.PUT
        assert p.underlying_strike == 4400.0
        assert p.is_long is False
        assert p.implied_volatility_pct == 16.0
        assert p.asset == 'SPX_FUT'
        assert p.expiry == '2024-09-30'

    def test_future_strike_stays_none(self):
        p = _pos(instrument_type='Future', underlying_strike=None, premium=0)
        assert p.underlying_strike is None
        assert p.instrument_type is InstrumentType.FUTURE

    def test_unknown_tag_is_preserved(self):
        p = _pos(instrument_type='Swaption')
        assert p.instrument_type == 'Swaption'

    def test_position_passthrough(self):
        p = _pos()
        assert build_position(p) is p

    def test_positions_are_frozen(self):
        p = _pos()
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.quantity = 5

    def test_direction(self):
        assert _pos(is_long=True).direction == 1
        assert _pos(is_long=False).direction == -1

    @pytest.mark.parametrize('raw, expected', [
        ('false', False), ('False', False), ('true', True), (' TRUE ', True),
    ])
    def test_string_direction_parsed_strictly(self, raw, expected):
        assert _pos(is_long=raw).is_long is expected

    @pytest.mark.parametrize('raw', ['no', 'short', 0, 1, None])
    def test_other_directions_carried_raw(self, raw):
        assert _pos(is_long=raw).is_long == raw

    def test_missing_direction_is_none(self):
        p = build_position({'id': 1, 'instrument_type': 'Future', 'quantity': 1})
        assert p.is_long is None

    def test_build_positions_keeps_order(self):
        book = build_positions([_pos(id=3), {'id': 1, 'instrument_type': 'Future',
                                             'quantity': 2}, _pos(id=2)])
        assert [p.id for p in book] == [3, 1, 2]

    def test_build_positions_none(self):
        assert build_positions(None) == []

    def test_to_dict_uses_tag_value(self):
        assert _pos().to_dict()['instrument_type'] == 'Call'


class TestInstrumentTable:
    def test_supported_rows(self):
        assert set(INSTRUMENT_MODELS) == {
            InstrumentType.CALL, InstrumentType.PUT, InstrumentType.FUTURE,
        }

    def test_lookup_accepts_strings(self):
        assert lookup_model('Call') is INSTRUMENT_MODELS[InstrumentType.CALL]

    def test_declared_tags_have_no_row(self):
        assert lookup_model(InstrumentType.SWAP) is None
        assert lookup_model('StructuredProduct') is None
        assert lookup_model('Swaption') is None

    def test_future_row_ignores_premium(self):
        assert INSTRUMENT_MODELS[InstrumentType.FUTURE].charges_premium is False
        assert INSTRUMENT_MODELS[InstrumentType.CALL].charges_premium is True


class TestResolveModels:
    def test_valid_book(self):
        resolved = resolve_models([_pos(), _pos(id=2, instrument_type='Future',
                                                underlying_strike=None)])
        assert [m.name for _, m in resolved] == ['Call', 'Future']

    def test_missing_strike_on_option(self):
        with pytest.raises(InvalidPosition) as exc:
            resolve_models([_pos(id=7, underlying_strike=None)])
        assert exc.value.issues[0][0] == 7
        assert 'strike' in exc.value.issues[0][1]

    def test_strike_on_future(self):
        with pytest.raises(InvalidPosition):
            resolve_models([_pos(instrument_type='Future', underlying_strike=4500)])

    def test_zero_quantity(self):
        with pytest.raises(InvalidPosition):
            resolve_models([_pos(quantity=0)])

    def test_negative_quantity(self):
        with pytest.raises(InvalidPosition):
            resolve_models([_pos(quantity=-1)])

    def test_negative_iv(self):
        with pytest.raises(InvalidPosition):
            resolve_models([_pos(implied_volatility_pct=-1)])

    @pytest.mark.parametrize('raw', ['short', 1, None])
    def test_non_boolean_direction(self, raw):
        with pytest.raises(InvalidPosition) as exc:
            resolve_models([_pos(id=4, is_long=raw)])
        assert exc.value.issues[0][0] == 4
        assert 'is_long' in exc.value.issues[0][1]

    def test_missing_direction(self):
        future = build_position({'id': 1, 'instrument_type': 'Future', 'quantity': 1})
        with pytest.raises(InvalidPosition):
            resolve_models([future])

    def test_degraded_position_needs_direction(self):
        swap = build_position({'id': 'S', 'instrument_type': 'Swap', 'quantity': 1})
        with pytest.raises(InvalidPosition):
            resolve_models([swap], treat_as_linear=True)

    def test_duplicate_ids(self):
        book = [_pos(id=1), _pos(id=2), _pos(id=1, instrument_type='Put')]
        with pytest.raises(InvalidPosition) as exc:
            resolve_models(book)
        assert exc.value.issues == [(1, 'duplicate position id')]

    def test_every_offending_position_reported(self):
        book = [_pos(id=1, quantity=0), _pos(id=2), _pos(id=3, underlying_strike=None)]
        with pytest.raises(InvalidPosition) as exc:
            resolve_models(book)
        ids = [pid for pid, _ in exc.value.issues]
        assert ids == [1, 3]
        assert exc.value.to_dict()['error_type'] == 'InvalidPosition'

    def test_unsupported_instrument(self):
        with pytest.raises(UnsupportedInstrument) as exc:
            resolve_models([_pos(id='S1', instrument_type='Swap')])
        assert exc.value.position_id == 'S1'
        assert exc.value.instrument_type == 'Swap'

    def test_unsupported_as_linear(self):
        resolved = resolve_models([_pos(instrument_type='Swap')], treat_as_linear=True)
        assert resolved[0][1].name == 'Future'

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            resolve_models([_pos(quantity=0)])


class TestDemoBook:
    def test_demo_book_is_valid(self):
        book = get_demo_positions()
        assert len(book) == 3
        assert len(resolve_models(book)) == 3

    def test_demo_reference_price(self):
        assert get_demo_reference_price() == 4500.0

    def test_demo_book_fresh_list(self):
        a = get_demo_positions()
        a.pop()
        assert len(get_demo_positions()) == 3
