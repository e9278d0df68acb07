"""
Error taxonomy for the risk engine.

Every error is raised synchronously to the immediate caller:

- ``InvalidPosition`` – a position breaks the data-model invariants
  (missing strike on an option, non-positive quantity, ...).
- ``UnsupportedInstrument`` – the instrument type has no sensitivity /
  payoff formula and degraded (linear) treatment was not enabled.
- ``InvalidParameter`` – a bad call argument (reference price, curve
  range / step, position count, scenario shock).
"""


class RiskEngineError(ValueError):
    """Base class for all engine input errors."""

    def to_dict(self):
        return {'error': str(self), 'error_type': self.__class__.__name__}


class InvalidPosition(RiskEngineError):
    """Raised with every offending position, never just the first one."""

    def __init__(self, issues):
        self.issues = list(issues)
        summary = '; '.join(f'position {pid!r}: {reason}' for pid, reason in self.issues)
        super().__init__(f'Invalid position(s): {summary}')

    def to_dict(self):
        data = super().to_dict()
        data['details'] = [
            {'position_id': pid, 'reason': reason} for pid, reason in self.issues
        ]
        return data


class UnsupportedInstrument(RiskEngineError):
    def __init__(self, position_id, instrument_type):
        self.position_id = position_id
        self.instrument_type = getattr(instrument_type, 'value', instrument_type)
        super().__init__(
            f'Unsupported instrument type {self.instrument_type!r} '
            f'for position {position_id!r}'
        )

    def to_dict(self):
        data = super().to_dict()
        data['details'] = {
            'position_id': self.position_id,
            'instrument_type': self.instrument_type,
        }
        return data


class InvalidParameter(RiskEngineError):
    def __init__(self, name, value, reason):
        self.name = name
        self.value = value
        super().__init__(f'Invalid {name}={value!r}: {reason}')

    def to_dict(self):
        data = super().to_dict()
        data['details'] = {'name': self.name, 'value': self.value}
        return data
