"""
Risk Engine Module

Single entry point for the derivatives risk & insight engine.  One call
produces a ``RiskSnapshot``:

- Portfolio Greeks (first order, cross terms and the composite index)
- P&L-versus-price scenario curve with relative-likelihood weights
- Ordered rule-based insights

The engine is stateless and re-entrant: the book is passed explicitly
on every call, nothing is cached, and sub-component errors propagate to
the caller unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from greeks_aggregator import GreeksAggregator, PortfolioGreeks
from insight_generator import Insight, InsightGenerator
from scenario_curve import (
    DEFAULT_CURVE_RANGE, DEFAULT_CURVE_STEP, ScenarioPoint,
    curve_to_frame, generate_curve, summarize_curve,
)
from stress_tests import DEFAULT_SCENARIOS, run_stress_tests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskSnapshot:
    """Immutable result of one engine computation."""
    greeks: PortfolioGreeks
    curve: Tuple[ScenarioPoint, ...]
    insights: Tuple[Insight, ...]

    @property
    def risk_score(self):
        """Desk risk score: 100 minus one point per 10 units of net delta."""
        return 100 - abs(self.greeks.delta) / 10

    @property
    def directional_bias(self):
        return 'BULLISH' if self.greeks.delta > 0 else 'BEARISH'

    def curve_summary(self):
        return summarize_curve(self.curve)

    def curve_frame(self):
        return curve_to_frame(self.curve)

    def to_dict(self):
        return {
            'greeks': self.greeks.to_dict(),
            'curve': [point.to_dict() for point in self.curve],
            'insights': [insight.to_dict() for insight in self.insights],
            'risk_score': round(self.risk_score, 1),
            'directional_bias': self.directional_bias,
            'curve_summary': self.curve_summary(),
        }


class RiskEngine:
    """Compose the Greeks aggregator, scenario curve and insight rules."""

    DEFAULT_CURVE_RANGE = DEFAULT_CURVE_RANGE
    DEFAULT_CURVE_STEP = DEFAULT_CURVE_STEP

    # Evaluate formula-less instruments as futures instead of rejecting them
    TREAT_UNSUPPORTED_AS_LINEAR = False

    def __init__(self, treat_unsupported_as_linear=None):
        # Degraded handling is fixed per engine
        if treat_unsupported_as_linear is None:
            treat_unsupported_as_linear = self.TREAT_UNSUPPORTED_AS_LINEAR
        self.treat_unsupported_as_linear = bool(treat_unsupported_as_linear)
        self.greeks_aggregator = GreeksAggregator(self.treat_unsupported_as_linear)
        self.insight_generator = InsightGenerator()

    def compute_snapshot(self, positions, reference_price,
                         curve_range=DEFAULT_CURVE_RANGE,
                         curve_step=DEFAULT_CURVE_STEP):
        """
        Compute the full risk snapshot for a book.

        Parameters
        ----------
        positions : list[Position]
            The book, in caller order (not mutated).
        reference_price : float
            Current underlying price (strictly positive).
        curve_range : int
            Scenario sweep half-width in price units (default 150).
        curve_step : int
            Scenario sweep spacing (default 5).

        Returns
        -------
        RiskSnapshot

        Raises
        ------
        InvalidPosition, UnsupportedInstrument, InvalidParameter
        """
        positions = list(positions)
        greeks = self.greeks_aggregator.aggregate(positions, reference_price)
        curve = generate_curve(
            positions, reference_price, curve_range, curve_step,
            treat_as_linear=self.treat_unsupported_as_linear,
        )
        insights = self.insight_generator.generate_insights(greeks, len(positions))

        logger.info(
            "Computed snapshot: %d positions, %d curve points, %d insights",
            len(positions), len(curve), len(insights),
        )
        return RiskSnapshot(greeks=greeks, curve=curve, insights=insights)

    def run_stress_tests(self, positions, reference_price, scenarios=DEFAULT_SCENARIOS):
        """Evaluate the book under named macro scenarios."""
        return run_stress_tests(
            list(positions), reference_price, scenarios,
            treat_as_linear=self.treat_unsupported_as_linear,
        )


def compute_snapshot(positions, reference_price,
                     curve_range=DEFAULT_CURVE_RANGE, curve_step=DEFAULT_CURVE_STEP):
    """Compute a snapshot with strict instrument handling."""
    return RiskEngine().compute_snapshot(positions, reference_price, curve_range, curve_step)
