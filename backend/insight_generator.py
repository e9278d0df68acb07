"""
Insight Generator Module

Turns aggregated portfolio Greeks into an ordered list of risk /
opportunity insights using a fixed checklist of threshold rules:

1. **Composite anomaly** – |emergent_index| > 10 (Critical)
2. **Directional exposure** – |delta| > 500 (High)
3. **Negative convexity** – gamma < -50 (Critical)
4. **Long volatility** – vega > 100 and theta > -50 (Medium)
5. **Alpha signal** – always emitted (Medium, informational)
6. **Position count** – more than 10 positions (Low, not actionable)

Rules are evaluated independently and in this order; the output keeps
the evaluation order and is never re-sorted by severity.  Ids and
timestamps are attached after evaluation and are not part of insight
equality.
"""

import numbers
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from errors import InvalidParameter


class InsightCategory(str, Enum):
    COMPOSITE = 'Composite'
    RISK = 'Risk'
    OPPORTUNITY = 'Opportunity'
    ALPHA_SIGNAL = 'AlphaSignal'
    COMPLIANCE = 'Compliance'


class Severity(str, Enum):
    LOW = 'Low'
    MEDIUM = 'Medium'
    HIGH = 'High'
    CRITICAL = 'Critical'


@dataclass(frozen=True)
class Insight:
    category: InsightCategory
    severity: Severity
    message: str
    confidence_score: float
    actionable: bool = True
    # Metadata, excluded from equality
    id: Optional[str] = field(default=None, compare=False)
    timestamp: Optional[str] = field(default=None, compare=False)

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'category': self.category.value,
            'severity': self.severity.value,
            'message': self.message,
            'confidence_score': self.confidence_score,
            'actionable': self.actionable,
        }


# Id prefix per category
_ID_PREFIXES = {
    InsightCategory.COMPOSITE: 'GEIN',
    InsightCategory.RISK: 'RISK',
    InsightCategory.OPPORTUNITY: 'OPP',
    InsightCategory.ALPHA_SIGNAL: 'ALPHA',
    InsightCategory.COMPLIANCE: 'COMP',
}


class InsightGenerator:
    """Evaluate the fixed insight rule set against portfolio Greeks."""

    # ---- rule thresholds ----
    EMERGENT_INDEX_LIMIT = 10.0
    DELTA_LIMIT = 500.0
    GAMMA_FLOOR = -50.0
    VEGA_OPPORTUNITY = 100.0
    THETA_OPPORTUNITY_FLOOR = -50.0
    POSITION_COUNT_LIMIT = 10

    # ---- per-rule confidence ----
    COMPOSITE_CONFIDENCE = 0.99
    DELTA_CONFIDENCE = 0.98
    GAMMA_CONFIDENCE = 0.95
    OPPORTUNITY_CONFIDENCE = 0.85
    ALPHA_CONFIDENCE = 0.78
    COMPLIANCE_CONFIDENCE = 1.0

    def evaluate_rules(self, greeks, position_count):
        """
        Run the rule checklist.

        Parameters
        ----------
        greeks : PortfolioGreeks
            Aggregated book sensitivities.
        position_count : int
            Number of positions in the book (non-negative).

        Returns
        -------
        list[Insight] without id / timestamp metadata, in rule order.
        """
        if (isinstance(position_count, bool)
                or not isinstance(position_count, numbers.Integral)
                or position_count < 0):
            raise InvalidParameter(
                'position_count', position_count, 'must be a non-negative integer'
            )

        insights = []

        # 1. Composite index anomaly
        if abs(greeks.emergent_index) > self.EMERGENT_INDEX_LIMIT:
            insights.append(Insight(
                category=InsightCategory.COMPOSITE,
                severity=Severity.CRITICAL,
                message=(
                    f'Composite risk index anomaly ({greeks.emergent_index:.2f}). '
                    f'Delta/vega interaction is large relative to gamma; '
                    f're-evaluate all positions.'
                ),
                confidence_score=self.COMPOSITE_CONFIDENCE,
            ))

        # 2. Directional exposure
        if abs(greeks.delta) > self.DELTA_LIMIT:
            insights.append(Insight(
                category=InsightCategory.RISK,
                severity=Severity.HIGH,
                message=(
                    f'Delta exposure is critically high ({greeks.delta:.2f}). '
                    f'Consider hedging with out-of-the-money options on the underlying.'
                ),
                confidence_score=self.DELTA_CONFIDENCE,
            ))

        # 3. Negative convexity (strict)
        if greeks.gamma < self.GAMMA_FLOOR:
            insights.append(Insight(
                category=InsightCategory.RISK,
                severity=Severity.CRITICAL,
                message=(
                    f'Negative gamma exposure detected ({greeks.gamma:.2f}). '
                    f'Sharp market moves will accelerate losses; '
                    f'reduce short option exposure.'
                ),
                confidence_score=self.GAMMA_CONFIDENCE,
            ))

        # 4. Long volatility with manageable decay
        if greeks.vega > self.VEGA_OPPORTUNITY and greeks.theta > self.THETA_OPPORTUNITY_FLOOR:
            insights.append(Insight(
                category=InsightCategory.OPPORTUNITY,
                severity=Severity.MEDIUM,
                message=(
                    f'Portfolio is long volatility (vega {greeks.vega:.2f}) with '
                    f'manageable decay (theta {greeks.theta:.2f}). Conditions favour '
                    f'event-driven volatility plays.'
                ),
                confidence_score=self.OPPORTUNITY_CONFIDENCE,
            ))

        # 5. Informational alpha signal, always present
        insights.append(Insight(
            category=InsightCategory.ALPHA_SIGNAL,
            severity=Severity.MEDIUM,
            message=(
                'Order-flow model flags anomalous activity in index futures. '
                'Potential for short-term upside momentum.'
            ),
            confidence_score=self.ALPHA_CONFIDENCE,
        ))

        # 6. Position count
        if position_count > self.POSITION_COUNT_LIMIT:
            insights.append(Insight(
                category=InsightCategory.COMPLIANCE,
                severity=Severity.LOW,
                message=(
                    f'Position count ({position_count}) approaching desk limits. '
                    f'Ensure all tickets are reconciled in the OMS.'
                ),
                confidence_score=self.COMPLIANCE_CONFIDENCE,
                actionable=False,
            ))

        return insights

    def generate_insights(self, greeks, position_count):
        """Evaluate the rules and tag each insight with an id and timestamp."""
        timestamp = datetime.now(timezone.utc).isoformat()
        return tuple(
            replace(
                insight,
                id=f'{_ID_PREFIXES[insight.category]}-{uuid.uuid4().hex[:9]}',
                timestamp=timestamp,
            )
            for insight in self.evaluate_rules(greeks, position_count)
        )


def generate_insights(greeks, position_count):
    return InsightGenerator().generate_insights(greeks, position_count)
