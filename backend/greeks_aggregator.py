"""
Greeks Aggregator Module

Reduces a book plus a reference underlying price into one set of
portfolio-level sensitivities:

- First order: delta, gamma, theta, vega, rho
- Second order / cross: vanna, charm, vomma, speed, zomma, color
- Composite: emergent_index (GEIN), |delta * vega| / (|gamma| + 0.01)
  scaled by sin(reference_price / 1000)

Per-position base sensitivities come from the instrument table and are
scaled by direction * quantity before summation.  Every term is a plain
sum over positions, so the result does not depend on book order beyond
floating-point rounding.
"""

import logging
import math
from dataclasses import asdict, dataclass

from instruments import check_reference_price, resolve_models

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioGreeks:
    """Aggregate sensitivities for a whole book at one reference price."""
    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    rho: float = 0.0
    vanna: float = 0.0
    charm: float = 0.0
    vomma: float = 0.0
    speed: float = 0.0
    zomma: float = 0.0
    color: float = 0.0
    emergent_index: float = 0.0

    def to_dict(self):
        return asdict(self)


class GreeksAggregator:
    """Aggregate position sensitivities into ``PortfolioGreeks``."""

    # Cross-term coefficients applied to the scaled per-position Greeks
    VANNA_FACTOR = -0.01
    CHARM_FACTOR = 0.02
    VOMMA_FACTOR = 0.1
    SPEED_FACTOR = 0.1
    ZOMMA_FACTOR = 0.01
    COLOR_FACTOR = 0.01

    # Keeps the composite index finite for gamma-free positions
    GEIN_GAMMA_FLOOR = 0.01
    GEIN_PRICE_PERIOD = 1000.0

    def __init__(self, treat_unsupported_as_linear=False):
        self.treat_unsupported_as_linear = bool(treat_unsupported_as_linear)

    def aggregate(self, positions, reference_price):
        """
        Aggregate the book at ``reference_price``.

        Parameters:
            positions: list of Position records (may be empty).
            reference_price (float): strictly positive underlying price.

        Returns:
            PortfolioGreeks (all zero for an empty book).
        """
        reference_price = check_reference_price(reference_price)
        resolved = resolve_models(positions, self.treat_unsupported_as_linear)
        return self.aggregate_resolved(resolved, reference_price)

    def aggregate_resolved(self, resolved, reference_price):
        """Aggregate ``(position, model)`` pairs already checked by ``resolve_models``."""
        delta = gamma = theta = vega = rho = 0.0
        vanna = charm = vomma = speed = zomma = color = 0.0
        emergent_index = 0.0

        gein_phase = math.sin(reference_price / self.GEIN_PRICE_PERIOD)

        for position, model in resolved:
            strike = position.underlying_strike
            moneyness = reference_price / strike if strike else 1.0
            base = model.sensitivities(moneyness, position.implied_volatility_pct)

            scale = position.direction * position.quantity
            d_i = scale * base.delta
            g_i = scale * base.gamma
            t_i = scale * base.theta
            v_i = scale * base.vega
            r_i = scale * base.rho

            delta += d_i
            gamma += g_i
            theta += t_i
            vega += v_i
            rho += r_i

            vanna += d_i * self.VANNA_FACTOR
            charm += d_i * self.CHARM_FACTOR
            vomma += v_i * self.VOMMA_FACTOR
            speed += g_i * self.SPEED_FACTOR
            zomma += g_i * v_i * self.ZOMMA_FACTOR
            color += g_i * t_i * self.COLOR_FACTOR
            emergent_index += (abs(d_i * v_i) / (abs(g_i) + self.GEIN_GAMMA_FLOOR)) * gein_phase

        logger.debug(
            "Aggregated %d positions at reference %.4f (delta=%.4f, gamma=%.4f)",
            len(resolved), reference_price, delta, gamma,
        )

        return PortfolioGreeks(
            delta=delta,
            gamma=gamma,
            theta=theta,
            vega=vega,
            rho=rho,
            vanna=vanna,
            charm=charm,
            vomma=vomma,
            speed=speed,
            zomma=zomma,
            color=color,
            emergent_index=emergent_index,
        )


def aggregate(positions, reference_price, treat_as_linear=False):
    """Functional shortcut for ``GreeksAggregator(...).aggregate(...)``."""
    return GreeksAggregator(treat_as_linear).aggregate(positions, reference_price)
