"""
Pydantic validation models for API request schemas.

Provides type checking and value constraints for all JSON request
bodies accepted by the Flask endpoints.  Book-level invariants (strike
required for options, absent for futures, supported instrument types)
are enforced by the engine itself so direct callers get the same errors.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union

from positions import build_position


class PositionPayload(BaseModel):
    """A single position in a request body."""
    id: Union[int, str]
    instrument_type: str = Field(..., min_length=1)
    underlying_strike: Optional[float] = None
    premium: float = 0.0
    quantity: float = Field(..., gt=0, description="Unit count")
    is_long: bool = Field(..., description="True long, False short")
    implied_volatility_pct: float = Field(default=0.0, ge=0, description="Implied vol in % points")
    asset: Optional[str] = None
    expiry: Optional[str] = None

    def to_position(self):
        return build_position(self.model_dump())


class BookRequest(BaseModel):
    """Schema for POST /api/risk/greeks and /api/risk/stress."""
    positions: List[PositionPayload] = Field(default_factory=list)
    reference_price: float = Field(..., gt=0, description="Underlying reference price")

    def to_positions(self):
        return [payload.to_position() for payload in self.positions]


class SnapshotRequest(BookRequest):
    """Schema for POST /api/risk/snapshot and /api/risk/curve."""
    curve_range: int = Field(default=150, gt=0)
    curve_step: int = Field(default=5, gt=0)

    @field_validator('curve_step')
    @classmethod
    def validate_curve_step(cls, v, info):
        curve_range = info.data.get('curve_range')
        if curve_range is not None and v > curve_range:
            raise ValueError("curve_step must not exceed curve_range")
        return v
