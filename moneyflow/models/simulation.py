"""
Simulation and strategy settings stored alongside the graph.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SimulationConfig(BaseModel):
    """
    Projection settings.

    `months` is the horizon (0 = current values only). `enabled` is a
    legacy flag kept for old documents; `months` decides whether a
    projection runs.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    enabled: bool = False
    months: int = Field(
        default=0,
        ge=0,
        le=1200,
        description="Projection horizon in months"
    )
    inflation_rate: float = Field(
        default=0.025,
        ge=0.0,
        le=1.0,
        description="Annual inflation as a fraction"
    )
    is_real_value: bool = Field(
        default=False,
        description="Discount projections back to present purchasing power"
    )


class Strategy(BaseModel):
    """Free-text investment strategy note. Nothing is computed from it."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    summary: str = ""
    updated_at: Optional[datetime] = None

    def revise(self, summary: str) -> "Strategy":
        """Return a copy with a new summary stamped with the current time."""
        return Strategy(summary=summary, updated_at=datetime.now(timezone.utc))
