"""Score models — emitted by the multi-factor scorer."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class FactorScore(BaseModel):
    """One factor's contribution, with a human-readable rationale."""

    key: str
    value: int
    detail: str = ""


class AggregateScore(BaseModel):
    """Weighted aggregate of all factors that had data.

    ``value`` is 0 both for a genuinely neutral reading and when nothing
    could be scored; use ``has_data`` to tell the two apart.
    """

    value: Decimal = Field(ge=-100, le=100)
    factors: list[FactorScore] = Field(default_factory=list)
    weights: dict[str, int] = Field(default_factory=dict)
    label: str = "no_data"
    action: str = ""

    @property
    def has_data(self) -> bool:
        return bool(self.factors)

    def factor(self, key: str) -> FactorScore | None:
        for f in self.factors:
            if f.key == key:
                return f
        return None
