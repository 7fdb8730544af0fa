"""
CostEstimate value object.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class CostEstimate:
    """Estimated cost of a generation in whole cents.

    ``amount_cents`` is ceiling-rounded and clamped at zero on construction,
    so every estimate satisfies the non-negative integer contract regardless
    of the arithmetic an adapter used.
    """

    amount_cents: int
    breakdown: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount_cents", max(0, int(math.ceil(self.amount_cents))))

    @property
    def amount_usd(self) -> str:
        """Dollar amount formatted to four decimals."""
        return f"{self.amount_cents / 100:.4f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount_cents": self.amount_cents,
            "amount_usd": self.amount_usd,
            "breakdown": dict(self.breakdown),
        }


__all__ = ["CostEstimate"]
