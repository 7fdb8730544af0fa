"""
HealthCheckResponse value object.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HealthCheckResponse:
    """Reachability report for one provider credential."""

    healthy: bool
    last_checked: datetime = field(default_factory=_utcnow)
    error: Optional[str] = None
    response_time_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthy": self.healthy,
            "last_checked": self.last_checked.isoformat(),
            "error": self.error,
            "response_time_ms": self.response_time_ms,
        }


__all__ = ["HealthCheckResponse"]
