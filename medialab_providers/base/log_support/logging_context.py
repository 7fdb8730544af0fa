"""Structured logging context object.

:class:`LogContext` carries the fields shared by most events in this package
(provider, model, user and generation identifiers). ``to_dict`` merges the
``extra`` mapping and prunes ``None`` values.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for provider and routing log events."""

    provider: Optional[str] = None
    model: Optional[str] = None
    user_id: Optional[str] = None
    generation_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}


__all__ = ["LogContext"]
