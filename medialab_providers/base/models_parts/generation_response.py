"""
GenerationResponse value object and its parts.

A terminal response carries exactly one of ``result`` (success) or ``error``
(failure). The ``content`` of a result is opaque to callers: plain text for
text generation, a ``data:<mime>;base64,...`` URI for inline bytes, or a
remote URL, depending on the provider.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported by a provider."""

    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output

    def to_dict(self) -> Dict[str, int]:
        return {"input": self.input, "output": self.output, "total": self.total}


@dataclass(frozen=True)
class GenerationResult:
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class GenerationResponse:
    """Outcome of one ``generate`` call.

    Attributes:
        success: Whether the provider produced a result.
        result: Content and metadata when ``success`` is True.
        error: Non-empty message when ``success`` is False.
        error_code: Normalized ``ErrorCode`` value for failures, when known.
        tokens: Token usage when the provider reports it.
        duration_ms: Provider-side or adapter-measured duration.
    """

    success: bool
    result: Optional[GenerationResult] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    tokens: Optional[TokenUsage] = None
    duration_ms: Optional[int] = None

    @classmethod
    def ok(
        cls,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        *,
        tokens: Optional[TokenUsage] = None,
        duration_ms: Optional[int] = None,
    ) -> "GenerationResponse":
        return cls(
            success=True,
            result=GenerationResult(content=content, metadata=dict(metadata or {})),
            tokens=tokens,
            duration_ms=duration_ms,
        )

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        error_code: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "GenerationResponse":
        return cls(
            success=False,
            error=error or "Generation failed",
            error_code=error_code,
            duration_ms=duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "error_code": self.error_code,
            "tokens": self.tokens.to_dict() if self.tokens else None,
            "duration_ms": self.duration_ms,
        }


__all__ = ["TokenUsage", "GenerationResult", "GenerationResponse"]
