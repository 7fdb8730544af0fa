"""
GenerationRequest value object.

The request is immutable once constructed: ``parameters`` is frozen into a
read-only mapping so adapters can share one request across fallback attempts
without risking cross-attempt mutation. Construction rejects an unknown type
or an empty prompt with ``ValidationError``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..errors_parts.domain_errors import ValidationError
from .generation_type import GenerationType


@dataclass(frozen=True)
class GenerationRequest:
    """Provider-agnostic generation input.

    Attributes:
        type: Requested :class:`GenerationType`.
        model: Provider-specific model identifier (may be empty to use the
            adapter default).
        prompt: Non-empty prompt text.
        parameters: Open map of provider-specific knobs (temperature, size,
            duration, ...). Adapters read only the keys they understand.
    """

    type: GenerationType
    model: str
    prompt: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            gen_type = GenerationType.parse(self.type)
        except ValueError as exc:
            raise ValidationError(f"Unsupported generation type: {self.type}", field="type") from exc
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise ValidationError("prompt must be a non-empty string", field="prompt")
        object.__setattr__(self, "type", gen_type)
        object.__setattr__(self, "model", (self.model or "").strip())
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters or {})))

    def param(self, key: str, default: Any = None) -> Any:
        """Return ``parameters[key]`` treating ``None`` as absent."""
        val = self.parameters.get(key)
        return default if val is None else val

    def int_param(self, key: str, default: int) -> int:
        """Return an integer parameter, falling back on absent or non-numeric values."""
        val = self.parameters.get(key)
        if isinstance(val, bool):
            return default
        try:
            return int(val) if val is not None else default
        except (TypeError, ValueError):
            return default

    def float_param(self, key: str, default: Optional[float] = None) -> Optional[float]:
        val = self.parameters.get(key)
        if isinstance(val, bool):
            return default
        try:
            return float(val) if val is not None else default
        except (TypeError, ValueError):
            return default

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "model": self.model,
            "prompt": self.prompt,
            "parameters": dict(self.parameters),
        }


__all__ = ["GenerationRequest"]
