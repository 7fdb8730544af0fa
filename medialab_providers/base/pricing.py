"""Shared estimation arithmetic for adapter price tables.

Prices are expressed in cents. Token prices are cents per one million tokens.
Every helper returns floats; :class:`CostEstimate` performs the final
ceiling-and-clamp so rounding happens once, at the end.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from ..config.defaults import CHARS_PER_TOKEN, TOKENS_PER_PRICE_UNIT


@dataclass(frozen=True)
class TokenPrice:
    """Cents per one million input and output tokens."""

    input: float
    output: float


def estimate_prompt_tokens(prompt: str) -> int:
    """Approximate prompt tokens as ``ceil(len(prompt) / 4)``."""
    return math.ceil(len(prompt or "") / CHARS_PER_TOKEN)


def token_cost_cents(tokens: int, cents_per_million: float) -> float:
    return (max(tokens, 0) / TOKENS_PER_PRICE_UNIT) * cents_per_million


def ceil_cents(amount: float) -> int:
    """Round a fractional cent amount up, never below zero."""
    return max(0, math.ceil(amount))


__all__ = ["TokenPrice", "estimate_prompt_tokens", "token_cost_cents", "ceil_cents"]
