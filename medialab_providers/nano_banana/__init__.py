"""Banana.dev (nano-banana) adapter package."""

from .client import NanoBananaProvider

__all__ = ["NanoBananaProvider"]
