"""fal.ai adapter package."""

from .client import FalProvider

__all__ = ["FalProvider"]
