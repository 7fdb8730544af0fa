"""Interface protocols; import from ``base.interfaces``."""

from .media_provider import MediaProvider

__all__ = ["MediaProvider"]
