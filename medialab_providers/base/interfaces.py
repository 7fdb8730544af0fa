"""Provider interface public surface."""

from .interfaces_parts import MediaProvider

__all__ = ["MediaProvider"]
