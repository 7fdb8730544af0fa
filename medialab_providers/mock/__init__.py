"""Mock adapter package (enabled with ``MEDIALAB_USE_MOCKS=1``)."""

from .client import MockProvider

__all__ = ["MockProvider"]
