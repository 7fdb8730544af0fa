"""Veo3 video adapter package."""

from .client import Veo3Provider

__all__ = ["Veo3Provider"]
