"""
Generation type enumeration shared by requests, adapters and records.
"""
from __future__ import annotations

from enum import Enum


class GenerationType(str, Enum):
    """Kind of media a generation produces."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"

    @classmethod
    def parse(cls, value: "GenerationType | str") -> "GenerationType":
        """Coerce a string (case-insensitive) into a member.

        Raises:
            ValueError: When ``value`` names no member.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


__all__ = ["GenerationType"]
