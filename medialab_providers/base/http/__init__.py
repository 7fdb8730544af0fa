"""HTTP client pool and response helpers for provider adapters."""

from .client import aclose_all_clients, get_async_client
from .responses import ensure_ok, extract_error_message, json_object

__all__ = [
    "get_async_client",
    "aclose_all_clients",
    "ensure_ok",
    "extract_error_message",
    "json_object",
]
