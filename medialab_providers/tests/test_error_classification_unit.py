"""Unit tests for error classification and the domain error payload."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from medialab_providers.base.errors import (
    ErrorCode,
    NoProviderAvailableError,
    NotFoundError,
    ProviderTimeoutError,
    ProviderTransportError,
    classify_exception,
    classify_status,
)


@pytest.mark.parametrize(
    "status,expected",
    [
        (400, ErrorCode.VALIDATION),
        (401, ErrorCode.AUTH),
        (404, ErrorCode.NOT_FOUND),
        (429, ErrorCode.RATE_LIMIT),
        (503, ErrorCode.UNAVAILABLE),
        (599, ErrorCode.SERVER_ERROR),
        (418, ErrorCode.UNKNOWN),
    ],
)
def test_classify_status(status: int, expected: ErrorCode):
    assert classify_status(status) is expected  # nosec B101


def test_own_exceptions_keep_their_code():
    exc = ProviderTransportError("nope", provider="fal", status=401, code=ErrorCode.AUTH)
    assert classify_exception(exc) is ErrorCode.AUTH  # nosec B101
    assert classify_exception(ProviderTimeoutError("slow", provider="veo3")) is ErrorCode.TIMEOUT  # nosec B101


def test_timeouts_and_transport_errors():
    assert classify_exception(asyncio.TimeoutError()) is ErrorCode.TIMEOUT  # nosec B101
    assert classify_exception(httpx.ReadTimeout("t")) is ErrorCode.TIMEOUT  # nosec B101
    assert classify_exception(httpx.ConnectError("refused")) is ErrorCode.TRANSIENT  # nosec B101


def test_message_heuristics():
    assert classify_exception(RuntimeError("Rate limit exceeded")) is ErrorCode.RATE_LIMIT  # nosec B101
    assert classify_exception(RuntimeError("Invalid api key")) is ErrorCode.AUTH  # nosec B101
    assert classify_exception(RuntimeError("???")) is ErrorCode.UNKNOWN  # nosec B101


def test_error_payload_shape():
    err = NotFoundError("Project not found", project_id="p1", ignored=None)
    assert err.http_status == 404  # nosec B101
    assert err.to_dict() == {  # nosec B101
        "ok": False,
        "error": "not_found",
        "message": "Project not found",
        "context": {"project_id": "p1"},
    }


def test_no_provider_reason_is_exposed():
    err = NoProviderAvailableError("none", reason=NoProviderAvailableError.ALL_UNAVAILABLE)
    assert err.reason == "all_unavailable"  # nosec B101
    assert err.to_dict()["context"]["reason"] == "all_unavailable"  # nosec B101
