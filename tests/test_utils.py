"""Tests for helper functions."""

import httpx
import pytest

from app.errors import UpstreamError
from app.utils import encode_path_segment, format_size_kb, pretty_json, response_body


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("abc-123", "abc-123"),
        ("a b", "a%20b"),
        ("a/b", "a%2Fb"),
        ("x?y#z", "x%3Fy%23z"),
        ("ü", "%C3%BC"),
    ],
)
def test_encode_path_segment(raw: str, expected: str) -> None:
    assert encode_path_segment(raw) == expected


def test_response_body_decodes_json() -> None:
    assert response_body(httpx.Response(200, json={"url": "u"})) == {"url": "u"}


def test_response_body_falls_back_to_text() -> None:
    assert response_body(httpx.Response(500, text="oops")) == "oops"


def test_response_body_empty_is_none() -> None:
    assert response_body(httpx.Response(204)) is None


def test_format_size_kb() -> None:
    assert format_size_kb(2048) == "2.00 KB"
    assert format_size_kb(1536) == "1.50 KB"


def test_pretty_json_handles_unserializable() -> None:
    assert pretty_json({"a": 1}) == '{\n  "a": 1\n}'
    assert pretty_json({1, 2}).startswith("{")


def test_upstream_error_defaults() -> None:
    error = UpstreamError()

    assert error.status_code == 500
    assert error.error == "Internal server error"


def test_upstream_error_keeps_status_when_body_missing() -> None:
    error = UpstreamError(None, 503)

    assert error.status_code == 503
    assert error.error == "Internal server error"
