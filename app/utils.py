"""
Nano Banana Proxy - Utility Functions
Request/response helpers shared by the routes and the gateway
"""

import json
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import Request

from .errors import BadRequestError


def encode_path_segment(value: str) -> str:
    """
    Percent-encode a value for use as a single URL path segment.

    Args:
        value: Raw segment, e.g. an upstream request id

    Returns:
        Encoded segment with ``/`` and every other reserved character escaped
    """
    return quote(value, safe="")


def response_body(response: httpx.Response) -> Any:
    """
    Extract the body of an upstream response.

    JSON bodies are decoded; anything else is returned as text, and an empty
    body as None.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


async def read_json_body(request: Request) -> Any:
    """
    Read an inbound JSON body without imposing a schema on it.

    An empty body is treated as ``{}``.

    Raises:
        BadRequestError: If the body is not valid JSON
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise BadRequestError("Invalid JSON body")


def format_size_kb(num_bytes: int) -> str:
    return f"{num_bytes / 1024:.2f} KB"


def pretty_json(data: Any) -> str:
    """Indented JSON for log output; falls back to repr for odd payloads."""
    try:
        return json.dumps(data, indent=2)
    except (TypeError, ValueError):
        return repr(data)
