"""
Envelope decoding for VPSie API responses.

Every endpoint wraps its payload as ``{"error": bool, "data": ..., "total": N}``.
A 200 response may still report ``"error": true``, so HTTP status alone does
not decide success.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from vpsie_client.core.errors import APIError, ErrorKind
from vpsie_client.core.types import DataShape, ListOptions, PaginatedResponse, RawResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Endpoints disagree on where the error text lives
_MESSAGE_FIELDS = ("message", "msg", "error_message", "errorMessage", "reason", "errors", "error")


def _parse_json(body: bytes) -> Any:
    return json.loads(body.decode("utf-8"))


def _is_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and "error" in payload


def extract_message(payload: dict[str, Any], default: str) -> str:
    """Best-effort human-readable message from an error envelope."""
    candidates: list[Any] = [payload.get(name) for name in _MESSAGE_FIELDS]
    data = payload.get("data")
    if isinstance(data, dict):
        candidates.extend(data.get(name) for name in ("message", "msg"))

    for value in candidates:
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
            return "; ".join(value)
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
    return default


def _parse_items(items: Any, parser: Callable[[Any], T] | None) -> list[T]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise TypeError(f"expected a list, got {type(items).__name__}")
    if parser is None:
        return list(items)
    return [parser(item) for item in items]


def _envelope_total(payload: dict[str, Any]) -> int | None:
    # Some list endpoints send the key with a trailing space
    for name in ("total", "total ", "count"):
        value = payload.get(name)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _resolve_data(
    payload: dict[str, Any],
    shape: DataShape,
    parser: Callable[[Any], T] | None,
    key: str | None,
    options: ListOptions | None,
) -> Any:
    data = payload.get("data")

    if shape is DataShape.OBJECT:
        if key is not None:
            if not isinstance(data, dict):
                raise TypeError(f"expected an object holding '{key}', got {type(data).__name__}")
            data = data.get(key)
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return parser(data) if parser else data

    if shape is DataShape.LIST:
        return PaginatedResponse(
            data=_parse_items(data, parser),
            total=_envelope_total(payload),
            options=options,
        )

    if shape is DataShape.ROWS:
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise TypeError(f"expected an object with rows, got {type(data).__name__}")
        count = data.get("count")
        return PaginatedResponse(
            data=_parse_items(data.get("rows"), parser),
            total=count if isinstance(count, int) and not isinstance(count, bool) else _envelope_total(payload),
            options=options,
        )

    return None


def decode(
    response: RawResponse,
    shape: DataShape = DataShape.NONE,
    parser: Callable[[Any], T] | None = None,
    key: str | None = None,
    options: ListOptions | None = None,
) -> Any:
    """
    Decode a raw response into the payload requested by the call site.

    Args:
        response: Status and body returned by the transport
        shape: Expected shape of the envelope ``data`` field
        parser: Converts each object (e.g. ``Backup.from_dict``); raw dicts if None
        key: For OBJECT shapes, the field inside ``data`` holding the object
        options: List options echoed into the returned PaginatedResponse

    Returns:
        None for DataShape.NONE, the parsed object for OBJECT, and a
        PaginatedResponse for LIST and ROWS

    Raises:
        APIError: kind ``http-status``, ``decode`` or ``envelope``

    """
    status = response.status
    body = response.body

    payload: Any = None
    parse_error: ValueError | None = None
    if body.strip():
        try:
            payload = _parse_json(body)
        except ValueError as e:
            parse_error = e

    if status >= 400 and not _is_envelope(payload):
        text = body.decode("utf-8", errors="replace").strip()
        raise APIError(
            f"HTTP {status}: {text[:200] or 'empty response'}",
            kind=ErrorKind.HTTP_STATUS,
            status=status,
            body=body,
        )

    if not body.strip():
        if shape is DataShape.NONE:
            return None
        raise APIError("Empty response body", kind=ErrorKind.DECODE, status=status, body=body)

    if parse_error is not None:
        raise APIError(f"Invalid JSON response: {parse_error}", kind=ErrorKind.DECODE, status=status, body=body)

    if not isinstance(payload, dict):
        raise APIError(
            f"Expected a JSON object envelope, got {type(payload).__name__}",
            kind=ErrorKind.DECODE,
            status=status,
            body=body,
        )

    if payload.get("error"):
        message = extract_message(payload, default="API reported an error")
        raise APIError(message, kind=ErrorKind.ENVELOPE, status=status, body=body, details=payload)

    if status >= 400:
        message = extract_message(payload, default=f"HTTP {status}")
        raise APIError(message, kind=ErrorKind.HTTP_STATUS, status=status, body=body, details=payload)

    try:
        return _resolve_data(payload, shape, parser, key, options)
    except (KeyError, TypeError, ValueError) as e:
        logger.debug("Failed to decode %s payload: %s", shape.value, e)
        raise APIError(
            f"Unexpected response shape: {e}",
            kind=ErrorKind.DECODE,
            status=status,
            body=body,
            details=payload,
        ) from e
