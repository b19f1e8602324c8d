# restclient/decoder.py
from __future__ import annotations

import json
from typing import Any

import httpx

from .core.mime import MimeClassifier, content_type_of, is_compressible
from .domain.models import NormalizedError
from .errors import reason_phrase


def _is_json_candidate(content_type: str | None) -> bool:
    return content_type is None or "json" in content_type


def _parse(raw: str, content_type: str | None) -> Any:
    if not _is_json_candidate(content_type):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        # malformed or empty JSON degrades to the raw text
        return raw


async def decode(
    response: httpx.Response,
    is_error: bool = False,
    classify: MimeClassifier = is_compressible,
) -> Any:
    """
    Turn a raw response into the value handed back to callers.

    Success path:
      - binary MIME types (images, octet-streams, ...) -> ``bytes``, never decoded as text
      - JSON (or no content type at all) -> parsed value, or raw text if it does not parse
      - anything else -> text

    Error path always yields a dict with a non-empty ``message``, taken from the
    body's ``message`` field, then its ``error`` field, then the raw text, then
    the standard reason phrase for the status.
    """
    content_type = content_type_of(response.headers.get("content-type"))
    raw_bytes = await response.aread()
    if not is_error and not classify(content_type):
        return raw_bytes

    raw = response.text
    data = _parse(raw, content_type)
    if not is_error:
        return data
    return normalize_error(data, raw, response.status_code)


def normalize_error(data: Any, raw: str, status_code: int) -> NormalizedError:
    if isinstance(data, dict):
        message = data.get("message") or data.get("error") or raw
    else:
        message = raw
    message = str(message) if message else ""
    if not message:
        message = reason_phrase(status_code)
    if isinstance(data, dict):
        return {**data, "message": message}
    return {"message": message}
