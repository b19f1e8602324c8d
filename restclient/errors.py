# restclient/errors.py
from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional

import httpx

UNKNOWN_REASON = "Unknown Error"


def reason_phrase(status_code: int) -> str:
    """Standard HTTP reason phrase, e.g. 503 -> 'Service Unavailable'."""
    return httpx.codes.get_reason_phrase(status_code) or UNKNOWN_REASON


def error_name(status_code: int) -> str:
    """Class-style name for a status, e.g. 503 -> 'ServiceUnavailableError'."""
    words = re.sub(r"[^A-Za-z0-9 ]", "", reason_phrase(status_code)).split()
    name = "".join(w[:1].upper() + w[1:] for w in words)
    return name if name.endswith("Error") else f"{name}Error"


class RestClientError(RuntimeError):
    pass


class HttpError(RestClientError):
    """
    A request that ended without a 2xx response.

    ``detail`` is the normalized error body: always carries ``message`` and,
    when the server sent one, ``code`` plus any other fields of the body.
    """

    def __init__(self, status_code: int, message: Optional[str] = None,
                 detail: Optional[Mapping[str, Any]] = None):
        self.status_code = status_code
        self.message = message or (detail or {}).get("message") or reason_phrase(status_code)
        self.detail: Dict[str, Any] = {**(detail or {}), "message": self.message}
        super().__init__(self.message)

    @property
    def code(self) -> Optional[str]:
        return self.detail.get("code")

    @property
    def reason(self) -> str:
        return reason_phrase(self.status_code)

    @property
    def name(self) -> str:
        return error_name(self.status_code)

    @classmethod
    async def from_response(cls, response: httpx.Response) -> "HttpError":
        from .decoder import decode

        detail = await decode(response, is_error=True)
        return cls(response.status_code, detail["message"], detail)

    def __repr__(self) -> str:
        return f"{self.name}({self.status_code}, {self.message!r})"
