import time
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field

Method = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

IDEMPOTENT_METHODS: frozenset[str] = frozenset({"GET", "DELETE"})

# {"message": str, "code": str?, ...any other fields of the error body}
NormalizedError = Dict[str, Any]

class RequestDescriptor(BaseModel):
    method: Method
    path: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None
    request_key: Optional[str] = None   # opaque; scopes dedup + cache entries
    ttl: Optional[float] = None         # ms; GET only. 0 = bypass cache read
    return_headers: bool = False

    @property
    def idempotent(self) -> bool:
        return self.method in IDEMPOTENT_METHODS

class RestResponse(BaseModel):
    """Decoded body plus the response metadata, as stored in the cache."""
    body: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)
    status_code: int = 200

class RetryState(BaseModel):
    attempt_count: int = 0
    started_at: float = Field(default_factory=time.monotonic)
    last_response: Any = None           # httpx.Response of the latest attempt

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000
