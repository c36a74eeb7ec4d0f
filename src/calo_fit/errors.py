"""Local status taxonomy for calo-fit.

The fitting helpers report their outcome as a ``StatusCode`` rather than
raising. ``StatusCodeError`` is used internally to unwind from deep inside a
fit (point construction, centroid aggregation) and is always converted back to
a ``StatusCode`` before it reaches the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StatusCode(str, Enum):
    SUCCESS = "SUCCESS"
    INVALID_PARAMETER = "INVALID_PARAMETER"  # Malformed caller arguments
    NOT_INITIALIZED = "NOT_INITIALIZED"  # Cluster has no hits
    OUT_OF_RANGE = "OUT_OF_RANGE"  # Fewer than two occupied layers
    NOT_FOUND = "NOT_FOUND"  # Requested layer is not in the cluster
    FAILURE = "FAILURE"  # Numerical or internal consistency failure

    @property
    def is_success(self) -> bool:
        return self is StatusCode.SUCCESS


class StatusCodeError(Exception):
    """Raised internally to abort a fit with a specific status code.

    Attributes:
        status_code: The outcome the public entry point should report.
    """

    def __init__(self, status_code: StatusCode, message: str | None = None) -> None:
        self.status_code = StatusCode(status_code)
        super().__init__(message or self.status_code.value)


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    status: StatusCode
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


def make_error(status: StatusCode, message: str, **context: Any) -> ErrorEnvelope:
    if StatusCode(status).is_success:
        raise ValueError("Cannot build an error envelope for a successful status")
    return ErrorEnvelope(status=status, message=message, context=dict(context))
