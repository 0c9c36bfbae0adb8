# sqtp/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class SQTPError(Exception):
    """Base class for everything the client raises."""


# ---- builder-side (raised before any network activity) ----


class ValidationError(SQTPError, ValueError):
    pass


class MissingValuesError(ValidationError):
    pass


class MissingAssignmentError(ValidationError):
    pass


class MissingPredicateError(ValidationError):
    pass


class MissingActionError(ValidationError):
    pass


class InvalidArgumentError(ValidationError):
    pass


class BuilderFinalizedError(ValidationError):
    pass


# ---- dispatch-side ----


class SQTPTimeoutError(SQTPError, TimeoutError):
    def __init__(self, method: str, timeout: float):
        super().__init__(f"{method} timed out after {timeout:g}s")
        self.method = method
        self.timeout = timeout


class TransportError(SQTPError):
    """Network-level failure (connection refused, DNS, TLS ...)."""


class HttpError(SQTPError):
    """
    A response arrived but its status is outside 2xx.
    `data` is the decoded body (JSON value, raw text or None).
    """

    def __init__(
        self,
        status: int,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        detail = data if isinstance(data, str) else None
        if detail is None and isinstance(data, dict):
            detail = data.get("error") or data.get("message")
        msg = f"HTTP {status}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.status = status
        self.data = data
        self.headers = dict(headers or {})
