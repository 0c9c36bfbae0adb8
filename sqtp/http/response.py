# sqtp/http/response.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Union

from sqtp.errors import HttpError
from sqtp.http.headers import detect_charset, get_ci
from sqtp.models.messages import (
    CHANGES_HEADER,
    LAST_INSERT_ID_HEADER,
    PROTOCOL_HEADER,
    RawResponse,
    Result,
)

logger = logging.getLogger(__name__)

# Transports commonly lower-case header names; these come back in protocol casing.
_CANONICAL_CASE = {
    name.lower(): name for name in (CHANGES_HEADER, LAST_INSERT_ID_HEADER, PROTOCOL_HEADER)
}


def restore_header_case(headers: Mapping[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in headers.items():
        out[_CANONICAL_CASE.get(k.lower(), k)] = str(v)
    return out


def decode_body(raw: Union[bytes, str, None], headers: Mapping[str, str]) -> Any:
    """
    JSON value when the body parses, the raw text when it does not,
    None for an empty body. Never raises.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        charset = detect_charset(get_ci(headers, "Content-Type")) or "utf-8"
        try:
            text = bytes(raw).decode(charset, errors="replace")
        except LookupError:
            # unknown codec name in Content-Type
            text = bytes(raw).decode("utf-8", errors="replace")
    else:
        text = raw
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        logger.debug("response body is not JSON (%d chars); keeping text", len(text))
        return text


def normalize(raw: RawResponse) -> Result:
    headers = restore_header_case(raw.headers or {})
    data = decode_body(raw.body, headers)
    if not 200 <= raw.status < 300:
        raise HttpError(raw.status, data, headers)
    return Result(
        status_code=raw.status,
        headers=headers,
        data=data,
        elapsed_ms=raw.elapsed_ms,
    )


def summarize(data: Any) -> Optional[str]:
    """Short description of a decoded body for log lines."""
    if data is None:
        return None
    if isinstance(data, list):
        return f"array[{len(data)}]"
    if isinstance(data, dict):
        return f"object[{len(data)}]"
    return f"text[{len(str(data))}]"
