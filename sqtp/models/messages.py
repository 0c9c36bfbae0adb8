# sqtp/models/messages.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from sqtp.http.headers import HeaderMap, get_ci
from sqtp.protocol.verbs import Verb

CHANGES_HEADER = "X-SQTP-Changes"
LAST_INSERT_ID_HEADER = "X-SQTP-Last-Insert-Id"
PROTOCOL_HEADER = "X-SQTP-Protocol"


# ---- request model ----


@dataclass(frozen=True)
class Request:
    verb: Verb
    path_fragment: str
    headers: HeaderMap
    body: Any = None

    def __post_init__(self):
        # detach from the builder's map
        object.__setattr__(self, "headers", self.headers.copy())

    @property
    def method(self) -> str:
        return self.verb.method

    @property
    def has_body(self) -> bool:
        return self.body is not None

    def url(self, base_url: str) -> str:
        return base_url + self.path_fragment

    def encode_body(self) -> Optional[bytes]:
        if self.body is None:
            return None
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body, ensure_ascii=False).encode("utf-8")

    def wire_headers(self) -> Dict[str, Union[str, List[str]]]:
        out = self.headers.serialize_for_wire()
        if self.has_body and get_ci(out, "Content-Type") is None:
            out["Content-Type"] = "application/json"
        return out


# ---- response models ----


@dataclass
class RawResponse:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Union[bytes, str, None] = b""
    elapsed_ms: int = 0


def _int_or_none(v: Optional[str]) -> Optional[int]:
    try:
        return int(str(v).strip()) if v is not None else None
    except ValueError:
        return None


class Result(BaseModel):
    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    data: Any = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def changes(self) -> Optional[int]:
        return _int_or_none(get_ci(self.headers, CHANGES_HEADER))

    @property
    def last_insert_id(self) -> Optional[int]:
        return _int_or_none(get_ci(self.headers, LAST_INSERT_ID_HEADER))

    @property
    def protocol(self) -> Optional[str]:
        return get_ci(self.headers, PROTOCOL_HEADER)
