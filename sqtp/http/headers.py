# sqtp/http/headers.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class Scalar:
    value: str


@dataclass(frozen=True)
class Multi:
    values: Tuple[str, ...]

    def __post_init__(self):
        if len(self.values) < 2:
            raise ValueError("Multi needs at least two values; use Scalar")


HeaderValue = Union[Scalar, Multi]


def _render(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def header_value(values: Sequence[Any]) -> HeaderValue:
    """
    Build a header value from one-or-many raw values.
    A single-element sequence collapses to Scalar.
    """
    rendered = tuple(_render(v) for v in values)
    if not rendered:
        raise ValueError("a header value needs at least one element")
    if len(rendered) == 1:
        return Scalar(rendered[0])
    return Multi(rendered)


def _as_list(value: HeaderValue) -> List[str]:
    if isinstance(value, Scalar):
        return [value.value]
    return list(value.values)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return not any(not _is_blank(v) for v in value)
    return False


class HeaderMap:
    """
    Ordered header collection; lookups ignore case, the first spelling of a
    name is the one written to the wire. Setting a name twice appends.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._names: Dict[str, str] = {}
        self._values: Dict[str, HeaderValue] = {}
        for k, v in (initial or {}).items():
            self.set(k, v)

    def set(self, name: str, value: Any) -> "HeaderMap":
        if _is_blank(value):
            return self
        if isinstance(value, (list, tuple)):
            incoming = [v for v in value if not _is_blank(v)]
        else:
            incoming = [value]
        key = name.lower()
        if key in self._values:
            merged = _as_list(self._values[key]) + [_render(v) for v in incoming]
            self._values[key] = header_value(merged)
        else:
            self._names[key] = name
            self._values[key] = header_value(incoming)
        return self

    def replace(self, name: str, value: Any) -> "HeaderMap":
        self.remove(name)
        return self.set(name, value)

    def remove(self, name: str) -> None:
        key = name.lower()
        self._names.pop(key, None)
        self._values.pop(key, None)

    def get(self, name: str) -> Optional[HeaderValue]:
        return self._values.get(name.lower())

    def values(self, name: str) -> List[str]:
        v = self.get(name)
        return _as_list(v) if v is not None else []

    def items(self) -> Iterator[Tuple[str, HeaderValue]]:
        for key, name in self._names.items():
            yield name, self._values[key]

    def copy(self) -> "HeaderMap":
        out = HeaderMap()
        out._names = dict(self._names)
        out._values = dict(self._values)
        return out

    def serialize_for_wire(self) -> Dict[str, Union[str, List[str]]]:
        out: Dict[str, Union[str, List[str]]] = {}
        for name, value in self.items():
            out[name] = value.value if isinstance(value, Scalar) else list(value.values)
        return out

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names.values()))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return list(self.items()) == list(other.items())

    def __repr__(self) -> str:
        return f"HeaderMap({self.serialize_for_wire()!r})"


# ---- response-side helpers ----

_TEXT_CT_RE = re.compile(
    r"^(?:text/|application/(?:json|xml|x-www-form-urlencoded))(?:[;].*)?$",
    re.I,
)


def detect_charset(content_type: str | None) -> str | None:
    """
    Best-effort charset detection from Content-Type header.
    Returns codec name (e.g., 'utf-8') or None if not clearly text.
    """
    if not content_type:
        return None
    m = re.search(r"charset=([^\s;]+)", content_type, flags=re.I)
    if m:
        return m.group(1).strip('"').strip("'")
    if _TEXT_CT_RE.match(content_type):
        return "utf-8"
    return None


def get_ci(headers: Mapping[str, Any], name: str):
    ln = name.lower()
    for k, v in headers.items():
        if k.lower() == ln:
            return v
    return None
