# sqtp/protocol/clauses.py
"""
Clause encoders: each turns one builder concern into HeaderMap entries and,
for value-set predicates, a body fragment.

Header multiplicity is always expressed as a multi-valued header (the same
name repeated on the wire). Suffixed names such as WHERE-1, WHERE-2 are never
produced.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqtp.errors import InvalidArgumentError
from sqtp.http.headers import HeaderMap

WILDCARD = "*"

VIEW_FORMATS = ("object", "row", "column")
DEFAULT_VIEW = "object"

TABLE_TYPES = ("temporary", "memory")


class JoinKind(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"


_JOIN_HEADERS = {JoinKind.INNER: "JOIN", JoinKind.LEFT: "LEFT-JOIN"}


@dataclass(frozen=True)
class Join:
    table: str
    on: str
    kind: JoinKind = JoinKind.INNER

    def render(self) -> str:
        return f"{self.table} ON {self.on}"


@dataclass
class TableDefinition:
    """Columns keep declaration order; constraints are not cross-checked."""

    columns: List[str] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    not_null: List[str] = field(default_factory=list)
    unique: List[str] = field(default_factory=list)
    foreign_keys: List[str] = field(default_factory=list)
    autoinc: Optional[str] = None
    table_type: Optional[str] = None
    if_not_exists: bool = False
    without_rowid: bool = False


# ---- argument normalization (setter time) ----


def require_name(value: Any, what: str = "table") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{what} name (non-empty str) is required")
    return value.strip()


def require_count(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{what} must be an integer")
    if value < 0:
        raise InvalidArgumentError(f"{what} must be >= 0")
    return value


def require_value_set(column: Any, values: Any) -> List[Any]:
    require_name(column, "column")
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set)):
        raise InvalidArgumentError(f"where_in values for '{column}' must be a list")
    return list(values)


def require_choice(value: Any, choices: Sequence[str], what: str) -> str:
    v = (value or "").strip().lower() if isinstance(value, str) else value
    if v not in choices:
        raise InvalidArgumentError(f"{what} must be one of {'|'.join(choices)}")
    return v


def join_kind(value: Any) -> JoinKind:
    if isinstance(value, JoinKind):
        return value
    try:
        return JoinKind(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(f"unsupported join kind: {value!r}") from None


def column_names(cols: Sequence[Any]) -> List[str]:
    out: List[str] = []
    for c in cols:
        if not isinstance(c, str):
            raise InvalidArgumentError("column names must be strings")
        c = c.strip()
        if c:
            out.append(c)
    return out


# ---- encoders ----


def apply_columns(headers: HeaderMap, columns: Sequence[str], name: str = "COLUMNS") -> None:
    if columns:
        headers.set(name, ", ".join(columns))


def apply_where(headers: HeaderMap, conditions: Sequence[str]) -> None:
    for cond in conditions:
        headers.set("WHERE", cond)


def apply_where_in(headers: HeaderMap, value_sets: Mapping[str, List[Any]]) -> Any:
    """
    Returns the body fragment: the bare list for one column, a column->values
    object for several, None when there is no value-set predicate.
    """
    if not value_sets:
        return None
    cols = list(value_sets)
    headers.set("WHERE-IN", cols)
    if len(cols) == 1:
        return list(value_sets[cols[0]])
    return {c: list(value_sets[c]) for c in cols}


def apply_joins(headers: HeaderMap, joins: Sequence[Join]) -> None:
    for j in joins:
        headers.set(_JOIN_HEADERS[j.kind], j.render())


def apply_order(
    headers: HeaderMap,
    order_by: Optional[str] = None,
    group_by: Sequence[str] = (),
    having: Optional[str] = None,
) -> None:
    if group_by:
        headers.set("GROUP-BY", ", ".join(group_by))
    if having:
        headers.set("HAVING", having)
    if order_by:
        headers.set("ORDER-BY", order_by)


def apply_paging(headers: HeaderMap, limit: Optional[int], offset: Optional[int]) -> None:
    if limit is not None:
        headers.set("LIMIT", str(limit))
    if offset is not None:
        headers.set("OFFSET", str(offset))


def apply_flag(headers: HeaderMap, name: str, enabled: bool) -> None:
    if enabled:
        headers.set(name, "true")


def apply_view(headers: HeaderMap, view: str) -> None:
    if view and view != DEFAULT_VIEW:
        headers.set("VIEW", view)


def apply_table_definition(headers: HeaderMap, definition: TableDefinition) -> None:
    apply_flag(headers, "IF-NOT-EXISTS", definition.if_not_exists)
    if definition.table_type:
        headers.set("TYPE", definition.table_type)
    for col in definition.columns:
        headers.set("COLUMN", col)
    if definition.primary_key:
        headers.set("PRIMARY-KEY", " ".join(definition.primary_key))
    if definition.not_null:
        headers.set("NOT-NULL", " ".join(definition.not_null))
    for group in definition.unique:
        headers.set("UNIQUE", group)
    if definition.autoinc:
        headers.set("AUTOINC", definition.autoinc)
    for fk in definition.foreign_keys:
        headers.set("FOREIGN-KEY", fk)
    apply_flag(headers, "WITHOUT-ROWID", definition.without_rowid)


def has_predicate(conditions: Sequence[str], value_sets: Mapping[str, Any]) -> bool:
    # where("*") counts as a condition
    return bool(conditions) or bool(value_sets)


def column_def(name: str, type_: str, modifiers: Sequence[str] = ()) -> str:
    parts = [require_name(name, "column"), require_name(type_, "column type")]
    parts.extend(m.strip() for m in modifiers if isinstance(m, str) and m.strip())
    return " ".join(parts)


def rows_as_arrays(columns: Sequence[str], rows: Sequence[Any]) -> List[List[Any]]:
    out: List[List[Any]] = []
    for r in rows:
        if isinstance(r, Mapping):
            out.append([r.get(c) for c in columns])
        elif isinstance(r, (list, tuple)):
            out.append(list(r))
        else:
            raise InvalidArgumentError("rows must be objects or arrays")
    return out


def merge_body(base: Dict[str, Any], value_sets: Mapping[str, List[Any]]) -> Dict[str, Any]:
    body = dict(base)
    for c, vals in value_sets.items():
        body[c] = list(vals)
    return body
