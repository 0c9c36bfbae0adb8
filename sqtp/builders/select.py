# sqtp/builders/select.py
from __future__ import annotations

from typing import Any, List, Optional

from sqtp.builders.base import Builder, PredicateMixin
from sqtp.http.headers import HeaderMap
from sqtp.protocol import clauses
from sqtp.protocol.clauses import Join, JoinKind
from sqtp.protocol.verbs import Verb


class SelectBuilder(PredicateMixin, Builder):
    """
    sqtp.select("users").columns("id", "name").where("age > 18")
        .order_by("name ASC").limit(10).execute()
    """

    verb = Verb.SELECT
    name_header = "FROM"

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._init_predicates()
        self._columns: List[str] = []
        self._joins: List[Join] = []
        self._order_by: Optional[str] = None
        self._group_by: List[str] = []
        self._having: Optional[str] = None
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._distinct = False
        self._view = clauses.DEFAULT_VIEW

    def columns(self, *cols: str) -> "SelectBuilder":
        self._columns = clauses.column_names(cols)
        return self

    def join(self, table: str, on: str, kind: Any = JoinKind.INNER) -> "SelectBuilder":
        self._joins.append(
            Join(clauses.require_name(table), clauses.require_name(on, "join condition"),
                 clauses.join_kind(kind))
        )
        return self

    def left_join(self, table: str, on: str) -> "SelectBuilder":
        return self.join(table, on, JoinKind.LEFT)

    def order_by(self, *parts: str) -> "SelectBuilder":
        # order_by("name ASC") or order_by("name", "ASC")
        self._order_by = " ".join(p.strip() for p in parts if p and p.strip()) or None
        return self

    def group_by(self, *cols: str) -> "SelectBuilder":
        self._group_by = clauses.column_names(cols)
        return self

    def having(self, condition: str) -> "SelectBuilder":
        self._having = clauses.require_name(condition, "having condition")
        return self

    def limit(self, n: int) -> "SelectBuilder":
        self._limit = clauses.require_count(n, "limit")
        return self

    def offset(self, n: int) -> "SelectBuilder":
        self._offset = clauses.require_count(n, "offset")
        return self

    def distinct(self, flag: bool = True) -> "SelectBuilder":
        self._distinct = bool(flag)
        return self

    def view(self, fmt: str) -> "SelectBuilder":
        self._view = clauses.require_choice(fmt, clauses.VIEW_FORMATS, "view")
        return self

    def _encode(self, headers: HeaderMap) -> Any:
        clauses.apply_columns(headers, self._columns)
        clauses.apply_joins(headers, self._joins)
        clauses.apply_where(headers, self._where)
        body = clauses.apply_where_in(headers, self._where_in)
        clauses.apply_order(headers, self._order_by, self._group_by, self._having)
        clauses.apply_paging(headers, self._limit, self._offset)
        clauses.apply_flag(headers, "DISTINCT", self._distinct)
        clauses.apply_view(headers, self._view)
        return body
