# sqtp/builders/write.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from sqtp.builders.base import Builder, PredicateMixin
from sqtp.errors import (
    InvalidArgumentError,
    MissingAssignmentError,
    MissingPredicateError,
    MissingValuesError,
)
from sqtp.http.headers import HeaderMap
from sqtp.protocol import clauses
from sqtp.protocol.verbs import Verb

Rows = Union[Dict[str, Any], List[Dict[str, Any]]]


def _coerce_rows(rows: Any) -> Rows:
    if isinstance(rows, dict):
        return dict(rows)
    if isinstance(rows, (list, tuple)) and all(isinstance(r, dict) for r in rows):
        return [dict(r) for r in rows]
    raise InvalidArgumentError("values must be an object or an array of objects")


class _RowsBuilder(Builder):
    """INSERT and UPSERT: the row data is the body."""

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._rows: Optional[Rows] = None

    def values(self, rows: Rows):
        self._rows = _coerce_rows(rows)
        return self

    def _validate(self) -> None:
        if not self._rows:
            raise MissingValuesError(f"{self.verb.value} requires values")


class InsertBuilder(_RowsBuilder):
    verb = Verb.INSERT

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._if_not_exists = False
        self._on_conflict: Optional[str] = None

    def if_not_exists(self, flag: bool = True) -> "InsertBuilder":
        self._if_not_exists = bool(flag)
        return self

    def on_conflict(self, action: str) -> "InsertBuilder":
        # e.g. "IGNORE", "REPLACE"; passed through to the server
        self._on_conflict = clauses.require_name(action, "on_conflict action").upper()
        return self

    def _encode(self, headers: HeaderMap) -> Any:
        clauses.apply_flag(headers, "IF-NOT-EXISTS", self._if_not_exists)
        if self._on_conflict:
            headers.set("ON-CONFLICT", self._on_conflict)
        return self._rows


class UpsertBuilder(_RowsBuilder):
    verb = Verb.UPSERT

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._key: List[str] = []

    def key(self, *cols: str) -> "UpsertBuilder":
        self._key = clauses.column_names(cols)
        return self

    def _encode(self, headers: HeaderMap) -> Any:
        if self._key:
            headers.set("KEY", " ".join(self._key))
        return self._rows


class UpdateBuilder(PredicateMixin, Builder):
    """
    Assignment columns travel in COLUMNS. Without WHERE-IN the body is the
    array of new values in COLUMNS order; with WHERE-IN it is one object
    holding both the assignment and the value sets.
    """

    verb = Verb.UPDATE

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._init_predicates()
        self._assignment: Optional[Dict[str, Any]] = None

    def set(self, values: Dict[str, Any]) -> "UpdateBuilder":
        if not isinstance(values, dict):
            raise InvalidArgumentError("set() expects an object of column -> value")
        self._assignment = dict(values)
        return self

    def _validate(self) -> None:
        if not self._assignment:
            raise MissingAssignmentError("UPDATE requires set() data")
        if not self._has_predicate():
            raise MissingPredicateError(
                'WHERE clause is required for UPDATE. Use where("*") for full table update.'
            )
        clash = set(self._assignment) & set(self._where_in)
        if clash:
            raise InvalidArgumentError(
                "cannot set() a column that is also a where_in() column: "
                + ", ".join(sorted(clash))
            )

    def _encode(self, headers: HeaderMap) -> Any:
        assignment = self._assignment or {}
        clauses.apply_columns(headers, list(assignment))
        clauses.apply_where(headers, self._where)
        if self._where_in:
            clauses.apply_where_in(headers, self._where_in)
            return clauses.merge_body(assignment, self._where_in)
        return list(assignment.values())


class DeleteBuilder(PredicateMixin, Builder):
    verb = Verb.DELETE

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._init_predicates()

    def _validate(self) -> None:
        if not self._has_predicate():
            raise MissingPredicateError(
                'WHERE clause is required for DELETE. Use where("*") for full table delete.'
            )

    def _encode(self, headers: HeaderMap) -> Any:
        clauses.apply_where(headers, self._where)
        return clauses.apply_where_in(headers, self._where_in)


class ResetBuilder(PredicateMixin, Builder):
    """
    Delete the rows matching WHERE (all rows without one) and insert the
    given rows, in one server-side transaction.
    """

    verb = Verb.RESET

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._init_predicates()
        self._columns: List[str] = []
        self._rows: List[Any] = []

    def columns(self, *cols: str) -> "ResetBuilder":
        self._columns = clauses.column_names(cols)
        return self

    def values(self, rows: Any) -> "ResetBuilder":
        if isinstance(rows, dict):
            rows = [rows]
        if not isinstance(rows, (list, tuple)):
            raise InvalidArgumentError("values must be an array of rows")
        self._rows = list(rows)
        return self

    def where_in(self, column: str, values):
        raise InvalidArgumentError("RESET supports WHERE only")

    def _validate(self) -> None:
        if not self._rows:
            raise MissingValuesError("RESET requires values")
        if not self._columns and not isinstance(self._rows[0], dict):
            raise MissingValuesError("RESET with array rows requires columns()")

    def _encode(self, headers: HeaderMap) -> Any:
        cols = self._columns or list(self._rows[0])
        clauses.apply_columns(headers, cols)
        clauses.apply_where(headers, self._where)
        return clauses.rows_as_arrays(cols, self._rows)
