# sqtp/builders/base.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqtp.errors import BuilderFinalizedError, InvalidArgumentError
from sqtp.http.headers import HeaderMap
from sqtp.models.messages import Request, Result
from sqtp.protocol import clauses
from sqtp.protocol.verbs import Verb

if TYPE_CHECKING:
    from sqtp.client import SQTPClient


class Builder:
    """
    Single-use accumulator. Setters return the builder; finalize() validates
    and encodes exactly once; execute() finalizes and dispatches.
    """

    verb: Verb
    name_header: str = "TABLE"

    def __init__(self, client: Optional["SQTPClient"], table: str) -> None:
        self._client = client
        self.table = clauses.require_name(table)
        self._finalized = False

    # subclasses fill these in
    def _validate(self) -> None:
        pass

    def _encode(self, headers: HeaderMap) -> Any:
        return None

    def finalize(self) -> Request:
        if self._finalized:
            raise BuilderFinalizedError(
                f"{self.verb.value} builder for '{self.table}' was already finalized"
            )
        self._validate()
        self._finalized = True
        headers = HeaderMap()
        headers.set(self.name_header, self.table)
        body = self._encode(headers)
        return Request(
            verb=self.verb,
            path_fragment=self.verb.path_fragment,
            headers=headers,
            body=body,
        )

    def execute(self) -> Result:
        if self._client is None:
            raise RuntimeError("builder is not bound to a client; use finalize()")
        return self._client.send(self.finalize())

    @property
    def finalized(self) -> bool:
        return self._finalized

    def __repr__(self) -> str:
        state = "finalized" if self._finalized else "configuring"
        return f"<{type(self).__name__} {self.table!r} {state}>"


class PredicateMixin:
    """WHERE / WHERE-IN accumulation shared by SELECT, UPDATE, DELETE, RESET."""

    _where: List[str]
    _where_in: Dict[str, List[Any]]

    def _init_predicates(self) -> None:
        self._where = []
        self._where_in = {}

    def where(self, condition: str):
        if not isinstance(condition, str) or not condition.strip():
            raise InvalidArgumentError("where condition must be a non-empty str")
        self._where.append(condition.strip())
        return self

    def where_in(self, column: str, values):
        name = clauses.require_name(column, "column")
        self._where_in[name] = clauses.require_value_set(name, values)
        return self

    def _has_predicate(self) -> bool:
        return clauses.has_predicate(self._where, self._where_in)
