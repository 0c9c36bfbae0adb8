# sqtp/builders/schema.py
from __future__ import annotations

from typing import Any, Optional

from sqtp.builders.base import Builder
from sqtp.errors import MissingActionError
from sqtp.http.headers import HeaderMap
from sqtp.protocol import clauses
from sqtp.protocol.clauses import TableDefinition
from sqtp.protocol.verbs import Verb


class CreateTableBuilder(Builder):
    verb = Verb.CREATE
    name_header = "NAME"

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self.definition = TableDefinition()

    def column(self, name: str, type_: str, *modifiers: str) -> "CreateTableBuilder":
        self.definition.columns.append(clauses.column_def(name, type_, modifiers))
        return self

    def primary_key(self, *cols: str) -> "CreateTableBuilder":
        self.definition.primary_key = clauses.column_names(cols)
        return self

    def not_null(self, *cols: str) -> "CreateTableBuilder":
        self.definition.not_null = clauses.column_names(cols)
        return self

    def unique(self, *cols: str) -> "CreateTableBuilder":
        group = clauses.column_names(cols)
        if group:
            self.definition.unique.append(" ".join(group))
        return self

    def foreign_key(self, definition: str) -> "CreateTableBuilder":
        self.definition.foreign_keys.append(
            clauses.require_name(definition, "foreign key definition")
        )
        return self

    def autoinc(self, column: str) -> "CreateTableBuilder":
        self.definition.autoinc = clauses.require_name(column, "column")
        return self

    def if_not_exists(self, flag: bool = True) -> "CreateTableBuilder":
        self.definition.if_not_exists = bool(flag)
        return self

    def type(self, kind: str) -> "CreateTableBuilder":
        self.definition.table_type = clauses.require_choice(kind, clauses.TABLE_TYPES, "table type")
        return self

    def without_rowid(self, flag: bool = True) -> "CreateTableBuilder":
        self.definition.without_rowid = bool(flag)
        return self

    def _encode(self, headers: HeaderMap) -> Any:
        clauses.apply_table_definition(headers, self.definition)
        return None


class DropTableBuilder(Builder):
    verb = Verb.DROP
    name_header = "NAME"

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._if_exists = False

    def if_exists(self, flag: bool = True) -> "DropTableBuilder":
        self._if_exists = bool(flag)
        return self

    def _encode(self, headers: HeaderMap) -> Any:
        clauses.apply_flag(headers, "IF-EXISTS", self._if_exists)
        return None


class AlterTableBuilder(Builder):
    """One schema change per request; the last action chosen wins."""

    verb = Verb.ALTER
    name_header = "NAME"

    ACTIONS = ("RENAME-TABLE", "ADD-COLUMN", "RENAME-COLUMN", "DROP-COLUMN")

    def __init__(self, client, table: str) -> None:
        super().__init__(client, table)
        self._action: Optional[str] = None
        self._column: Optional[str] = None
        self._new_name: Optional[str] = None

    def _choose(self, action: str, column: Optional[str], new_name: Optional[str]):
        self._action = action
        self._column = column
        self._new_name = new_name
        return self

    def rename_to(self, new_name: str) -> "AlterTableBuilder":
        return self._choose("RENAME-TABLE", None, clauses.require_name(new_name))

    def add_column(self, name: str, type_: str, *modifiers: str) -> "AlterTableBuilder":
        return self._choose("ADD-COLUMN", clauses.column_def(name, type_, modifiers), None)

    def rename_column(self, old: str, new: str) -> "AlterTableBuilder":
        return self._choose(
            "RENAME-COLUMN",
            clauses.require_name(old, "column"),
            clauses.require_name(new, "column"),
        )

    def drop_column(self, name: str) -> "AlterTableBuilder":
        return self._choose("DROP-COLUMN", clauses.require_name(name, "column"), None)

    def _validate(self) -> None:
        if self._action is None:
            raise MissingActionError(
                "ALTER TABLE requires one of " + ", ".join(self.ACTIONS)
            )

    def _encode(self, headers: HeaderMap) -> Any:
        headers.set("ACTION", self._action)
        headers.set("COLUMN", self._column)
        headers.set("NEW-NAME", self._new_name)
        return None
