from __future__ import annotations

from enum import Enum

METHOD_PREFIX = "SQTP-"
TABLE_FRAGMENT = "#table"


class Verb(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    UPSERT = "UPSERT"
    DELETE = "DELETE"
    RESET = "RESET"
    CREATE = "CREATE"
    DROP = "DROP"
    ALTER = "ALTER"
    BEGIN = "BEGIN"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"
    SAVEPOINT = "SAVEPOINT"

    @property
    def method(self) -> str:
        return METHOD_PREFIX + self.value

    @property
    def path_fragment(self) -> str:
        return TABLE_FRAGMENT if self in _DDL_VERBS else ""


_DDL_VERBS = frozenset({Verb.CREATE, Verb.DROP, Verb.ALTER})
