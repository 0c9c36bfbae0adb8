# sqtp/client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqtp.builders.schema import AlterTableBuilder, CreateTableBuilder, DropTableBuilder
from sqtp.builders.select import SelectBuilder
from sqtp.builders.write import (
    DeleteBuilder,
    InsertBuilder,
    ResetBuilder,
    UpdateBuilder,
    UpsertBuilder,
)
from sqtp.config.settings import ClientSettings
from sqtp.errors import SQTPError, SQTPTimeoutError, TransportError
from sqtp.http.client import Deadline, RequestsTransport, Transport
from sqtp.http.headers import HeaderMap
from sqtp.http.response import decode_body, normalize, restore_header_case, summarize
from sqtp.logging_utils import correlation_scope
from sqtp.models.messages import Request, Result
from sqtp.protocol import clauses
from sqtp.protocol.verbs import Verb

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("sqtp.trace")


def _log_trace(stage: str, event: Dict[str, Any]) -> None:
    trace_logger.debug("sqtp.%s", stage, extra={"event": event})


class SQTPClient:
    """
    Entry point: hands out single-use builders and dispatches the Requests
    they produce.

        db = SQTPClient("http://localhost:8080/db/main")
        rows = db.select("users").where("age > 18").limit(10).execute().data
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        settings: Optional[ClientSettings] = None,
        transport: Optional[Transport] = None,
        **overrides: Any,
    ) -> None:
        if settings is None:
            if base_url is not None:
                overrides["BASE_URL"] = base_url
            settings = ClientSettings(**overrides)
        elif base_url is not None or overrides:
            if base_url is not None:
                overrides["BASE_URL"] = base_url
            # TRACE_SINK is excluded from dumps
            settings = ClientSettings.model_validate(
                {**settings.model_dump(), "TRACE_SINK": settings.TRACE_SINK, **overrides}
            )
        self.settings = settings
        self.transport: Transport = transport or RequestsTransport(
            user_agent=settings.USER_AGENT
        )

    @property
    def base_url(self) -> str:
        return self.settings.BASE_URL

    # ---- builders ----

    def select(self, table: str) -> SelectBuilder:
        return SelectBuilder(self, table)

    def insert(self, table: str) -> InsertBuilder:
        return InsertBuilder(self, table)

    def update(self, table: str) -> UpdateBuilder:
        return UpdateBuilder(self, table)

    def upsert(self, table: str) -> UpsertBuilder:
        return UpsertBuilder(self, table)

    def delete(self, table: str) -> DeleteBuilder:
        return DeleteBuilder(self, table)

    def reset(self, table: str) -> ResetBuilder:
        return ResetBuilder(self, table)

    def create_table(self, table: str) -> CreateTableBuilder:
        return CreateTableBuilder(self, table)

    def alter_table(self, table: str) -> AlterTableBuilder:
        return AlterTableBuilder(self, table)

    def drop_table(self, table: str, if_exists: bool = False) -> Result:
        return DropTableBuilder(self, table).if_exists(if_exists).execute()

    # ---- transaction verbs (opaque to the client) ----

    def _bare(self, verb: Verb, headers: Optional[HeaderMap] = None) -> Result:
        return self.send(
            Request(verb=verb, path_fragment=verb.path_fragment, headers=headers or HeaderMap())
        )

    def begin(self) -> Result:
        return self._bare(Verb.BEGIN)

    def commit(self) -> Result:
        return self._bare(Verb.COMMIT)

    def rollback(self) -> Result:
        return self._bare(Verb.ROLLBACK)

    def savepoint(self, name: str) -> Result:
        return self._bare(
            Verb.SAVEPOINT, HeaderMap({"NAME": clauses.require_name(name, "savepoint")})
        )

    # ---- dispatch ----

    def _trace(self, stage: str, event: Dict[str, Any]) -> None:
        sink = self.settings.TRACE_SINK or _log_trace
        sink(stage, event)

    def send(self, request: Request) -> Result:
        url = request.url(self.base_url)
        method = request.method
        tracing = self.settings.TRACE

        with correlation_scope():
            if tracing:
                self._trace(
                    "request",
                    {
                        "method": method,
                        "url": url,
                        "headers": request.wire_headers(),
                        "body": request.body,
                    },
                )
            logger.info(">> %s %s", method, url)

            deadline = Deadline(self.settings.TIMEOUT)
            try:
                with deadline:
                    raw = self.transport.send(request, url, deadline)
            except SQTPError:
                logger.warning("!! %s %s failed", method, url, exc_info=True)
                raise
            except Exception as e:
                logger.exception("!! %s %s transport error", method, url)
                if deadline.expired:
                    raise SQTPTimeoutError(method, deadline.seconds) from e
                raise TransportError(f"{method} {url}: {e}") from e

            logger.info("<< %s %d %dms", method, raw.status, raw.elapsed_ms)
            if tracing:
                headers = restore_header_case(raw.headers or {})
                self._trace(
                    "response",
                    {
                        "method": method,
                        "status": raw.status,
                        "headers": headers,
                        "data": decode_body(raw.body, headers),
                        "elapsed_ms": raw.elapsed_ms,
                    },
                )
            result = normalize(raw)
            if result.protocol and result.protocol != self.settings.PROTOCOL:
                logger.warning(
                    "server speaks %s, client expects %s", result.protocol, self.settings.PROTOCOL
                )
            logger.debug("%s data=%s", method, summarize(result.data))
            return result
