# sqtp/http/client.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union

import requests
from urllib3 import HTTPHeaderDict

from sqtp.errors import SQTPTimeoutError, TransportError
from sqtp.models.messages import RawResponse, Request

logger = logging.getLogger(__name__)

# urllib3/http.client compute these themselves
_HOP_BY_HOP = {"host", "content-length", "transfer-encoding", "connection"}


# ---- deadline ----


class Deadline:
    """
    Per-request timer. Started when a request is handed to the transport;
    when it fires it marks itself expired and runs the cancel callbacks the
    transport registered. Honoring the cancellation is the transport's job.
    """

    def __init__(self, seconds: float) -> None:
        self.seconds = float(seconds)
        self._expired = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._timer: Optional[threading.Timer] = None
        self._started_at: Optional[float] = None

    def start(self) -> "Deadline":
        self._started_at = time.monotonic()
        self._timer = threading.Timer(self.seconds, self._fire)
        self._timer.daemon = True
        self._timer.start()
        return self

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def cancel(self) -> None:
        """Expire now (also what the timer calls)."""
        self.stop()
        self._fire()

    def _fire(self) -> None:
        with self._lock:
            if self._expired.is_set():
                return
            self._expired.set()
            callbacks = list(self._callbacks)
        for fn in callbacks:
            try:
                fn()
            except Exception:
                logger.exception("deadline cancel callback failed")

    def on_cancel(self, fn: Callable[[], None]) -> None:
        with self._lock:
            if not self._expired.is_set():
                self._callbacks.append(fn)
                return
        fn()

    @property
    def expired(self) -> bool:
        return self._expired.is_set()

    def remaining(self) -> float:
        if self._started_at is None:
            return self.seconds
        left = self.seconds - (time.monotonic() - self._started_at)
        return max(0.0, left)

    def __enter__(self) -> "Deadline":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()


# ---- transport interface ----


class Transport(Protocol):
    def send(self, request: Request, url: str, deadline: Deadline) -> RawResponse:
        ...


def split_headers(
    wire: Dict[str, Union[str, List[str]]]
) -> Tuple[Dict[str, str], List[Tuple[str, str]]]:
    """
    Separate single-valued headers from the repeated occurrences of
    multi-valued ones, dropping hop-by-hop names.
    """
    single: Dict[str, str] = {}
    repeated: List[Tuple[str, str]] = []
    for k, v in wire.items():
        if k.lower() in _HOP_BY_HOP:
            continue
        if isinstance(v, list):
            repeated.extend((k, item) for item in v)
        else:
            single[k] = v
    return single, repeated


class RequestsTransport:
    """
    Transport over a requests.Session. Multi-valued headers go out as
    repeated header lines; requests itself keeps one value per name, so the
    prepared request carries a urllib3 HTTPHeaderDict instead.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
        allow_redirects: bool = True,
    ) -> None:
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.allow_redirects = bool(allow_redirects)

    def prepare(self, request: Request, url: str) -> requests.PreparedRequest:
        single, repeated = split_headers(request.wire_headers())
        if self.user_agent:
            single.setdefault("User-Agent", self.user_agent)
        prepared = self.session.prepare_request(
            requests.Request(
                method=request.method,
                url=url,
                headers=single,
                data=request.encode_body(),
            )
        )
        if repeated:
            hd = HTTPHeaderDict(prepared.headers)
            for k, v in repeated:
                hd.add(k, v)
            prepared.headers = hd
        return prepared

    def send(self, request: Request, url: str, deadline: Deadline) -> RawResponse:
        prepared = self.prepare(request, url)
        inflight: Dict[str, requests.Response] = {}

        def _abort() -> None:
            resp = inflight.get("resp")
            if resp is not None:
                resp.close()

        deadline.on_cancel(_abort)
        timeout = deadline.remaining()
        if deadline.expired or timeout <= 0:
            raise SQTPTimeoutError(request.method, deadline.seconds)

        t0 = time.time()
        try:
            resp = self.session.send(
                prepared,
                timeout=timeout,
                allow_redirects=self.allow_redirects,
                stream=True,
            )
            inflight["resp"] = resp
            try:
                body = resp.content
            finally:
                resp.close()
        except requests.Timeout as e:
            raise SQTPTimeoutError(request.method, deadline.seconds) from e
        except (requests.RequestException, OSError) as e:
            if deadline.expired:
                raise SQTPTimeoutError(request.method, deadline.seconds) from e
            raise TransportError(f"{request.method} {url}: {e}") from e
        except ValueError as e:
            # reading a response the deadline already closed
            if deadline.expired:
                raise SQTPTimeoutError(request.method, deadline.seconds) from e
            raise

        return RawResponse(
            status=resp.status_code,
            headers=dict(resp.headers.items()),
            body=body,
            elapsed_ms=int((time.time() - t0) * 1000),
        )

    def close(self) -> None:
        self.session.close()
