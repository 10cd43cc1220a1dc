"""Synchronous view of an ASGI request for the blocking body core.

``ReceiveReader`` must be used from a worker thread started by anyio
(``starlette.concurrency.run_in_threadpool``): each ``read`` hops back to the
event loop with ``anyio.from_thread.run`` to await the next ASGI message.
"""
from __future__ import annotations

import io
from typing import Optional

from anyio import from_thread
from starlette.datastructures import Headers, URL
from starlette.types import Receive, Scope


class ClientDisconnected(OSError):
    pass


class ReceiveReader(io.RawIOBase):
    def __init__(self, receive: Receive):
        super().__init__()
        self._receive = receive
        self._pending = bytearray()
        self._eof = False
        self.messages = 0

    def readable(self) -> bool:
        return True

    def _next_message(self) -> None:
        message = from_thread.run(self._receive)
        self.messages += 1
        mtype = message.get("type")
        if mtype == "http.disconnect":
            self._eof = True
            raise ClientDisconnected("client disconnected before request body was complete")
        if mtype != "http.request":
            raise OSError(f"unexpected ASGI message type: {mtype!r}")
        self._pending += message.get("body", b"")
        if not message.get("more_body", False):
            self._eof = True

    def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise ValueError("I/O operation on closed request body")
        if size is None or size < 0:
            while not self._eof:
                self._next_message()
            out = bytes(self._pending)
            self._pending.clear()
            return out
        while not self._pending and not self._eof:
            self._next_message()
        out = bytes(self._pending[:size])
        del self._pending[:size]
        return out

    def readinto(self, b) -> int:
        data = self.read(len(b))
        b[:len(data)] = data
        return len(data)


class IncomingRequest:
    """Method, URL and headers of an ASGI request plus its single-use body reader."""

    def __init__(self, scope: Scope, receive: Receive):
        self.scope = scope
        self.method: str = scope.get("method", "GET").upper()
        self.url = URL(scope=scope)
        self.headers = Headers(scope=scope)
        self._stream = ReceiveReader(receive)

    @property
    def path(self) -> str:
        return self.url.path

    @property
    def client_host(self) -> Optional[str]:
        client = self.scope.get("client")
        return client[0] if client else None

    def get_input_stream(self) -> ReceiveReader:
        return self._stream
