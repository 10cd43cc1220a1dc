"""Request decorator that caches the body for digest checks and replay.

The wrapped request only has to provide ``get_input_stream()`` returning a
single-use binary stream; every other attribute (method, path, headers, ...)
is delegated to it unchanged.
"""
from __future__ import annotations

from typing import Any, BinaryIO, Optional, Union

from ..crypto.digest import DigestAlgorithm
from .buffer import DEFAULT_CHUNK_SIZE, BodyBuffer, BufferState
from .digests import DigestCache
from .errors import BodyStateError
from .replay import BufferedBodyStream


class DigestingRequest:
    def __init__(self, request: Any, maximum_length: int, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._request = request
        self._chunk_size = chunk_size
        self._buffer = BodyBuffer(request.get_input_stream(), maximum_length, chunk_size)
        self._digests = DigestCache(self._buffer)
        self._passed_through = False

    def __getattr__(self, name: str) -> Any:
        # only reached for attributes not defined on the wrapper
        request = self.__dict__.get("_request")
        if request is None:
            raise AttributeError(name)
        return getattr(request, name)

    @property
    def request(self) -> Any:
        return self._request

    @property
    def maximum_length(self) -> int:
        return self._buffer.maximum_length

    @property
    def state(self) -> BufferState:
        return self._buffer.state

    @property
    def body(self) -> Optional[bytes]:
        return self._buffer.body

    def ensure_buffered(self) -> bytes:
        self._check_not_passed_through()
        return self._buffer.ensure_buffered()

    def get_digest(self, algorithm: Union[str, DigestAlgorithm]) -> Optional[bytes]:
        """Digest of the body, or None when the request has no content.

        Raises BodySizeExceeded / BodyReadError if the body cannot be buffered,
        and BodyStateError once the raw source has been handed out by open_stream().
        """
        self._check_not_passed_through()
        return self._digests.get_digest(algorithm)

    def content_md5(self) -> Optional[bytes]:
        return self.get_digest(DigestAlgorithm.MD5)

    def content_sha1(self) -> Optional[bytes]:
        return self.get_digest(DigestAlgorithm.SHA1)

    def content_sha256(self) -> Optional[bytes]:
        return self.get_digest(DigestAlgorithm.SHA256)

    def computed_digests(self):
        return self._digests.computed()

    def open_stream(self) -> BinaryIO:
        """Fresh stream over the body.

        Once buffered every call gets its own cursor from offset 0. Before any
        buffering the source stream itself is handed out (nothing is cached, so
        it can be consumed once). From then on the body can no longer be buffered:
        digests and ensure_buffered() raise BodyStateError instead of hashing
        whatever the consumer left unread. After a failed buffering the failure
        is raised.
        """
        state = self._buffer.state
        if state is BufferState.BUFFERED:
            return BufferedBodyStream(self._buffer.body, self._chunk_size)  # type: ignore[arg-type, return-value]
        if state is BufferState.UNBUFFERED:
            self._passed_through = True
            return self._buffer.source
        if state is BufferState.FAILED:
            raise self._buffer.error  # type: ignore[misc]
        raise BodyStateError("request body is still being buffered")

    get_input_stream = open_stream

    def _check_not_passed_through(self) -> None:
        if self._passed_through and self._buffer.state is BufferState.UNBUFFERED:
            raise BodyStateError("request body was already handed out unbuffered")
