"""One-time, size-bounded materialization of a request body.

States move one way only:

    UNBUFFERED -> BUFFERING -> BUFFERED
    UNBUFFERED -> BUFFERING -> FAILED

The source stream is read at most once and closed after the attempt whatever
the outcome. There is no spill to disk: a body over the limit is rejected.
"""
from __future__ import annotations

from enum import Enum
from typing import BinaryIO, Optional

from ..utils.logging import get_logger
from .errors import BodyReadError, BodySealError, BodySizeExceeded, BodyStateError

DEFAULT_CHUNK_SIZE = 4096

log = get_logger()


class BufferState(str, Enum):
    UNBUFFERED = "Unbuffered"
    BUFFERING = "Buffering"
    BUFFERED = "Buffered"
    FAILED = "Failed"


class BodyBuffer:
    def __init__(self, source: BinaryIO, maximum_length: int, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if maximum_length < 0:
            raise ValueError("maximum_length must be >= 0")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._source = source
        self._maximum_length = maximum_length
        self._chunk_size = chunk_size
        self._state = BufferState.UNBUFFERED
        self._body: Optional[bytes] = None
        self._error: Optional[BodySealError] = None

    @property
    def source(self) -> BinaryIO:
        return self._source

    @property
    def maximum_length(self) -> int:
        return self._maximum_length

    @property
    def state(self) -> BufferState:
        return self._state

    @property
    def body(self) -> Optional[bytes]:
        """Materialized body, or None until buffering has succeeded."""
        return self._body

    @property
    def error(self) -> Optional[BodySealError]:
        return self._error

    def ensure_buffered(self) -> bytes:
        """Read the whole source into memory once; later calls return the same bytes.

        Raises BodySizeExceeded when more than ``maximum_length`` bytes arrive and
        BodyReadError when the source fails. Either failure is remembered and
        raised again on every later call.
        """
        if self._state is BufferState.BUFFERED:
            return self._body  # type: ignore[return-value]
        if self._state is BufferState.FAILED:
            raise self._error  # type: ignore[misc]
        if self._state is BufferState.BUFFERING:
            raise BodyStateError("request body is already being buffered")

        self._state = BufferState.BUFFERING
        out = bytearray()
        try:
            while True:
                try:
                    chunk = self._source.read(self._chunk_size)
                except BodySealError:
                    raise
                except Exception as exc:
                    raise BodyReadError(f"failed reading request body: {exc}") from exc
                if not chunk:
                    break
                out += chunk
                if len(out) > self._maximum_length:
                    observed = len(out)
                    out.clear()
                    raise BodySizeExceeded(self._maximum_length, observed)
        except BodySealError as exc:
            self._fail(exc)
            raise
        except BaseException:
            # abandoned mid-read (cancellation); never exposed
            out.clear()
            self._fail(BodyReadError("request body buffering was aborted"))
            raise
        finally:
            self._close_source()

        self._body = bytes(out)
        self._state = BufferState.BUFFERED
        log.debug(f"request body buffered bytes={len(self._body)} limit={self._maximum_length}")
        return self._body

    def _fail(self, exc: BodySealError) -> None:
        self._error = exc
        self._state = BufferState.FAILED
        log.info(f"request body buffering failed: {exc}")

    def _close_source(self) -> None:
        try:
            self._source.close()
        except Exception as exc:  # close errors never surface
            log.debug(f"ignoring error closing request body source: {exc!r}")
