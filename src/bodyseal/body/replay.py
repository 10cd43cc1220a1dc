"""Replayable read views over a buffered request body."""
from __future__ import annotations

import io
from typing import Iterator

from .buffer import DEFAULT_CHUNK_SIZE


class BufferedBodyStream(io.RawIOBase):
    """Independent cursor over an in-memory body, starting at offset 0.

    Data is already resident, so ``is_ready()`` is always true; ``is_finished()``
    turns true once the cursor reaches the end.
    """

    def __init__(self, body: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__()
        self._view = memoryview(body)
        self._pos = 0
        self._chunk_size = chunk_size

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        self._check_open()
        n = min(len(b), len(self._view) - self._pos)
        b[:n] = self._view[self._pos:self._pos + n]
        self._pos += n
        return n

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if size is None or size < 0:
            size = len(self._view) - self._pos
        end = min(self._pos + size, len(self._view))
        chunk = self._view[self._pos:end].tobytes()
        self._pos = end
        return chunk

    def readall(self) -> bytes:
        return self.read(-1)

    def tell(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._view) - self._pos

    def is_finished(self) -> bool:
        return self._pos >= len(self._view)

    def is_ready(self) -> bool:
        return True

    def chunks(self, size: int = 0) -> Iterator[bytes]:
        size = size or self._chunk_size
        while not self.is_finished():
            yield self.read(size)

    def close(self) -> None:
        if not self.closed:
            self._view.release()
        super().close()

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed body stream")
