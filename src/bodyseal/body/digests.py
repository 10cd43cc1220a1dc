"""Lazy, memoized content digests over a buffered request body."""
from __future__ import annotations

from typing import Dict, List, Optional, Union

from ..crypto.digest import DigestAlgorithm, compute
from ..utils.logging import get_logger
from .buffer import BodyBuffer

log = get_logger()


class DigestCache:
    """Each algorithm is computed at most once, from the materialized body only.

    An empty body yields None for every algorithm: "no content" is kept apart
    from "digest of empty content".
    """

    def __init__(self, buffer: BodyBuffer):
        self._buffer = buffer
        self._entries: Dict[DigestAlgorithm, Optional[bytes]] = {alg: None for alg in DigestAlgorithm}

    def get_digest(self, algorithm: Union[str, DigestAlgorithm]) -> Optional[bytes]:
        alg = DigestAlgorithm.lookup(algorithm)
        cached = self._entries[alg]
        if cached is not None:
            log.debug(f"content digest cache hit alg={alg.value}")
            return cached
        body = self._buffer.ensure_buffered()
        if not body:
            return None
        digest = compute(alg, body)
        self._entries[alg] = digest
        return digest

    def computed(self) -> List[DigestAlgorithm]:
        return [alg for alg, d in self._entries.items() if d is not None]
