"""Prometheus instrumentation for the body digest middleware.

Labels stay low-cardinality: outcome and algorithm only, never the route.
"""
from __future__ import annotations
from typing import Iterable, Optional
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

REGISTRY = CollectorRegistry()

BODY_BUFFER_RESULTS = Counter(
    "bodyseal_body_buffer_total",
    "Request body buffering attempts by outcome.",
    ["result"],  # buffered|too_large|read_error
    registry=REGISTRY,
)
DIGEST_CHECKS = Counter(
    "bodyseal_digest_checks_total",
    "Content digest verifications by outcome.",
    ["result", "reason"],
    registry=REGISTRY,
)
DIGESTS_COMPUTED = Counter(
    "bodyseal_digests_computed_total",
    "Body digests computed, per algorithm.",
    ["alg"],
    registry=REGISTRY,
)
BODY_BYTES = Histogram(
    "bodyseal_body_bytes",
    "Size of buffered request bodies (bytes).",
    buckets=(0, 64, 256, 1024, 4096, 16384, 65536, 262144, 1048576, 4194304),
    registry=REGISTRY,
)


def observe_buffering(result: str, size: Optional[int] = None) -> None:
    BODY_BUFFER_RESULTS.labels(result=result).inc()
    if size is not None:
        BODY_BYTES.observe(size)


def observe_digest_check(verified: bool, reason: Optional[str], computed: Iterable[str] = ()) -> None:
    DIGEST_CHECKS.labels(result="verified" if verified else "failed", reason=reason or "ok").inc()
    for alg in computed:
        DIGESTS_COMPUTED.labels(alg=alg).inc()


def prometheus_latest() -> tuple[bytes, str]:
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
