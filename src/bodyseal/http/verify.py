"""Check header-declared body digests against the cached ones.

Buffering failures (BodySizeExceeded, BodyReadError) are not caught here;
the middleware maps them to responses.
"""
from __future__ import annotations

import hmac
from typing import Dict, List, Mapping, Tuple

from ..body.wrapper import DigestingRequest
from ..crypto.digest import (
    DigestAlgorithm,
    compute,
    parse_content_digest,
    parse_content_md5,
    parse_legacy_digest,
)
from .models import DigestCheck

INTEGRITY_HEADERS = ("content-digest", "digest", "content-md5")


def ct_eq(a: bytes, b: bytes) -> bool:
    """Constant-time equality for two byte strings (length must match)."""
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)


def has_integrity_headers(headers: Mapping[str, str]) -> bool:
    return any(headers.get(h) for h in INTEGRITY_HEADERS)


def declared_digests(headers: Mapping[str, str]) -> List[Tuple[str, DigestAlgorithm, bytes]]:
    """(header, algorithm, expected digest) for every supported digest the request declares.

    Raises ValueError naming the header when one is malformed.
    """
    declared: List[Tuple[str, DigestAlgorithm, bytes]] = []
    parsers = {
        "content-digest": parse_content_digest,
        "digest": parse_legacy_digest,
    }
    for name, parse in parsers.items():
        value = headers.get(name)
        if not value:
            continue
        try:
            parsed: Dict[DigestAlgorithm, bytes] = parse(value)
        except ValueError as exc:
            raise ValueError(name) from exc
        declared.extend((name, alg, d) for alg, d in parsed.items())
    md5 = headers.get("content-md5")
    if md5:
        try:
            declared.append(("content-md5", DigestAlgorithm.MD5, parse_content_md5(md5)))
        except ValueError as exc:
            raise ValueError("content-md5") from exc
    return declared


def verify_content_digests(request: DigestingRequest) -> DigestCheck:
    headers = request.headers
    present = [h for h in INTEGRITY_HEADERS if headers.get(h)]
    if not present:
        return DigestCheck(present=False, verified=False, failure_reason="missing_digest")
    try:
        declared = declared_digests(headers)
    except ValueError as exc:
        return DigestCheck(present=True, verified=False, headers=present, failure_reason=f"malformed_{exc}".replace("-", "_"))
    if not declared:
        return DigestCheck(present=True, verified=False, headers=present, failure_reason="unsupported_algorithm")

    algorithms: List[str] = []
    for header, alg, expected in declared:
        actual = request.get_digest(alg)
        if actual is None:
            # no content: the client must have declared the digest of empty input
            actual = compute(alg, b"")
        if alg.value not in algorithms:
            algorithms.append(alg.value)
        if not ct_eq(actual, expected):
            return DigestCheck(
                present=True,
                verified=False,
                algorithms=algorithms,
                headers=present,
                failure_reason=f"{header.replace('-', '_')}_mismatch",
            )
    return DigestCheck(present=True, verified=True, algorithms=algorithms, headers=present)
