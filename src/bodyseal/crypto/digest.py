"""Digest algorithms and the integrity headers that carry them.

Three headers are understood:

 - ``Content-Digest`` (RFC 9530): structured dictionary, ``sha-256=:<b64>:``
 - ``Digest`` (RFC 3230, legacy): ``SHA-256=<b64>, MD5=<b64>``
 - ``Content-MD5`` (RFC 1864): bare base64 of the MD5 digest

Only the fixed algorithm set below is supported; tokens for anything else
are skipped by the parsers rather than rejected.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
from enum import Enum
from typing import Dict, Iterable, Union


class DigestAlgorithm(str, Enum):
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"

    @property
    def content_digest_token(self) -> str:
        return _CONTENT_DIGEST_TOKENS[self]

    @property
    def legacy_token(self) -> str:
        return _LEGACY_TOKENS[self]

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.value).digest_size

    @classmethod
    def lookup(cls, name: Union[str, "DigestAlgorithm"]) -> "DigestAlgorithm":
        """Resolve an enum member, hashlib name or header token."""
        if isinstance(name, cls):
            return name
        alg = _ALIASES.get(str(name).strip().lower())
        if alg is None:
            raise ValueError(f"unsupported digest algorithm: {name!r}")
        return alg


_CONTENT_DIGEST_TOKENS = {
    DigestAlgorithm.MD5: "md5",
    DigestAlgorithm.SHA1: "sha",
    DigestAlgorithm.SHA256: "sha-256",
}
_LEGACY_TOKENS = {
    DigestAlgorithm.MD5: "MD5",
    DigestAlgorithm.SHA1: "SHA",
    DigestAlgorithm.SHA256: "SHA-256",
}
_ALIASES: Dict[str, DigestAlgorithm] = {
    "md5": DigestAlgorithm.MD5,
    "sha": DigestAlgorithm.SHA1,
    "sha1": DigestAlgorithm.SHA1,
    "sha-1": DigestAlgorithm.SHA1,
    "sha256": DigestAlgorithm.SHA256,
    "sha-256": DigestAlgorithm.SHA256,
}


def compute(alg: Union[str, DigestAlgorithm], data: bytes) -> bytes:
    return hashlib.new(DigestAlgorithm.lookup(alg).value, data).digest()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def sha256_b64(data: bytes) -> str:
    return b64(hashlib.sha256(data).digest())


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value.encode(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 digest value: {value!r}") from exc


def format_content_digest(digests: Dict[DigestAlgorithm, bytes]) -> str:
    return ", ".join(f"{alg.content_digest_token}=:{b64(d)}:" for alg, d in digests.items())


def content_digest_header_for(
    data: bytes, algorithms: Iterable[DigestAlgorithm] = (DigestAlgorithm.SHA256,)
) -> str:
    return format_content_digest({alg: compute(alg, data) for alg in algorithms})


def legacy_digest_header_for(
    data: bytes, algorithms: Iterable[DigestAlgorithm] = (DigestAlgorithm.SHA256,)
) -> str:
    return ", ".join(f"{alg.legacy_token}={b64(compute(alg, data))}" for alg in algorithms)


def content_md5_header_for(data: bytes) -> str:
    return b64(hashlib.md5(data).digest())


def parse_content_digest(value: str) -> Dict[DigestAlgorithm, bytes]:
    # expects: 'sha-256=:...:, md5=:...:' (member parameters after ';' are ignored)
    out: Dict[DigestAlgorithm, bytes] = {}
    for member in value.split(","):
        member = member.strip()
        if not member:
            continue
        key, sep, rest = member.partition("=")
        rest = rest.split(";", 1)[0].strip()
        if not sep or len(rest) < 2 or not rest.startswith(":") or not rest.endswith(":"):
            raise ValueError("invalid Content-Digest format")
        alg = _ALIASES.get(key.strip().lower())
        if alg is None:
            continue
        out[alg] = _b64decode(rest[1:-1])
    return out


def parse_legacy_digest(value: str) -> Dict[DigestAlgorithm, bytes]:
    out: Dict[DigestAlgorithm, bytes] = {}
    for member in value.split(","):
        member = member.strip()
        if not member:
            continue
        key, sep, encoded = member.partition("=")
        if not sep or not encoded:
            raise ValueError("invalid Digest format")
        alg = _ALIASES.get(key.strip().lower())
        if alg is None:
            continue
        out[alg] = _b64decode(encoded.strip())
    return out


def parse_content_md5(value: str) -> bytes:
    raw = _b64decode(value.strip())
    if len(raw) != DigestAlgorithm.MD5.digest_size:
        raise ValueError("invalid Content-MD5 length")
    return raw
