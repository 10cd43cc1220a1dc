import base64
import hashlib
import pytest
from src.bodyseal.crypto.digest import (
    DigestAlgorithm,
    content_digest_header_for,
    content_md5_header_for,
    legacy_digest_header_for,
    parse_content_digest,
    parse_content_md5,
    parse_legacy_digest,
)

BODY = b'{"demo":true}'


def b64(b): return base64.b64encode(b).decode()


def test_content_digest_format_matches_rfc9530_shape():
    expected = f"sha-256=:{b64(hashlib.sha256(BODY).digest())}:"
    assert content_digest_header_for(BODY) == expected
    both = content_digest_header_for(BODY, [DigestAlgorithm.SHA256, DigestAlgorithm.MD5])
    assert both == expected + f", md5=:{b64(hashlib.md5(BODY).digest())}:"


def test_parse_content_digest_multiple_members():
    value = content_digest_header_for(BODY, list(DigestAlgorithm))
    parsed = parse_content_digest(value)
    assert parsed[DigestAlgorithm.SHA1] == hashlib.sha1(BODY).digest()
    assert parsed[DigestAlgorithm.SHA256] == hashlib.sha256(BODY).digest()


def test_parse_content_digest_skips_unknown_algorithms():
    value = f"sha-512=:{b64(hashlib.sha512(BODY).digest())}:, sha-256=:{b64(hashlib.sha256(BODY).digest())}:"
    assert list(parse_content_digest(value)) == [DigestAlgorithm.SHA256]


@pytest.mark.parametrize("value", ["sha-256", "sha-256=abc", "sha-256=:not base64!:"])
def test_parse_content_digest_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_content_digest(value)


def test_legacy_digest_header():
    value = legacy_digest_header_for(BODY, [DigestAlgorithm.SHA256, DigestAlgorithm.MD5])
    assert value.startswith("SHA-256=")
    parsed = parse_legacy_digest(value)
    assert parsed[DigestAlgorithm.MD5] == hashlib.md5(BODY).digest()
    assert parse_legacy_digest("unixsum=30637") == {}
    with pytest.raises(ValueError):
        parse_legacy_digest("SHA-256")


def test_content_md5():
    assert parse_content_md5(content_md5_header_for(BODY)) == hashlib.md5(BODY).digest()
    with pytest.raises(ValueError):
        parse_content_md5(b64(b"short"))


def test_algorithm_lookup():
    assert DigestAlgorithm.lookup("SHA-256") is DigestAlgorithm.SHA256
    assert DigestAlgorithm.lookup(DigestAlgorithm.MD5) is DigestAlgorithm.MD5
    assert DigestAlgorithm.SHA1.digest_size == 20
    with pytest.raises(ValueError):
        DigestAlgorithm.lookup("crc32")
