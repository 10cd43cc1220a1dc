import pytest
from src.bodyseal.body import digests as digests_mod
from src.bodyseal.body.buffer import BodyBuffer
from src.bodyseal.body.digests import DigestCache
from src.bodyseal.body.errors import BodySizeExceeded
from src.bodyseal.crypto.digest import DigestAlgorithm
from body_sources import CountingSource

HELLO = {
    DigestAlgorithm.MD5: "5d41402abc4b2a76b9719d911017c592",
    DigestAlgorithm.SHA1: "aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d",
    DigestAlgorithm.SHA256: "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824",
}


def make_cache(data: bytes, limit: int = 100):
    src = CountingSource(data)
    return DigestCache(BodyBuffer(src, maximum_length=limit)), src


def test_hello_vectors():
    cache, _ = make_cache(b"hello")
    for alg, expected in HELLO.items():
        assert cache.get_digest(alg).hex() == expected


def test_lookup_by_header_token():
    cache, _ = make_cache(b"hello")
    assert cache.get_digest("sha-256").hex() == HELLO[DigestAlgorithm.SHA256]
    assert cache.get_digest("sha").hex() == HELLO[DigestAlgorithm.SHA1]
    with pytest.raises(ValueError):
        cache.get_digest("sha-512")


def test_each_algorithm_computed_once(monkeypatch):
    calls = []
    real = digests_mod.compute

    def counting(alg, data):
        calls.append(alg)
        return real(alg, data)

    monkeypatch.setattr(digests_mod, "compute", counting)
    cache, src = make_cache(b"hello")
    a = cache.get_digest(DigestAlgorithm.SHA256)
    b = cache.get_digest(DigestAlgorithm.SHA256)
    cache.get_digest(DigestAlgorithm.MD5)
    cache.get_digest(DigestAlgorithm.MD5)
    assert a == b
    assert calls == [DigestAlgorithm.SHA256, DigestAlgorithm.MD5]
    assert cache.computed() == [DigestAlgorithm.MD5, DigestAlgorithm.SHA256]
    assert src.close_calls == 1


def test_empty_body_has_no_content_digest():
    cache, _ = make_cache(b"")
    for alg in DigestAlgorithm:
        assert cache.get_digest(alg) is None
    assert cache.computed() == []


def test_oversized_body_never_digested():
    cache, src = make_cache(b"a" * 150)
    for alg in DigestAlgorithm:
        with pytest.raises(BodySizeExceeded):
            cache.get_digest(alg)
    assert cache.computed() == []
    assert src.close_calls == 1
