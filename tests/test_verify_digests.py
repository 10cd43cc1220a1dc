import base64
import hashlib
from src.bodyseal.body.wrapper import DigestingRequest
from src.bodyseal.crypto.digest import DigestAlgorithm, content_digest_header_for, content_md5_header_for
from src.bodyseal.http.verify import ct_eq, declared_digests, verify_content_digests
from body_sources import FakeRequest

BODY = b'{"amount": 42}'


def wrap(headers, body=BODY):
    return DigestingRequest(FakeRequest(body, headers=headers), maximum_length=1024)


def test_ct_eq_basic():
    assert ct_eq(b"abc", b"abc") is True
    assert ct_eq(b"abc", b"abd") is False
    assert ct_eq(b"abc", b"abcd") is False


def test_matching_content_digest_verifies():
    check = verify_content_digests(wrap({"content-digest": content_digest_header_for(BODY)}))
    assert check.present and check.verified
    assert check.algorithms == ["sha256"]
    assert check.headers == ["content-digest"]


def test_every_declared_header_must_match():
    headers = {
        "content-digest": content_digest_header_for(BODY),
        "content-md5": content_md5_header_for(b"something else"),
    }
    req = wrap(headers)
    check = verify_content_digests(req)
    assert not check.verified
    assert check.failure_reason == "content_md5_mismatch"
    assert check.algorithms == ["sha256", "md5"]


def test_shared_algorithm_digested_once():
    headers = {
        "content-digest": content_digest_header_for(BODY, [DigestAlgorithm.MD5]),
        "content-md5": content_md5_header_for(BODY),
    }
    req = wrap(headers)
    assert verify_content_digests(req).verified
    assert req.computed_digests() == [DigestAlgorithm.MD5]


def test_missing_and_malformed_headers():
    check = verify_content_digests(wrap({}))
    assert check.present is False and check.failure_reason == "missing_digest"
    check = verify_content_digests(wrap({"content-digest": "sha-256=oops"}))
    assert check.present and check.failure_reason == "malformed_content_digest"
    sha512 = base64.b64encode(hashlib.sha512(BODY).digest()).decode()
    check = verify_content_digests(wrap({"content-digest": f"sha-512=:{sha512}:"}))
    assert check.failure_reason == "unsupported_algorithm"


def test_empty_body_matches_digest_of_empty_input():
    req = wrap({"content-digest": content_digest_header_for(b"")}, body=b"")
    assert verify_content_digests(req).verified
    assert req.content_sha256() is None


def test_declared_digests_order():
    headers = {"digest": "MD5=" + content_md5_header_for(BODY), "content-md5": content_md5_header_for(BODY)}
    assert [(h, a) for h, a, _ in declared_digests(headers)] == [
        ("digest", DigestAlgorithm.MD5),
        ("content-md5", DigestAlgorithm.MD5),
    ]
