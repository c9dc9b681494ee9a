"""リクエスト署名のユニットテスト"""

import hashlib
import hmac

import pytest

from k1s0_upload_client import Credentials, SigningError, build_signed_request, sign
from k1s0_upload_client.signature import body_hash, canonical_string, http_date

DATE = "Mon, 19 Oct 2026 10:00:00 GMT"
EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"


def test_body_hash_empty() -> None:
    assert body_hash(b"") == EMPTY_MD5


def test_canonical_string_layout() -> None:
    s = canonical_string("GET", "/files/?limit=10", b"", DATE)
    assert s == f"GET\n{EMPTY_MD5}\napplication/json\n{DATE}\n/files/?limit=10"


def test_sign_matches_hmac_sha1() -> None:
    expected = hmac.new(
        b"secret",
        f"GET\n{EMPTY_MD5}\napplication/json\n{DATE}\n/files/".encode(),
        hashlib.sha1,
    ).hexdigest()
    assert sign("GET", "/files/", b"", DATE, "secret") == expected


def test_sign_is_deterministic() -> None:
    first = sign("POST", "/files/", b'{"a": 1}', DATE, "secret")
    second = sign("POST", "/files/", b'{"a": 1}', DATE, "secret")
    assert first == second


@pytest.mark.parametrize(
    "args",
    [
        ("PUT", "/files/", b'{"a": 1}', DATE, "secret"),
        ("POST", "/groups/", b'{"a": 1}', DATE, "secret"),
        ("POST", "/files/", b'{"a": 2}', DATE, "secret"),
        ("POST", "/files/", b'{"a": 1}', "Tue, 20 Oct 2026 10:00:00 GMT", "secret"),
        ("POST", "/files/", b'{"a": 1}', DATE, "other"),
    ],
)
def test_changing_any_input_changes_signature(args: tuple) -> None:
    base = sign("POST", "/files/", b'{"a": 1}', DATE, "secret")
    assert sign(*args) != base


@pytest.mark.parametrize(
    "method, path, body, timestamp, key",
    [
        (None, "/files/", b"", DATE, "secret"),
        ("GET", 42, b"", DATE, "secret"),
        ("GET", "/files/", "text", DATE, "secret"),
        ("GET", "/files/", b"", 1700000000, "secret"),
        ("GET", "/files/", b"", DATE, ""),
    ],
)
def test_invalid_inputs_raise_signing_error(method, path, body, timestamp, key) -> None:
    with pytest.raises(SigningError):
        sign(method, path, body, timestamp, key)


def test_build_signed_request_headers() -> None:
    creds = Credentials(public_key="pub", private_key="secret")
    signed = build_signed_request(creds, "GET", "/files/", b"", timestamp=DATE)
    headers = signed.headers(creds.public_key, 0)
    assert headers["Authentication"] == f"UploadCare pub:{signed.signature}"
    assert headers["X-Uploadcare-Date"] == DATE
    assert headers["Content-Type"] == "application/json"
    assert headers["Content-Length"] == "0"
    assert signed.body_hash == EMPTY_MD5


def test_build_signed_request_stamps_current_date() -> None:
    creds = Credentials(public_key="pub", private_key="secret")
    signed = build_signed_request(creds, "GET", "/files/")
    assert signed.timestamp.endswith("GMT")
    assert signed.signature == sign("GET", "/files/", b"", signed.timestamp, "secret")


def test_http_date_format() -> None:
    assert http_date().endswith(" GMT")
