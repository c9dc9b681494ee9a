"""REST API リクエスト署名の生成"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from email.utils import formatdate

from .exceptions import SigningError
from .models import Credentials

CONTENT_TYPE = "application/json"
AUTH_HEADER = "Authentication"
AUTH_SCHEME = "UploadCare"
DATE_HEADER = "X-Uploadcare-Date"


def _require_str(name: str, value: object) -> None:
    if not isinstance(value, str):
        raise SigningError(f"{name} must be str, got {type(value).__name__}")


def body_hash(body: bytes) -> str:
    """リクエストボディの MD5 ダイジェスト（16 進）を返す。"""
    if not isinstance(body, (bytes, bytearray)):
        raise SigningError(f"body must be bytes, got {type(body).__name__}")
    return hashlib.md5(body).hexdigest()


def canonical_string(method: str, path: str, body: bytes, timestamp: str) -> str:
    """署名対象となる改行区切りの文字列を組み立てる。"""
    _require_str("method", method)
    _require_str("path", path)
    _require_str("timestamp", timestamp)
    return "\n".join([method, body_hash(body), CONTENT_TYPE, timestamp, path])


def sign(method: str, path: str, body: bytes, timestamp: str, private_key: str) -> str:
    """リクエストの HMAC-SHA1 署名（16 進）を生成する。

    Raises:
        SigningError: 入力の型が不正、または秘密鍵が空の場合
    """
    _require_str("private_key", private_key)
    if not private_key:
        raise SigningError("private_key must not be empty")
    message = canonical_string(method, path, body, timestamp)
    return hmac.new(private_key.encode(), message.encode(), hashlib.sha1).hexdigest()


def http_date() -> str:
    """現在時刻を RFC 1123 形式（GMT）で返す。"""
    return formatdate(usegmt=True)


@dataclass(frozen=True)
class SignedRequest:
    """署名済みリクエスト。呼び出しごとに生成し再利用しない。"""

    method: str
    path: str
    body_hash: str
    content_type: str
    timestamp: str
    signature: str

    def headers(self, public_key: str, content_length: int) -> dict[str, str]:
        return {
            AUTH_HEADER: f"{AUTH_SCHEME} {public_key}:{self.signature}",
            DATE_HEADER: self.timestamp,
            "Content-Type": self.content_type,
            "Content-Length": str(content_length),
        }


def build_signed_request(
    credentials: Credentials,
    method: str,
    path: str,
    body: bytes = b"",
    timestamp: str | None = None,
) -> SignedRequest:
    """リクエストに署名する。timestamp 省略時は現在時刻を使う。"""
    if timestamp is None:
        timestamp = http_date()
    return SignedRequest(
        method=method,
        path=path,
        body_hash=body_hash(body),
        content_type=CONTENT_TYPE,
        timestamp=timestamp,
        signature=sign(method, path, body, timestamp, credentials.private_key),
    )
