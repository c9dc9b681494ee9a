"""HTTP トランスポート実装"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx

from .config import UploadClientConfig
from .exceptions import ProtocolError, TransportError, UploadClientError, UploadClientErrorCodes
from .signature import build_signed_request

logger = logging.getLogger(__name__)

SUCCESS_STATUS_MAX = 201


def handle_response(resp: httpx.Response) -> Any:
    """レスポンスを JSON としてパースし、ステータスを検査する。

    JSON として解釈できないボディはステータスに関係なく INVALID_RESPONSE。
    201 を超えるステータスはパース済みボディ付きの UNEXPECTED_STATUS。
    """
    try:
        body = json.loads(resp.content)
    except ValueError as e:
        raise ProtocolError(
            code=UploadClientErrorCodes.INVALID_RESPONSE,
            message=f"Invalid JSON from {resp.request.url.host}",
            cause=e,
            status_code=resp.status_code,
        ) from e
    if resp.status_code > SUCCESS_STATUS_MAX:
        raise ProtocolError(
            code=UploadClientErrorCodes.UNEXPECTED_STATUS,
            message=f"Unexpected status {resp.status_code} from {resp.request.url.host}",
            status_code=resp.status_code,
            body=body,
        )
    return body


def with_query(path: str, params: dict[str, Any] | None) -> str:
    """パスにクエリ文字列を付与する（空の場合はそのまま）。"""
    query = urlencode(params or {})
    return f"{path}?{query}" if query else path


class Transport(ABC):
    """リモートサービスへの HTTP 呼び出しを抽象化する基底クラス。"""

    @abstractmethod
    async def request(self, method: str, path: str, data: Any = None) -> Any:
        """署名付き REST API 呼び出しを行いパース済み JSON を返す。"""
        ...

    @abstractmethod
    async def submit(
        self,
        path: str,
        fields: dict[str, str],
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Upload API へフォームを送信する。"""
        ...

    @abstractmethod
    async def fetch(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Upload API に GET リクエストを送る。"""
        ...


class HttpTransport(Transport):
    """httpx を使った Transport 実装。"""

    def __init__(self, config: UploadClientConfig) -> None:
        self._config = config
        self._credentials = config.credentials
        if not config.ssl:
            logger.warning(
                "HTTP requests won't be supported soon. Please enable the `ssl` option.",
                extra={"api_host": config.api_host},
            )

    def _make_client(self, base_url: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=base_url, timeout=self._config.timeout_seconds)

    async def _send(self, base_url: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            async with self._make_client(base_url) as client:
                resp = await client.request(method, path, **kwargs)
            return handle_response(resp)
        except UploadClientError:
            raise
        except httpx.HTTPError as e:
            raise TransportError(
                message=f"{method} {path} failed: {e}",
                cause=e,
            ) from e

    async def request(self, method: str, path: str, data: Any = None) -> Any:
        body = json.dumps(data).encode() if data is not None else b""
        signed = build_signed_request(self._credentials, method, path, body)
        logger.debug("Sending signed request", extra={"method": method, "path": path})
        return await self._send(
            self._config.api_url,
            method,
            path,
            content=body,
            headers=signed.headers(self._credentials.public_key, len(body)),
        )

    async def submit(
        self,
        path: str,
        fields: dict[str, str],
        files: dict[str, Any] | None = None,
    ) -> Any:
        logger.debug("Submitting form", extra={"path": path})
        return await self._send(
            self._config.upload_url, "POST", path, data=fields, files=files
        )

    async def fetch(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._send(self._config.upload_url, "GET", path, params=params)
