"""URL からのインポートを送信してステータスをポーリングする UrlImportTask"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from .exceptions import (
    ApplicationError,
    ProtocolError,
    UploadClientError,
    UploadClientErrorCodes,
)
from .models import ImportStatus, ImportTaskState, store_flag
from .transport import Transport

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/from_url/"
STATUS_PATH = "/from_url/status/"
DEFAULT_POLL_INTERVAL = 0.1


class CancellationToken:
    """協調的キャンセル用トークン。待機中のタイマーを即座に解放する。"""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """seconds 秒待機する。キャンセルされた場合は False を返す。"""
        if self.cancelled:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False


def normalize_source_url(source_url: str) -> str:
    """スキーム省略 URL（//host/...）に http: を補う。"""
    if source_url.startswith("//"):
        return "http:" + source_url
    return source_url


def _error_message(payload: dict[str, Any]) -> str:
    error = payload.get("error")
    if isinstance(error, dict):
        return str(error.get("message", error))
    if error:
        return str(error)
    return "import failed"


class UrlImportTask:
    """URL インポートのステートマシン。

    送信で token を得た後、poll_interval ごとにステータスを問い合わせる。
    "not yet" 系のステータスに対するリトライ回数に上限はなく、止める手段は
    cancel() のみ。
    """

    def __init__(
        self,
        transport: Transport,
        public_key: str,
        source_url: str,
        *,
        store: bool | None = None,
        wait_until_ready: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._transport = transport
        self._public_key = public_key
        self.source_url = normalize_source_url(source_url)
        self._store = store
        self._wait_until_ready = wait_until_ready
        self._poll_interval = poll_interval
        self._cancel_token = CancellationToken()
        self._task: asyncio.Task[dict[str, Any]] | None = None
        self.state = ImportTaskState()
        self.polls = 0

    @property
    def done(self) -> bool:
        return self.state.status.is_terminal

    def _ensure_started(self) -> asyncio.Task[dict[str, Any]]:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            self._task.add_done_callback(self._retrieve_cancelled)
        return self._task

    def _retrieve_cancelled(self, task: asyncio.Task[dict[str, Any]]) -> None:
        # cancel() 後の例外は取得済みとして扱う
        if self._cancel_token.cancelled and not task.cancelled():
            task.exception()

    def start(self) -> UrlImportTask:
        """バックグラウンドでタスクを開始する（多重起動しない）。"""
        self._ensure_started()
        return self

    async def wait(self) -> dict[str, Any]:
        """完了を待ち、成功時のステータスペイロードを返す。

        Raises:
            UploadClientError: 送信 / ポーリングの失敗、業務エラー、キャンセル
        """
        return await self._ensure_started()

    def cancel(self) -> None:
        """以降のポーリングを止める。実行中のリクエストは完了させ結果を捨てる。"""
        self._cancel_token.cancel()

    def _cancelled(self) -> UploadClientError:
        error = UploadClientError(
            code=UploadClientErrorCodes.IMPORT_CANCELLED,
            message=f"import of {self.source_url} was cancelled",
        )
        self.state.transition(ImportStatus.CANCELLED, error=error)
        logger.debug("URL import cancelled", extra={"token": self.state.token})
        return error

    async def _run(self) -> dict[str, Any]:
        try:
            return await self._submit_and_poll()
        except Exception as e:
            if not self.state.status.is_terminal:
                self.state.transition(ImportStatus.ERROR, error=e)
            raise

    async def _submit_and_poll(self) -> dict[str, Any]:
        response = await self._transport.submit(
            SUBMIT_PATH,
            {
                "pub_key": self._public_key,
                "source_url": self.source_url,
                "store": store_flag(self._store),
            },
        )
        if self._cancel_token.cancelled:
            raise self._cancelled()
        token = response.get("token") if isinstance(response, dict) else None
        if not token:
            raise ProtocolError(
                code=UploadClientErrorCodes.MALFORMED_RESPONSE,
                message="from_url response has no token",
                body=response,
            )
        self.state.token = token
        logger.debug("URL import submitted", extra={"token": token})

        while True:
            if not await self._cancel_token.sleep(self._poll_interval):
                raise self._cancelled()
            payload = await self._transport.fetch(
                STATUS_PATH,
                {"token": token, "_": int(time.time() * 1000)},
            )
            self.polls += 1
            if self._cancel_token.cancelled:
                raise self._cancelled()
            if not isinstance(payload, dict):
                raise ProtocolError(
                    code=UploadClientErrorCodes.MALFORMED_RESPONSE,
                    message="status response is not an object",
                    body=payload,
                )

            status = payload.get("status")
            logger.debug(
                "URL import status",
                extra={"token": token, "status": status, "is_ready": payload.get("is_ready")},
            )
            if status == ImportStatus.ERROR:
                error = ApplicationError(message=_error_message(payload), detail=payload)
                self.state.transition(ImportStatus.ERROR, error=error, result=payload)
                raise error
            if status == ImportStatus.SUCCESS:
                self.state.is_ready = bool(payload.get("is_ready", False))
                if not self._wait_until_ready or self.state.is_ready:
                    self.state.transition(ImportStatus.SUCCESS, result=payload)
                    return payload
