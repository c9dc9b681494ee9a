"""アップロードサービス HTTP クライアント実装"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from typing import Any, BinaryIO

from .client import UploadClient
from .config import UploadClientConfig
from .exceptions import ProtocolError, UploadClientErrorCodes
from .import_task import UrlImportTask
from .logger import get_logger
from .models import store_flag
from .pagination import DoneCallback, PageCallback, PageCursor, iterate
from .transport import HttpTransport, Transport, with_query

FILES_PATH = "/files/"
GROUPS_PATH = "/groups/"
STORAGE_PATH = "/files/storage/"


class HttpUploadClient(UploadClient):
    """httpx を使ったアップロードサービスクライアント。"""

    def __init__(self, config: UploadClientConfig, transport: Transport | None = None) -> None:
        self._config = config
        self._transport = transport or HttpTransport(config)
        self._logger = get_logger(config.log, public_key=config.public_key)

    def _resolve_store(self, store: bool | None) -> bool | None:
        return self._config.store if store is None else store

    async def upload(
        self,
        file: BinaryIO | bytes,
        *,
        filename: str | None = None,
        content_type: str | None = None,
        store: bool | None = None,
    ) -> dict[str, Any]:
        fields = {
            "UPLOADCARE_PUB_KEY": self._config.public_key,
            "UPLOADCARE_STORE": store_flag(self._resolve_store(store)),
        }
        name = filename or os.path.basename(getattr(file, "name", "") or "file")
        if content_type:
            upload: tuple[Any, ...] = (name, file, content_type)
        else:
            upload = (name, file)
        result: dict[str, Any] = await self._transport.submit(
            "/base/", fields, files={"file": upload}
        )
        self._logger.info("file uploaded", filename=name, file=result.get("file"))
        return result

    def import_from_url(
        self,
        source_url: str,
        *,
        store: bool | None = None,
        wait_until_ready: bool = False,
    ) -> UrlImportTask:
        task = UrlImportTask(
            self._transport,
            self._config.public_key,
            source_url,
            store=self._resolve_store(store),
            wait_until_ready=wait_until_ready,
            poll_interval=self._config.poll_interval_seconds,
        )
        self._logger.info("url import started", source_url=task.source_url)
        return task.start()

    async def upload_from_url(
        self,
        source_url: str,
        *,
        store: bool | None = None,
        wait_until_ready: bool = False,
    ) -> dict[str, Any]:
        task = self.import_from_url(source_url, store=store, wait_until_ready=wait_until_ready)
        return await task.wait()

    async def list_files(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "GET", with_query(FILES_PATH, dict(options or {}))
        )
        return result

    def file_cursor(self, options: Mapping[str, Any] | None = None) -> PageCursor[Any]:
        return PageCursor(self.list_files, options)

    def iterate_files(
        self,
        on_page: PageCallback,
        on_done: DoneCallback | None = None,
        *,
        max_items: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Task[None]:
        return iterate(self.list_files, on_page, on_done, max_items=max_items, options=options)

    async def store_file(self, file_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "POST", f"{FILES_PATH}{file_id}/storage/"
        )
        return result

    async def store_file_custom(self, file_id: str, target: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "POST", FILES_PATH, {"source": file_id, "target": target}
        )
        return result

    async def file_info(self, file_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request("GET", f"{FILES_PATH}{file_id}/")
        return result

    async def remove_file(self, file_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "DELETE", f"{FILES_PATH}{file_id}/"
        )
        return result

    async def remove_files(self, file_ids: list[str]) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "DELETE", STORAGE_PATH, list(file_ids)
        )
        self._logger.info("files removed", count=len(file_ids))
        return result

    async def create_group(self, files: list[str]) -> dict[str, Any]:
        fields = {"pub_key": self._config.public_key}
        for i, file_id in enumerate(files):
            fields[f"files[{i}]"] = file_id
        result: dict[str, Any] = await self._transport.submit("/group/", fields)
        return result

    async def list_groups(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "GET", with_query(GROUPS_PATH, dict(options or {}))
        )
        return result

    def group_cursor(self, options: Mapping[str, Any] | None = None) -> PageCursor[Any]:
        return PageCursor(self.list_groups, options)

    def iterate_groups(
        self,
        on_page: PageCallback,
        on_done: DoneCallback | None = None,
        *,
        max_items: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Task[None]:
        return iterate(self.list_groups, on_page, on_done, max_items=max_items, options=options)

    async def group_info(self, group_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "GET", f"{GROUPS_PATH}{group_id}/"
        )
        return result

    async def store_group(self, group_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self._transport.request(
            "PUT", f"{GROUPS_PATH}{group_id}/storage/"
        )
        return result

    async def remove_group(self, group_id: str) -> tuple[dict[str, Any], Any]:
        info = await self.group_info(group_id)
        files = info.get("files") if isinstance(info, dict) else None
        if not isinstance(files, list):
            raise ProtocolError(
                code=UploadClientErrorCodes.MALFORMED_RESPONSE,
                message=f"group {group_id} info has no files list",
                body=info,
            )
        file_ids = [f["uuid"] for f in files if isinstance(f, dict) and f.get("uuid")]
        response = await self._transport.request("DELETE", STORAGE_PATH, file_ids)
        self._logger.info("group removed", group_id=group_id, count=len(file_ids))
        return info, response
