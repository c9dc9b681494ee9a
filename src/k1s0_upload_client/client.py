"""UploadClient 抽象基底クラス"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, BinaryIO

from .import_task import UrlImportTask
from .pagination import DoneCallback, PageCallback, PageCursor


class UploadClient(ABC):
    """アップロードサービスクライアント抽象基底クラス。"""

    @abstractmethod
    async def upload(
        self,
        file: BinaryIO | bytes,
        *,
        filename: str | None = None,
        content_type: str | None = None,
        store: bool | None = None,
    ) -> dict[str, Any]:
        """ファイルを直接アップロードする。"""
        ...

    @abstractmethod
    def import_from_url(
        self,
        source_url: str,
        *,
        store: bool | None = None,
        wait_until_ready: bool = False,
    ) -> UrlImportTask:
        """URL インポートを開始し、キャンセル可能なタスクを返す。"""
        ...

    @abstractmethod
    async def upload_from_url(
        self,
        source_url: str,
        *,
        store: bool | None = None,
        wait_until_ready: bool = False,
    ) -> dict[str, Any]:
        """URL インポートを実行し完了まで待つ。"""
        ...

    @abstractmethod
    async def list_files(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]: ...

    @abstractmethod
    def file_cursor(self, options: Mapping[str, Any] | None = None) -> PageCursor[Any]: ...

    @abstractmethod
    def iterate_files(
        self,
        on_page: PageCallback,
        on_done: DoneCallback | None = None,
        *,
        max_items: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Task[None]: ...

    @abstractmethod
    async def store_file(self, file_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def store_file_custom(self, file_id: str, target: str) -> dict[str, Any]: ...

    @abstractmethod
    async def file_info(self, file_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def remove_file(self, file_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def remove_files(self, file_ids: list[str]) -> dict[str, Any]: ...

    @abstractmethod
    async def create_group(self, files: list[str]) -> dict[str, Any]: ...

    @abstractmethod
    async def list_groups(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]: ...

    @abstractmethod
    def group_cursor(self, options: Mapping[str, Any] | None = None) -> PageCursor[Any]: ...

    @abstractmethod
    def iterate_groups(
        self,
        on_page: PageCallback,
        on_done: DoneCallback | None = None,
        *,
        max_items: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Task[None]: ...

    @abstractmethod
    async def group_info(self, group_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def store_group(self, group_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def remove_group(self, group_id: str) -> tuple[dict[str, Any], Any]:
        """グループ内のファイルを削除し (group_info, 削除レスポンス) を返す。"""
        ...
