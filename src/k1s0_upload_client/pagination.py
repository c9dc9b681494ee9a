"""カーソルベースのページネーション"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, TypeVar

from .exceptions import UploadClientError, UploadClientErrorCodes
from .models import Page, parse_next_locator

T = TypeVar("T")

ListFn = Callable[[dict[str, Any]], Awaitable[Any]]
PageCallback = Callable[[list[Any]], Any]
DoneCallback = Callable[[BaseException | None], Any]

__all__ = [
    "BulkIterator",
    "PageCursor",
    "iterate",
    "merge_options",
    "parse_next_locator",
]

logger = logging.getLogger(__name__)


async def _call(callback: Callable[..., Any], *args: Any) -> Any:
    """コールバックを呼び出し、awaitable が返れば待機する。"""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def merge_options(current: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """current に overrides を重ねた新しい辞書を返す（overrides の値が優先）。"""
    merged = dict(current)
    merged.update(overrides)
    return merged


class PageCursor(Generic[T]):
    """ページ分割されたコレクション内の前進専用カーソル。"""

    def __init__(self, list_fn: ListFn, options: Mapping[str, Any] | None = None) -> None:
        self._list_fn = list_fn
        self.options: dict[str, Any] = dict(options or {})
        self.results: list[T] = []
        self.has_more = True
        self._advancing = False

    async def advance(self) -> bool:
        """現在のオプションでページを取得する。

        次ページがある場合は True を返す。失敗時は results を空にして
        例外をそのまま送出する。
        """
        if self._advancing:
            raise UploadClientError(
                code=UploadClientErrorCodes.CURSOR_BUSY,
                message="advance() called while another advance is in flight",
            )
        self._advancing = True
        try:
            data = await self._list_fn(dict(self.options))
            page: Page[T] = Page.from_response(data)
        except Exception:
            self.results = []
            self.has_more = False
            raise
        finally:
            self._advancing = False

        self.results = page.results
        if page.next is None:
            self.has_more = False
        else:
            self.options = merge_options(self.options, page.next)
            self.has_more = True
        logger.debug(
            "Fetched page",
            extra={"count": len(page.results), "has_more": self.has_more},
        )
        return self.has_more


class BulkIterator:
    """PageCursor をページ単位で最後まで（または max_items まで）進める。

    max_items はページ間でのみ判定するため、最後のページで超過しうる。
    """

    def __init__(
        self,
        cursor: PageCursor[Any],
        on_page: PageCallback,
        max_items: int | None = None,
    ) -> None:
        if max_items is not None and max_items < 0:
            raise ValueError(f"max_items must be non-negative, got {max_items}")
        self._cursor = cursor
        self._on_page = on_page
        self._max_items = max_items
        self.count = 0

    async def run(self) -> None:
        """ページが尽きるか、on_page が False を返すか、max_items に達するまで取得する。"""
        while self._max_items is None or self.count < self._max_items:
            has_more = await self._cursor.advance()
            items = self._cursor.results
            self.count += len(items)
            keep_going = await _call(self._on_page, items)
            if keep_going is False or not has_more:
                return

    async def run_with_callback(self, on_done: DoneCallback) -> None:
        """run() を実行し、終了理由を on_done にちょうど 1 回渡す。

        タスクがキャンセルされた場合は CancelledError を渡してから再送出する。
        """
        try:
            await self.run()
        except asyncio.CancelledError as e:
            await _call(on_done, e)
            raise
        except Exception as e:
            await _call(on_done, e)
            return
        await _call(on_done, None)


def iterate(
    list_fn: ListFn,
    on_page: PageCallback,
    on_done: DoneCallback | None = None,
    *,
    max_items: int | None = None,
    options: Mapping[str, Any] | None = None,
) -> asyncio.Task[None]:
    """BulkIterator をバックグラウンドタスクとして開始する。

    on_done（同期 / 非同期どちらも可）には終了時の例外または None が
    ちょうど 1 回渡される。on_done を省略した場合、例外は返したタスクに残る。
    """
    iterator = BulkIterator(PageCursor(list_fn, options), on_page, max_items=max_items)
    if on_done is None:
        return asyncio.create_task(iterator.run())
    return asyncio.create_task(iterator.run_with_callback(on_done))
