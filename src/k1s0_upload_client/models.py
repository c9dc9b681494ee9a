"""upload_client データモデル"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar
from urllib.parse import parse_qsl, urlsplit

from .exceptions import ProtocolError, UploadClientError, UploadClientErrorCodes

T = TypeVar("T")


@dataclass(frozen=True)
class Credentials:
    """API キーペア。SDK インスタンスの生存期間中は不変。"""

    public_key: str
    private_key: str

    def __post_init__(self) -> None:
        if not self.public_key or not self.private_key:
            raise ValueError("public_key and private_key must not be empty")

    def __repr__(self) -> str:
        return f"Credentials(public_key={self.public_key!r}, private_key='***')"


def parse_next_locator(locator: str) -> dict[str, str]:
    """"next" URL のクエリパラメータを辞書に変換する。

    同じキーが複数ある場合は最後の値を採用する。
    """
    return dict(parse_qsl(urlsplit(locator).query, keep_blank_values=True))


@dataclass
class Page(Generic[T]):
    """1 ページ分の取得結果。"""

    results: list[T]
    next: dict[str, str] | None = None

    @property
    def has_more(self) -> bool:
        return self.next is not None

    @classmethod
    def from_response(cls, data: Any) -> Page[T]:
        """一覧 API のレスポンス辞書から Page を生成する。

        Raises:
            ProtocolError: results が存在しない、またはリストでない場合
        """
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise ProtocolError(
                code=UploadClientErrorCodes.MALFORMED_RESPONSE,
                message="list response has no results collection",
                body=data,
            )
        locator = data.get("next")
        next_options = parse_next_locator(locator) if isinstance(locator, str) and locator else None
        return cls(results=list(data["results"]), next=next_options)


def store_flag(store: bool | None) -> str:
    """store オプションをフォーム値に変換する。"""
    if store is True:
        return "1"
    if store is False:
        return "0"
    return "auto"


class ImportStatus(StrEnum):
    """URL インポートタスクの状態。"""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ImportStatus.PENDING


@dataclass
class ImportTaskState:
    """URL インポートタスクの状態。終端状態からは遷移しない。"""

    status: ImportStatus = ImportStatus.PENDING
    token: str | None = None
    is_ready: bool | None = None
    error: Exception | None = None
    result: dict[str, Any] = field(default_factory=dict)

    def transition(
        self,
        status: ImportStatus,
        *,
        error: Exception | None = None,
        result: dict[str, Any] | None = None,
    ) -> None:
        """状態を前進させる。

        Raises:
            UploadClientError: 終端状態から遷移しようとした場合
        """
        if self.status.is_terminal:
            raise UploadClientError(
                code=UploadClientErrorCodes.INVALID_STATE,
                message=f"import task already {self.status}, cannot move to {status}",
            )
        self.status = status
        if error is not None:
            self.error = error
        if result is not None:
            self.result = result
            self.is_ready = bool(result.get("is_ready", False))
