"""upload_client ライブラリの例外型定義"""

from __future__ import annotations

from typing import Any


class UploadClientErrorCodes:
    """UploadClientError のエラーコード定数。"""

    INVALID_SIGNING_INPUT: str = "INVALID_SIGNING_INPUT"
    HTTP_ERROR: str = "HTTP_ERROR"
    INVALID_RESPONSE: str = "INVALID_RESPONSE"
    UNEXPECTED_STATUS: str = "UNEXPECTED_STATUS"
    MALFORMED_RESPONSE: str = "MALFORMED_RESPONSE"
    IMPORT_FAILED: str = "IMPORT_FAILED"
    IMPORT_CANCELLED: str = "IMPORT_CANCELLED"
    CURSOR_BUSY: str = "CURSOR_BUSY"
    INVALID_STATE: str = "INVALID_STATE"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"


class UploadClientError(Exception):
    """upload_client ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class SigningError(UploadClientError):
    """署名入力が不正な場合のエラー（プログラミングエラー、リトライしない）。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(UploadClientErrorCodes.INVALID_SIGNING_INPUT, message, cause)


class TransportError(UploadClientError):
    """ネットワーク / HTTP 層の失敗。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(UploadClientErrorCodes.HTTP_ERROR, message, cause)


class ProtocolError(UploadClientError):
    """リモートサービスの応答を解釈できない場合のエラー。

    UNEXPECTED_STATUS の場合、パース済みのレスポンスボディを body に保持する。
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(code, message, cause)
        self.status_code = status_code
        self.body = body


class ApplicationError(UploadClientError):
    """正常なレスポンスに埋め込まれた業務エラー（例: インポートステータス error）。"""

    def __init__(
        self,
        message: str,
        detail: dict[str, Any] | None = None,
        code: str = UploadClientErrorCodes.IMPORT_FAILED,
    ) -> None:
        super().__init__(code, message)
        self.detail = detail or {}
