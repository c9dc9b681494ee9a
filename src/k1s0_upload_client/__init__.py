"""k1s0 upload client library."""

from .client import UploadClient
from .config import LogSection, UploadClientConfig, load_config
from .exceptions import (
    ApplicationError,
    ProtocolError,
    SigningError,
    TransportError,
    UploadClientError,
    UploadClientErrorCodes,
)
from .http_client import HttpUploadClient
from .import_task import CancellationToken, UrlImportTask
from .logger import configure_logging, get_logger
from .models import Credentials, ImportStatus, ImportTaskState, Page
from .pagination import BulkIterator, PageCursor, iterate, merge_options, parse_next_locator
from .signature import SignedRequest, build_signed_request, sign
from .transport import HttpTransport, Transport

__all__ = [
    "ApplicationError",
    "BulkIterator",
    "CancellationToken",
    "Credentials",
    "HttpTransport",
    "HttpUploadClient",
    "ImportStatus",
    "ImportTaskState",
    "LogSection",
    "Page",
    "PageCursor",
    "ProtocolError",
    "SignedRequest",
    "SigningError",
    "Transport",
    "TransportError",
    "UploadClient",
    "UploadClientConfig",
    "UploadClientError",
    "UploadClientErrorCodes",
    "UrlImportTask",
    "build_signed_request",
    "iterate",
    "load_config",
    "merge_options",
    "configure_logging",
    "get_logger",
    "parse_next_locator",
    "sign",
]
