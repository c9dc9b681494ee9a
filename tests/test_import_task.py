"""UrlImportTask のユニットテスト"""

import asyncio
import gc
from typing import Any

import pytest

from k1s0_upload_client import (
    ApplicationError,
    CancellationToken,
    ImportStatus,
    ProtocolError,
    Transport,
    TransportError,
    UploadClientError,
    UrlImportTask,
)
from k1s0_upload_client.exceptions import UploadClientErrorCodes
from k1s0_upload_client.import_task import normalize_source_url


class FakeTransport(Transport):
    """submit と fetch の応答を順に返すテスト用トランスポート。"""

    def __init__(self, submit_response: Any, *statuses: Any) -> None:
        self.submit_response = submit_response
        self.statuses = list(statuses)
        self.submitted: list[tuple[str, dict]] = []
        self.fetched: list[tuple[str, dict]] = []

    async def request(self, method: str, path: str, data: Any = None) -> Any:
        raise NotImplementedError

    async def submit(self, path, fields, files=None):
        self.submitted.append((path, fields))
        if isinstance(self.submit_response, Exception):
            raise self.submit_response
        return self.submit_response

    async def fetch(self, path, params=None):
        self.fetched.append((path, params))
        status = self.statuses.pop(0) if self.statuses else {"status": "progress"}
        if isinstance(status, Exception):
            raise status
        return status


def make_task(transport: FakeTransport, **kwargs: Any) -> UrlImportTask:
    kwargs.setdefault("poll_interval", 0)
    return UrlImportTask(transport, "pub", "https://example.com/cat.jpg", **kwargs)


async def test_submit_fields() -> None:
    """送信フォームに pub_key / source_url / store が含まれること。"""
    transport = FakeTransport({"token": "abc"}, {"status": "success"})
    await make_task(transport, store=True).wait()
    assert transport.submitted == [
        (
            "/from_url/",
            {"pub_key": "pub", "source_url": "https://example.com/cat.jpg", "store": "1"},
        )
    ]
    path, params = transport.fetched[0]
    assert path == "/from_url/status/"
    assert params["token"] == "abc"
    assert isinstance(params["_"], int)


async def test_success_without_waiting_for_ready() -> None:
    transport = FakeTransport(
        {"token": "abc"},
        {"status": "pending"},
        {"status": "success", "is_ready": False, "uuid": "u1"},
    )
    task = make_task(transport)
    result = await task.wait()
    assert result["uuid"] == "u1"
    assert task.state.status == ImportStatus.SUCCESS
    assert task.state.token == "abc"
    assert task.polls == 2


async def test_wait_until_ready_keeps_polling() -> None:
    """is_ready が false の success は終端扱いしないこと。"""
    ready = {"status": "success", "is_ready": True, "uuid": "u1"}
    transport = FakeTransport(
        {"token": "abc"},
        {"status": "pending"},
        {"status": "success", "is_ready": False},
        ready,
    )
    task = make_task(transport, wait_until_ready=True)
    result = await task.wait()
    assert result == ready
    assert len(transport.fetched) == 3
    assert task.state.is_ready is True
    assert task.done


async def test_status_error_terminates_with_application_error() -> None:
    payload = {"status": "error", "error": {"message": "bad"}}
    transport = FakeTransport({"token": "abc"}, payload, {"status": "success"})
    task = make_task(transport)
    with pytest.raises(ApplicationError) as exc_info:
        await task.wait()
    assert str(exc_info.value) == "IMPORT_FAILED: bad"
    assert exc_info.value.detail == payload
    assert len(transport.fetched) == 1
    assert task.state.status == ImportStatus.ERROR
    assert task.state.error is exc_info.value


async def test_status_error_with_string_message() -> None:
    transport = FakeTransport({"token": "abc"}, {"status": "error", "error": "host unreachable"})
    with pytest.raises(ApplicationError, match="host unreachable"):
        await make_task(transport).wait()


async def test_submit_failure_terminates_immediately() -> None:
    error = TransportError("connection refused")
    transport = FakeTransport(error)
    task = make_task(transport)
    with pytest.raises(TransportError) as exc_info:
        await task.wait()
    assert exc_info.value is error
    assert transport.fetched == []
    assert task.state.status == ImportStatus.ERROR


async def test_submit_without_token_is_malformed() -> None:
    transport = FakeTransport({"detail": "nope"})
    with pytest.raises(ProtocolError) as exc_info:
        await make_task(transport).wait()
    assert exc_info.value.code == UploadClientErrorCodes.MALFORMED_RESPONSE


async def test_poll_transport_failure_terminates() -> None:
    error = TransportError("timeout")
    transport = FakeTransport({"token": "abc"}, {"status": "pending"}, error, {"status": "success"})
    with pytest.raises(TransportError):
        await make_task(transport).wait()
    assert len(transport.fetched) == 2


async def test_cancel_between_polls_stops_transport_calls() -> None:
    transport = FakeTransport({"token": "abc"})
    task = make_task(transport, poll_interval=0.01).start()
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(UploadClientError) as exc_info:
        await task.wait()
    assert exc_info.value.code == UploadClientErrorCodes.IMPORT_CANCELLED
    calls = len(transport.fetched)
    await asyncio.sleep(0.05)
    assert len(transport.fetched) == calls
    assert task.state.status == ImportStatus.CANCELLED


async def test_cancel_releases_pending_timer() -> None:
    """長い待機中でもキャンセルで即座に終了すること。"""
    transport = FakeTransport({"token": "abc"})
    task = make_task(transport, poll_interval=60).start()
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(UploadClientError):
        await asyncio.wait_for(task.wait(), timeout=1)
    assert transport.fetched == []


async def test_cancel_before_start_discards_submit_result() -> None:
    transport = FakeTransport({"token": "abc"}, {"status": "success"})
    task = make_task(transport)
    task.cancel()
    with pytest.raises(UploadClientError) as exc_info:
        await task.wait()
    assert exc_info.value.code == UploadClientErrorCodes.IMPORT_CANCELLED
    assert len(transport.submitted) == 1
    assert transport.fetched == []


async def test_start_is_idempotent() -> None:
    transport = FakeTransport({"token": "abc"}, {"status": "success"})
    task = make_task(transport)
    assert task.start() is task.start()
    await task.wait()
    assert len(transport.submitted) == 1


def test_normalize_source_url() -> None:
    assert normalize_source_url("//example.com/a.png") == "http://example.com/a.png"
    assert normalize_source_url("https://example.com/a.png") == "https://example.com/a.png"


async def test_cancellation_token_sleep() -> None:
    token = CancellationToken()
    assert await token.sleep(0) is True
    token.cancel()
    assert token.cancelled
    assert await token.sleep(10) is False


async def test_cancelled_task_without_wait_reports_nothing() -> None:
    """wait() されずに破棄されたキャンセル済みタスクが未取得例外を報告しないこと。"""
    loop = asyncio.get_running_loop()
    reported: list[str] = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context["message"]))
    try:
        transport = FakeTransport({"token": "abc"})
        task = make_task(transport, poll_interval=60).start()
        await asyncio.sleep(0)
        task.cancel()
        for _ in range(5):
            await asyncio.sleep(0)
        assert task.state.status == ImportStatus.CANCELLED
        del task
        gc.collect()
        await asyncio.sleep(0)
    finally:
        loop.set_exception_handler(None)
    assert reported == []


async def test_uncancelled_failure_still_raises_from_wait() -> None:
    """キャンセルしていない失敗は wait() で送出されること。"""
    transport = FakeTransport(TransportError("down"))
    task = make_task(transport).start()
    with pytest.raises(TransportError):
        await task.wait()
