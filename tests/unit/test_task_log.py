"""Tests for the task log stores.

``AzureSqlTaskLog`` is exercised through an injected fake connection, so
the SQL text and bound parameters are checked without ODBC or Azure.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from entities.shared.clients import AzureSqlTaskLog, InMemoryTaskLog
from entities.workflow import create_task_log
from models import TaskLogRecord, TaskStatus

_RECORD = TaskLogRecord(
    session_id="s1",
    user_id="u1",
    task_name="general_query",
    input_payload={"queryText": "hi"},
    client_context={"clientType": "web"},
)


class _FakeCursor:
    def __init__(self, rowcount: int = 1) -> None:
        self.execute = AsyncMock()
        self.rowcount = rowcount

    async def __aenter__(self) -> "_FakeCursor":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None


def _fake_connection(rowcount: int = 1) -> tuple[MagicMock, _FakeCursor]:
    cursor = _FakeCursor(rowcount)
    connection = MagicMock()
    connection.cursor.return_value = cursor
    connection.commit = AsyncMock()
    connection.close = AsyncMock()
    return connection, cursor


# ── InMemoryTaskLog ──────────────────────────────────────────────────────


class TestInMemoryTaskLog:
    """Process-local task log."""

    async def test_start_then_complete(self) -> None:
        log = InMemoryTaskLog()

        log_id = await log.start(_RECORD)
        assert log.records[log_id].status == TaskStatus.PROCESSING

        await log.finish(log_id, TaskStatus.COMPLETED, response_data={"agent": "general_bot"})

        record = log.records[log_id]
        assert record.status == TaskStatus.COMPLETED
        assert record.response_data == {"agent": "general_bot"}
        assert record.error_details is None

    async def test_error_transition(self) -> None:
        log = InMemoryTaskLog()
        log_id = await log.start(_RECORD)

        await log.finish(log_id, TaskStatus.ERROR, error_details="boom")

        assert log.records[log_id].status == TaskStatus.ERROR
        assert log.records[log_id].error_details == "boom"

    async def test_unknown_id_is_ignored(self) -> None:
        log = InMemoryTaskLog()
        await log.finish("missing", TaskStatus.COMPLETED)
        assert log.records == {}

    async def test_find_by_session_and_task(self) -> None:
        log = InMemoryTaskLog()
        await log.start(_RECORD)
        await log.start(_RECORD.model_copy(update={"task_name": "bamabot_chat_interaction"}))
        await log.start(_RECORD.model_copy(update={"session_id": "s2"}))

        assert len(log.find("s1")) == 2
        assert [r.task_name for r in log.find("s1", "general_query")] == ["general_query"]


# ── AzureSqlTaskLog ──────────────────────────────────────────────────────


class TestAzureSqlTaskLog:
    """Parameterised SQL against an injected connection."""

    async def test_start_inserts_processing_row(self) -> None:
        connection, cursor = _fake_connection()
        log = AzureSqlTaskLog("srv", "db", connect=AsyncMock(return_value=connection))

        log_id = await log.start(_RECORD)

        query, params = cursor.execute.await_args.args
        assert query.startswith("INSERT INTO orchestrator_task_logs")
        assert params[0] == log_id
        assert params[1:4] == ["s1", "u1", "general_query"]
        assert json.loads(params[4]) == {"queryText": "hi"}
        assert json.loads(params[5]) == {"clientType": "web"}
        assert params[6] == "processing"
        connection.commit.assert_awaited_once()
        connection.close.assert_awaited_once()

    async def test_finish_updates_by_id(self) -> None:
        connection, cursor = _fake_connection()
        log = AzureSqlTaskLog("srv", "db", table="dbo.task_logs", connect=AsyncMock(return_value=connection))

        await log.finish("log-1", TaskStatus.COMPLETED, response_data={"ok": True})

        query, params = cursor.execute.await_args.args
        assert query.startswith("UPDATE dbo.task_logs SET status = ?")
        assert params == ["completed", '{"ok": true}', None, "log-1"]

    async def test_finish_error_has_no_response_data(self) -> None:
        connection, cursor = _fake_connection(rowcount=0)
        log = AzureSqlTaskLog("srv", "db", connect=AsyncMock(return_value=connection))

        await log.finish("log-1", TaskStatus.ERROR, error_details="boom")

        _, params = cursor.execute.await_args.args
        assert params == ["error", None, "boom", "log-1"]

    async def test_connection_closed_on_failure(self) -> None:
        connection, cursor = _fake_connection()
        cursor.execute.side_effect = RuntimeError("deadlock")
        log = AzureSqlTaskLog("srv", "db", connect=AsyncMock(return_value=connection))

        with pytest.raises(RuntimeError, match="deadlock"):
            await log.start(_RECORD)

        connection.close.assert_awaited_once()
        connection.commit.assert_not_awaited()

    def test_rejects_unsafe_table_name(self) -> None:
        with pytest.raises(ValueError, match="Invalid task log table name"):
            AzureSqlTaskLog("srv", "db", table="logs; DROP TABLE users")

    async def test_missing_server(self) -> None:
        log = AzureSqlTaskLog("", "db")
        with pytest.raises(ValueError, match="AZURE_SQL_SERVER"):
            await log.start(_RECORD)


# ── Factory ──────────────────────────────────────────────────────────────


def test_factory_uses_memory_without_server(test_settings) -> None:
    assert isinstance(create_task_log(test_settings), InMemoryTaskLog)


def test_factory_uses_sql_with_server(test_settings) -> None:
    settings = test_settings.model_copy(update={"azure_sql_server": "srv.database.windows.net"})
    log = create_task_log(settings)
    assert isinstance(log, AzureSqlTaskLog)
    assert log.table == "orchestrator_task_logs"
