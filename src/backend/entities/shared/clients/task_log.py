"""
Durable orchestrator task log.

``AzureSqlTaskLog`` writes one row per orchestrator invocation to Azure SQL
Database using Azure AD authentication: an INSERT with status
``processing`` when the request starts and exactly one UPDATE to
``completed`` or ``error`` when it ends.

``InMemoryTaskLog`` keeps the same rows in a dict for local development
(no ``AZURE_SQL_SERVER``) and tests.
"""

import json
import logging
import re
import struct
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from azure.identity import DefaultAzureCredential

from models import TaskLogRecord, TaskStatus

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

# SQL_COPT_SS_ACCESS_TOKEN
_SQL_ACCESS_TOKEN_ATTR = 1256


def get_azure_sql_token(client_id: str | None = None) -> bytes:
    """
    Get an Azure AD token for SQL Database authentication.

    Args:
        client_id: User-assigned managed identity client ID, or None for
            the default credential chain (CLI/VS Code locally).

    Returns:
        Token bytes formatted for pyodbc
    """
    if client_id:
        credential = DefaultAzureCredential(managed_identity_client_id=client_id)
    else:
        credential = DefaultAzureCredential()

    token = credential.get_token("https://database.windows.net/.default")
    logger.info("SQL token acquired, expires_on=%s", token.expires_on)

    # Format token for SQL Server ODBC driver
    token_bytes = token.token.encode("utf-16-le")
    return struct.pack(f"<I{len(token_bytes)}s", len(token_bytes), token_bytes)


def _to_json(value: Any) -> str | None:  # noqa: ANN401
    if value is None:
        return None
    return json.dumps(value, default=str)


class AzureSqlTaskLog:
    """
    ``TaskLogStore`` backed by an Azure SQL table.

    Usage:
        log = AzureSqlTaskLog(server="myserver.database.windows.net", database="BamaBot")
        log_id = await log.start(record)
        await log.finish(log_id, TaskStatus.COMPLETED, response_data={...})
    """

    def __init__(
        self,
        server: str,
        database: str,
        table: str = "orchestrator_task_logs",
        client_id: str | None = None,
        connect: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        """
        Initialize the task log.

        Args:
            server: Azure SQL server hostname.
            database: Database name.
            table: Task log table name (optionally schema-qualified).
            client_id: Managed identity client ID for token acquisition.
            connect: Optional coroutine factory returning an open connection;
                defaults to an ``aioodbc`` connection with an AAD token.
        """
        if not _TABLE_NAME_RE.match(table):
            raise ValueError(f"Invalid task log table name: {table}")
        self.server = server
        self.database = database
        self.table = table
        self.client_id = client_id
        self._connect_factory = connect

    @property
    def create_table_sql(self) -> str:
        """DDL creating the task log table if it does not exist."""
        return (
            f"IF OBJECT_ID(N'{self.table}', N'U') IS NULL "
            f"CREATE TABLE {self.table} ("
            "id NVARCHAR(64) NOT NULL PRIMARY KEY, "
            "session_id NVARCHAR(255) NOT NULL, "
            "user_id NVARCHAR(255) NULL, "
            "task_name NVARCHAR(255) NOT NULL, "
            "input_payload NVARCHAR(MAX) NULL, "
            "client_context NVARCHAR(MAX) NULL, "
            "status NVARCHAR(32) NOT NULL, "
            "response_data NVARCHAR(MAX) NULL, "
            "error_details NVARCHAR(MAX) NULL, "
            "created_at DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME(), "
            "updated_at DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME())"
        )

    async def _connect(self) -> Any:  # noqa: ANN401
        if self._connect_factory is not None:
            return await self._connect_factory()

        if not self.server:
            raise ValueError("AZURE_SQL_SERVER environment variable is required")

        try:
            import aioodbc
        except ImportError as e:
            raise RuntimeError(
                "aioodbc package is not installed. Install with: pip install aioodbc"
            ) from e

        connection_string = (
            f"DRIVER={{ODBC Driver 18 for SQL Server}};"
            f"SERVER={self.server};"
            f"DATABASE={self.database};"
        )
        return await aioodbc.connect(
            dsn=connection_string,
            attrs_before={_SQL_ACCESS_TOKEN_ATTR: get_azure_sql_token(self.client_id)},
        )

    async def _execute(self, query: str, params: list[Any]) -> int:
        connection = await self._connect()
        try:
            async with connection.cursor() as cursor:
                await cursor.execute(query, params)
                rowcount = cursor.rowcount
            await connection.commit()
            return rowcount
        finally:
            await connection.close()

    async def ensure_table(self) -> None:
        """Create the task log table when missing."""
        await self._execute(self.create_table_sql, [])
        logger.info("Task log table %s is ready", self.table)

    async def start(self, record: TaskLogRecord) -> str:
        """Insert a ``processing`` row and return its ID."""
        log_id = str(uuid.uuid4())
        query = (
            f"INSERT INTO {self.table} "
            "(id, session_id, user_id, task_name, input_payload, client_context, status) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)"
        )
        await self._execute(
            query,
            [
                log_id,
                record.session_id,
                record.user_id,
                record.task_name,
                _to_json(record.input_payload),
                _to_json(record.client_context),
                TaskStatus.PROCESSING.value,
            ],
        )
        logger.info(
            "Task log %s: %s for session %s is processing", log_id, record.task_name, record.session_id
        )
        return log_id

    async def finish(
        self,
        log_id: str,
        status: TaskStatus,
        response_data: Any = None,  # noqa: ANN401
        error_details: str | None = None,
    ) -> None:
        """Move a row to its terminal status."""
        query = (
            f"UPDATE {self.table} "
            "SET status = ?, response_data = ?, error_details = ?, updated_at = SYSUTCDATETIME() "
            "WHERE id = ?"
        )
        updated = await self._execute(
            query, [status.value, _to_json(response_data), error_details, log_id]
        )
        if updated == 0:
            logger.warning("Task log %s not found when setting status %s", log_id, status.value)
        else:
            logger.info("Task log %s: %s", log_id, status.value)


class InMemoryTaskLog:
    """``TaskLogStore`` holding rows in process memory."""

    def __init__(self) -> None:
        self.records: dict[str, TaskLogRecord] = {}
        self.updated_at: dict[str, datetime] = {}
        self._lock = Lock()

    async def start(self, record: TaskLogRecord) -> str:
        """Store a copy of *record* with status ``processing``."""
        log_id = str(uuid.uuid4())
        with self._lock:
            self.records[log_id] = record.model_copy(update={"status": TaskStatus.PROCESSING})
            self.updated_at[log_id] = datetime.now(timezone.utc)
        logger.info("Task log %s: %s is processing", log_id, record.task_name)
        return log_id

    async def finish(
        self,
        log_id: str,
        status: TaskStatus,
        response_data: Any = None,  # noqa: ANN401
        error_details: str | None = None,
    ) -> None:
        """Update the stored row's status, result and error."""
        with self._lock:
            record = self.records.get(log_id)
            if record is None:
                logger.warning("Task log %s not found when setting status %s", log_id, status.value)
                return
            self.records[log_id] = record.model_copy(
                update={
                    "status": status,
                    "response_data": response_data,
                    "error_details": error_details,
                }
            )
            self.updated_at[log_id] = datetime.now(timezone.utc)
        logger.info("Task log %s: %s", log_id, status.value)

    def find(self, session_id: str, task_name: str | None = None) -> list[TaskLogRecord]:
        """Rows for a session, optionally filtered by task name, oldest first."""
        with self._lock:
            return [
                r
                for r in self.records.values()
                if r.session_id == session_id and (task_name is None or r.task_name == task_name)
            ]
