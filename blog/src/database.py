"""
Data accessor for the blog database.

Wraps an asyncpg connection pool behind a single "run SQL, return rows"
operation. Every statement acquires its own connection from the pool and
hands it back as soon as the statement completes. Database errors are
logged and propagated unchanged.
"""

import re
import time
from typing import Any, Dict, List, Optional, Sequence, Union

import asyncpg
import structlog

from blog.src.models.blog import WriteOutcome, parse_command_tag
from shared.metrics import DatabaseMetrics

logger = structlog.get_logger(__name__)

Row = Dict[str, Any]

_ROW_RETURNING = re.compile(r"^\s*(SELECT|WITH|VALUES|SHOW|TABLE)\b", re.IGNORECASE)
_RETURNING_CLAUSE = re.compile(r"\bRETURNING\b", re.IGNORECASE)
_LITERALS_AND_COMMENTS = re.compile(
    r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|--[^\n]*|/\*.*?\*/",
    re.DOTALL
)


def returns_rows(sql: str) -> bool:
    """Whether a statement produces a row set rather than a command tag.

    Keywords inside string literals, quoted identifiers and comments are ignored.
    """
    code = _LITERALS_AND_COMMENTS.sub(" ", sql)
    return bool(_ROW_RETURNING.match(code) or _RETURNING_CLAUSE.search(code))


class Database:
    """Runs parameterized SQL against an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool, metrics: Optional[DatabaseMetrics] = None):
        """
        Initialize the data accessor.

        Args:
            pool: asyncpg connection pool
            metrics: Optional Prometheus metrics to record statement timings
        """
        self.pool = pool
        self.metrics = metrics

    async def get_results(
        self,
        sql: str,
        values: Sequence[Any] = ()
    ) -> Union[List[Row], WriteOutcome]:
        """
        Run one statement and return what the database produced.

        Args:
            sql: SQL template using $1, $2, ... placeholders
            values: Ordered bind values

        Returns:
            Row set for statements that return rows, otherwise the write outcome
        """
        if returns_rows(sql):
            return await self.fetch_rows(sql, values)
        return await self.execute(sql, values)

    async def fetch_rows(self, sql: str, values: Sequence[Any] = ()) -> List[Row]:
        """
        Run a row-returning statement.

        Args:
            sql: SQL template
            values: Ordered bind values

        Returns:
            Rows as plain dicts, in the order the database returned them
        """
        start_time = time.perf_counter()
        try:
            async with self.pool.acquire() as conn:
                records = await conn.fetch(sql, *values)
        except Exception as e:
            self._observe("fetch", "error", start_time)
            logger.error("db_fetch_failed", error=str(e), sql=_compact(sql))
            raise

        self._observe("fetch", "ok", start_time)
        logger.debug("db_fetch_completed", rows=len(records), sql=_compact(sql))
        return [dict(record) for record in records]

    async def execute(self, sql: str, values: Sequence[Any] = ()) -> WriteOutcome:
        """
        Run a statement that does not return rows.

        Args:
            sql: SQL template
            values: Ordered bind values

        Returns:
            Parsed command tag with the affected-row count
        """
        start_time = time.perf_counter()
        try:
            async with self.pool.acquire() as conn:
                status = await conn.execute(sql, *values)
        except Exception as e:
            self._observe("execute", "error", start_time)
            logger.error("db_execute_failed", error=str(e), sql=_compact(sql))
            raise

        self._observe("execute", "ok", start_time)
        outcome = parse_command_tag(status)
        logger.debug(
            "db_execute_completed",
            command=outcome.command,
            affected_rows=outcome.affected_rows
        )
        return outcome

    async def ping(self) -> bool:
        """Check that a connection can be acquired and used."""
        async with self.pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1

    def _observe(self, kind: str, outcome: str, start_time: float) -> None:
        if self.metrics is None:
            return
        self.metrics.queries_total.labels(kind=kind, outcome=outcome).inc()
        self.metrics.query_duration.labels(kind=kind).observe(time.perf_counter() - start_time)


def _compact(sql: str) -> str:
    return " ".join(sql.split())
