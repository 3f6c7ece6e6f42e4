"""
PostgreSQL datasource on psycopg 3.

Statements are composed with ``psycopg.sql`` so identifiers are always quoted
and values always bound as parameters. The adapter holds one autocommit
connection; opening it is retried with tenacity for transient failures.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from dbrecords.config import build_dsn, get_settings
from dbrecords.criteria import (
    Aggregate,
    And,
    Compare,
    Criteria,
    CriteriaLike,
    Equals,
    OrderLike,
    Or,
    as_criteria,
    normalize_order,
)
from dbrecords.datasource.abstract import AbstractDataSource, Row
from dbrecords.errors import DataSourceError
from dbrecords.schema import PRIMARY_KEY, Column
from dbrecords.utils.logging import get_logger

log = get_logger(__name__)

# Column type tag -> SQL type
_SQL_TYPES = {
    "text": "TEXT",
    "int": "BIGINT",
    "float": "DOUBLE PRECISION",
    "timestamp": "BIGINT",
    "boolean": "BOOLEAN",
}

# information_schema data_type -> column type tag
_TYPE_TAGS = {
    "character varying": "text",
    "character": "text",
    "text": "text",
    "smallint": "int",
    "integer": "int",
    "bigint": "int",
    "numeric": "float",
    "real": "float",
    "double precision": "float",
    "boolean": "boolean",
}


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Open an autocommit connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Parameters
    ----------
    dsn : str, optional
        Connection string; composed from settings when omitted.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    settings = get_settings()
    return psycopg.connect(
        dsn or build_dsn(settings),
        autocommit=True,
        connect_timeout=settings.db_connect_timeout,
        row_factory=dict_row,
    )


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """Set a per-session statement timeout (milliseconds) on a cursor."""
    cur.execute(sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms))))


def render_criteria(criteria: CriteriaLike) -> Tuple[sql.Composable, List[Any]]:
    """Render criteria as a WHERE clause (empty when there are none) and its parameters."""
    where = as_criteria(criteria)
    if where is None:
        return sql.SQL(""), []
    clause, params = _render(where)
    return sql.SQL(" WHERE ") + clause, params


def _render(criteria: Criteria) -> Tuple[sql.Composable, List[Any]]:
    if isinstance(criteria, Equals):
        if criteria.value is None:
            return sql.SQL("{} IS NULL").format(sql.Identifier(criteria.column)), []
        return sql.SQL("{} = %s").format(sql.Identifier(criteria.column)), [criteria.value]
    if isinstance(criteria, Compare):
        if criteria.value is None and criteria.op in ("=", "!="):
            keyword = "IS NULL" if criteria.op == "=" else "IS NOT NULL"
            return sql.SQL("{} " + keyword).format(sql.Identifier(criteria.column)), []
        return (
            sql.SQL("{} " + criteria.op + " %s").format(sql.Identifier(criteria.column)),
            [criteria.value],
        )
    if isinstance(criteria, (And, Or)):
        if not criteria.parts:
            return sql.SQL("TRUE" if isinstance(criteria, And) else "FALSE"), []
        rendered = [_render(part) for part in criteria.parts]
        joiner = sql.SQL(" AND " if isinstance(criteria, And) else " OR ")
        clause = sql.SQL("(") + joiner.join(part for part, _ in rendered) + sql.SQL(")")
        return clause, [param for _, params in rendered for param in params]
    raise DataSourceError(f"PostgreSQL datasource cannot render {type(criteria).__name__} criteria")


def render_order(order: OrderLike) -> sql.Composable:
    pairs = normalize_order(order)
    if not pairs:
        return sql.SQL("")
    parts = [
        sql.SQL("{} DESC" if descending else "{} ASC").format(sql.Identifier(column))
        for column, descending in pairs
    ]
    return sql.SQL(" ORDER BY ") + sql.SQL(", ").join(parts)


def column_definition(column: Column) -> sql.Composable:
    if column.name == PRIMARY_KEY:
        return sql.SQL("{} BIGSERIAL PRIMARY KEY").format(sql.Identifier(column.name))
    if column.type == "text" and column.length:
        sql_type = f"VARCHAR({int(column.length)})"
    else:
        sql_type = _SQL_TYPES.get(column.type, "TEXT")
    null = " NOT NULL" if column.required else ""
    return sql.SQL("{} " + sql_type + null).format(sql.Identifier(column.name))


class PostgresDataSource(AbstractDataSource):
    """
    Datasource executing against a PostgreSQL database.

    Parameters
    ----------
    dsn : str, optional
        Connection string; composed from settings when omitted.
    schema : str
        Schema holding the tables.
    """

    name = "postgres"

    def __init__(self, dsn: Optional[str] = None, schema: str = "public") -> None:
        self._dsn = dsn
        self.schema = schema
        self._conn: Optional[Connection] = None

    @property
    def connection(self) -> Connection:
        if self._conn is None or self._conn.closed:
            self._conn = get_sync_connection(self._dsn)
            with self._conn.cursor() as cur:
                apply_statement_timeout(cur, get_settings().db_statement_timeout_ms)
        return self._conn

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
        self._conn = None

    def _name(self, table: str) -> sql.Composable:
        return sql.Identifier(self.schema, table)

    def _execute(self, query: sql.Composable, params: Sequence[Any] = ()) -> psycopg.Cursor:
        cur = self.connection.cursor()
        log.debug("postgres execute: %s", query.as_string(cur), extra={"params": list(params)})
        try:
            cur.execute(query, params)
        except psycopg.Error as exc:
            cur.close()
            raise DataSourceError(f"{type(exc).__name__}: {str(exc).strip()}") from exc
        return cur

    # ------------------------------------------------------------------
    # Rows

    def insert(
        self,
        table: str,
        columns: Sequence[str],
        values: Sequence[Any],
        sequence: Optional[str] = None,
    ) -> Any:
        key = sequence or PRIMARY_KEY
        pairs = [(name, value) for name, value in zip(columns, values) if not (name == key and value in (None, ""))]
        if pairs:
            query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING {}").format(
                self._name(table),
                sql.SQL(", ").join(sql.Identifier(name) for name, _ in pairs),
                sql.SQL(", ").join(sql.Placeholder() for _ in pairs),
                sql.Identifier(key),
            )
        else:
            query = sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING {}").format(
                self._name(table), sql.Identifier(key)
            )
        with self._execute(query, [value for _, value in pairs]) as cur:
            assigned = cur.fetchone()[key]
        if any(name == key for name, _ in pairs):
            self._sync_sequence(table, key)
        return assigned

    def _sync_sequence(self, table: str, key: str) -> None:
        # Explicit ids do not advance the serial sequence.
        query = sql.SQL(
            "SELECT setval(pg_get_serial_sequence(%s, %s), GREATEST((SELECT max({}) FROM {}), 1))"
        ).format(sql.Identifier(key), self._name(table))
        self._execute(query, [f"{self.schema}.{table}", key]).close()

    def update(self, table: str, columns: Sequence[str], values: Sequence[Any], criteria: CriteriaLike) -> int:
        if not columns:
            return 0
        where, params = render_criteria(criteria)
        query = sql.SQL("UPDATE {} SET {}").format(
            self._name(table),
            sql.SQL(", ").join(sql.SQL("{} = %s").format(sql.Identifier(name)) for name in columns),
        ) + where
        with self._execute(query, [*values, *params]) as cur:
            return cur.rowcount

    def delete(self, table: str, criteria: CriteriaLike = None) -> int:
        where, params = render_criteria(criteria)
        query = sql.SQL("DELETE FROM {}").format(self._name(table)) + where
        with self._execute(query, params) as cur:
            return cur.rowcount

    def select_rows(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        criteria: CriteriaLike = None,
        order: OrderLike = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        where, params = render_criteria(criteria)
        selected = sql.SQL(", ").join(sql.Identifier(name) for name in columns) if columns else sql.SQL("*")
        query = sql.SQL("SELECT {} FROM {}").format(selected, self._name(table)) + where + render_order(order)
        if limit is not None:
            query = query + sql.SQL(" LIMIT %s")
            params = [*params, int(limit)]
        with self._execute(query, params) as cur:
            return [dict(row) for row in cur.fetchall()]

    def select_one_value(self, table: str, aggregate: Aggregate, criteria: CriteriaLike = None) -> Any:
        where, params = render_criteria(criteria)
        target = sql.Identifier(aggregate.column) if aggregate.column else sql.SQL("*")
        query = sql.SQL("SELECT " + aggregate.function + "({}) AS value FROM {}").format(
            target, self._name(table)
        ) + where
        with self._execute(query, params) as cur:
            row = cur.fetchone()
        return row["value"] if row else None

    # ------------------------------------------------------------------
    # Schema

    def introspect_columns(self, table: str) -> List[Column]:
        query = sql.SQL(
            "SELECT column_name, data_type, character_maximum_length, is_nullable "
            "FROM information_schema.columns WHERE table_schema = %s AND table_name = %s "
            "ORDER BY ordinal_position"
        )
        with self._execute(query, [self.schema, table]) as cur:
            rows = cur.fetchall()
        return [
            Column(
                name=row["column_name"],
                type=_TYPE_TAGS.get(row["data_type"], "text"),
                length=row["character_maximum_length"],
                required=row["is_nullable"] == "NO" and row["column_name"] != PRIMARY_KEY,
            )
            for row in rows
        ]

    def create_table(self, table: str, column_defs: Sequence[Column]) -> None:
        query = sql.SQL("CREATE TABLE {} ({})").format(
            self._name(table),
            sql.SQL(", ").join(column_definition(col) for col in column_defs),
        )
        self._execute(query).close()
        log.debug("Created table %s", table, extra={"table": table, "columns": len(column_defs)})

    def drop_table(self, table: str) -> None:
        self._execute(sql.SQL("DROP TABLE {}").format(self._name(table))).close()
        log.debug("Dropped table %s", table, extra={"table": table})

    def table_exists(self, table: str) -> bool:
        query = sql.SQL(
            "SELECT 1 AS present FROM information_schema.tables WHERE table_schema = %s AND table_name = %s"
        )
        with self._execute(query, [self.schema, table]) as cur:
            return cur.fetchone() is not None


__all__ = [
    "PostgresDataSource",
    "apply_statement_timeout",
    "column_definition",
    "get_sync_connection",
    "render_criteria",
    "render_order",
]
