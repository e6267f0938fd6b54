"""
Database connection and catalog access for modump.
"""

import logging
import math
import queue
import threading
from typing import Any, Iterator, Optional, Sequence

import mysql.connector
from mysql.connector import Error as MySQLError
from mysql.connector.constants import FieldFlag, FieldType

from .errors import ConnectivityTimeoutError, InvalidInputError
from .models import Column, Table, TableKind

SUBSCRIPTION_DB_TYPE = "subscription"
INTERNAL_TABLE_PREFIXES = ("__mo_", "%!%")

_INTEGER_FIELD_TYPES = {
    'TINY': 'TINYINT',
    'SHORT': 'SMALLINT',
    'INT24': 'MEDIUMINT',
    'LONG': 'INT',
    'LONGLONG': 'BIGINT',
}

_FIELD_TYPE_NAMES = {
    'FLOAT': 'FLOAT',
    'DOUBLE': 'DOUBLE',
    'DECIMAL': 'DECIMAL',
    'NEWDECIMAL': 'DECIMAL',
    'BIT': 'BIT',
    'JSON': 'JSON',
    'VARCHAR': 'VARCHAR',
    'VAR_STRING': 'VARCHAR',
    'STRING': 'CHAR',
    'DATE': 'DATE',
    'NEWDATE': 'DATE',
    'DATETIME': 'DATETIME',
    'TIMESTAMP': 'TIMESTAMP',
    'TIME': 'TIME',
    'YEAR': 'YEAR',
    'ENUM': 'ENUM',
    'SET': 'SET',
    'GEOMETRY': 'GEOMETRY',
}

_BLOB_FIELD_TYPES = ('TINY_BLOB', 'MEDIUM_BLOB', 'LONG_BLOB', 'BLOB')


def column_type_name(description: Sequence[Any]) -> str:
    """Map a cursor description entry to a database type name.

    Returns an empty string when the driver does not know the type code.
    """
    field_type = FieldType.get_info(description[1])
    flags = description[7] if len(description) > 7 and description[7] else 0

    if field_type in _INTEGER_FIELD_TYPES:
        name = _INTEGER_FIELD_TYPES[field_type]
        if flags & FieldFlag.UNSIGNED:
            name = f"UNSIGNED {name}"
        return name
    if field_type in _BLOB_FIELD_TYPES:
        return 'BLOB' if flags & FieldFlag.BINARY else 'TEXT'
    return _FIELD_TYPE_NAMES.get(field_type, '')


class DatabaseConnection:
    """Explicit database handle shared by the catalog and data queries."""

    DEFAULT_PORT = 6001
    DEFAULT_CHARSET = 'utf8mb4'
    CONNECT_TIMEOUT = 10

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: Optional[str] = None,
        timeout: float = CONNECT_TIMEOUT
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.timeout = timeout
        self.connection = None

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish the connection, bounded by ``timeout`` seconds.

        The probe runs on a daemon thread so a driver call that hangs past
        the timeout does not keep the process alive.
        """
        outcome: queue.Queue = queue.Queue(maxsize=1)
        worker = threading.Thread(
            target=self._probe, args=(outcome,), name="modump-connect", daemon=True
        )
        worker.start()
        try:
            connection, error = outcome.get(timeout=self.timeout)
        except queue.Empty:
            raise ConnectivityTimeoutError(
                f"connect to {self.host}:{self.port} timeout"
            ) from None

        if error is not None:
            if isinstance(error, MySQLError):
                logging.error(f"Failed to connect to database: {error}")
            raise error
        self.connection = connection
        logging.info(f"Connected to {self.host}:{self.port}/{self.database or 'N/A'}")

    def _probe(self, outcome: queue.Queue) -> None:
        try:
            outcome.put((self._open(), None))
        except Exception as e:
            outcome.put((None, e))

    def _open(self):
        connection = mysql.connector.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.database or None,
            charset=self.DEFAULT_CHARSET,
            use_unicode=True,
            connection_timeout=max(1, math.ceil(self.timeout))
        )
        connection.ping()
        return connection

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            logging.debug("Database connection closed")

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list[tuple]:
        """Execute a query and return results."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    def stream_rows(self, query: str) -> tuple[list[Column], Iterator[tuple]]:
        """Run a data query and stream its rows as raw bytes.

        Uses an unbuffered raw cursor so values are not converted by the
        driver and rows are not held in memory. The cursor is closed once the
        returned iterator is exhausted.
        """
        cursor = self.connection.cursor(buffered=False, raw=True)
        cursor.execute(query)
        columns = [
            Column.from_type_name(desc[0], column_type_name(desc))
            for desc in cursor.description or []
        ]
        return columns, self._iter_rows(cursor)

    @staticmethod
    def _iter_rows(cursor) -> Iterator[tuple]:
        try:
            yield from cursor
        finally:
            cursor.close()

    def get_databases(self) -> list[str]:
        results = self.execute_query("SHOW DATABASES")
        return [row[0] for row in results]

    def get_database_type(self, database: str, sys_account: bool = False) -> str:
        """Return the catalog type of a database (empty for regular ones)."""
        query = "SELECT datname, dat_type FROM mo_catalog.mo_database WHERE datname = %s"
        if sys_account:
            query += " AND account_id = 0"
        results = self.execute_query(query, (database,))
        if len(results) != 1:
            raise InvalidInputError(f"database {database} not exists")
        return results[0][1] or ""

    def get_tables(
        self,
        database: str,
        requested: Sequence[str] = (),
        sys_account: bool = False
    ) -> list[Table]:
        """List tables, external tables and views of a database from the catalog."""
        query = "SELECT relname, relkind FROM mo_catalog.mo_tables WHERE reldatabase = %s"
        params = [database]
        if sys_account:
            query += " AND account_id = 0"
        if requested:
            query += " AND relname IN (" + ", ".join(["%s"] * len(requested)) + ")"
            params.extend(requested)

        results = self.execute_query(query, tuple(params))
        tables = [
            Table(name=name, kind=kind)
            for name, kind in results
            if not name.startswith(INTERNAL_TABLE_PREFIXES)
        ]
        self._check_requested(requested, tables)
        return tables

    def get_subscription_tables(self, database: str, requested: Sequence[str] = ()) -> list[Table]:
        """List tables of a subscription database; all are treated as ordinary."""
        results = self.execute_query(f"SHOW TABLES FROM `{database}`")
        names = [row[0] for row in results]
        if requested:
            names = [name for name in names if name in requested]
        tables = [Table(name=name, kind=TableKind.ORDINARY.value) for name in names]
        self._check_requested(requested, tables)
        return tables

    @staticmethod
    def _check_requested(requested: Sequence[str], tables: Sequence[Table]) -> None:
        found = {table.name for table in tables}
        for name in requested:
            if name not in found:
                raise InvalidInputError(f"table {name} not exists")

    def get_create_database(self, database: str) -> str:
        """Get CREATE DATABASE statement."""
        results = self.execute_query(f"SHOW CREATE DATABASE `{database}`")
        return results[0][1]

    def get_create_table(self, database: str, table: str) -> str:
        """Get CREATE TABLE statement."""
        results = self.execute_query(f"SHOW CREATE TABLE `{database}`.`{table}`")
        return results[0][1]

    def get_create_view(self, database: str, view: str) -> str:
        """Get CREATE VIEW statement (the row also carries charset columns)."""
        results = self.execute_query(f"SHOW CREATE TABLE `{database}`.`{view}`")
        return results[0][1]
