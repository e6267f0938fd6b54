"""
Main database dumping orchestration for modump.
"""

import logging
from typing import BinaryIO, Optional

from .config import ALL_DATABASES
from .connection import SUBSCRIPTION_DB_TYPE, DatabaseConnection
from .models import (
    DatabaseStats,
    DumpOptions,
    DumpStats,
    Table,
    TableDefinition,
    TableKind,
    TableStats,
)
from .table_dumper import TableDumper
from .view_order import ViewDependencyResolver


class DatabaseDumper:
    """Writes the schema and data of the selected databases to ``out``."""

    def __init__(
        self,
        connection: DatabaseConnection,
        options: DumpOptions,
        out: BinaryIO,
        resolver: Optional[ViewDependencyResolver] = None
    ):
        self.connection = connection
        self.options = options
        self.out = out
        self.resolver = resolver if resolver is not None else ViewDependencyResolver()
        self.table_dumper = TableDumper(connection, options, out)
        self.stats = DumpStats()

    def run(self) -> DumpStats:
        """Dump every selected database, wrapped in foreign key toggles."""
        databases = self.resolve_databases()
        logging.info(f"Starting dump of {len(databases)} database(s)")

        self._write("SET foreign_key_checks = 0;\n\n")
        for database in databases:
            self._dump_database(database)
        self._write("SET foreign_key_checks = 1;\n")

        return self.stats

    def resolve_databases(self) -> list[str]:
        if self.options.databases == [ALL_DATABASES]:
            return self.connection.get_databases()
        return list(self.options.databases)

    def plan(self, database: str) -> tuple[str, list[TableDefinition]]:
        """Look up a database's type and its creation statements in emission order."""
        db_type = self.connection.get_database_type(database, self.options.sys_account)
        tables = self._get_tables(database, db_type)
        definitions = [
            TableDefinition(table=table, create_sql=self._get_create_statement(database, table))
            for table in tables
        ]
        return db_type, self.resolver.order(definitions)

    def _get_tables(self, database: str, db_type: str) -> list[Table]:
        if db_type == SUBSCRIPTION_DB_TYPE:
            return self.connection.get_subscription_tables(database, self.options.tables)
        return self.connection.get_tables(
            database, self.options.tables, self.options.sys_account
        )

    def _get_create_statement(self, database: str, table: Table) -> str:
        if TableKind.parse(table) == TableKind.VIEW:
            return self.connection.get_create_view(database, table.name)
        return self.connection.get_create_table(database, table.name)

    def _dump_database(self, database: str) -> None:
        """Dump a single database."""
        db_stats = DatabaseStats(name=database)
        db_type, definitions = self.plan(database)
        logging.info(f"Dumping {len(definitions)} table(s) from '{database}'")

        if self.options.all_tables:
            self._write_database_header(database, db_type)

        for definition in definitions:
            table_stats = self._dump_definition(database, definition)
            db_stats.tables.append(table_stats)
            db_stats.total_rows += table_stats.rows_dumped
            self.stats.total_tables += 1
            self.stats.total_rows += table_stats.rows_dumped
            logging.info(f"  ✓ {table_stats.table}: {table_stats.rows_dumped} rows")

        self.stats.databases.append(db_stats)

    def _write_database_header(self, database: str, db_type: str) -> None:
        if db_type == SUBSCRIPTION_DB_TYPE:
            create_db = f"CREATE DATABASE IF NOT EXISTS `{database}`"
        else:
            create_db = self.connection.get_create_database(database)
        self._write(f"DROP DATABASE IF EXISTS `{database}`;\n")
        self._write_create(create_db)
        self._write(f"USE `{database}`;\n\n\n")

    def _dump_definition(self, database: str, definition: TableDefinition) -> TableStats:
        table = definition.table
        kind = TableKind.parse(table)
        stats = TableStats(table=table.name, kind=table.kind)

        if kind == TableKind.ORDINARY:
            self._write(f"DROP TABLE IF EXISTS `{table.name}`;\n")
            self._write_create(definition.create_sql)
            if not self.options.no_data:
                stats = self.table_dumper.dump_table(database, table.name)
                stats.kind = table.kind
        elif kind == TableKind.EXTERNAL:
            self._write(f"/*!EXTERNAL TABLE `{table.name}`*/\n")
            self._write(f"DROP TABLE IF EXISTS `{table.name}`;\n")
            self._write_create(definition.create_sql, blank_line=True)
        else:
            self._write(f"DROP VIEW IF EXISTS `{table.name}`;\n")
            self._write_create(definition.create_sql, blank_line=True)

        return stats

    def _write_create(self, create_sql: str, blank_line: bool = False) -> None:
        suffix = "" if create_sql.endswith(";") else ";"
        if blank_line:
            suffix += "\n\n"
        self._write(f"{create_sql}{suffix}\n")

    def _write(self, text: str) -> None:
        self.out.write(text.encode("utf-8"))
        self.out.flush()
