"""
Table data dumping for modump.
"""

import logging
from typing import BinaryIO

from .batch_writer import BufferPool, CsvLoadWriter, InsertBatchWriter
from .connection import DatabaseConnection
from .encoder import ValueEncoder
from .escaper import CsvFieldEscaper
from .models import DumpOptions, OutputFormat, TableStats


class TableDumper:
    """Streams the rows of one table into the configured writer."""

    def __init__(self, connection: DatabaseConnection, options: DumpOptions, out: BinaryIO):
        self.connection = connection
        self.options = options
        self.out = out

        encoder = ValueEncoder()
        if options.output_format == OutputFormat.CSV:
            escaper = CsvFieldEscaper(encoder, options.enable_escape, options.escape_chars)
            self.writer = CsvLoadWriter(
                out, escaper, options.csv_field_delimiter, options.local_infile
            )
        else:
            self.writer = InsertBatchWriter(
                out, options.net_buffer_length, encoder, BufferPool()
            )

    def dump_table(self, database: str, table: str) -> TableStats:
        """Dump the data of ``database.table``. Errors propagate to the caller."""
        query = self._build_select_query(database, table)
        logging.info(f"Dumping table '{table}' with query: {query[:200]}")

        columns, rows = self.connection.stream_rows(query)
        if isinstance(self.writer, CsvLoadWriter):
            return self.writer.write_table(database, table, columns, rows)
        return self.writer.write_table(table, columns, rows)

    def _build_select_query(self, database: str, table: str) -> str:
        """Build SELECT query with the optional row filter."""
        query = f"SELECT * FROM `{database}`.`{table}`"
        if self.options.where:
            query += f" WHERE {self.options.where}"
        return query
