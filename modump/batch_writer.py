"""
Output writers: size-bounded INSERT batches and CSV side files.
"""

import csv
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, Sequence

from .encoder import RawValue, ValueEncoder
from .escaper import CsvFieldEscaper
from .models import Column, TableStats

Row = Sequence[RawValue]


class BufferPool:
    """Keeps byte buffers around so each table does not reallocate them."""

    def __init__(self):
        self._free: list[bytearray] = []

    @contextmanager
    def buffers(self, count: int = 2) -> Iterator[list[bytearray]]:
        """Lend ``count`` empty buffers for the duration of the block."""
        acquired = [self._free.pop() if self._free else bytearray() for _ in range(count)]
        try:
            yield acquired
        finally:
            for buf in acquired:
                buf.clear()
                self._free.append(buf)

    def __len__(self) -> int:
        return len(self._free)


class InsertBatchWriter:
    """Packs encoded rows into INSERT statements bounded by a byte budget.

    A statement, including its ``;\\n`` terminator, never exceeds
    ``net_buffer_length`` bytes unless it holds a single row that is larger
    than the budget on its own. The row that would overflow a statement is
    kept in the pending buffer and opens the next one.
    """

    TERMINATOR = b";\n"
    SEPARATOR = b","
    TABLE_SEPARATOR = b"\n\n\n"

    def __init__(
        self,
        out: BinaryIO,
        net_buffer_length: int,
        encoder: Optional[ValueEncoder] = None,
        pool: Optional[BufferPool] = None
    ):
        self.out = out
        self.net_buffer_length = net_buffer_length
        self.encoder = encoder if encoder is not None else ValueEncoder()
        self.pool = pool if pool is not None else BufferPool()

    def write_table(self, table: str, columns: Sequence[Column], rows: Iterable[Row]) -> TableStats:
        """Write every row of ``rows`` as INSERT statements and return stats."""
        stats = TableStats(table=table)
        tags = [col.tag for col in columns]
        prefix = f"INSERT INTO `{table}` VALUES ".encode("utf-8")
        rows = iter(rows)

        with self.pool.buffers() as (batch, pending):
            while True:
                batch += prefix
                start = len(batch)
                if pending:
                    batch += pending
                    pending.clear()

                for row in rows:
                    pending += self.encoder.sql_row(row, tags)
                    stats.rows_dumped += 1
                    separator = self.SEPARATOR if len(batch) > start else b""
                    if len(batch) > start and self._overflows(batch, separator, pending):
                        break
                    batch += separator
                    batch += pending
                    pending.clear()

                if len(batch) == start:
                    break
                batch += self.TERMINATOR
                self._flush(batch)
                stats.statements += 1
                batch.clear()

        self.out.write(self.TABLE_SEPARATOR)
        self.out.flush()
        logging.debug(
            f"Table '{table}': {stats.rows_dumped} rows in {stats.statements} statement(s)"
        )
        return stats

    def _overflows(self, batch: bytearray, separator: bytes, pending: bytearray) -> bool:
        size = len(batch) + len(separator) + len(pending) + len(self.TERMINATOR)
        return size > self.net_buffer_length

    def _flush(self, batch: bytearray) -> None:
        self.out.write(batch)
        self.out.flush()


class CsvLoadWriter:
    """Writes a table to ``<db>_<table>.csv`` and emits a LOAD DATA statement."""

    def __init__(
        self,
        out: BinaryIO,
        escaper: Optional[CsvFieldEscaper] = None,
        delimiter: str = ",",
        local_infile: bool = True
    ):
        self.out = out
        self.escaper = escaper if escaper is not None else CsvFieldEscaper()
        self.delimiter = delimiter
        self.local_infile = local_infile

    @staticmethod
    def side_file_path(database: str, table: str) -> Path:
        """Side file location, resolved against the current directory."""
        return Path.cwd() / f"{database}_{table}.csv"

    def write_table(
        self,
        database: str,
        table: str,
        columns: Sequence[Column],
        rows: Iterable[Row]
    ) -> TableStats:
        path = self.side_file_path(database, table)
        stats = TableStats(table=table, file_path=str(path))
        tags = [col.tag for col in columns]

        with open(path, 'w', encoding='utf-8', errors='surrogateescape', newline='') as f:
            writer = csv.writer(
                f,
                delimiter=self.delimiter,
                quotechar='"',
                quoting=csv.QUOTE_MINIMAL,
                lineterminator='\n'
            )
            for row in rows:
                writer.writerow(self.escaper.encode_row(row, tags))
                stats.rows_dumped += 1

        self.out.write(self.load_statement(path, table).encode("utf-8"))
        self.out.flush()
        stats.statements = 1
        logging.debug(f"Table '{table}': {stats.rows_dumped} rows written to {path}")
        return stats

    def load_statement(self, path: Path, table: str) -> str:
        local = "LOCAL " if self.local_infile else ""
        return (
            f"LOAD DATA {local}INFILE '{path}' INTO TABLE `{table}` "
            f"FIELDS TERMINATED BY '{self.delimiter}' ENCLOSED BY '\"' "
            f"LINES TERMINATED BY '\\n' PARALLEL 'FALSE';\n"
        )
