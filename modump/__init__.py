"""
modump
======
Dumps MatrixOne databases into replayable SQL with support for:
- Multiple databases, or all of them
- Table subsets and row filters
- INSERT batches bounded by a byte budget
- CSV side files with LOAD DATA statements
- Views ordered after the views they reference
"""

from .batch_writer import BufferPool, CsvLoadWriter, InsertBatchWriter
from .config import ConfigLoader, build_options
from .connection import DatabaseConnection
from .database_dumper import DatabaseDumper
from .encoder import ValueEncoder
from .errors import (
    ConnectivityTimeoutError,
    DumpError,
    InvalidInputError,
    NotSupportedError,
)
from .escaper import CsvFieldEscaper
from .main import main
from .models import (
    Column,
    DatabaseStats,
    DumpOptions,
    DumpStats,
    OutputFormat,
    Table,
    TableDefinition,
    TableKind,
    TableStats,
    TypeTag,
)
from .table_dumper import TableDumper
from .utils import print_dry_run_info, setup_logging
from .view_order import ViewDependencyResolver, substring_reference

__version__ = "1.0.0"

__all__ = [
    # Main entry point
    "main",
    # Core classes
    "BufferPool",
    "ConfigLoader",
    "CsvFieldEscaper",
    "CsvLoadWriter",
    "DatabaseConnection",
    "DatabaseDumper",
    "InsertBatchWriter",
    "TableDumper",
    "ValueEncoder",
    "ViewDependencyResolver",
    # Errors
    "ConnectivityTimeoutError",
    "DumpError",
    "InvalidInputError",
    "NotSupportedError",
    # Models
    "Column",
    "DatabaseStats",
    "DumpOptions",
    "DumpStats",
    "OutputFormat",
    "Table",
    "TableDefinition",
    "TableKind",
    "TableStats",
    "TypeTag",
    # Utilities
    "build_options",
    "print_dry_run_info",
    "setup_logging",
    "substring_reference",
]
