"""
Data models and enums for modump.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import NotSupportedError

# NUL, backspace, newline, carriage return, tab, Ctrl-Z
DEFAULT_ESCAPE_CHARS = "\x00\b\n\r\t\x1a"


class TypeTag(Enum):
    """Canonical column type classification used by the encoders."""
    INTEGER = "integer"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    BLOB = "blob"
    BIT = "bit"
    JSON = "json"
    TEXT = "text"
    CHAR = "char"
    VARCHAR = "varchar"
    VECTOR = "vector"
    UNKNOWN = "unknown"
    OTHER = "other"

    @classmethod
    def from_type_name(cls, type_name: Optional[str]) -> "TypeTag":
        """Resolve a driver type name (case-insensitive) to a tag."""
        name = (type_name or "").strip().lower()
        return _TYPE_NAMES.get(name, cls.OTHER)

    @property
    def is_string(self) -> bool:
        return self in (TypeTag.TEXT, TypeTag.CHAR, TypeTag.VARCHAR, TypeTag.JSON)


_INTEGER_NAMES = (
    "int", "tinyint", "smallint", "mediumint", "bigint",
    "unsigned int", "unsigned tinyint", "unsigned smallint",
    "unsigned mediumint", "unsigned bigint",
)

_TYPE_NAMES: dict[str, TypeTag] = {
    **{name: TypeTag.INTEGER for name in _INTEGER_NAMES},
    "float": TypeTag.FLOAT,
    "double": TypeTag.DOUBLE,
    "bool": TypeTag.BOOLEAN,
    "boolean": TypeTag.BOOLEAN,
    "blob": TypeTag.BLOB,
    "bit": TypeTag.BIT,
    "json": TypeTag.JSON,
    "text": TypeTag.TEXT,
    "char": TypeTag.CHAR,
    "varchar": TypeTag.VARCHAR,
    "vecf32": TypeTag.VECTOR,
    "vecf64": TypeTag.VECTOR,
    "": TypeTag.UNKNOWN,
}


class TableKind(Enum):
    """Catalog relation kinds (``relkind`` in ``mo_catalog.mo_tables``)."""
    ORDINARY = "r"
    EXTERNAL = "e"
    VIEW = "v"

    @classmethod
    def parse(cls, table: "Table") -> "TableKind":
        try:
            return cls(table.kind)
        except ValueError:
            raise NotSupportedError(
                f"table: {table.name} table type: {table.kind}"
            ) from None


class OutputFormat(Enum):
    """Supported output formats for database dumps."""
    SQL = "sql"
    CSV = "csv"


@dataclass(frozen=True)
class Column:
    """Result set column with its resolved type tag."""
    name: str
    type_name: str
    tag: TypeTag = TypeTag.UNKNOWN

    @classmethod
    def from_type_name(cls, name: str, type_name: str) -> "Column":
        return cls(name=name, type_name=type_name, tag=TypeTag.from_type_name(type_name))


@dataclass
class Table:
    """Catalog entry for a table, external table or view."""
    name: str
    kind: str = TableKind.ORDINARY.value

    @property
    def is_view(self) -> bool:
        return self.kind == TableKind.VIEW.value


@dataclass
class TableDefinition:
    """A table paired with the statement that creates it."""
    table: Table
    create_sql: str


@dataclass
class DumpOptions:
    """Validated settings for one dump run."""
    host: str = "127.0.0.1"
    port: int = 6001
    user: str = "dump"
    password: str = "111"
    databases: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)
    output_format: OutputFormat = OutputFormat.SQL
    no_data: bool = False
    csv_field_delimiter: str = ","
    enable_escape: bool = False
    escape_chars: str = DEFAULT_ESCAPE_CHARS
    local_infile: bool = True
    where: str = ""
    sys_account: bool = False
    net_buffer_length: int = 1024 * 1024

    @property
    def all_tables(self) -> bool:
        return not self.tables


@dataclass
class TableStats:
    """Statistics for a single table dump."""
    table: str
    kind: str = TableKind.ORDINARY.value
    rows_dumped: int = 0
    statements: int = 0
    file_path: str = ""


@dataclass
class DatabaseStats:
    """Statistics for a single database dump."""
    name: str
    tables: list[TableStats] = field(default_factory=list)
    total_rows: int = 0


@dataclass
class DumpStats:
    """Overall dump statistics."""
    databases: list[DatabaseStats] = field(default_factory=list)
    total_tables: int = 0
    total_rows: int = 0
