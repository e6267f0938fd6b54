"""
Value encoding for SQL and CSV output.

Rows arrive from the driver as raw bytes (or ``None`` for NULL). The encoder
turns each value into an SQL literal (bytes) or a CSV field (str) according to
the column's TypeTag.
"""

from typing import Callable, Optional, Sequence

from .models import TypeTag

NULL_LITERAL = b"NULL"
NULL_SENTINEL = "\\N"
BLOB_PREFIX = b"0x"
BOOL_TOKENS = (b"true", b"false")

RawValue = Optional[bytes]


def quote_string(value: bytes) -> bytes:
    """Quote bytes as a string literal, escaping backslashes and quotes."""
    escaped = value.replace(b"\\", b"\\\\").replace(b"'", b"\\'")
    return b"'" + escaped + b"'"


def escape_backslashes(field: str) -> str:
    """Double every backslash in a CSV field. The NULL sentinel is left alone."""
    if field == NULL_SENTINEL:
        return field
    return field.replace("\\", "\\\\")


def _float_literal(value: bytes) -> bytes:
    if value[:1].isdigit() or (value[:1] == b"-" and value[1:2].isdigit()):
        return value
    # NaN, Inf, -Inf
    return b"'" + value + b"'"


def _blob_literal(value: bytes) -> bytes:
    if not value:
        return b"''"
    return BLOB_PREFIX + value.hex().upper().encode("ascii")


def _bit_literal(value: bytes) -> bytes:
    return b"_binary '" + value.replace(b"\x00", b"\\0") + b"'"


def _text_field(value: bytes) -> str:
    return value.decode("utf-8", "surrogateescape")


def _maybe_bool(value: bytes) -> bytes:
    # The driver cannot always tell BOOL apart from VARCHAR or an untyped column.
    if value in BOOL_TOKENS:
        return value
    return quote_string(value)


class ValueEncoder:
    """Encodes raw column values into SQL literals and CSV fields."""

    def __init__(self):
        # Pre-build literal formatters for direct dispatch on the tag
        self._sql_formatters: dict[TypeTag, Callable[[bytes], bytes]] = {
            TypeTag.INTEGER: bytes,
            TypeTag.DOUBLE: bytes,
            TypeTag.BOOLEAN: bytes,
            TypeTag.VECTOR: bytes,
            TypeTag.FLOAT: _float_literal,
            TypeTag.BLOB: _blob_literal,
            TypeTag.BIT: _bit_literal,
            TypeTag.UNKNOWN: _maybe_bool,
            TypeTag.VARCHAR: _maybe_bool,
        }
        # Every type renders as its plain text in CSV. JSON gets no escaping
        # of its own since the CSV writer quotes structural characters.
        self._csv_formatters: dict[TypeTag, Callable[[bytes], str]] = {
            TypeTag.INTEGER: _text_field,
            TypeTag.FLOAT: _text_field,
            TypeTag.DOUBLE: _text_field,
            TypeTag.BOOLEAN: _text_field,
            TypeTag.UNKNOWN: _text_field,
            TypeTag.JSON: _text_field,
        }

    def sql_literal(self, value: RawValue, tag: TypeTag) -> bytes:
        """Encode one value as an SQL literal."""
        if value is None:
            return NULL_LITERAL
        formatter = self._sql_formatters.get(tag, quote_string)
        return formatter(bytes(value))

    def sql_row(self, row: Sequence[RawValue], tags: Sequence[TypeTag]) -> bytes:
        """Encode a row as a parenthesized value tuple."""
        literals = [self.sql_literal(value, tag) for value, tag in zip(row, tags)]
        return b"(" + b",".join(literals) + b")"

    def csv_field(self, value: RawValue, tag: TypeTag) -> str:
        """Encode one value as a CSV field.

        Bytes that are not valid UTF-8 are carried through with
        ``surrogateescape`` and restored when the side file is written.
        """
        if value is None:
            return NULL_SENTINEL
        formatter = self._csv_formatters.get(tag, _text_field)
        return escape_backslashes(formatter(bytes(value)))
