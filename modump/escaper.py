"""
Escape policy applied to CSV fields on top of the value encoder.
"""

import re
from typing import Optional, Sequence

from .encoder import NULL_SENTINEL, RawValue, ValueEncoder
from .models import DEFAULT_ESCAPE_CHARS, TypeTag


class CsvFieldEscaper:
    """Prefixes configured characters in string fields with a backslash.

    The character set is compiled into a single pattern when the escaper is
    built, and the same escaper is reused for every field of the run.
    """

    def __init__(
        self,
        encoder: Optional[ValueEncoder] = None,
        enabled: bool = False,
        escape_chars: str = DEFAULT_ESCAPE_CHARS
    ):
        self.encoder = encoder if encoder is not None else ValueEncoder()
        self.enabled = enabled
        self.escape_chars = escape_chars
        self._pattern = (
            re.compile('[' + ''.join(re.escape(c) for c in escape_chars) + ']')
            if escape_chars else None
        )

    def escape(self, field: str) -> str:
        """Escape one field. The NULL sentinel passes through unchanged."""
        if field == NULL_SENTINEL or self._pattern is None:
            return field
        return self._pattern.sub(lambda m: '\\' + m.group(0), field)

    def encode_field(self, value: RawValue, tag: TypeTag) -> str:
        field = self.encoder.csv_field(value, tag)
        if self.enabled and tag.is_string:
            field = self.escape(field)
        return field

    def encode_row(self, row: Sequence[RawValue], tags: Sequence[TypeTag]) -> list[str]:
        return [self.encode_field(value, tag) for value, tag in zip(row, tags)]
