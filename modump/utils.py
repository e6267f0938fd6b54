"""
Utility functions for modump.
"""

import logging
import sys
from pathlib import Path
from typing import Any

from .models import TableDefinition, TableKind


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration.

    Records go to stderr; stdout carries the dump itself.
    """
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def print_dry_run_info(plans: list[tuple[str, list[TableDefinition]]]) -> None:
    """Log what would be dumped, in emission order."""
    for database, definitions in plans:
        logging.info(f"Would dump database: {database}")
        if not definitions:
            logging.info("  (no tables)")
        for definition in definitions:
            table = definition.table
            logging.info(f"  - {table.name} ({TableKind(table.kind).name.lower()})")


def format_elapsed(seconds: float) -> str:
    """Format a duration the way the trailer comment reports it."""
    if seconds < 1:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds:.3f}s"
