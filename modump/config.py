"""
Configuration loading and validation for modump.
"""

import logging
import os
import re
from typing import Any, Optional

import yaml

from .errors import InvalidInputError
from .models import DEFAULT_ESCAPE_CHARS, DumpOptions, OutputFormat

MIN_NET_BUFFER_LENGTH = 16 * 1024
MAX_NET_BUFFER_LENGTH = 16 * 1024 * 1024
DEFAULT_NET_BUFFER_LENGTH = 1024 * 1024

ALL_DATABASES = "all"


class ConfigLoader:
    """Loads settings from an optional YAML file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.config = self._load_config() if config_path else {}

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        return self._resolve_env_vars(config)

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Recursively resolve environment variables in config."""
        if isinstance(obj, str):
            matches = self.ENV_VAR_PATTERN.findall(obj)
            for match in matches:
                env_value = os.environ.get(match, '')
                obj = obj.replace(f'${{{match}}}', env_value)
            return obj
        elif isinstance(obj, dict):
            return {k: self._resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        return obj

    def get_connection_settings(self) -> dict[str, Any]:
        """Get host, port and credentials."""
        return self.config.get('connection', {})

    def get_dump_settings(self) -> dict[str, Any]:
        """Get dump settings (databases, tables, output options)."""
        return self.config.get('dump', {})

    def get_logging_settings(self) -> dict[str, Any]:
        """Get logging settings."""
        return self.config.get('logging', {})

    def get_settings(self) -> dict[str, Any]:
        """Connection and dump settings merged into one flat mapping."""
        return {**self.get_connection_settings(), **self.get_dump_settings()}


def split_names(value: Any) -> list[str]:
    """Split a comma separated string (or list) of names, dropping blanks."""
    if value is None:
        return []
    items = value.split(',') if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]


def check_field_delimiter(value: str) -> str:
    """A CSV field delimiter must be exactly one valid character."""
    if not value:
        raise InvalidInputError("csv field delimiter must not be empty")
    if len(value) > 1:
        raise InvalidInputError(
            "there are multiple utf8 characters for csv field delimiter. "
            "only one utf8 character is allowed"
        )
    if '\ud800' <= value <= '\udfff':
        raise InvalidInputError("csv field delimiter is invalid utf8 character")
    return value


def clamp_net_buffer_length(length: int) -> int:
    if length < MIN_NET_BUFFER_LENGTH:
        logging.warning(
            f"net_buffer_length must be greater than {MIN_NET_BUFFER_LENGTH}, "
            f"set to {MIN_NET_BUFFER_LENGTH}"
        )
        return MIN_NET_BUFFER_LENGTH
    if length > MAX_NET_BUFFER_LENGTH:
        logging.warning(
            f"net_buffer_length must be less than {MAX_NET_BUFFER_LENGTH}, "
            f"set to {MAX_NET_BUFFER_LENGTH}"
        )
        return MAX_NET_BUFFER_LENGTH
    return length


def build_options(settings: dict[str, Any]) -> DumpOptions:
    """Validate merged settings and build DumpOptions.

    Raises:
        InvalidInputError: missing database, bad host or bad delimiter.
    """
    defaults = DumpOptions()

    net_buffer_length = settings.get('net_buffer_length')
    if net_buffer_length is None:
        net_buffer_length = DEFAULT_NET_BUFFER_LENGTH
    net_buffer_length = clamp_net_buffer_length(int(net_buffer_length))

    password = settings.get('password')

    databases = split_names(settings.get('database'))
    if not databases:
        raise InvalidInputError("database must be specified")

    host = str(settings.get('host') or defaults.host)
    if ':' in host:
        raise InvalidInputError("host can not have character ':'")

    to_csv = bool(settings.get('csv', False))
    delimiter = settings.get('csv_field_delimiter', defaults.csv_field_delimiter)
    if to_csv:
        delimiter = check_field_delimiter(delimiter)

    escape_chars = settings.get('escape_chars')
    return DumpOptions(
        host=host,
        port=int(settings.get('port') or defaults.port),
        user=str(settings.get('user') or defaults.user),
        password=defaults.password if password is None else str(password),
        databases=databases,
        tables=split_names(settings.get('tables')),
        output_format=OutputFormat.CSV if to_csv else OutputFormat.SQL,
        no_data=bool(settings.get('no_data', False)),
        csv_field_delimiter=delimiter,
        enable_escape=bool(settings.get('enable_escape', False)),
        escape_chars=DEFAULT_ESCAPE_CHARS if escape_chars is None else escape_chars,
        local_infile=bool(settings.get('local_infile', True)),
        where=settings.get('where') or "",
        sys_account=bool(settings.get('sys_account', False)),
        net_buffer_length=net_buffer_length,
    )
