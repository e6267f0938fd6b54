#!/usr/bin/env python3
"""
modump - CLI Entry Point
========================
Dumps MatrixOne databases as replayable SQL on standard output:
- One, several or all databases
- A subset of tables
- INSERT batches bounded by net_buffer_length
- CSV side files loaded with LOAD DATA
- Views ordered after the views they reference
"""

import argparse
import logging
import sys
import time
from typing import Any, Optional

import yaml

from .config import ConfigLoader, build_options
from .connection import DatabaseConnection
from .database_dumper import DatabaseDumper
from .models import OutputFormat
from .utils import format_elapsed, print_dry_run_info, setup_logging

ERROR_PREFIX = "modump error"
CSV_REMINDER = (
    "/* !!!MUST KEEP FILE IN CURRENT DIRECTORY, "
    "OR YOU SHOULD CHANGE THE PATH IN LOAD DATA STMT!!! */ \n"
)

# settings that can be overridden on the command line
_CLI_SETTINGS = (
    'user',
    'password',
    'host',
    'port',
    'database',
    'tables',
    'csv',
    'csv_field_delimiter',
    'local_infile',
    'no_data',
    'enable_escape',
    'where',
    'sys_account',
    'net_buffer_length',
)


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='modump',
        description='modump - dump MatrixOne databases as SQL or CSV',
        add_help=False,
        allow_abbrev=False
    )
    parser.add_argument('--help', action='help', help='Show this help message and exit')
    parser.add_argument('-c', '--config', help='Path to an optional YAML configuration file')
    parser.add_argument('-u', dest='user', help='username (default: dump)')
    parser.add_argument('-p', dest='password', help='password (default: 111)')
    parser.add_argument('-h', dest='host', help='hostname (default: 127.0.0.1)')
    parser.add_argument('-P', dest='port', type=int, help='port number (default: 6001)')
    parser.add_argument(
        '-db', dest='database',
        help='database name(s), comma separated, or "all"; must be specified'
    )
    parser.add_argument('-tbl', dest='tables', help='table name list, comma separated (default all)')
    parser.add_argument(
        '-csv', dest='csv', type=parse_bool, nargs='?', const=True,
        help='set export format to csv (default false)'
    )
    parser.add_argument(
        '-csv-field-delimiter', dest='csv_field_delimiter',
        help='csv field delimiter, only one utf8 character (default ",")'
    )
    parser.add_argument(
        '-local-infile', dest='local_infile', type=parse_bool, nargs='?', const=True,
        help='use load data local infile (default true)'
    )
    parser.add_argument(
        '-no-data', dest='no_data', type=parse_bool, nargs='?', const=True,
        help='dump database and table definitions only (default false)'
    )
    parser.add_argument(
        '-enable-escape', dest='enable_escape', type=parse_bool, nargs='?', const=True,
        help='escape special characters in csv output (default false)'
    )
    parser.add_argument('-where', dest='where', help='dump only rows matching this WHERE clause')
    parser.add_argument(
        '-sys', dest='sys_account', type=parse_bool, nargs='?', const=True,
        help="restrict the catalog to the 'sys' account"
    )
    parser.add_argument(
        '-net-buffer-length', dest='net_buffer_length', type=int,
        help='maximum size in bytes of one INSERT statement (default 1048576)'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')
    parser.add_argument(
        '--dry-run', action='store_true',
        help='Show what would be dumped without actually dumping'
    )
    return parser


def merge_settings(config: ConfigLoader, args: argparse.Namespace) -> dict[str, Any]:
    """Config file settings overridden by the options given on the command line."""
    settings = config.get_settings()
    for key in _CLI_SETTINGS:
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    return settings


def main(argv: Optional[list[str]] = None):
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    if not argv:
        parser.print_help(sys.stderr)
        return

    args = parser.parse_args(argv)
    dump_start = time.monotonic()

    # Load configuration
    try:
        config = ConfigLoader(args.config)
    except FileNotFoundError:
        print(f"{ERROR_PREFIX}: configuration file '{args.config}' not found", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"{ERROR_PREFIX}: invalid YAML in configuration file: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    log_settings = config.get_logging_settings()
    if args.verbose:
        log_settings['level'] = 'DEBUG'
    setup_logging(log_settings)

    out = sys.stdout.buffer
    try:
        options = build_options(merge_settings(config, args))

        with DatabaseConnection(
            host=options.host,
            port=options.port,
            user=options.user,
            password=options.password
        ) as conn:
            dumper = DatabaseDumper(conn, options, out)

            # Dry run mode
            if args.dry_run:
                logging.info("DRY RUN MODE - No data will be dumped")
                plans = [(db, dumper.plan(db)[1]) for db in dumper.resolve_databases()]
                print_dry_run_info(plans)
                return

            stats = dumper.run()

    except Exception as e:
        logging.debug("Dump aborted", exc_info=True)
        print(f"{ERROR_PREFIX}: {e}", file=sys.stderr)
        sys.exit(1)

    # Print summary
    logging.info("=" * 50)
    logging.info("DUMP COMPLETE")
    logging.info(f"Databases: {len(stats.databases)}")
    logging.info(f"Tables: {stats.total_tables}")
    logging.info(f"Total Rows: {stats.total_rows}")

    elapsed = format_elapsed(time.monotonic() - dump_start)
    out.write(f"/* MODUMP SUCCESS, COST {elapsed} */\n".encode("utf-8"))
    if options.output_format == OutputFormat.CSV:
        out.write(CSV_REMINDER.encode("utf-8"))
    out.flush()


if __name__ == '__main__':
    main()
