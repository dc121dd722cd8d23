import argparse
import glob
import json
import os
import sqlite3
import sys
from contextlib import contextmanager

import sqlalchemy
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from schemasync.constants import RECONCILED_PRAGMAS
from schemasync.exceptions import SchemaSyncError
from schemasync.logging_config import get_logger, setup_logging
from schemasync.migrator import Migrator

logger = get_logger("main")


def read_sql_source(path: str) -> str:
    """
    Reads SQL content from a file or recursively from a directory.
    """
    if os.path.isfile(path):
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    elif os.path.isdir(path):
        content = []
        # Recursive glob for .sql files
        sql_files = glob.glob(os.path.join(path, '**/*.sql'), recursive=True)
        # Sort to ensure deterministic order
        sql_files.sort()

        if not sql_files:
            raise ValueError(f"No .sql files found in directory: {path}")

        for sql_file in sql_files:
            with open(sql_file, 'r', encoding='utf-8') as f:
                content.append(f.read())

        return "\n".join(content)

    else:
        raise ValueError(f"Path not found: {path}")


def database_url(database: str) -> str:
    """Accepts a SQLAlchemy SQLite URL or a plain file path."""
    try:
        url = make_url(database)
    except ArgumentError:
        return f"sqlite:///{database}"
    if url.get_backend_name() != 'sqlite':
        raise ValueError(f"Only SQLite databases are supported, got: {url.get_backend_name()}")
    return database


@contextmanager
def open_database(database: str):
    """Yields the raw sqlite3 connection behind a SQLAlchemy engine."""
    engine = sqlalchemy.create_engine(database_url(database))
    raw = engine.raw_connection()
    try:
        yield raw.driver_connection
    finally:
        raw.close()
        engine.dispose()


def get_version() -> str:
    version_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'VERSION')
    if os.path.exists(version_path):
        with open(version_path, 'r') as f:
            return f.read().strip()
    return 'Unknown'


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='schemasync',
        description='SchemaSync - Declarative schema migration for SQLite',
        epilog='Exit status is 0 when the migration succeeded or nothing needed changing, 1 on any error.',
    )
    parser.add_argument('command', choices=['migrate', 'plan'], help='Command to execute')

    parser.add_argument('--database', required=True, help='Path to the SQLite database file (or sqlite:/// URL)')
    parser.add_argument('--schema', required=True, help='Path to the schema .sql file or a directory of .sql files')
    parser.add_argument(
        '--allow-deletions', action='store_true',
        help='Allow tables and columns to be deleted. Off by default to prevent accidental data loss',
    )
    parser.add_argument(
        '--pragma', action='append', dest='pragmas', metavar='NAME',
        help='Pragma to reconcile with the schema (repeatable). Default: user_version',
    )

    # Output flags
    parser.add_argument('--json-out', help='Path to save the plan or the migration log as JSON')
    parser.add_argument('--log-format', choices=['text', 'json'], default='text', help='Log output format')

    # Quality of Life flags
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='Increase verbosity (-v, -vv)')
    parser.add_argument('--version', action='version', version=f'SchemaSync v{get_version()}')
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    # Every executed statement is logged at INFO; keep that trail for migrate
    verbose = max(args.verbose, 1) if args.command == 'migrate' else args.verbose
    setup_logging(verbose=verbose, log_format=args.log_format, no_color=args.no_color)

    logger.debug("Command=%s, Database=%s, Schema=%s", args.command, args.database, args.schema)

    try:
        schema = read_sql_source(args.schema)
        with open_database(args.database) as connection:
            migrator = Migrator(
                connection, schema,
                allow_deletions=args.allow_deletions,
                pragmas=args.pragmas or RECONCILED_PRAGMAS,
            )
            if args.command == 'plan':
                classification = migrator.plan()
                print(format_plan(classification, no_color=args.no_color))
                output = classification.to_dict()
            else:
                print(f"Migrating database: {args.database}")
                print(f"Using schema from: {args.schema}")
                print(f"Allow deletions: {args.allow_deletions}")
                result = migrator.migrate()
                if result.changed:
                    print("Database migration completed successfully.")
                else:
                    print("Database is already up to date.")
                output = result.to_dict()
    except (SchemaSyncError, sqlite3.Error, SQLAlchemyError, ValueError, OSError) as e:
        print(f"Error during migration: {e}", file=sys.stderr)
        return 1

    if args.json_out:
        with open(args.json_out, 'w') as f:
            json.dump(output, f, indent=2)
        print(f"JSON saved to {args.json_out}")
    return 0


def format_plan(classification, no_color=False) -> str:
    # ANSI Color Codes
    if no_color:
        GREEN = RED = YELLOW = RESET = ''
    else:
        GREEN = '\033[92m'
        RED = '\033[91m'
        YELLOW = '\033[93m'
        RESET = '\033[0m'

    output_content = "Execution Plan:\n"
    for name in classification.new_tables:
        output_content += f"{GREEN}  + Create Table: {name}{RESET}\n"
    for name in classification.removed_tables:
        output_content += f"{RED}  - Drop Table: {name}{RESET}\n"
    for name in classification.modified_tables:
        output_content += f"{YELLOW}  ~ Rebuild Table: {name}{RESET}\n"
    for name in classification.new_indices:
        output_content += f"{GREEN}  + Create Index: {name}{RESET}\n"
    for name in classification.removed_indices:
        output_content += f"{RED}  - Drop Index: {name}{RESET}\n"
    for name in classification.changed_indices:
        output_content += f"{YELLOW}  ~ Recreate Index: {name}{RESET}\n"
    for name, (current, target) in classification.pragma_changes.items():
        output_content += f"{YELLOW}  ~ Set Pragma: {name} {current} -> {target}{RESET}\n"
    for name in classification.leftover_tables:
        output_content += f"{RED}  - Drop Leftover Table: {name}{RESET}\n"

    if not classification.has_changes:
        output_content += "No changes detected.\n"
    return output_content


if __name__ == '__main__':
    sys.exit(main())
