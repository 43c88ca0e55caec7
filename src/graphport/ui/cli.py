from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from graphport.adapters.forest import dump_forest, open_forest_source, write_forest
from graphport.app import (
    export_graph,
    import_forest,
    load_models,
    sqlalchemy_unit_of_work_factory,
)
from graphport.config import configure_logging, get_codec_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export and import anonymized record graphs")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the local data dir)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level name",
    )
    parser.add_argument(
        "--log-sql",
        action="store_true",
        help="Log the SQL statements issued while importing or exporting",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Serialize a record graph to a forest file")
    export.add_argument(
        "--models",
        type=str,
        required=True,
        help="Mapped models as 'package.module:attribute' (registry, declarative base or list)",
    )
    export.add_argument("--type", dest="type_tag", type=str, required=True, help="Root type tag")
    export.add_argument("--id", dest="real_id", type=str, required=True, help="Root record id")
    export.add_argument(
        "--output",
        type=Path,
        help="Target .json or .jsonl file (prints JSON to stdout when omitted)",
    )

    import_ = subparsers.add_parser("import", help="Deserialize a forest file into the database")
    import_.add_argument(
        "--models",
        type=str,
        required=True,
        help="Mapped models as 'package.module:attribute' (registry, declarative base or list)",
    )
    import_.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables from the models' metadata before importing",
    )
    import_.add_argument("path", type=Path, help="Forest file (.json or .jsonl)")

    return parser.parse_args(list(argv))


def _parse_log_level(value: str) -> int:
    level = logging.getLevelNamesMapping().get(value.strip().upper())
    if level is None:
        raise ValueError(f"Unknown log level: {value}")
    return level


def _parse_real_id(value: str) -> int | str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Record id must not be empty")
    return int(stripped) if stripped.isdigit() else stripped


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(
            level=_parse_log_level(parsed_args.log_level),
            sql_level=logging.INFO if parsed_args.log_sql else None,
        )
        real_id = _parse_real_id(parsed_args.real_id) if parsed_args.command == "export" else None
        if parsed_args.command == "import" and not parsed_args.path.is_file():
            raise ValueError(f"Forest file not found: {parsed_args.path}")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        config = get_codec_config()
        models = load_models(parsed_args.models)
        if parsed_args.command == "export":
            graph = export_graph(
                type_tag=parsed_args.type_tag,
                real_id=real_id,
                unit_of_work_factory=sqlalchemy_unit_of_work_factory(
                    models, database_uri=parsed_args.database_uri
                ),
                config=config,
            )
            if parsed_args.output is None:
                sys.stdout.write(dump_forest(graph, id_key=config.id_key) + "\n")
            else:
                write_forest(graph, parsed_args.output, id_key=config.id_key)
        elif parsed_args.command == "import":
            bindings = import_forest(
                open_forest_source(parsed_args.path, id_key=config.id_key),
                unit_of_work_factory=sqlalchemy_unit_of_work_factory(
                    models,
                    database_uri=parsed_args.database_uri,
                    create_tables=parsed_args.create_tables,
                ),
                config=config,
            )
            log.info("Imported %d records from %s", len(bindings), parsed_args.path)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
