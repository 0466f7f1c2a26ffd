#!/usr/bin/env python3
"""Command-line entry point: upload a graph dataset into Neo4j.

Usage:
    kgload --schema graph.json --uri neo4j://localhost:7687 --username neo4j --password secret
    kgload --config kgload.toml --max-tasks 8
    kgload --schema graph.json --dry-run

Settings come from the TOML file (``--config``, ``KGLOAD_CONFIG`` or
``./kgload.toml``), then ``KGLOAD_*`` environment variables, then the flags
below. A store or configuration problem aborts before anything is uploaded
and exits with status 1; record-level failures are written to the error log
and do not change the exit status.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from kgload.config import ConfigError, load_graph_schema, load_settings
from kgload.ingest import GraphUploader, UploadReport
from kgload.logging import setup_logging
from kgload.progress import console_stream
from kgload.records import TabularRecordReader
from kgload.storage.interfaces import GraphStoreInterface, StoreSetupError
from kgload.storage.memory import InMemoryGraphStore


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parses command-line arguments for the uploader.

    Returns:
        An `argparse.Namespace` object containing the parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Bulk-load node and edge data files into a graph store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings TOML file")
    parser.add_argument("--schema", type=Path, default=None, help="Graph schema JSON document")
    parser.add_argument("--max-tasks", type=int, default=None, help="Entity types uploaded at once")
    parser.add_argument("--error-log", type=Path, default=None, help="Where to write per-record failures")
    parser.add_argument("--uri", default=None, help="Graph store URI")
    parser.add_argument("--username", default=None, help="Graph store user")
    parser.add_argument("--password", default=None, help="Graph store password")
    parser.add_argument("--database", default=None, help="Graph store database")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Upload into an in-memory store instead of Neo4j",
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="No live progress line")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def _open_store(settings, dry_run: bool) -> GraphStoreInterface:
    if dry_run:
        return InMemoryGraphStore()
    # neo4j is only imported for real runs
    from kgload.storage.neo4j_store import Neo4jGraphStore

    return Neo4jGraphStore.connect(
        settings.uri,
        username=settings.username,
        password=settings.password,
        database=settings.database,
    )


async def run(args: argparse.Namespace) -> UploadReport:
    """Load configuration, connect, and upload.

    Raises:
        ConfigError: Invalid or missing configuration.
        StoreSetupError: The store cannot be reached.
    """
    settings = load_settings(
        config_path=args.config,
        overrides={
            "graph_config_file": args.schema,
            "max_tasks": args.max_tasks,
            "error_log_path": args.error_log,
            "uri": args.uri,
            "username": args.username,
            "password": args.password,
            "database": args.database,
        },
    )
    if settings.graph_config_file is None:
        raise ConfigError("no graph schema given (use --schema or graph_config_file)")
    graph = load_graph_schema(settings.graph_config_file)

    store = _open_store(settings, args.dry_run)
    try:
        await store.verify()
        uploader = GraphUploader(
            graph=graph,
            store=store,
            max_concurrency=settings.max_tasks,
            error_log_path=settings.error_log_path,
            reader=TabularRecordReader(settings.record_profile()),
            progress_stream=console_stream(args.quiet),
        )
        return await uploader.run()
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_arguments(argv)
    logger = setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        report = asyncio.run(run(args))
    except ConfigError as e:
        logger.error("Configuration problem: %s", e)
        return 1
    except StoreSetupError as e:
        logger.error(
            "Ran into an issue checking the graph store. Please check all values are "
            "specified correctly in the settings file. Details - %s",
            e,
        )
        return 1
    print(report.summary_text())
    return 0


if __name__ == "__main__":
    sys.exit(main())
