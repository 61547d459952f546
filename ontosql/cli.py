"""Command line entry point.

Usage:
    python -m ontosql                          # run everything from ./ontosql-config.json
    python -m ontosql -c other.json -x 0-2,5   # run selected steps, keep other tables
    python -m ontosql -o go.owl -o chebi.owl   # override the configured ontologies
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from ontosql.config import CONFIG_FILE, load_config, parse_indices
from ontosql.errors import OntoSQLError
from ontosql.ontology import load_ontologies
from ontosql.pipeline import Pipeline
from ontosql.store import Store

__all__ = ["build_parser", "main"]

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ontosql", description="Build derived SQL tables from OWL ontologies"
    )
    parser.add_argument(
        "-c", "--config", default=CONFIG_FILE, help=f"configuration file (default: {CONFIG_FILE})"
    )
    parser.add_argument(
        "-o",
        "--ontology",
        action="append",
        dest="ontologies",
        metavar="SOURCE",
        help="ontology to load instead of the configured ones; may be repeated",
    )
    parser.add_argument(
        "-x",
        "--index",
        metavar="SELECTION",
        help='steps to run, e.g. "0,2-4"; 0 is the entity index. Disables the initial wipe',
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        indices = parse_indices(args.index) if args.index else None
        ontologies = load_ontologies(args.ontologies or config.ontologies, config.import_locations)

        with Store.from_settings(config.connection) as store:
            stats = Pipeline(config, store, ontologies).run(indices)
    except (OntoSQLError, OSError) as e:
        print(f"ontosql: {e}", file=sys.stderr)
        return 1

    logger.info(f"{stats.steps_run} steps run; {stats.entities_indexed} entities indexed")
    return 0
