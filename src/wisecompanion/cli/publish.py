"""Publish entrypoint: pull activities from Airtable and write the snapshot."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from wisecompanion.errors import WisecompanionError
from wisecompanion.normalization.normalizer import field_equals
from wisecompanion.observability import configure_logging
from wisecompanion.services.publisher import ActivityPublisher
from wisecompanion.settings import get_settings

LOGGER = logging.getLogger("wisecompanion.cli.publish")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch activities from Airtable and write the JSON snapshot.")
    parser.add_argument("--output", type=Path, default=None, help="Snapshot path (defaults to settings).")
    parser.add_argument(
        "--filter-formula",
        default=None,
        help="Airtable filterByFormula expression applied server side.",
    )
    parser.add_argument(
        "--only",
        metavar="FIELD=VALUE",
        default=None,
        help="Keep only records whose FIELD equals VALUE, e.g. Status=active.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Normalize without writing the snapshot.")
    return parser


def _parse_only(value: str | None):
    if not value:
        return None
    field, sep, expected = value.partition("=")
    if not sep or not field.strip():
        raise argparse.ArgumentTypeError(f"--only expects FIELD=VALUE, got {value!r}")
    return field_equals(field.strip(), expected.strip())


def main(argv: Sequence[str] | None = None) -> int:
    """Run one publish cycle; returns a process exit code."""

    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        predicate = _parse_only(args.only)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    publisher = ActivityPublisher(settings=settings, predicate=predicate)
    try:
        result = publisher.publish(output=args.output, filter_formula=args.filter_formula, dry_run=args.dry_run)
    except WisecompanionError:
        LOGGER.exception("Failed to publish activities; existing snapshot left unchanged")
        return 1

    LOGGER.info(
        "Publish finished: %s activities (%s excluded) -> %s",
        result.activity_count,
        result.excluded_count,
        result.path,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
