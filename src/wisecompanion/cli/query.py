"""CLI for inspecting a published activities snapshot."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Sequence

from rich.console import Console
from rich.table import Table

from wisecompanion.countdown import countdown_state, current_time
from wisecompanion.errors import DataFormatError, LoadError
from wisecompanion.normalization.schema import CanonicalActivity
from wisecompanion.observability import configure_logging
from wisecompanion.settings import get_settings
from wisecompanion.store import ActivityStore, ArtifactLoader

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query the activities snapshot.")
    parser.add_argument("--source", default=None, help="Snapshot URL or path (defaults to settings).")
    parser.add_argument("--category", default=None, help="Category tag, e.g. Bank.")
    parser.add_argument("--subcategory", default=None, help="Second tag that must also match, e.g. DailyTask.")
    parser.add_argument("--app", default=None, help="Source app filter; 'all' disables it.")
    parser.add_argument("--page", default=None, help="Page key as used in the site URL hash.")
    parser.add_argument("--list-apps", action="store_true", help="List source apps in --category.")
    parser.add_argument("--legacy", action="store_true", help="Case-insensitive matching for old snapshots.")
    parser.add_argument("--json", action="store_true", dest="as_json", help="Print JSON instead of a table.")
    return parser


def select(store: ActivityStore, args: argparse.Namespace) -> List[CanonicalActivity]:
    """Apply the query flags to ``store``."""

    if args.page is not None:
        return store.for_page(args.page)
    if not args.category:
        return list(store.activities)
    if args.subcategory:
        activities = store.by_category_and_subcategory(args.category, args.subcategory)
        if args.app:
            allowed = {activity.id for activity in store.by_source_app(args.category, args.app)}
            activities = [activity for activity in activities if activity.id in allowed]
        return activities
    if args.app:
        return store.by_source_app(args.category, args.app)
    return store.by_category(args.category)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.list_apps and not args.category:
        parser.error("--list-apps requires --category")

    settings = get_settings()
    configure_logging(settings)

    store = ActivityStore(pages=settings.categories.pages, legacy_matching=args.legacy)
    loader = ArtifactLoader(args.source, settings=settings)
    try:
        loader.load(store)
    except (LoadError, DataFormatError) as exc:
        console.print(f"[red]❌ Could not load activities:[/red] {exc}")
        return 1

    if args.list_apps:
        apps = store.distinct_source_apps(args.category)
        if args.as_json:
            print(json.dumps(apps, ensure_ascii=False))
        else:
            for app in apps:
                console.print(f"- {app}")
        return 0

    activities = select(store, args)
    now = current_time(settings.runtime.timezone)

    if args.as_json:
        rows = []
        for activity in activities:
            row = activity.to_artifact()
            row["countdown"] = countdown_state(activity.end_date, now).label
            rows.append(row)
        json.dump(rows, sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
        return 0

    if not activities:
        console.print("[yellow]暂无活动数据。[/yellow]")
        return 0

    table = Table(title=f"{len(activities)} activities")
    table.add_column("Icon")
    table.add_column("Name", style="bold")
    table.add_column("Source App")
    table.add_column("Categories")
    table.add_column("Countdown")
    for activity in activities:
        table.add_row(
            activity.icon,
            activity.name,
            activity.source_app,
            ", ".join(activity.categories),
            countdown_state(activity.end_date, now).label,
        )
    console.print(table)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
