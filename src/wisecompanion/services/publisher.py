"""Publish step: Airtable records to the activities snapshot on disk."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

from wisecompanion.normalization.normalizer import RecordPredicate, normalize_records
from wisecompanion.normalization.schema import CanonicalActivity, RawRecord
from wisecompanion.observability import get_observability
from wisecompanion.services.airtable import AirtableClient
from wisecompanion.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a publish run."""

    path: Path
    activity_count: int
    excluded_count: int
    written: bool
    skipped_ids: Tuple[str, ...] = ()


def render_artifact(activities: Iterable[CanonicalActivity]) -> str:
    """Serialize activities as the pretty-printed JSON array the site reads."""

    payload = [activity.to_artifact() for activity in activities]
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def write_artifact(path: Path, activities: Iterable[CanonicalActivity]) -> None:
    """Replace ``path`` with the serialized activities.

    The content goes to a temporary file in the same directory first and is
    then moved into place, so readers see either the old or the new snapshot.
    """

    content = render_artifact(activities)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ActivityPublisher:
    """Fetch, normalize, and write the activities snapshot."""

    def __init__(
        self,
        *,
        client: AirtableClient | None = None,
        settings: Settings | None = None,
        predicate: RecordPredicate | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or AirtableClient(settings=self.settings)
        self.predicate = predicate
        self.observability = get_observability(component="publisher", settings=self.settings)

    def build(self, records: Iterable[RawRecord], skipped: List[str] | None = None) -> List[CanonicalActivity]:
        """Normalize raw records with the configured translations and predicate."""

        return normalize_records(
            records,
            translations=self.settings.categories.translations,
            predicate=self.predicate,
            skipped=skipped,
        )

    def publish(
        self,
        *,
        output: Path | None = None,
        filter_formula: str | None = None,
        dry_run: bool = False,
    ) -> PublishResult:
        """Run one publish cycle.

        Upstream errors propagate before anything is written, so a failed run
        leaves the previous snapshot untouched.

        Raises:
            UpstreamFetchError: Airtable could not be reached or refused the request.
            DataFormatError: Airtable returned an unexpected body.
        """

        target = Path(output) if output else self.settings.artifact_path
        LOGGER.info("Publishing Airtable activities to %s", target)

        records = self.client.fetch_records(filter_formula=filter_formula)
        skipped: List[str] = []
        activities = self.build(records, skipped)
        excluded = len(skipped)
        if skipped:
            LOGGER.info("Skipped %s record(s): %s", excluded, ", ".join(skipped))

        if dry_run:
            LOGGER.info("Dry run: %s activities normalized, nothing written", len(activities))
        else:
            write_artifact(target, activities)
            LOGGER.info("Wrote %s activities to %s", len(activities), target)

        self.observability.emit_event(
            "publish.completed",
            path=str(target),
            activities=len(activities),
            excluded=excluded,
            dry_run=dry_run,
        )
        return PublishResult(
            path=target,
            activity_count=len(activities),
            excluded_count=excluded,
            written=not dry_run,
            skipped_ids=tuple(skipped),
        )


__all__ = ["ActivityPublisher", "PublishResult", "render_artifact", "write_artifact"]
