"""In-memory activity store with category and source-app queries."""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Tuple

from wisecompanion.normalization.reference_data import ALL_SOURCE_APPS, HOME_PAGES, PAGE_CATEGORIES
from wisecompanion.normalization.schema import CanonicalActivity

LOGGER = logging.getLogger(__name__)


def _fold(value: str) -> str:
    return value.strip().casefold()


class ActivityStore:
    """Holds the loaded snapshot and answers filter queries.

    The snapshot is an immutable tuple that :meth:`replace` swaps in a single
    assignment, so a reader always sees either the previous or the next
    snapshot in full.

    Args:
        activities: Initial snapshot, empty by default.
        pages: Page key to category tag table used by :meth:`for_page`.
        legacy_matching: Compare tags and app names trimmed and
            case-insensitively. Only meant for snapshots written before
            categories were normalized.
    """

    def __init__(
        self,
        activities: Iterable[CanonicalActivity] = (),
        *,
        pages: Mapping[str, str] | None = None,
        legacy_matching: bool = False,
    ) -> None:
        self._activities: Tuple[CanonicalActivity, ...] = tuple(activities)
        self.pages = {key.strip().lower(): tag for key, tag in (pages or PAGE_CATEGORIES).items()}
        self.legacy_matching = legacy_matching

    def __len__(self) -> int:
        return len(self._activities)

    @property
    def activities(self) -> Tuple[CanonicalActivity, ...]:
        """tuple: The current snapshot."""

        return self._activities

    def replace(self, activities: Iterable[CanonicalActivity]) -> None:
        """Swap in a new snapshot wholesale."""

        snapshot = tuple(activities)
        self._activities = snapshot
        LOGGER.debug("Activity store now holds %s activities", len(snapshot))

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def _has_tag(self, activity: CanonicalActivity, tag: str) -> bool:
        if tag in activity.categories:
            return True
        if self.legacy_matching:
            wanted = _fold(tag)
            return any(_fold(category) == wanted for category in activity.categories)
        return False

    def _same_app(self, activity: CanonicalActivity, app_name: str) -> bool:
        if activity.source_app.strip() == app_name.strip():
            return True
        return self.legacy_matching and _fold(activity.source_app) == _fold(app_name)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def by_category(self, tag: str) -> List[CanonicalActivity]:
        """Return activities tagged ``tag``, in snapshot order."""

        snapshot = self._activities
        return [activity for activity in snapshot if self._has_tag(activity, tag)]

    def by_category_and_subcategory(self, tag: str, sub_tag: str) -> List[CanonicalActivity]:
        """Return activities tagged with both ``tag`` and ``sub_tag``."""

        snapshot = self._activities
        return [
            activity
            for activity in snapshot
            if self._has_tag(activity, tag) and self._has_tag(activity, sub_tag)
        ]

    def by_source_app(self, category_tag: str, app_name: str) -> List[CanonicalActivity]:
        """Return activities in ``category_tag`` from ``app_name``.

        Passing ``"all"`` as ``app_name`` returns the whole category.
        """

        matches = self.by_category(category_tag)
        if app_name.strip() == ALL_SOURCE_APPS:
            return matches
        return [activity for activity in matches if self._same_app(activity, app_name)]

    def distinct_source_apps(self, category_tag: str) -> List[str]:
        """Return the trimmed source apps seen in ``category_tag``, first-seen order."""

        apps: List[str] = []
        seen = set()
        for activity in self.by_category(category_tag):
            app = activity.source_app.strip()
            if app in seen:
                continue
            seen.add(app)
            apps.append(app)
        return apps

    def resolve_page(self, page_key: str | None) -> str | None:
        """Return the category tag a page lists, or ``None`` for the all-activities page."""

        key = (page_key or "").strip().lstrip("#").lower()
        if key in HOME_PAGES:
            return None
        tag = self.pages.get(key)
        if tag is None:
            LOGGER.debug("Unknown page key %r, showing all activities", page_key)
        return tag

    def for_page(self, page_key: str | None) -> List[CanonicalActivity]:
        """Return the activities a page shows; home and unknown keys show everything."""

        tag = self.resolve_page(page_key)
        if tag is None:
            return list(self._activities)
        return self.by_category(tag)


__all__ = ["ActivityStore"]
