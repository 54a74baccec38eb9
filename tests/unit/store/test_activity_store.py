"""Tests for ActivityStore queries."""

from __future__ import annotations

from typing import List

import pytest
from pydantic import ValidationError

from wisecompanion.normalization.schema import CanonicalActivity
from wisecompanion.store.activity_store import ActivityStore


def _activity(activity_id: str, categories: List[str], source_app: str = "其他") -> CanonicalActivity:
    return CanonicalActivity(
        id=activity_id,
        name=f"activity {activity_id}",
        description="desc",
        icon="🎁",
        link="#",
        categories=categories,
        sourceApp=source_app,
        targetApp=source_app,
    )


def _bank_store() -> ActivityStore:
    return ActivityStore(
        [
            _activity("a", ["Bank", "DailyTask"], "招商银行"),
            _activity("b", ["Video"], "抖音"),
            _activity("c", ["Bank", "Payment"], " 建设银行 "),
            _activity("d", ["Bank", "DailyTask", "Deposit"], "招商银行"),
        ]
    )


def test_by_category_preserves_order():
    store = ActivityStore(
        [
            _activity("1", ["Bank", "DailyTask"]),
            _activity("2", ["Video"]),
            _activity("3", ["Bank", "Payment"]),
        ]
    )
    assert [activity.id for activity in store.by_category("Bank")] == ["1", "3"]


def test_by_category_is_case_sensitive_by_default():
    store = _bank_store()
    assert store.by_category("bank") == []


def test_legacy_matching_folds_case_and_whitespace():
    store = ActivityStore([_activity("x", [" bank "], "招商银行")], legacy_matching=True)
    assert [activity.id for activity in store.by_category("Bank")] == ["x"]
    assert [activity.id for activity in store.by_source_app("Bank", "招商银行 ")] == ["x"]


def test_subcategory_requires_both_tags():
    store = _bank_store()
    assert [activity.id for activity in store.by_category_and_subcategory("Bank", "DailyTask")] == ["a", "d"]
    assert store.by_category_and_subcategory("Video", "DailyTask") == []


def test_by_source_app_matches_trimmed_names():
    store = _bank_store()
    assert [activity.id for activity in store.by_source_app("Bank", "招商银行")] == ["a", "d"]
    assert [activity.id for activity in store.by_source_app("Bank", "建设银行")] == ["c"]


def test_all_sentinel_bypasses_source_app_filter():
    store = _bank_store()
    assert [activity.id for activity in store.by_source_app("Bank", "all")] == ["a", "c", "d"]


def test_distinct_source_apps_trims_and_dedupes():
    store = ActivityStore(
        [
            _activity("1", ["Bank"], "招商银行"),
            _activity("2", ["Bank"], " 建设银行 "),
            _activity("3", ["Bank"], "招商银行"),
            _activity("4", ["Video"], "抖音"),
        ]
    )
    assert store.distinct_source_apps("Bank") == ["招商银行", "建设银行"]


def test_empty_category_returns_empty_list():
    store = _bank_store()
    assert store.by_category("Shopping") == []
    assert store.distinct_source_apps("Shopping") == []


def test_replace_swaps_snapshot_wholesale():
    store = _bank_store()
    before = store.activities
    store.replace([_activity("z", ["Shopping"])])

    assert len(store) == 1
    assert [activity.id for activity in store.by_category("Shopping")] == ["z"]
    assert len(before) == 4


def test_for_page_routes_to_category():
    store = _bank_store()
    assert [activity.id for activity in store.for_page("#bank")] == ["a", "c", "d"]
    assert [activity.id for activity in store.for_page("Video")] == ["b"]


def test_home_and_unknown_pages_show_everything():
    store = _bank_store()
    assert len(store.for_page("home")) == 4
    assert len(store.for_page("")) == 4
    assert len(store.for_page(None)) == 4
    assert len(store.for_page("nonexistent")) == 4


def test_custom_page_table():
    store = ActivityStore([_activity("1", ["DailyTask"])], pages={"Tasks": "DailyTask"})
    assert store.resolve_page("tasks") == "DailyTask"
    assert [activity.id for activity in store.for_page("tasks")] == ["1"]


def test_query_results_cannot_change_the_loaded_snapshot():
    store = _bank_store()
    activity = store.by_category("Bank")[0]

    with pytest.raises(AttributeError):
        activity.categories.append("Video")
    with pytest.raises(ValidationError):
        activity.categories = ("Video",)

    assert store.by_category("Video")[0].id == "b"
    assert len(store.by_category("Video")) == 1
    assert store.activities[0].categories == ("Bank", "DailyTask")
