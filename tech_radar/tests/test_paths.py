from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest

from tech_radar.radar_sync.event import IssueEvent
from tech_radar.radar_sync.normalize import SubmissionRecord, normalize_record
from tech_radar.radar_sync.paths import StoragePolicy, parent_directory, resolve_path


@pytest.fixture()
def record(make_event: Callable[..., IssueEvent]) -> SubmissionRecord:
    fields = {"title": "Apache Kafka", "ring": "trial", "quadrant": "platforms"}
    return normalize_record(fields, make_event("", number=42), today=date(2026, 10, 18))


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (StoragePolicy.FLAT_BY_ISSUE, "radar/apache-kafka-42.md"),
        (StoragePolicy.DATED_BY_TITLE, "radar/2026-10-18/apache-kafka.md"),
        (StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS, "radar/apache-kafka.md"),
    ],
)
def test_resolve_path(record: SubmissionRecord, policy: StoragePolicy, expected: str) -> None:
    assert resolve_path(record, policy, "radar") == expected


def test_base_dir_trailing_slash_and_nesting(record: SubmissionRecord) -> None:
    path = resolve_path(record, StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS, "docs/radar/")
    assert path == "docs/radar/apache-kafka.md"


def test_empty_base_dir_writes_at_root(record: SubmissionRecord) -> None:
    assert resolve_path(record, StoragePolicy.FLAT_BY_ISSUE, "") == "apache-kafka-42.md"
    assert parent_directory("apache-kafka-42.md") == ""
    assert parent_directory("radar/2026-10-18/apache-kafka.md") == "radar/2026-10-18"


def test_policy_parse() -> None:
    assert StoragePolicy.parse("Dated-By-Title") is StoragePolicy.DATED_BY_TITLE
    assert StoragePolicy.parse("flat_by_issue") is StoragePolicy.FLAT_BY_ISSUE
    with pytest.raises(ValueError):
        StoragePolicy.parse("by-week")


def test_policy_flags() -> None:
    assert StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS.merges_sections
    assert StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS.requires_department
    assert not StoragePolicy.DATED_BY_TITLE.merges_sections
    assert not StoragePolicy.FLAT_BY_ISSUE.requires_department
