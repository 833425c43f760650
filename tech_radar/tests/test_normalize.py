from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest

from tech_radar.radar_sync.errors import ValidationError
from tech_radar.radar_sync.event import IssueEvent
from tech_radar.radar_sync.extract import extract_fields
from tech_radar.radar_sync.normalize import (
    NormalizerSettings,
    Strictness,
    is_placeholder,
    normalize_record,
    parse_tags,
    slugify,
)

TODAY = date(2026, 10, 18)

STRICT_WITH_DEPARTMENT = NormalizerSettings(Strictness.STRICT, require_department=True)
LENIENT = NormalizerSettings(Strictness.LENIENT)

FULL_FIELDS = {
    "title": "Kubernetes",
    "ring": "adopt",
    "quadrant": "platforms",
    "department": "Platform Eng",
}


def test_sample_body_normalizes(
    kubernetes_body: str, make_event: Callable[..., IssueEvent]
) -> None:
    event = make_event(kubernetes_body)
    record = normalize_record(
        extract_fields(kubernetes_body), event, STRICT_WITH_DEPARTMENT, today=TODAY
    )
    assert record.title == "Kubernetes"
    assert record.slug == "kubernetes"
    assert record.ring == "adopt"
    assert record.quadrant == "platforms"
    assert record.department == "Platform Eng"
    assert record.tags == ["containers", "orchestration", "cncf"]
    assert record.champion == "octocat"
    assert record.date == "2026-10-18"
    assert record.source.issue_id == 12
    assert record.source.submitter_url == "https://github.com/octocat"
    assert record.raw_body == kubernetes_body


@pytest.mark.parametrize(
    ("missing", "label"),
    [
        ("title", "Technology Name"),
        ("ring", "Ring"),
        ("quadrant", "Quadrant"),
        ("department", "Department"),
    ],
)
def test_missing_required_field_is_reported(
    missing: str, label: str, make_event: Callable[..., IssueEvent]
) -> None:
    fields = dict(FULL_FIELDS)
    del fields[missing]
    with pytest.raises(ValidationError) as excinfo:
        normalize_record(fields, make_event(""), STRICT_WITH_DEPARTMENT, today=TODAY)
    assert excinfo.value.kind == ValidationError.MISSING_FIELD
    assert excinfo.value.missing_field == label
    assert str(excinfo.value) == f"Missing required field: {label}"


def test_first_missing_field_wins(make_event: Callable[..., IssueEvent]) -> None:
    fields = {"ring": "No response", "department": ""}
    with pytest.raises(ValidationError) as excinfo:
        normalize_record(fields, make_event(""), STRICT_WITH_DEPARTMENT, today=TODAY)
    assert excinfo.value.missing_field == "Technology Name"


def test_no_response_ring_is_missing(make_event: Callable[..., IssueEvent]) -> None:
    body = "### Technology Name\n\nKubernetes\n\n### Ring\n\nNo response\n\n### Quadrant\n\nTools"
    with pytest.raises(ValidationError) as excinfo:
        normalize_record(extract_fields(body), make_event(body), today=TODAY)
    assert excinfo.value.missing_field == "Ring"


def test_department_optional_unless_required(make_event: Callable[..., IssueEvent]) -> None:
    fields = {**FULL_FIELDS, "department": "_No response_"}
    record = normalize_record(fields, make_event(""), NormalizerSettings(), today=TODAY)
    assert record.department is None


def test_department_whitespace_is_collapsed(make_event: Callable[..., IssueEvent]) -> None:
    fields = {**FULL_FIELDS, "department": "  Platform \n Eng "}
    record = normalize_record(fields, make_event(""), today=TODAY)
    assert record.department == "Platform Eng"


def test_strict_mode_never_uses_issue_title(make_event: Callable[..., IssueEvent]) -> None:
    fields = {key: value for key, value in FULL_FIELDS.items() if key != "title"}
    with pytest.raises(ValidationError):
        normalize_record(fields, make_event("", title="Kubernetes"), today=TODAY)


def test_lenient_mode_falls_back_to_issue_title(make_event: Callable[..., IssueEvent]) -> None:
    fields = {key: value for key, value in FULL_FIELDS.items() if key != "title"}
    record = normalize_record(fields, make_event("", title="Kubernetes!"), LENIENT, today=TODAY)
    assert record.title == "Kubernetes!"
    assert record.slug == "kubernetes"


def test_lenient_mode_defaults_absent_ring(make_event: Callable[..., IssueEvent]) -> None:
    fields = {key: value for key, value in FULL_FIELDS.items() if key != "ring"}
    record = normalize_record(fields, make_event(""), LENIENT, today=TODAY)
    assert record.ring == "assess"


def test_lenient_mode_rejects_blank_ring(make_event: Callable[..., IssueEvent]) -> None:
    fields = {**FULL_FIELDS, "ring": "no response"}
    with pytest.raises(ValidationError) as excinfo:
        normalize_record(fields, make_event(""), LENIENT, today=TODAY)
    assert excinfo.value.missing_field == "Ring"


def test_title_without_slug_characters_is_invalid(make_event: Callable[..., IssueEvent]) -> None:
    fields = {**FULL_FIELDS, "title": "???"}
    with pytest.raises(ValidationError) as excinfo:
        normalize_record(fields, make_event(""), today=TODAY)
    assert excinfo.value.kind == ValidationError.INVALID_TITLE


def test_champion_is_kept_when_given(make_event: Callable[..., IssueEvent]) -> None:
    fields = {**FULL_FIELDS, "champion": " Alice "}
    record = normalize_record(fields, make_event(""), today=TODAY)
    assert record.champion == "Alice"


def test_date_defaults_to_current_utc_day(make_event: Callable[..., IssueEvent]) -> None:
    record = normalize_record(FULL_FIELDS, make_event(""))
    assert len(record.date) == 10
    assert record.date[4] == "-" and record.date[7] == "-"


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Kubernetes", "kubernetes"),
        ("  Apache Kafka (Streams) ", "apache-kafka-streams"),
        ("C++ / C#", "c-c"),
        ("--Already-Slugged--", "already-slugged"),
        ("Déjà Vu", "d-j-vu"),
        ("!!!", ""),
    ],
)
def test_slugify(title: str, expected: str) -> None:
    assert slugify(title) == expected
    assert slugify(slugify(title)) == slugify(title)


def test_parse_tags_keeps_order_and_duplicates() -> None:
    assert parse_tags("b, a, ,b,") == ["b", "a", "b"]
    assert parse_tags("") == []
    assert parse_tags(None) == []
    assert parse_tags("_No response_") == []


def test_is_placeholder() -> None:
    assert is_placeholder("No response")
    assert is_placeholder("  _No response_ ")
    assert is_placeholder("NO RESPONSE")
    assert not is_placeholder("No responses")
