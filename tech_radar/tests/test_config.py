from __future__ import annotations

import pytest

from tech_radar.radar_sync.config import RadarConfig, parse_flag
from tech_radar.radar_sync.event import IssueEvent
from tech_radar.radar_sync.normalize import Strictness
from tech_radar.radar_sync.paths import StoragePolicy


def test_defaults() -> None:
    config = RadarConfig.from_env({})
    assert config == RadarConfig()
    assert config.label == "tech-radar"
    assert config.base_dir == "radar"
    assert config.policy is StoragePolicy.DATED_BY_TITLE
    assert config.strictness is Strictness.STRICT
    assert not config.department_required


def test_environment_precedence() -> None:
    environ = {
        "INPUT_LABEL": "radar-input",
        "RADAR_LABEL": "radar-env",
        "INPUT_TARGET-DIRECTORY": "docs/radar",
        "INPUT_STORAGE-POLICY": "title-with-department-sections",
        "RADAR_STRICTNESS": "lenient",
    }
    config = RadarConfig.from_env(environ)
    assert config.label == "radar-env"
    assert config.base_dir == "docs/radar"
    assert config.policy is StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS
    assert config.strictness is Strictness.LENIENT
    assert config.department_required
    assert config.normalizer_settings.require_department


def test_explicit_values_win() -> None:
    config = RadarConfig.from_env(
        {"RADAR_LABEL": "env", "RADAR_REQUIRE_DEPARTMENT": "no"},
        label="cli",
        policy="flat-by-issue",
    )
    assert config.label == "cli"
    assert config.policy is StoragePolicy.FLAT_BY_ISSUE
    assert config.require_department is False


def test_require_department_flag() -> None:
    config = RadarConfig.from_env({"RADAR_REQUIRE_DEPARTMENT": "true"})
    assert config.department_required


def test_invalid_values_raise() -> None:
    with pytest.raises(ValueError):
        RadarConfig.from_env({"RADAR_STORAGE_POLICY": "weekly"})
    with pytest.raises(ValueError):
        RadarConfig.from_env({"RADAR_STRICTNESS": "relaxed"})
    with pytest.raises(ValueError):
        parse_flag("maybe")


def test_event_from_payload_and_filters() -> None:
    payload = {
        "action": "closed",
        "issue": {
            "number": 5,
            "title": "Kafka",
            "body": None,
            "html_url": "https://github.com/acme/radar/issues/5",
            "labels": [{"name": "tech-radar"}, "triaged"],
            "user": {"login": "octocat", "html_url": "https://github.com/octocat"},
        },
    }
    event = IssueEvent.from_payload(payload)
    assert event.number == 5
    assert event.body == ""
    assert event.labels == ["tech-radar", "triaged"]
    assert event.should_process("tech-radar")
    assert not event.should_process("other")
    pushed = IssueEvent.from_payload(payload, event_name="push")
    assert pushed.skip_reason("tech-radar") == "This action only runs on issue closed events"
