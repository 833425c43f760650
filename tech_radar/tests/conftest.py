from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tech_radar.radar_sync.event import IssueEvent

SAMPLES = Path(__file__).resolve().parent / "samples"


@pytest.fixture()
def samples_dir() -> Path:
    return SAMPLES


@pytest.fixture()
def load_sample() -> Callable[[str], str]:
    def loader(name: str) -> str:
        return (SAMPLES / name).read_text(encoding="utf-8")

    return loader


@pytest.fixture()
def make_event() -> Callable[..., IssueEvent]:
    def factory(body: str, **overrides: object) -> IssueEvent:
        values: dict[str, object] = {
            "event_name": "issues",
            "action": "closed",
            "number": 12,
            "title": "Proposal: Kubernetes",
            "body": body,
            "html_url": "https://github.com/acme/radar/issues/12",
            "user_login": "octocat",
            "user_url": "https://github.com/octocat",
            "labels": ["tech-radar"],
        }
        values.update(overrides)
        return IssueEvent(**values)  # type: ignore[arg-type]

    return factory


@pytest.fixture()
def kubernetes_body(load_sample: Callable[[str], str]) -> str:
    return load_sample("kubernetes_issue.md")
