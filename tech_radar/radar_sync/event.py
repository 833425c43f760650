"""Triggering issue event model."""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

ISSUES_EVENT = "issues"
CLOSED_ACTION = "closed"


@dataclass
class IssueEvent:
    event_name: str
    action: str
    number: int
    title: str
    body: str
    html_url: str
    user_login: str
    user_url: str
    labels: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], event_name: str = ISSUES_EVENT) -> IssueEvent:
        issue = cast(Mapping[str, Any], payload.get("issue") or {})
        user = cast(Mapping[str, Any], issue.get("user") or {})
        labels = []
        for label in issue.get("labels", []) or []:
            if isinstance(label, Mapping):
                labels.append(str(label.get("name", "")))
            else:
                labels.append(str(label))
        return cls(
            event_name=event_name,
            action=str(payload.get("action", "")),
            number=int(issue.get("number", 0) or 0),
            title=str(issue.get("title") or ""),
            body=str(issue.get("body") or ""),
            html_url=str(issue.get("html_url") or ""),
            user_login=str(user.get("login") or ""),
            user_url=str(user.get("html_url") or ""),
            labels=labels,
        )

    @classmethod
    def from_file(cls, path: Path, event_name: str = ISSUES_EVENT) -> IssueEvent:
        with path.open("r", encoding="utf-8") as fh:
            return cls.from_payload(cast(dict[str, Any], json.load(fh)), event_name)

    def skip_reason(self, label: str) -> str | None:
        """Return why this event must be ignored, or ``None`` to process it."""
        if self.event_name != ISSUES_EVENT or self.action != CLOSED_ACTION:
            return "This action only runs on issue closed events"
        if label not in self.labels:
            return f'Issue does not have the required "{label}" label'
        return None

    def should_process(self, label: str) -> bool:
        return self.skip_reason(label) is None
