"""Tech radar issue synchronisation package."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from . import config, document, errors, event, extract, merge, normalize, paths, store, sync

__all__ = [
    "config",
    "document",
    "errors",
    "event",
    "extract",
    "merge",
    "normalize",
    "paths",
    "store",
    "sync",
    "process_event",
]


def process_event(
    payload: Mapping[str, Any],
    content_store: store.ContentStore,
    radar_config: config.RadarConfig | None = None,
    event_name: str = event.ISSUES_EVENT,
) -> sync.SyncOutcome:
    """Convenience wrapper running one webhook ``payload`` against ``content_store``."""
    issue_event = event.IssueEvent.from_payload(payload, event_name)
    runner = sync.RadarSync(radar_config or config.RadarConfig(), content_store)
    return runner.process(issue_event)
