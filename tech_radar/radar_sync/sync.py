"""Event-to-store orchestration."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from .config import RadarConfig
from .document import parse_document, serialize_document
from .errors import StructuralError
from .event import IssueEvent
from .extract import extract_fields
from .merge import MergeAction, MergeResult, merge
from .normalize import SubmissionRecord, normalize_record
from .paths import parent_directory, resolve_path
from .store import ContentStore

logger = logging.getLogger(__name__)

PLACEHOLDER_FILE = ".gitkeep"


@dataclass
class SyncOutcome:
    status: str
    path: str | None = None
    action: MergeAction | None = None
    message: str | None = None


def commit_message(record: SubmissionRecord, action: MergeAction) -> str:
    issue = record.source.issue_id
    if action is MergeAction.CREATE:
        return f"Add tech radar entry from issue #{issue}"
    if action is MergeAction.REPLACE:
        subject = record.department or record.title
        return f"Update tech radar entry for {subject} from issue #{issue}"
    verb = "Add" if action is MergeAction.INSERT_SECTION else "Update"
    return f"{verb} {record.department} assessment for {record.title} from issue #{issue}"


def ensure_directory(store: ContentStore, directory: str, branch: str) -> bool:
    """Create ``directory`` with a placeholder file when the store lacks it."""
    if not directory:
        return False
    if store.get_content(directory, branch) is not None:
        return False
    logger.info("Creating directory: %s", directory)
    store.create_or_update(
        f"{directory}/{PLACEHOLDER_FILE}",
        b"",
        f"Create {directory} directory for tech radar entries",
        branch,
    )
    return True


class RadarSync:
    def __init__(self, config: RadarConfig, store: ContentStore) -> None:
        self.config = config
        self.store = store

    def build_record(self, event: IssueEvent, today: date | None = None) -> SubmissionRecord:
        fields = extract_fields(event.body)
        return normalize_record(fields, event, self.config.normalizer_settings, today=today)

    def plan(self, record: SubmissionRecord, existing_text: str | None, path: str) -> MergeResult:
        existing = parse_document(existing_text) if existing_text is not None else None
        try:
            return merge(existing, record, self.config.policy)
        except StructuralError as exc:
            raise StructuralError(exc.reason, path) from exc

    def process(self, event: IssueEvent, today: date | None = None) -> SyncOutcome:
        reason = event.skip_reason(self.config.label)
        if reason:
            logger.info(reason)
            return SyncOutcome(status="skipped", message=reason)
        logger.info("Processing tech radar entry from issue #%d: %s", event.number, event.title)

        record = self.build_record(event, today=today)
        path = resolve_path(record, self.config.policy, self.config.base_dir)
        branch = self.store.get_default_branch()

        stored = self.store.get_content(path, branch)
        if stored is not None and stored.is_directory:
            raise StructuralError("a directory exists at the document path", path)
        existing_text = stored.text if stored is not None else None
        result = self.plan(record, existing_text, path)
        rendered = serialize_document(result.document)
        if existing_text is not None and rendered == existing_text:
            logger.info("Tech radar entry at %s is already up to date", path)
            return SyncOutcome(status="unchanged", path=path, action=result.action)

        ensure_directory(self.store, parent_directory(path), branch)
        message = commit_message(record, result.action)
        self.store.create_or_update(
            path,
            rendered.encode("utf-8"),
            message,
            branch,
            revision=stored.revision if stored is not None else None,
        )
        verb = "created new" if result.action is MergeAction.CREATE else "updated"
        logger.info("Successfully %s tech radar entry at %s", verb, path)
        return SyncOutcome(status="written", path=path, action=result.action, message=message)
