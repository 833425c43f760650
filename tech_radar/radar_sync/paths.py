"""Storage policies and path resolution."""
from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .normalize import SubmissionRecord


class StoragePolicy(str, Enum):
    FLAT_BY_ISSUE = "flat-by-issue"
    DATED_BY_TITLE = "dated-by-title"
    TITLE_WITH_DEPARTMENT_SECTIONS = "title-with-department-sections"

    @classmethod
    def parse(cls, value: str) -> StoragePolicy:
        cleaned = value.strip().lower().replace("_", "-")
        for policy in cls:
            if policy.value == cleaned:
                return policy
        choices = ", ".join(policy.value for policy in cls)
        raise ValueError(f"Unknown storage policy {value!r} (expected one of: {choices})")

    @property
    def merges_sections(self) -> bool:
        return self is StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS

    @property
    def requires_department(self) -> bool:
        return self is StoragePolicy.TITLE_WITH_DEPARTMENT_SECTIONS


def resolve_path(record: SubmissionRecord, policy: StoragePolicy, base_dir: str) -> str:
    base = PurePosixPath(base_dir.strip().rstrip("/") or ".")
    if policy is StoragePolicy.FLAT_BY_ISSUE:
        path = base / f"{record.slug}-{record.source.issue_id}.md"
    elif policy is StoragePolicy.DATED_BY_TITLE:
        path = base / record.date / f"{record.slug}.md"
    else:
        path = base / f"{record.slug}.md"
    return path.as_posix()


def parent_directory(path: str) -> str:
    parent = PurePosixPath(path).parent.as_posix()
    return "" if parent == "." else parent
