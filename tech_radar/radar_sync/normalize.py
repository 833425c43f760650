"""Record normalization helpers."""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import UTC, date, datetime
from enum import Enum

from .errors import ValidationError
from .event import IssueEvent
from .extract import LABELS

logger = logging.getLogger(__name__)

PLACEHOLDER = "no response"
DEFAULT_RING = "assess"
SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


class Strictness(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"

    @classmethod
    def parse(cls, value: str) -> Strictness:
        cleaned = value.strip().lower()
        for strictness in cls:
            if strictness.value == cleaned:
                return strictness
        raise ValueError(f"Unknown strictness {value!r} (expected 'strict' or 'lenient')")


@dataclass(frozen=True)
class NormalizerSettings:
    strictness: Strictness = Strictness.STRICT
    require_department: bool = False


@dataclass(frozen=True)
class SourceRef:
    issue_id: int
    url: str
    submitter_login: str
    submitter_url: str


@dataclass
class SubmissionRecord:
    title: str
    slug: str
    ring: str
    quadrant: str
    department: str | None
    champion: str
    content: str
    source: SourceRef
    date: str
    tags: list[str] = field(default_factory=list)
    raw_body: str = ""

    @property
    def narrative(self) -> str:
        """Narrative content, or the raw issue body when the form had none."""
        return self.content or self.raw_body

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def today_iso() -> str:
    return datetime.now(UTC).date().isoformat()


def slugify(title: str) -> str:
    return SLUG_SEPARATOR_RE.sub("-", title.lower()).strip("-")


def is_placeholder(value: str) -> bool:
    return value.strip().strip("_*").strip().lower() == PLACEHOLDER


def is_missing(fields: Mapping[str, str], key: str) -> bool:
    value = fields.get(key)
    if value is None:
        return True
    return not value.strip() or is_placeholder(value)


def optional_value(fields: Mapping[str, str], key: str) -> str | None:
    if is_missing(fields, key):
        return None
    return fields[key].strip()


def parse_tags(raw: str | None) -> list[str]:
    if not raw or is_placeholder(raw):
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def require(fields: Mapping[str, str], key: str) -> str:
    if is_missing(fields, key):
        raise ValidationError.missing(LABELS[key])
    return fields[key].strip()


def normalize_record(
    fields: Mapping[str, str],
    event: IssueEvent,
    settings: NormalizerSettings | None = None,
    today: date | None = None,
) -> SubmissionRecord:
    """Validate extracted form ``fields`` and build a ``SubmissionRecord``.

    Required fields are checked in the order Technology Name, Ring, Quadrant,
    Department; the first one missing is reported. In lenient mode the issue
    title stands in for an absent form title and an absent Ring heading
    defaults to ``assess``; a Ring heading answered with a blank value or
    "No response" is still rejected.
    """
    settings = settings or NormalizerSettings()
    lenient = settings.strictness is Strictness.LENIENT

    if lenient and is_missing(fields, "title"):
        if not event.title.strip():
            raise ValidationError.missing(LABELS["title"])
        logger.info("No form title on issue #%d, using issue title", event.number)
        title = event.title.strip()
    else:
        title = require(fields, "title")

    if lenient and "ring" not in fields:
        ring = DEFAULT_RING
    else:
        ring = require(fields, "ring").lower()

    quadrant = require(fields, "quadrant").lower()

    if settings.require_department:
        department: str | None = require(fields, "department")
    else:
        department = optional_value(fields, "department")
    if department is not None:
        department = " ".join(department.split())

    slug = slugify(title)
    if not slug:
        raise ValidationError.invalid_title()

    source = SourceRef(
        issue_id=event.number,
        url=event.html_url,
        submitter_login=event.user_login,
        submitter_url=event.user_url,
    )
    stamp = today.isoformat() if today is not None else today_iso()
    return SubmissionRecord(
        title=title,
        slug=slug,
        ring=ring,
        quadrant=quadrant,
        department=department,
        champion=optional_value(fields, "champion") or event.user_login,
        content=fields.get("content", "").strip(),
        source=source,
        date=stamp,
        tags=parse_tags(fields.get("tags")),
        raw_body=event.body,
    )
