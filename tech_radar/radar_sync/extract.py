"""Field extraction from issue-form bodies."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Comment

from .document import closes_fence, opening_fence

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^ {0,3}###[ \t]+(.+?)\s*$")
COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"

FIELD_KEYS: dict[str, str] = {
    "Technology Name": "title",
    "Ring": "ring",
    "Quadrant": "quadrant",
    "Department": "department",
    "Champion": "champion",
    "Tags": "tags",
}

NARRATIVE_LABELS = ("Description", "Context", "Resources")

LOWERCASE_FIELDS = {"ring", "quadrant"}

LABELS: dict[str, str] = {key: label for label, key in FIELD_KEYS.items()}


@dataclass
class FormBlock:
    """A level-3 heading and the raw lines that follow it."""

    label: str
    lines: list[str] = field(default_factory=list)

    @property
    def value(self) -> str:
        return "\n".join(skip_placeholder(self.lines)).strip()


def iter_blocks(body: str) -> Iterator[FormBlock]:
    """Split ``body`` into heading blocks, ignoring text before the first heading."""
    current: FormBlock | None = None
    fence: str | None = None
    for raw_line in body.replace("\r\n", "\n").split("\n"):
        if fence is not None:
            if closes_fence(raw_line, fence):
                fence = None
        else:
            fence = opening_fence(raw_line)
            heading = HEADING_RE.match(raw_line) if fence is None else None
            if heading:
                if current is not None:
                    yield current
                current = FormBlock(label=heading.group(1).strip())
                continue
        if current is not None:
            current.lines.append(raw_line)
    if current is not None:
        yield current


def skip_placeholder(lines: list[str]) -> list[str]:
    """Drop leading blank lines and at most one template comment placeholder."""
    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    remaining = lines[index:]
    if not remaining or not remaining[0].lstrip().startswith(COMMENT_OPEN):
        return remaining
    for end, line in enumerate(remaining):
        if COMMENT_CLOSE in line:
            break
    else:
        return remaining
    candidate = "\n".join(remaining[: end + 1])
    if not is_comment_only(candidate):
        return remaining
    return remaining[end + 1 :]


def is_comment_only(text: str) -> bool:
    soup = BeautifulSoup(text, "html.parser")
    if soup.find() is not None:
        return False
    strings = soup.find_all(string=True)
    has_comment = any(isinstance(node, Comment) for node in strings)
    leftover = "".join(str(node) for node in strings if not isinstance(node, Comment))
    return has_comment and not leftover.strip()


def extract_fields(body: str) -> dict[str, str]:
    """Map known form headings in ``body`` to normalized field keys.

    Narrative headings accumulate into ``content`` in the order they appear,
    each tagged with a ``## <label>`` sub-heading. Every other known label
    overwrites an earlier value. A heading that is present with no value
    still produces an empty string so callers can tell it apart from a
    missing heading.
    """
    data: dict[str, str] = {}
    for block in iter_blocks(body):
        label = block.label
        value = block.value
        if label in NARRATIVE_LABELS:
            section = f"## {label}\n{value}"
            data["content"] = f"{data['content']}\n\n{section}" if "content" in data else section
            continue
        key = FIELD_KEYS.get(label)
        if key is None:
            logger.debug("Ignoring unrecognised form heading: %s", label)
            continue
        data[key] = value.lower() if key in LOWERCASE_FIELDS else value
    return data
