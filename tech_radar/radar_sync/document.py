"""Markdown document model for stored radar entries.

A stored document is an optional front-matter block delimited by ``---``
lines followed by a body. The body is split into sections at level 1 and
level 2 ATX headings that sit outside fenced code blocks; text ahead of the
first heading forms an unnamed section. Sections keep their raw text so that
``serialize_document(parse_document(text)) == text``.
"""
from __future__ import annotations

import copy
import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

FRONT_MATTER_DELIMITER = "---"
ENTRY_HEADING_SUFFIX = " Assessment"

SECTION_HEADING_RE = re.compile(r"^ {0,3}(#{1,2})[ \t]+(.+?)[ \t]*$")
ATX_HEADING_RE = re.compile(r"^( {0,3})(#{1,6})([ \t]+.*)?$")
FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
FIELD_LINE_RE = re.compile(r"^([A-Za-z0-9_-]+):(?:[ \t](.*))?$")

FrontMatterValue = str | list[str]


class TokenKind(str, Enum):
    HEADING = "heading"
    FENCE_OPEN = "fence_open"
    FENCE_CLOSE = "fence_close"
    FENCED = "fenced"
    TEXT = "text"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    line: str
    heading: str | None = None


def opening_fence(line: str) -> str | None:
    """Fence marker opened by ``line``, if any."""
    match = FENCE_RE.match(line)
    return match.group(1) if match else None


def closes_fence(line: str, fence: str) -> bool:
    """Whether ``line`` closes ``fence``: same character, at least as long, no info string."""
    marker = opening_fence(line)
    return marker is not None and marker.startswith(fence) and not line.strip().strip(fence[0])


def tokenize_body(lines: Iterable[str]) -> Iterator[Token]:
    """Classify body lines, tracking fenced code so headings inside it are ignored."""
    fence: str | None = None
    for line in lines:
        stripped = line.rstrip("\n")
        if fence is None:
            fence = opening_fence(stripped)
            if fence is not None:
                yield Token(TokenKind.FENCE_OPEN, line)
                continue
        elif closes_fence(stripped, fence):
            fence = None
            yield Token(TokenKind.FENCE_CLOSE, line)
            continue
        else:
            yield Token(TokenKind.FENCED, line)
            continue
        heading = SECTION_HEADING_RE.match(stripped)
        if heading:
            yield Token(TokenKind.HEADING, line, heading=heading.group(2).rstrip("#").rstrip())
        else:
            yield Token(TokenKind.TEXT, line)


def parse_value(raw: str) -> FrontMatterValue:
    text = raw.strip()
    if not (text.startswith("[") and text.endswith("]")):
        return text
    try:
        loaded = json.loads(text)
    except ValueError:
        loaded = None
    if isinstance(loaded, list):
        return [str(item) for item in loaded]
    inner = text[1:-1]
    return [part.strip().strip("\"'") for part in inner.split(",") if part.strip()]


def format_value(value: FrontMatterValue) -> str:
    if isinstance(value, list):
        return "[" + ", ".join(json.dumps(item, ensure_ascii=False) for item in value) + "]"
    return value


@dataclass
class FrontMatter:
    """Ordered ``key: value`` lines between the front-matter delimiters."""

    lines: list[str] = field(default_factory=list)

    @classmethod
    def build(cls, entries: Iterable[tuple[str, FrontMatterValue]]) -> FrontMatter:
        return cls([f"{key}: {format_value(value)}" for key, value in entries])

    def _find(self, key: str) -> int | None:
        for index, line in enumerate(self.lines):
            match = FIELD_LINE_RE.match(line)
            if match and match.group(1) == key:
                return index
        return None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._find(key) is not None

    def get(self, key: str) -> FrontMatterValue | None:
        index = self._find(key)
        if index is None:
            return None
        match = FIELD_LINE_RE.match(self.lines[index])
        assert match is not None
        return parse_value(match.group(2) or "")

    def set(self, key: str, value: FrontMatterValue) -> None:
        line = f"{key}: {format_value(value)}"
        index = self._find(key)
        if index is None:
            self.lines.append(line)
        else:
            self.lines[index] = line

    def keys(self) -> list[str]:
        keys = []
        for line in self.lines:
            match = FIELD_LINE_RE.match(line)
            if match:
                keys.append(match.group(1))
        return keys

    def items(self) -> list[tuple[str, FrontMatterValue]]:
        pairs: list[tuple[str, FrontMatterValue]] = []
        for key in self.keys():
            value = self.get(key)
            if value is not None:
                pairs.append((key, value))
        return pairs

    def render(self) -> str:
        inner = "".join(f"{line}\n" for line in self.lines)
        return f"{FRONT_MATTER_DELIMITER}\n{inner}{FRONT_MATTER_DELIMITER}\n"


@dataclass
class Section:
    heading: str
    raw_block: str

    @property
    def department(self) -> str | None:
        """Department named by an ``<Department> Assessment`` heading."""
        if self.heading.endswith(ENTRY_HEADING_SUFFIX):
            name = self.heading[: -len(ENTRY_HEADING_SUFFIX)].strip()
            return name or None
        return None


@dataclass
class MetadataBlock:
    fields: dict[str, str]
    leading: bool

    @property
    def department(self) -> str | None:
        return self.fields.get("department")


@dataclass
class Document:
    front_matter: FrontMatter | None = None
    sections: list[Section] = field(default_factory=list)
    unclosed_front_matter: bool = field(default=False, compare=False)
    unclosed_fence: bool = field(default=False, compare=False)

    @property
    def body(self) -> str:
        return "".join(section.raw_block for section in self.sections)

    def copy(self) -> Document:
        return copy.deepcopy(self)


def split_front_matter(lines: list[str]) -> tuple[FrontMatter | None, int, bool]:
    if not lines or lines[0].rstrip("\n") != FRONT_MATTER_DELIMITER:
        return None, 0, False
    for index in range(1, len(lines)):
        if lines[index].rstrip("\n") == FRONT_MATTER_DELIMITER:
            inner = [line.rstrip("\n") for line in lines[1:index]]
            return FrontMatter(inner), index + 1, False
    return None, 0, True


def parse_body(text: str) -> tuple[list[Section], bool]:
    """Split body text into sections; the flag reports an unterminated fence."""
    sections: list[Section] = []
    heading = ""
    buffer: list[str] = []
    open_fence = False
    for token in tokenize_body(text.splitlines(keepends=True)):
        if token.kind is TokenKind.FENCE_OPEN:
            open_fence = True
        elif token.kind is TokenKind.FENCE_CLOSE:
            open_fence = False
        elif token.kind is TokenKind.HEADING:
            if buffer:
                sections.append(Section(heading, "".join(buffer)))
            heading = token.heading or ""
            buffer = []
        buffer.append(token.line)
    if buffer:
        sections.append(Section(heading, "".join(buffer)))
    return sections, open_fence


def parse_document(text: str) -> Document:
    lines = text.replace("\r\n", "\n").splitlines(keepends=True)
    front_matter, body_start, unclosed = split_front_matter(lines)
    sections, open_fence = parse_body("".join(lines[body_start:]))
    return Document(
        front_matter=front_matter,
        sections=sections,
        unclosed_front_matter=unclosed,
        unclosed_fence=open_fence,
    )


def serialize_document(document: Document) -> str:
    head = document.front_matter.render() if document.front_matter is not None else ""
    return head + document.body


def metadata_blocks(section: Section) -> list[MetadataBlock]:
    """Fenced blocks in ``section`` that declare both a ring and a department."""
    blocks: list[MetadataBlock] = []
    seen_content = False
    current: dict[str, str] | None = None
    current_leading = False
    for token in tokenize_body(section.raw_block.splitlines(keepends=True)):
        if token.kind is TokenKind.HEADING and not seen_content and current is None:
            continue
        if token.kind is TokenKind.FENCE_OPEN:
            current = {}
            current_leading = not seen_content
            seen_content = True
        elif token.kind is TokenKind.FENCED and current is not None:
            match = FIELD_LINE_RE.match(token.line.strip())
            if match:
                current.setdefault(match.group(1), (match.group(2) or "").strip())
        elif token.kind is TokenKind.FENCE_CLOSE and current is not None:
            if "department" in current and "ring" in current:
                blocks.append(MetadataBlock(current, current_leading))
            current = None
        elif token.line.strip():
            seen_content = True
    return blocks


def entry_department(section: Section) -> str | None:
    """Department of a well-formed entry: assessment heading plus leading metadata."""
    if section.department is None:
        return None
    blocks = metadata_blocks(section)
    if blocks and blocks[0].leading:
        return blocks[0].department
    return None


def sanitize_narrative(text: str) -> str:
    """Demote level 1 and 2 headings to level 3 and close a dangling fence.

    Narrative text embedded in a department entry must not introduce section
    boundaries of its own.
    """
    output: list[str] = []
    fence: str | None = None
    for token in tokenize_body(text.splitlines(keepends=True)):
        line = token.line
        if token.kind is TokenKind.FENCE_OPEN:
            fence = opening_fence(line)
        elif token.kind is TokenKind.FENCE_CLOSE:
            fence = None
        elif token.kind is TokenKind.HEADING:
            match = ATX_HEADING_RE.match(line.rstrip("\n"))
            assert match is not None
            ending = "\n" if line.endswith("\n") else ""
            line = f"{match.group(1)}###{match.group(3) or ''}{ending}"
        output.append(line)
    result = "".join(output)
    if fence is not None:
        if not result.endswith("\n"):
            result += "\n"
        result += f"{fence}\n"
    return result
