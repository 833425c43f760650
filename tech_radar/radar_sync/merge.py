"""Merge engine: reconcile a submission into a stored document."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .document import (
    Document,
    FrontMatter,
    Section,
    entry_department,
    format_value,
    metadata_blocks,
    parse_body,
    sanitize_narrative,
)
from .errors import StructuralError, ValidationError
from .extract import LABELS
from .normalize import SubmissionRecord
from .paths import StoragePolicy

logger = logging.getLogger(__name__)


class MergeAction(str, Enum):
    CREATE = "create"
    REPLACE = "replace"
    INSERT_SECTION = "insert_section"
    REPLACE_SECTION = "replace_section"


@dataclass
class MergeResult:
    document: Document
    action: MergeAction


def provenance_line(record: SubmissionRecord) -> str:
    return f"> From issue [#{record.source.issue_id}]({record.source.url})"


def build_front_matter(record: SubmissionRecord) -> FrontMatter:
    domain = [record.department] if record.department else []
    return FrontMatter.build(
        [
            ("title", record.title),
            ("quadrant", record.quadrant),
            ("ring", record.ring),
            ("tags", record.tags),
            ("domain", domain),
            ("champion", record.champion),
            ("date", record.date),
        ]
    )


def render_entry(record: SubmissionRecord) -> str:
    department = record.department
    lines = [
        f"## {department} Assessment",
        "",
        "```",
        f"ring: {record.ring}",
        f"champion: [{record.champion}]({record.source.submitter_url})",
        f"department: {department}",
        f"tags: {format_value(record.tags)}",
        f"date: {record.date}",
        "```",
        "",
        provenance_line(record),
        "",
    ]
    narrative = sanitize_narrative(record.narrative).strip("\n")
    if narrative.strip():
        lines.extend([narrative, ""])
    lines.extend(["---", ""])
    return "\n".join(lines) + "\n"


def entry_section(record: SubmissionRecord) -> Section:
    return Section(heading=f"{record.department} Assessment", raw_block=render_entry(record))


def create_document(record: SubmissionRecord, policy: StoragePolicy) -> Document:
    if policy.merges_sections:
        sections = [Section("", "\n"), entry_section(record)]
    else:
        body = f"\n{provenance_line(record)}\n\n{record.narrative}\n"
        sections, _ = parse_body(body)
    return Document(front_matter=build_front_matter(record), sections=sections)


def merge(
    existing: Document | None,
    record: SubmissionRecord,
    policy: StoragePolicy,
) -> MergeResult:
    """Produce the next version of the document stored for ``record``.

    Whole-document policies create or replace the document outright. The
    department policy upserts a single ``<Department> Assessment`` entry and
    leaves every other section byte-identical. ``existing`` is never mutated.
    """
    if policy.merges_sections and not record.department:
        raise ValidationError.missing(LABELS["department"])
    if existing is None:
        return MergeResult(create_document(record, policy), MergeAction.CREATE)
    if not policy.merges_sections:
        return MergeResult(create_document(record, policy), MergeAction.REPLACE)
    return upsert_entry(existing, record)


def upsert_entry(existing: Document, record: SubmissionRecord) -> MergeResult:
    if existing.unclosed_front_matter:
        raise StructuralError("front-matter block is not terminated")
    if existing.unclosed_fence:
        raise StructuralError("unterminated code fence in document body")
    document = existing.copy()
    if document.front_matter is None:
        document = adopt_legacy(document, record)
    department = record.department or ""
    index = locate_entry(document.sections, department)
    section = entry_section(record)
    if index is not None:
        logger.debug("Replacing %s entry at section %d", department, index)
        document.sections[index] = section
        action = MergeAction.REPLACE_SECTION
    else:
        position = insertion_index(document.sections)
        logger.debug("Inserting %s entry at section %d", department, position)
        if position > 0:
            previous = document.sections[position - 1]
            if not previous.raw_block.endswith("\n"):
                previous.raw_block += "\n"
        document.sections.insert(position, section)
        action = MergeAction.INSERT_SECTION
    assert document.front_matter is not None
    refresh_front_matter(document.front_matter, record)
    return MergeResult(document, action)


def adopt_legacy(document: Document, record: SubmissionRecord) -> Document:
    """Wrap a document without front-matter: synthesize it, keep the body as one section."""
    logger.info("Document has no front-matter, keeping existing body as a legacy section")
    front_matter = FrontMatter.build([("title", record.title), ("quadrant", record.quadrant)])
    body = document.body
    sections = []
    if body.strip():
        if not body.startswith("\n"):
            body = "\n" + body
        if not body.endswith("\n"):
            body += "\n"
        sections.append(Section("", body))
    else:
        sections.append(Section("", "\n"))
    return Document(front_matter=front_matter, sections=sections)


def locate_entry(sections: list[Section], department: str) -> int | None:
    """Index of the single entry for ``department``; raises when that is ambiguous.

    Under an assessment heading only the leading fenced block is entry
    metadata; later fenced blocks belong to the narrative.
    """
    matches: list[int] = []
    for index, section in enumerate(sections):
        blocks = metadata_blocks(section)
        if section.department is not None:
            leading = blocks[0] if blocks and blocks[0].leading else None
            if section.department == department:
                if leading is None:
                    raise StructuralError(
                        f'section "{section.heading}" has no metadata block for department "{department}"'
                    )
                if leading.department != department:
                    raise StructuralError(
                        f'heading "{section.heading}" disagrees with its metadata department '
                        f'"{leading.department}"'
                    )
                matches.append(index)
            elif leading is not None and leading.department == department:
                raise StructuralError(
                    f'heading "{section.heading}" disagrees with its metadata department "{department}"'
                )
            continue
        if any(block.department == department for block in blocks):
            raise StructuralError(
                f'metadata for department "{department}" sits outside an assessment heading'
            )
    if len(matches) > 1:
        raise StructuralError(f'department "{department}" has {len(matches)} entries')
    return matches[0] if matches else None


def insertion_index(sections: list[Section]) -> int:
    last_entry = None
    for index, section in enumerate(sections):
        if entry_department(section) is not None:
            last_entry = index
    return len(sections) if last_entry is None else last_entry + 1


def refresh_front_matter(front_matter: FrontMatter, record: SubmissionRecord) -> None:
    if "domain" in front_matter and record.department:
        current = front_matter.get("domain")
        domains = list(current) if isinstance(current, list) else [current] if current else []
        if record.department not in domains:
            domains.append(record.department)
            front_matter.set("domain", domains)
    if "date" in front_matter:
        front_matter.set("date", record.date)
