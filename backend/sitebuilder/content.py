"""Content document operations.

Every function here is pure: it takes a `WebsiteContent` and returns a new
one, leaving the input untouched. Callers store the returned document.
"""

import re
import uuid
from typing import Iterable, Optional

from sitebuilder.models import (
    TOP_LEVEL_FIELDS,
    CanvasCopyKey,
    ParsedUpdate,
    WebsiteContent,
    WebsiteSection,
)

MAX_TITLE_LENGTH = 50
MAX_HERO_HEADING_LENGTH = 60
MAX_HERO_DESCRIPTION_LENGTH = 300

DEFAULT_TITLE = "My Website"
DEFAULT_HERO_HEADING = "Welcome"
DEFAULT_HERO_DESCRIPTION = "Describe your website here."

EDITABLE_FIELDS = tuple(TOP_LEVEL_FIELDS.values())


def new_section_id() -> str:
    return f"section-{uuid.uuid4().hex[:12]}"


def create_section(title: str, content: str, section_id: Optional[str] = None) -> WebsiteSection:
    return WebsiteSection(id=section_id or new_section_id(), title=title, content=content)


def create_default() -> WebsiteContent:
    """Placeholder document with the two-section starter"""
    return WebsiteContent(
        title=DEFAULT_TITLE,
        hero_heading=DEFAULT_HERO_HEADING,
        hero_description=DEFAULT_HERO_DESCRIPTION,
        sections=[
            create_section("About", "Add your content here.", "section-1"),
            create_section("Services", "Add your services or features here.", "section-2"),
        ],
    )


def build_from_prompt(prompt: str) -> WebsiteContent:
    """Derive a first draft of the site from a free-text prompt.

    Line 1 becomes the title, line 2 the hero heading and the remaining lines
    the hero description. With more than three lines, lines from the third on
    are read as (section title, section body) pairs. Otherwise two generic
    sections are created.
    """
    trimmed = (prompt or "").strip()
    if not trimmed:
        return create_default()

    lines = [line.strip() for line in re.split(r"\n+", trimmed) if line.strip()]
    first_line = lines[0] if lines else DEFAULT_TITLE
    second_line = lines[1] if len(lines) > 1 else DEFAULT_HERO_HEADING
    rest = " ".join(lines[2:]) or DEFAULT_HERO_DESCRIPTION

    sections = []
    if len(lines) > 3:
        for i in range(2, len(lines), 2):
            title = lines[i] or f"Section {len(sections) + 1}"
            body = lines[i + 1] if i + 1 < len(lines) else ""
            sections.append(create_section(title, body))

    if not sections:
        sections.append(create_section("About", rest))
        sections.append(create_section("More", "You can edit all sections manually."))

    return WebsiteContent(
        title=first_line[:MAX_TITLE_LENGTH],
        hero_heading=second_line[:MAX_HERO_HEADING_LENGTH],
        hero_description=rest[:MAX_HERO_DESCRIPTION_LENGTH],
        sections=sections,
    )


def apply_update(doc: WebsiteContent, update: ParsedUpdate) -> WebsiteContent:
    """Merge a decoded model update into the document.

    Top-level fields present in the update overwrite the document's. Canvas
    copy is merged key by key; keys the update does not mention are kept.
    """
    changes = {}
    for field in EDITABLE_FIELDS:
        value = getattr(update, field)
        if value is not None:
            changes[field] = value

    if update.canvas_copy:
        canvas_copy = dict(doc.canvas_copy)
        canvas_copy.update(update.canvas_copy)
        changes["canvas_copy"] = canvas_copy

    if not changes:
        return doc
    return doc.model_copy(update=changes)


def update_field(doc: WebsiteContent, field: str, value: str) -> WebsiteContent:
    """Direct user edit of one top-level text field (snake or camel name)"""
    field = TOP_LEVEL_FIELDS.get(field, field)
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown content field: {field}")
    return doc.model_copy(update={field: value})


def set_canvas_copy(doc: WebsiteContent, key: CanvasCopyKey | str, value: str) -> WebsiteContent:
    key = CanvasCopyKey(key)
    canvas_copy = dict(doc.canvas_copy)
    canvas_copy[key] = value
    return doc.model_copy(update={"canvas_copy": canvas_copy})


def add_section(
    doc: WebsiteContent, title: str = "New Section", content: str = "Add content here."
) -> WebsiteContent:
    section = create_section(title, content)
    return doc.model_copy(update={"sections": [*doc.sections, section]})


def remove_section(doc: WebsiteContent, section_id: str) -> WebsiteContent:
    sections = [s for s in doc.sections if s.id != section_id]
    if len(sections) == len(doc.sections):
        return doc
    return doc.model_copy(update={"sections": sections})


def update_section(doc: WebsiteContent, section_id: str, partial: dict) -> WebsiteContent:
    """Patch title/content of one section. The id itself never changes."""
    changes = {k: v for k, v in partial.items() if k in ("title", "content") and v is not None}
    if not changes or not any(s.id == section_id for s in doc.sections):
        return doc

    sections = [
        s.model_copy(update=changes) if s.id == section_id else s for s in doc.sections
    ]
    return doc.model_copy(update={"sections": sections})


def reorder_sections(doc: WebsiteContent, ordered_ids: Iterable[str]) -> WebsiteContent:
    """Put sections in the order of `ordered_ids`.

    Ids that match no section are ignored; sections missing from
    `ordered_ids` follow in their current relative order.
    """
    by_id = {s.id: s for s in doc.sections}
    sections = []
    for section_id in ordered_ids:
        section = by_id.pop(section_id, None)
        if section is not None:
            sections.append(section)
    sections.extend(s for s in doc.sections if s.id in by_id)

    if [s.id for s in sections] == [s.id for s in doc.sections]:
        return doc
    return doc.model_copy(update={"sections": sections})
