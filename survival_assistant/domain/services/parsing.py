"""Section and table parsing for markdown-like knowledge documents.

All text-format brittleness lives here: input text in, structured rows out.
"""

from __future__ import annotations

import re

INTRO_SECTION = "intro"

# Only level-2 and level-3 headings split sections.
_HEADING = re.compile(r"^#{2,3} (.+)$")
_ANY_HEADING = re.compile(r"^#{2,3}\s")
_SEPARATOR_CELL = re.compile(r"^[\s:\-]*$")

HEADER_TOKENS = frozenset({"phrase", "meaning", "dish", "area", "name"})


def _section_key(title: str) -> str:
    return re.sub(r"\s+", "-", title.strip().lower())


def _is_heading(line: str) -> str | None:
    m = _HEADING.match(line.rstrip())
    return m.group(1) if m else None


def parse_sections(text: str) -> dict[str, str]:
    """Split text into ``{section-key: trimmed text}`` on ``##``/``###`` headings.

    Lines before the first heading go to the ``intro`` section. A heading
    immediately followed by another heading produces no entry. A repeated
    heading overwrites the earlier section of the same key.
    """
    sections: dict[str, str] = {}
    curr = INTRO_SECTION
    buf: list[str] = []

    for line in text.splitlines():
        title = _is_heading(line)
        if title is not None:
            if buf:
                sections[curr] = "\n".join(buf).strip()
            curr = _section_key(title)
            buf = []
        else:
            buf.append(line)
    if buf:
        sections[curr] = "\n".join(buf).strip()
    return sections


def extract_section(text: str, heading: str) -> str | None:
    """Return raw text from a heading matching ``heading`` up to the next heading.

    Matching is case-insensitive on the heading title. The heading line itself
    is included so the result can be fed straight into ``parse_table``.
    """
    wanted = heading.strip().lower()
    lines = text.splitlines()
    start: int | None = None
    for i, line in enumerate(lines):
        title = _is_heading(line)
        if title is not None and title.strip().lower() == wanted:
            start = i
            break
    if start is None:
        return None
    end = len(lines)
    for j in range(start + 1, len(lines)):
        if _ANY_HEADING.match(lines[j]):
            end = j
            break
    return "\n".join(lines[start:end])


def _is_separator(cells: list[str]) -> bool:
    return all(_SEPARATOR_CELL.match(c) for c in cells)


def _is_header(cells: list[str]) -> bool:
    return any(c.lower() in HEADER_TOKENS for c in cells)


def parse_table(text: str) -> list[list[str]]:
    """Parse pipe-delimited table rows into trimmed cell lists.

    Separator rows (``|---|:--:|``), header rows (any cell equal to a known
    header token) and rows with an empty first cell are discarded.
    """
    rows: list[list[str]] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not (stripped.startswith("|") and stripped.endswith("|")) or len(stripped) < 2:
            continue
        cells = [c.strip() for c in stripped[1:-1].split("|")]
        if _is_separator(cells) or _is_header(cells):
            continue
        if not cells or not cells[0]:
            continue
        rows.append(cells)
    return rows


def parse_section_table(text: str, heading: str) -> list[list[str]]:
    """Convenience: ``parse_table(extract_section(text, heading))`` or ``[]``."""
    section = extract_section(text, heading)
    return parse_table(section) if section else []
