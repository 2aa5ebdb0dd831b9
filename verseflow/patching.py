from __future__ import annotations

from typing import Any, Iterable, Mapping
import re

import yaml

from .logger import logger

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)", re.DOTALL | re.MULTILINE)

CHECKED_RE = re.compile(r"\[[xX]\][^\n]*\(idx:(\d+)\)")
CLEAR_RE = re.compile(r"\[\s*[xX]\s*\](?=[^\n]*\(idx:\d+\))")
SEPARATOR_RE = re.compile(r"^\|\s*:?-")


def split_frontmatter(text: str) -> tuple[str | None, str]:
    m = FRONTMATTER_RE.match(text)
    if not m:
        return None, text
    return m.group(1), text[m.end():]


def read_frontmatter(text: str) -> dict[str, Any]:
    block, _ = split_frontmatter(text)
    if block is None:
        return {}
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        logger.warning("Malformed frontmatter ignored: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


def patch_frontmatter(text: str, fields: Mapping[str, Any]) -> str:
    """
    Merge scalar ``fields`` into the leading frontmatter block.

    Existing keys keep their position and any trailing comment; missing keys
    are appended to the end of the block. A block is created when the
    document has none. The body is left untouched.
    """
    block, body = split_frontmatter(text)
    if block is None:
        block, body = "", text

    lines = block.splitlines()
    for key, value in fields.items():
        line_re = re.compile(rf"^({re.escape(key)})(\s*:\s*)([^#\n]*?)(\s+#.*)?$", re.IGNORECASE)
        for i, line in enumerate(lines):
            m = line_re.match(line)
            if m:
                lines[i] = f"{m.group(1)}{m.group(2)}{value}{m.group(4) or ''}"
                break
        else:
            lines.append(f"{key}: {value}")

    inner = "\n".join(lines)
    if inner:
        inner += "\n"
    return f"---\n{inner}---\n{body}"


def format_row(cells: Iterable[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def has_table_header(text: str, first_column: str) -> bool:
    return re.search(rf"^\|\s*{re.escape(first_column)}\s*\|", text, re.MULTILINE) is not None


def append_table_rows(
    text: str | None,
    header: list[str],
    separator: str,
    rows: list[list[str]],
) -> str:
    """Append rows to a pipe table, writing the header only if it is missing."""
    existing = text or ""
    body = "".join(format_row(r) + "\n" for r in rows)

    if has_table_header(existing, header[0]):
        if existing and not existing.endswith("\n"):
            existing += "\n"
        return existing + body

    head = format_row(header) + "\n" + separator + "\n"
    if not existing.strip():
        return head + body
    if not existing.endswith("\n"):
        existing += "\n"
    return existing + "\n" + head + body


def parse_table_rows(text: str | None) -> list[list[str]]:
    rows = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line.startswith("|") or SEPARATOR_RE.match(line):
            continue
        cells = [c.strip() for c in line.strip("|").split("|")]
        rows.append(cells)
    return rows


def extract_checked_indices(text: str) -> set[int]:
    return {int(m.group(1)) for m in CHECKED_RE.finditer(text)}


def clear_checked(text: str) -> str:
    return CLEAR_RE.sub("[ ]", text)
