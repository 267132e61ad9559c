"""Reading and writing Doxygen navigation fragments."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from doxynav.model import NavEntry, NavTable

_HEADER_RE = re.compile(r"\A\s*var\s+([A-Za-z_$][\w$]*)\s*=\s*", re.ASCII)


class NavFormatError(ValueError):
    """Raised when fragment text is not a well-formed navigation table."""


def parse_navtree(text: str) -> NavTable:
    """Parse a ``var NAME = [...];`` fragment.

    Args:
        text: Fragment source as written by Doxygen.

    Returns:
        The parsed table, entries in display order.

    Raises:
        NavFormatError: If the header, array literal or any node is malformed.
    """
    # Editors on Windows may save fragments with a byte order mark
    text = text.removeprefix("\ufeff")
    match = _HEADER_RE.match(text)
    if match is None:
        raise NavFormatError("Expected 'var NAME =' header")
    name = match.group(1)

    body = text[match.end() :].rstrip()
    if body.endswith(";"):
        body = body[:-1]

    try:
        raw = json.loads(body)
    except json.JSONDecodeError as e:
        raise NavFormatError(
            f"Invalid array literal in {name}: {e.msg} (line {e.lineno})"
        ) from None

    if not isinstance(raw, list):
        raise NavFormatError(f"{name} must be an array, got {type(raw).__name__}")

    return NavTable(name=name, entries=_entries_from_raw(raw, ""))


def _entries_from_raw(items: list[Any], prefix: str) -> tuple[NavEntry, ...]:
    return tuple(
        _entry_from_raw(item, f"{prefix}[{index}]")
        for index, item in enumerate(items)
    )


def _entry_from_raw(item: Any, path: str) -> NavEntry:
    if not isinstance(item, list) or len(item) != 3:
        raise NavFormatError(f"Node {path} must be a 3-element array")

    label, anchor_path, third = item
    if not isinstance(label, str):
        raise NavFormatError(
            f"Node {path} label must be a string, got {type(label).__name__}"
        )
    if anchor_path is not None and not isinstance(anchor_path, str):
        raise NavFormatError(
            f"Node {path} link must be a string or null, "
            f"got {type(anchor_path).__name__}"
        )

    if third is None:
        return NavEntry(label=label, anchor_path=anchor_path)
    if isinstance(third, str):
        return NavEntry(label=label, anchor_path=anchor_path, table_ref=third)
    if isinstance(third, list):
        return NavEntry(
            label=label,
            anchor_path=anchor_path,
            children=_entries_from_raw(third, path),
        )
    raise NavFormatError(
        f"Node {path} children must be an array, string or null, "
        f"got {type(third).__name__}"
    )


def load_navtree(path: Path) -> NavTable:
    """Load a fragment file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        NavFormatError: If the file is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Fragment not found: {path}")
    return parse_navtree(path.read_text(encoding="utf-8"))


def _js_string(value: str | None) -> str:
    return json.dumps(value, ensure_ascii=False)


def _format_entries(
    entries: tuple[NavEntry, ...], depth: int, lines: list[str]
) -> None:
    indent = " " * (2 + 2 * depth)
    last = len(entries) - 1
    for index, entry in enumerate(entries):
        comma = "," if index < last else ""
        head = f"{indent}[ {_js_string(entry.label)}, {_js_string(entry.anchor_path)}, "
        if entry.table_ref is not None:
            # A resolved entry is written back in its lazily-loaded form.
            lines.append(f"{head}{_js_string(entry.table_ref)} ]{comma}")
        elif entry.children is not None:
            lines.append(f"{head}[")
            _format_entries(entry.children, depth + 1, lines)
            lines.append(f"{indent}] ]{comma}")
        else:
            lines.append(f"{head}null ]{comma}")


def format_navtree(table: NavTable) -> str:
    """Render a table in Doxygen's fragment layout.

    The result has no trailing newline, like Doxygen's own output.
    """
    lines = [f"var {table.name} =", "["]
    _format_entries(table.entries, 1, lines)
    lines.append("];")
    return "\n".join(lines)


def dump_navtree(table: NavTable, path: Path) -> None:
    """Write a table to ``path`` in Doxygen's fragment layout."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_navtree(table), encoding="utf-8")
