"""Structural checks for navigation tables."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from doxynav.model import NavEntry, NavTable

ERROR = "error"
WARNING = "warning"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


@dataclass(frozen=True)
class Issue:
    """A problem found in a table, located by index path."""

    path: str
    label: str
    message: str
    severity: str = ERROR

    def __str__(self) -> str:
        return f"{self.path} {self.label!r}: {self.message}"


def has_errors(issues: list[Issue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)


def check_relative_path(value: str) -> str | None:
    """Return why ``value`` is not a safe relative path, or None if it is."""
    if not value:
        return "is empty"
    if any(ch.isspace() for ch in value):
        return "contains whitespace"
    if _SCHEME_RE.match(value):
        return "must be relative, not a URL"
    if value.startswith("/") or value.startswith("\\"):
        return "must be relative, not absolute"
    if ".." in value.split("#", 1)[0].replace("\\", "/").split("/"):
        return "must not contain '..'"
    return None


def _check_anchor_path(anchor_path: str) -> str | None:
    problem = check_relative_path(anchor_path)
    if problem:
        return f"link {problem}"
    page, _, anchor = anchor_path.partition("#")
    if not page:
        return "link has no page"
    if "#" in anchor_path and not anchor:
        return "link has an empty anchor"
    return None


def _check_entry(
    path: str, entry: NavEntry, depth: int, max_depth: int | None
) -> list[Issue]:
    issues: list[Issue] = []

    def error(message: str) -> None:
        issues.append(Issue(path=path, label=entry.label, message=message))

    if not entry.label.strip():
        error("label is empty")

    if entry.anchor_path is not None:
        problem = _check_anchor_path(entry.anchor_path)
        if problem:
            error(problem)
    elif entry.is_leaf:
        error("leaf entry has no link")

    if entry.table_ref is not None:
        problem = check_relative_path(entry.table_ref)
        if problem:
            error(f"table reference {problem}")

    if max_depth is not None and depth > max_depth:
        error(f"depth {depth} exceeds maximum of {max_depth}")

    return issues


def _check_siblings(prefix: str, entries: tuple[NavEntry, ...]) -> list[Issue]:
    counts = Counter((entry.label, entry.anchor_path) for entry in entries)
    issues: list[Issue] = []
    for index, entry in enumerate(entries):
        key = (entry.label, entry.anchor_path)
        if counts[key] > 1:
            issues.append(
                Issue(
                    path=f"{prefix}[{index}]",
                    label=entry.label,
                    message=(
                        f"duplicate of a sibling with the same link ({counts[key]}x)"
                    ),
                    severity=WARNING,
                )
            )
            # Report each duplicated pair once, at its first occurrence.
            counts[key] = 0
    return issues


def _validate_entries(
    entries: tuple[NavEntry, ...], prefix: str, depth: int, max_depth: int | None
) -> list[Issue]:
    issues = _check_siblings(prefix, entries)
    for index, entry in enumerate(entries):
        path = f"{prefix}[{index}]"
        issues.extend(_check_entry(path, entry, depth, max_depth))
        if entry.children:
            issues.extend(
                _validate_entries(entry.children, path, depth + 1, max_depth)
            )
    return issues


def validate_table(table: NavTable, max_depth: int | None = None) -> list[Issue]:
    """Check every entry of ``table``.

    Args:
        table: Table to check.
        max_depth: Deepest allowed level (top level is 1), or None for no limit.

    Returns:
        Issues ordered by position; duplicates of a sibling are warnings,
        everything else is an error.
    """
    if max_depth is not None and max_depth < 1:
        raise ValueError(f"max_depth must be at least 1, got {max_depth}")
    issues = _validate_entries(table.entries, "", 1, max_depth)
    return sorted(issues, key=lambda issue: _path_key(issue.path))


def _path_key(path: str) -> list[int]:
    return [int(part) for part in re.findall(r"\d+", path)]
