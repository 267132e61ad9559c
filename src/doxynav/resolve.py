"""Following table references and checking links against built HTML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup

from doxynav.model import NavEntry, NavTable
from doxynav.parse import load_navtree
from doxynav.validate import Issue, check_relative_path


class NavCycleError(ValueError):
    """Raised when table references form a cycle."""


def table_ref_path(html_dir: Path, ref: str) -> Path:
    """Map a table reference to its fragment file.

    Args:
        html_dir: Root of the generated HTML documentation.
        ref: Reference as written in the fragment (no ``.js`` suffix).

    Returns:
        Path to the fragment file.

    Raises:
        ValueError: If the reference would escape ``html_dir``.
    """
    problem = check_relative_path(ref)
    if problem:
        raise ValueError(f"Invalid table reference {ref!r}: {problem}")
    return html_dir / f"{ref}.js"


def safe_page_path(html_dir: Path, page: str) -> Path:
    """Map a link's page part to a file under ``html_dir``."""
    problem = check_relative_path(page)
    if problem:
        raise ValueError(f"Invalid page {page!r}: {problem}")
    return html_dir / page


@dataclass
class ResolveResult:
    """A table with its references inlined, plus any fragments not found."""

    table: NavTable
    missing: list[tuple[str, Path]] = field(default_factory=list)


class _Resolver:
    def __init__(self, html_dir: Path) -> None:
        self.html_dir = html_dir
        self.cache: dict[str, NavTable] = {}
        self.missing: list[tuple[str, Path]] = []

    def load(self, ref: str) -> NavTable | None:
        if ref in self.cache:
            return self.cache[ref]
        path = table_ref_path(self.html_dir, ref)
        if not path.exists():
            if (ref, path) not in self.missing:
                self.missing.append((ref, path))
            return None
        table = load_navtree(path)
        self.cache[ref] = table
        return table

    def entries(
        self, entries: tuple[NavEntry, ...], chain: tuple[str, ...]
    ) -> tuple[NavEntry, ...]:
        return tuple(self.entry(entry, chain) for entry in entries)

    def entry(self, entry: NavEntry, chain: tuple[str, ...]) -> NavEntry:
        if entry.table_ref is None:
            if entry.children:
                return entry.with_children(self.entries(entry.children, chain))
            return entry

        ref = entry.table_ref
        if ref in chain:
            cycle = " -> ".join((*chain, ref))
            raise NavCycleError(f"Table reference cycle: {cycle}")
        table = self.load(ref)
        if table is None:
            return entry
        return entry.with_children(self.entries(table.entries, (*chain, ref)))


def resolve_table(
    table: NavTable, html_dir: Path, root_ref: str | None = None
) -> ResolveResult:
    """Inline every referenced fragment below ``table``.

    Args:
        table: Table whose ``table_ref`` entries should be expanded.
        html_dir: Root the references are relative to.
        root_ref: Reference of ``table`` itself, so self-references are
            detected as cycles.

    Returns:
        ResolveResult with the expanded table. Entries whose fragment is
        missing keep their reference and no children.

    Raises:
        NavCycleError: If references loop back on themselves.
    """
    resolver = _Resolver(html_dir)
    chain = (root_ref,) if root_ref else ()
    resolved = NavTable(
        name=table.name, entries=resolver.entries(table.entries, chain)
    )
    return ResolveResult(table=resolved, missing=resolver.missing)


def _has_anchor(soup: BeautifulSoup, anchor: str) -> bool:
    if soup.find(id=anchor) is not None:
        return True
    return soup.find("a", attrs={"name": anchor}) is not None


def check_anchors(table: NavTable, html_dir: Path) -> list[Issue]:
    """Check that every link in ``table`` points at an existing page and anchor.

    Each page is read and parsed once.
    """
    soups: dict[Path, BeautifulSoup | str] = {}
    issues: list[Issue] = []

    for path, entry in table.iter_paths():
        if not entry.anchor_path or entry.page is None:
            continue

        def report(message: str, path: str = path, entry: NavEntry = entry) -> None:
            issues.append(Issue(path=path, label=entry.label, message=message))

        try:
            page_path = safe_page_path(html_dir, entry.page)
        except ValueError as e:
            report(str(e))
            continue

        if page_path not in soups:
            if not page_path.exists():
                soups[page_path] = "page not found"
            else:
                try:
                    html = page_path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    soups[page_path] = f"page unreadable ({e.__class__.__name__})"
                else:
                    soups[page_path] = BeautifulSoup(html, "html.parser")

        soup = soups[page_path]
        if isinstance(soup, str):
            report(f"{soup}: {entry.page}")
            continue

        anchor = entry.anchor
        if anchor and not _has_anchor(soup, anchor):
            report(f"anchor #{anchor} not found in {entry.page}")

    return issues
