"""Markdown generation from navigation tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from doxynav.config import Config
from doxynav.convert import (
    extract_member_html,
    extract_page_summary,
    extract_title_from_html,
    html_to_markdown,
)
from doxynav.model import NavEntry, NavTable
from doxynav.resolve import safe_page_path
from doxynav.validate import check_relative_path


def _escape_markdown_link_text(text: str) -> str:
    """Escape characters that break markdown link syntax.

    Args:
        text: The link text to escape.

    Returns:
        Text with [ and ] escaped as \\[ and \\].
    """
    return text.replace("[", r"\[").replace("]", r"\]")


def ensure_safe_md_path(path: str) -> Path:
    """Return ``path`` as a relative output path.

    Raises:
        ValueError: If the path is absolute or contains ``..``.
    """
    problem = check_relative_path(path)
    if problem:
        raise ValueError(f"Output path {path!r} {problem}")
    return Path(path)


@dataclass
class BuildResult:
    """Result of building navigation Markdown (no files written)."""

    index_md: str
    full_md: str
    skipped: list[tuple[str, str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class _Pages:
    """Reads each HTML page once, remembering why unreadable ones failed."""

    def __init__(self, html_dir: Path) -> None:
        self.html_dir = html_dir
        self._html: dict[str, str | None] = {}
        self.failures: dict[str, str] = {}

    def get(self, page: str) -> str | None:
        if page in self._html:
            return self._html[page]
        html: str | None = None
        try:
            path = safe_page_path(self.html_dir, page)
        except ValueError:
            self.failures[page] = "invalid page path"
        else:
            if not path.exists():
                self.failures[page] = "HTML file not found"
            else:
                try:
                    html = path.read_text(encoding="utf-8")
                except UnicodeDecodeError:
                    self.failures[page] = "HTML file has encoding errors"
                except OSError as e:
                    reason = f"HTML file unreadable ({e.__class__.__name__})"
                    self.failures[page] = reason
        self._html[page] = html
        return html


def _table_title(config: Config, ref: str, table: NavTable, pages: _Pages) -> str:
    html = pages.get(f"{ref}.html")
    if html:
        title = extract_title_from_html(html, project_name=config.project_name)
        if title:
            return title
    return table.name


def _entry_markdown(
    config: Config, entry: NavEntry, pages: _Pages, result: BuildResult
) -> str:
    page = entry.page
    if not page:
        return ""
    html = pages.get(page)
    if html is None:
        result.skipped.append((entry.anchor_path or page, pages.failures[page]))
        return ""

    if entry.anchor:
        fragment = extract_member_html(html, entry.anchor)
    else:
        fragment = extract_page_summary(html, config.content_selector)
    content = html_to_markdown(fragment) if fragment else ""
    if not content:
        result.warnings.append(
            f"No documentation extracted for {entry.label} ({entry.anchor_path})"
        )
    return content


def _index_lines(
    config: Config, entries: tuple[NavEntry, ...], depth: int, lines: list[str]
) -> None:
    indent = "  " * depth
    for entry in entries:
        text = _escape_markdown_link_text(entry.label)
        if entry.anchor_path:
            lines.append(f"{indent}- [{text}]({config.link_for(entry.anchor_path)})")
        else:
            lines.append(f"{indent}- {text}")
        if entry.children:
            _index_lines(config, entry.children, depth + 1, lines)


def _full_lines(
    config: Config,
    entries: tuple[NavEntry, ...],
    level: int,
    pages: _Pages,
    result: BuildResult,
    lines: list[str],
) -> None:
    for entry in entries:
        lines.append(f"{'#' * min(level, 6)} {entry.label}")
        lines.append("")
        content = _entry_markdown(config, entry, pages, result)
        if content:
            lines.append(content)
            lines.append("")
        if entry.children:
            _full_lines(config, entry.children, level + 1, pages, result, lines)


def build_nav_output(
    config: Config, tables: list[tuple[str, NavTable]]
) -> BuildResult:
    """Build the navigation index and full digest.

    Args:
        config: Resolved configuration.
        tables: ``(reference, table)`` pairs in output order, typically
            already resolved.

    Returns:
        BuildResult with both documents and any skipped entries.
    """
    heading = config.project_name or "Navigation"
    index_lines = [f"# {heading}", ""]
    full_lines = [f"# {heading}", ""]
    result = BuildResult(index_md="", full_md="")
    pages = _Pages(config.html_dir)

    for ref, table in tables:
        title = _table_title(config, ref, table, pages)

        index_lines.append(f"## {title}")
        index_lines.append("")
        _index_lines(config, table.entries, 0, index_lines)
        index_lines.append("")

        full_lines.append(f"## {title}")
        full_lines.append("")
        summary_html = pages.get(f"{ref}.html")
        if summary_html:
            summary = extract_page_summary(summary_html, config.content_selector)
            if summary:
                full_lines.append(html_to_markdown(summary))
                full_lines.append("")
        _full_lines(config, table.entries, 3, pages, result, full_lines)

    result.index_md = "\n".join(index_lines)
    result.full_md = "\n".join(full_lines)
    return result


def write_outputs(
    result: BuildResult,
    output_dir: Path,
    config: Config,
    dry_run: bool = False,
) -> list[Path]:
    """Write the index and full digest.

    Args:
        result: Built Markdown.
        output_dir: Directory to write into.
        config: Supplies the output file names.
        dry_run: If True, compute paths but don't write.

    Returns:
        Output paths (written or would-be).

    Raises:
        ValueError: If a configured output name is unsafe.
    """
    index_path = output_dir / ensure_safe_md_path(config.output)
    full_path = output_dir / ensure_safe_md_path(config.full_output)
    if not dry_run:
        outputs = ((index_path, result.index_md), (full_path, result.full_md))
        for path, content in outputs:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
    return [index_path, full_path]
