"""Doxygen HTML to Markdown conversion."""

from __future__ import annotations

import mdformat
from bs4 import BeautifulSoup, Tag
from markdownify import ATX, MarkdownConverter

_REMOVED_CLASSES = {"permalink", "dynheader", "dyncontent", "memSeparator"}


def _should_remove(tag: Tag) -> bool:
    """Check if a tag should be removed during autoclean."""
    if tag.name in {"img", "svg", "map"}:
        return True
    classes = tag.get("class") or ()
    return any(css_class in _REMOVED_CLASSES for css_class in classes)


def _root(tag: BeautifulSoup | Tag) -> BeautifulSoup | None:
    if isinstance(tag, BeautifulSoup):
        return tag
    return next((p for p in tag.parents if isinstance(p, BeautifulSoup)), None)


def _autoclean(soup: BeautifulSoup | Tag) -> None:
    """Remove Doxygen page chrome and flatten prototypes and code fragments."""
    for element in soup.find_all(_should_remove):
        element.decompose()

    doc = _root(soup)
    if doc is None:
        return

    # Prototypes are laid out with tables; keep them as one line of code
    for element in soup.find_all("div", class_="memproto"):
        pre_tag = doc.new_tag("pre")
        pre_tag.string = " ".join(element.get_text().split())
        element.replace_with(pre_tag)

    # Code fragments are one <div class="line"> per source line
    for element in soup.find_all("div", class_="fragment"):
        lines = [line.get_text() for line in element.find_all("div", class_="line")]
        pre_tag = doc.new_tag("pre")
        pre_tag.string = "\n".join(lines) if lines else element.get_text()
        element.replace_with(pre_tag)


_converter = MarkdownConverter(
    bullets="-",
    escape_underscores=False,
    heading_style=ATX,
)


def extract_title_from_html(html: str, project_name: str | None = None) -> str | None:
    """Extract page title from Doxygen HTML.

    Tries ``div.title`` first, then ``<title>`` (dropping a leading
    ``"Project: "`` when it matches ``project_name``), then the first ``<h1>``.

    Args:
        html: Raw HTML content.
        project_name: Doxygen PROJECT_NAME to strip from ``<title>``.

    Returns:
        The page title, or None if not found.
    """
    soup = BeautifulSoup(html, "html.parser")

    title_div = soup.find("div", class_="title")
    if title_div:
        text = " ".join(title_div.get_text().split())
        if text:
            return text

    title_tag = soup.find("title")
    if title_tag:
        title = title_tag.get_text().strip()
        if project_name and ": " in title:
            prefix, rest = title.split(": ", 1)
            if prefix.strip().casefold() == project_name.strip().casefold():
                title = rest.strip()
        if title:
            return title

    h1_tag = soup.find("h1")
    if h1_tag:
        text = h1_tag.get_text().strip()
        if text:
            return text

    return None


def _find_anchor(soup: BeautifulSoup, anchor: str) -> Tag | None:
    found = soup.find(id=anchor)
    if found is None:
        found = soup.find("a", attrs={"name": anchor})
    return found


def extract_member_html(html: str, anchor: str) -> str | None:
    """Return the HTML documenting one anchor of a Doxygen page.

    Members are documented in the ``div.memitem`` that follows their anchor.
    Enum values live in a field table row, documented by its ``td.fielddoc``.

    Returns:
        The documentation fragment, or None if the anchor has none.
    """
    soup = BeautifulSoup(html, "html.parser")
    target = _find_anchor(soup, anchor)
    if target is None:
        return None

    cell = target.find_parent("td", class_="fieldname")
    if cell is not None:
        doc = cell.find_next_sibling("td", class_="fielddoc")
        return str(doc) if doc is not None else None

    for sibling in target.next_siblings:
        if not isinstance(sibling, Tag):
            continue
        if "memitem" in (sibling.get("class") or ()):
            return str(sibling)
        if sibling.name == "a" and sibling.get("id"):
            # Next member's anchor; this one has no documentation block.
            break
    return None


def extract_page_summary(html: str, content_selector: str | None = None) -> str | None:
    """Return the detailed description block of a Doxygen page."""
    soup = BeautifulSoup(html, "html.parser")
    if content_selector:
        try:
            content = soup.select_one(content_selector)
        except Exception:
            content = None
    else:
        content = soup.select_one("div.contents div.textblock") or soup.select_one(
            "div.textblock"
        )
    return str(content) if content is not None else None


def html_to_markdown(html: str) -> str:
    """Convert a Doxygen HTML fragment to clean Markdown.

    Args:
        html: HTML content, typically from ``extract_member_html``.

    Returns:
        Cleaned Markdown text, empty if nothing remains.
    """
    soup = BeautifulSoup(html, "html.parser")
    _autoclean(soup)
    md = _converter.convert_soup(soup)
    if not md.strip():
        return ""
    return mdformat.text(md, options={"wrap": "no"}, extensions=("tables",)).strip()
