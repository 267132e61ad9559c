"""Finding navigation fragments in a generated HTML tree."""

from __future__ import annotations

import re
from pathlib import Path

# Scripts Doxygen copies next to every HTML build; none of them is a fragment.
_RUNTIME_SCRIPTS = {
    "clipboard.js",
    "cookie.js",
    "dynsections.js",
    "jquery.js",
    "menu.js",
    "menudata.js",
    "navtree.js",
    "navtreedata.js",
    "resize.js",
    "darkmode_toggle.js",
}
_NAVTREEINDEX_RE = re.compile(r"^navtreeindex\d+\.js$")
_FRAGMENT_HEADER_RE = re.compile(r"\A\s*var\s+[A-Za-z_$][\w$]*\s*=\s*\[", re.ASCII)


def _is_fragment(path: Path) -> bool:
    if path.name in _RUNTIME_SCRIPTS or _NAVTREEINDEX_RE.match(path.name):
        return False
    try:
        head = path.read_text(encoding="utf-8")[:256]
    except (OSError, UnicodeDecodeError):
        return False
    return _FRAGMENT_HEADER_RE.match(head) is not None


def discover_tables(html_dir: Path) -> list[str]:
    """Return table references for every fragment under ``html_dir``.

    References are relative to ``html_dir``, without the ``.js`` suffix,
    sorted by path. The ``search/`` directory is skipped.
    """
    if not html_dir.is_dir():
        return []
    refs: list[str] = []
    for path in sorted(html_dir.rglob("*.js")):
        relative = path.relative_to(html_dir)
        if relative.parts[0] == "search":
            continue
        if _is_fragment(path):
            refs.append(relative.with_suffix("").as_posix())
    return refs
