"""Navigation tree data model."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class NavEntry:
    """One row of a documentation sidebar tree.

    Attributes:
        label: Display name of the symbol.
        anchor_path: Relative link target (``page.html#anchor``), or None for
            pure container nodes.
        children: Nested entries in display order, or None for a leaf.
        table_ref: Name of a separate fragment holding this entry's children
            (Doxygen emits these for nested compounds).
    """

    label: str
    anchor_path: str | None = None
    children: tuple[NavEntry, ...] | None = None
    table_ref: str | None = None

    @property
    def page(self) -> str | None:
        """Page part of the anchor path."""
        if self.anchor_path is None:
            return None
        return self.anchor_path.split("#", 1)[0]

    @property
    def anchor(self) -> str | None:
        """In-page anchor identifier, if the link has one."""
        if self.anchor_path is None or "#" not in self.anchor_path:
            return None
        return self.anchor_path.split("#", 1)[1]

    @property
    def is_leaf(self) -> bool:
        return not self.children and self.table_ref is None

    def with_children(self, children: tuple[NavEntry, ...]) -> NavEntry:
        """Return a copy of this entry carrying the given children."""
        return replace(self, children=children)


def _walk(
    entries: tuple[NavEntry, ...], depth: int
) -> Iterator[tuple[int, NavEntry]]:
    for entry in entries:
        yield depth, entry
        if entry.children:
            yield from _walk(entry.children, depth + 1)


@dataclass(frozen=True)
class NavTable:
    """A named navigation fragment (``var NAME = [...]``)."""

    name: str
    entries: tuple[NavEntry, ...] = ()

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())

    def walk(self) -> Iterator[tuple[int, NavEntry]]:
        """Yield ``(depth, entry)`` pairs depth-first in display order.

        Top-level entries have depth 1.
        """
        return _walk(self.entries, 1)

    def depth(self) -> int:
        """Return the depth of the deepest entry (0 for an empty table)."""
        return max((depth for depth, _ in self.walk()), default=0)

    def labels(self) -> list[str]:
        return [entry.label for _, entry in self.walk()]

    def find(self, label: str) -> list[NavEntry]:
        """Return all entries with this label, in display order."""
        return [entry for _, entry in self.walk() if entry.label == label]

    def find_anchor(self, anchor_path: str) -> NavEntry | None:
        """Return the first entry linking to ``anchor_path``."""
        for _, entry in self.walk():
            if entry.anchor_path == anchor_path:
                return entry
        return None

    def iter_paths(self) -> Iterator[tuple[str, NavEntry]]:
        """Yield ``(index_path, entry)`` pairs, e.g. ``("[3][0]", entry)``."""
        yield from _iter_paths(self.entries, "")


def _iter_paths(
    entries: tuple[NavEntry, ...], prefix: str
) -> Iterator[tuple[str, NavEntry]]:
    for index, entry in enumerate(entries):
        path = f"{prefix}[{index}]"
        yield path, entry
        if entry.children:
            yield from _iter_paths(entry.children, path)
