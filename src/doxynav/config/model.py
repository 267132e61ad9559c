"""Configuration model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Config:
    """Resolved configuration for navigation Markdown generation."""

    html_dir: Path
    project_name: str = ""
    base_url: str = ""
    tables: list[str] = field(default_factory=list)
    output: str = "nav.md"
    full_output: str = "nav-full.md"
    max_depth: int | None = None
    check_anchors: bool = False
    content_selector: str | None = None

    def link_for(self, anchor_path: str) -> str:
        """Return the link to use for an entry's anchor path."""
        if not self.base_url:
            return anchor_path
        return f"{self.base_url}/{anchor_path}"
