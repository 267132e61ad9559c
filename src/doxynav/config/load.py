"""Configuration loading from YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from doxynav.config.derive import discover_tables
from doxynav.config.model import Config

DEFAULT_HTML_DIR = "html"
DEFAULT_OUTPUT = "nav.md"
DEFAULT_FULL_OUTPUT = "nav-full.md"
SECTION_KEY = "doxynav"


class _PermissiveLoader(yaml.SafeLoader):
    """SafeLoader that ignores unknown Python tags.

    The doxynav section may live inside an mkdocs.yml, whose extensions use
    Python-specific tags like !python/name that SafeLoader rejects. This
    loader treats them as raw strings to allow parsing the rest of the file.
    """


def _ignore_unknown(loader: yaml.Loader, tag_suffix: str, node: yaml.Node) -> str:
    """Return the raw tag as a placeholder string."""
    return f"<{node.tag}>"


_PermissiveLoader.add_multi_constructor("tag:yaml.org,2002:python/", _ignore_unknown)
_PermissiveLoader.add_multi_constructor("!python/", _ignore_unknown)


def load_config(config_path: Path, discover: bool = True) -> Config:
    """Load and resolve configuration.

    Args:
        config_path: Path to a YAML file holding the settings, either at top
            level or under a ``doxynav:`` key.
        discover: If True and no tables are configured, find them in html_dir.

    Returns:
        Resolved Config object. Relative ``html_dir`` is taken relative to the
        config file's directory.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If a setting has the wrong type.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        raw = yaml.load(f, Loader=_PermissiveLoader)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a mapping: {config_path}")

    section = get_doxynav_config(raw)
    config = _config_from_mapping(section, base_dir=config_path.parent)
    if discover and not config.tables:
        config.tables = discover_tables(config.html_dir)
    return config


def get_doxynav_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Return the doxynav settings from a parsed YAML document.

    Both a dedicated file and a section inside a larger file are accepted:

        html_dir: html

    or

        doxynav:
          html_dir: html
    """
    if SECTION_KEY not in raw:
        return raw
    section = raw[SECTION_KEY]
    # Section with no options is represented as None
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(
            f"'{SECTION_KEY}' must be a mapping, got {type(section).__name__}"
        )
    return section


def _expect(section: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = section.get(key, default)
    if value is None:
        return default
    # bool is an int subclass; a YAML 'true' is never a depth
    if kind is int and isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer, got bool")
    if not isinstance(value, kind):
        raise ValueError(
            f"'{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _config_from_mapping(section: dict[str, Any], base_dir: Path) -> Config:
    """Build a Config from the doxynav settings mapping."""
    html_dir = Path(_expect(section, "html_dir", str, DEFAULT_HTML_DIR))
    if not html_dir.is_absolute():
        html_dir = base_dir / html_dir

    tables = _expect(section, "tables", list, [])
    for table in tables:
        if not isinstance(table, str):
            raise ValueError(
                f"'tables' entries must be strings, got {type(table).__name__}"
            )
    # Accept references written with their file suffix
    tables = [table.removesuffix(".js") for table in tables]

    max_depth = section.get("max_depth")
    if max_depth is not None:
        max_depth = _expect(section, "max_depth", int, None)
        if max_depth < 1:
            raise ValueError(f"'max_depth' must be at least 1, got {max_depth}")

    return Config(
        html_dir=html_dir,
        project_name=_expect(section, "project_name", str, ""),
        base_url=_expect(section, "base_url", str, "").rstrip("/"),
        tables=tables,
        output=_expect(section, "output", str, DEFAULT_OUTPUT),
        full_output=_expect(section, "full_output", str, DEFAULT_FULL_OUTPUT),
        max_depth=max_depth,
        check_anchors=_expect(section, "check_anchors", bool, False),
        content_selector=_expect(section, "content_selector", str, None),
    )
