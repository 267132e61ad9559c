"""Command-line interface."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
import yaml
from ruamel.yaml import YAML

from doxynav import __version__
from doxynav.config import load_config
from doxynav.config.load import SECTION_KEY
from doxynav.generate import build_nav_output, write_outputs
from doxynav.model import NavTable
from doxynav.parse import NavFormatError, format_navtree, load_navtree
from doxynav.resolve import check_anchors, resolve_table, table_ref_path
from doxynav.validate import ERROR, has_errors, validate_table


def _make_logger(
    quiet: bool, verbose: bool = False
) -> tuple[Callable[..., None], Callable[..., None]]:
    """Create log and log_verbose functions for CLI output.

    Args:
        quiet: If True, suppress all output.
        verbose: If True, enable verbose logging (quiet overrides this).

    Returns:
        Tuple of (log, log_verbose) functions.
    """
    effective_verbose = verbose and not quiet

    def log(msg: str, color: str = "green", err: bool = False) -> None:
        if not quiet:
            typer.secho(msg, fg=color, err=err)

    def log_verbose(msg: str, color: str = "green", err: bool = False) -> None:
        if effective_verbose:
            typer.secho(msg, fg=color, err=err)

    return log, log_verbose


def version_callback(value: bool) -> None:
    """Print version and exit if --version flag is set."""
    if value:
        typer.echo(f"doxynav {__version__}")
        raise typer.Exit()


app = typer.Typer(
    help="Inspect and convert Doxygen navigation-tree fragments.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

FragmentArg = Annotated[
    Path, typer.Argument(help="Navigation fragment (.js) written by Doxygen")
]
QuietOpt = Annotated[
    bool, typer.Option("--quiet", "-q", help="Suppress output (exit code only)")
]
VerboseOpt = Annotated[
    bool, typer.Option("--verbose", "-v", help="Show detailed progress")
]


def _load_fragment(fragment: Path, log: Callable[..., None]) -> NavTable:
    try:
        return load_navtree(fragment)
    except FileNotFoundError:
        log(f"Error: Fragment not found: {fragment}", color="red", err=True)
        raise typer.Exit(1) from None
    except (OSError, UnicodeDecodeError, NavFormatError) as e:
        log(f"Error reading {fragment}: {e}", color="red", err=True)
        raise typer.Exit(1) from None


def _resolve(
    table: NavTable,
    html_dir: Path,
    log: Callable[..., None],
    root_ref: str | None = None,
) -> NavTable:
    try:
        result = resolve_table(table, html_dir, root_ref=root_ref)
    except (OSError, ValueError) as e:
        log(f"Error resolving {table.name}: {e}", color="red", err=True)
        raise typer.Exit(1) from None
    for ref, path in result.missing:
        log(f"Warning: table {ref} not found ({path})", color="yellow", err=True)
    return result.table


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Inspect and convert Doxygen navigation-tree fragments."""


@app.command()
def show(
    fragment: FragmentArg,
    resolve: Annotated[
        bool,
        typer.Option("--resolve", "-r", help="Inline referenced child tables"),
    ] = False,
    html_dir: Annotated[
        Path | None,
        typer.Option(
            "--html-dir",
            "-d",
            help="Doxygen HTML directory (defaults to the fragment's root)",
        ),
    ] = None,
) -> None:
    """Print a fragment as an indented tree."""
    log, _ = _make_logger(quiet=False)
    table = _load_fragment(fragment, log)
    if resolve:
        table = _resolve(table, html_dir or _guess_html_dir(fragment), log)

    summary = f"{table.name} ({len(table)} entries, depth {table.depth()})"
    typer.secho(summary, bold=True)
    for depth, entry in table.walk():
        indent = "  " * depth
        target = entry.anchor_path or "-"
        if entry.table_ref is not None and not entry.children:
            target = f"{target}  [{entry.table_ref}]"
        typer.echo(f"{indent}{entry.label}  ->  {target}")


def _guess_html_dir(fragment: Path) -> Path:
    """Guess the HTML root from Doxygen's two-level ``xx/yyy/`` layout."""
    parent = fragment.resolve().parent
    if (
        len(parent.parts) > 2
        and len(parent.name) == 3
        and len(parent.parent.name) == 2
    ):
        return parent.parent.parent
    return parent


@app.command()
def find(
    fragment: FragmentArg,
    label: Annotated[str, typer.Argument(help="Label to look up")],
    quiet: QuietOpt = False,
) -> None:
    """Print every entry with LABEL; exit 1 if there is none."""
    log, _ = _make_logger(quiet)
    table = _load_fragment(fragment, log)

    matches = [
        (path, entry) for path, entry in table.iter_paths() if entry.label == label
    ]
    if not matches:
        log(f"No entry labelled {label!r} in {table.name}", color="red", err=True)
        raise typer.Exit(1)

    for path, entry in matches:
        log(f"{path} {entry.label}  ->  {entry.anchor_path or '-'}", color="white")


@app.command()
def validate(
    fragment: FragmentArg,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", min=1, help="Deepest allowed level"),
    ] = None,
    html_dir: Annotated[
        Path | None,
        typer.Option(
            "--html-dir",
            "-d",
            help="Doxygen HTML directory (defaults to the fragment's root)",
        ),
    ] = None,
    anchors: Annotated[
        bool,
        typer.Option(
            "--check-anchors", "-a", help="Check links against the HTML pages"
        ),
    ] = False,
    quiet: QuietOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Check a fragment's structure and, optionally, its links."""
    log, log_verbose = _make_logger(quiet, verbose)
    table = _load_fragment(fragment, log)

    issues = validate_table(table, max_depth=max_depth)
    if anchors:
        root = html_dir or _guess_html_dir(fragment)
        log_verbose(f"Checking links against {root}")
        issues.extend(check_anchors(table, root))

    for issue in issues:
        color = "red" if issue.severity == ERROR else "yellow"
        log(f"{issue.severity}: {issue}", color=color, err=True)

    if has_errors(issues):
        log(f"Fragment invalid: {fragment}", color="red", err=True)
        raise typer.Exit(1)

    log(f"Fragment valid: {fragment}")
    log(f"  Table: {table.name}")
    log(f"  Entries: {len(table)}")
    log(f"  Depth: {table.depth()}")
    warnings = sum(1 for issue in issues if issue.severity != ERROR)
    if warnings:
        log(f"  Warnings: {warnings}", color="yellow")


@app.command("format")
def format_(
    fragment: FragmentArg,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write here instead of in place"),
    ] = None,
    check: Annotated[
        bool,
        typer.Option("--check", help="Exit 1 if the file is not in Doxygen layout"),
    ] = False,
    quiet: QuietOpt = False,
) -> None:
    """Rewrite a fragment in Doxygen's canonical layout."""
    log, _ = _make_logger(quiet)
    table = _load_fragment(fragment, log)
    formatted = format_navtree(table)
    current = fragment.read_text(encoding="utf-8")

    if check:
        if current != formatted:
            log(f"Would reformat {fragment}", color="yellow", err=True)
            raise typer.Exit(1)
        log(f"{fragment} already formatted")
        return

    target = output or fragment
    try:
        target.write_text(formatted, encoding="utf-8")
    except OSError as exc:
        log(f"Error writing {target}: {exc}", color="red", err=True)
        raise typer.Exit(1) from None
    log(f"Formatted {target}")


@app.command()
def build(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to doxynav config file"),
    ] = Path("doxynav.yml"),
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output-dir", "-o", help="Output directory (defaults to html-dir)"
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Preview what would be generated without writing files",
        ),
    ] = False,
    quiet: QuietOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Generate Markdown navigation from Doxygen fragments."""
    log, log_verbose = _make_logger(quiet, verbose)

    if not config.exists():
        log(f"Error: Config file not found: {config}", color="red", err=True)
        raise typer.Exit(1)

    try:
        cfg = load_config(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        log(f"Error loading config: {e}", color="red", err=True)
        raise typer.Exit(1) from None

    if not cfg.html_dir.exists():
        log(f"Error: HTML directory not found: {cfg.html_dir}", color="red", err=True)
        log(
            "Hint: Run 'doxygen' first to generate the HTML documentation.",
            color="yellow",
            err=True,
        )
        raise typer.Exit(1)

    if not cfg.tables:
        log("Error: No navigation tables found.", color="red", err=True)
        log(
            "List fragments under 'tables' in the config, or enable "
            "GENERATE_TREEVIEW in your Doxyfile.",
            color="yellow",
            err=True,
        )
        raise typer.Exit(1)

    log_verbose(f"HTML: {cfg.html_dir}")
    log_verbose(f"Tables: {cfg.tables}")
    if dry_run:
        log_verbose("Dry run - no files will be written")

    tables: list[tuple[str, NavTable]] = []
    failed = False
    for ref in cfg.tables:
        try:
            table = load_navtree(table_ref_path(cfg.html_dir, ref))
        except (OSError, ValueError) as e:
            log(f"Error reading table {ref}: {e}", color="red", err=True)
            failed = True
            continue
        table = _resolve(table, cfg.html_dir, log, root_ref=ref)

        issues = validate_table(table, max_depth=cfg.max_depth)
        if cfg.check_anchors:
            issues.extend(check_anchors(table, cfg.html_dir))
        for issue in issues:
            color = "red" if issue.severity == ERROR else "yellow"
            log_verbose(f"{ref} {issue.severity}: {issue}", color=color, err=True)
        if has_errors(issues):
            log(f"Error: table {ref} is invalid", color="red", err=True)
            failed = True
            continue
        tables.append((ref, table))

    if failed:
        raise typer.Exit(1)

    result = build_nav_output(cfg, tables)
    out_dir = output_dir or cfg.html_dir
    try:
        paths = write_outputs(result, out_dir, cfg, dry_run=dry_run)
    except (OSError, ValueError) as exc:
        log(f"Error writing output files: {exc}", color="red", err=True)
        raise typer.Exit(1) from None

    action, color = ("Would generate", "yellow") if dry_run else ("Generated", "green")
    for path, content in zip(paths, (result.index_md, result.full_md)):
        log(f"{action} {path} ({len(content):,} bytes)", color)

    if result.skipped:
        log_verbose("Skipped entries:", color="yellow", err=True)
        for link, reason in result.skipped:
            log_verbose(f"- {link} ({reason})", color="yellow", err=True)

    if result.warnings:
        log("Warnings:", color="yellow", err=True)
        for warning in result.warnings:
            log(f"- {warning}", color="yellow", err=True)


_COMMENTED_EXAMPLE = [
    "# project_name: MyProject",
    "# base_url: https://example.com/docs",
    "# tables:",
    "#   - db/dd1/structExample",
    "# max_depth: 2",
    "# check_anchors: true",
]


@app.command()
def init(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help="YAML file to add the section to"),
    ] = Path("doxynav.yml"),
    html_dir: Annotated[
        str,
        typer.Option("--html-dir", "-d", help="Doxygen HTML directory"),
    ] = "html",
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing doxynav section"),
    ] = False,
    quiet: QuietOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Add a doxynav section to a YAML config file."""
    log, log_verbose = _make_logger(quiet, verbose)

    yaml_rt = YAML()
    yaml_rt.preserve_quotes = True

    data = None
    if config.exists():
        with open(config, encoding="utf-8") as f:
            data = yaml_rt.load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        log(f"Error: {config} must hold a mapping.", color="red", err=True)
        raise typer.Exit(1)

    if SECTION_KEY in data and not force:
        log("Error: doxynav section already configured.", color="red", err=True)
        log(
            "Use --force to overwrite existing configuration.",
            color="yellow",
            err=True,
        )
        raise typer.Exit(1)

    data[SECTION_KEY] = {"html_dir": html_dir}

    config.parent.mkdir(parents=True, exist_ok=True)
    with open(config, "w", encoding="utf-8") as f:
        yaml_rt.dump(data, f)

    # Comments go in as text; ruamel's comment API needs an existing token
    content = config.read_text(encoding="utf-8")
    ends_with_newline = content.endswith("\n")
    lines = content.splitlines()
    for index, line in enumerate(lines):
        if line.rstrip() == f"{SECTION_KEY}:":
            # Below the html_dir line dumped just after the section key
            lines[index + 2 : index + 2] = [f"  {c}" for c in _COMMENTED_EXAMPLE]
            break
    content = "\n".join(lines)
    if ends_with_newline:
        content += "\n"
    config.write_text(content, encoding="utf-8")

    log(f"Added doxynav section to {config}")
    log_verbose("Section includes commented examples for tables and links")


if __name__ == "__main__":
    app()
