"""Tests for CLI."""

import shutil
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from doxynav.cli import app

runner = CliRunner()
FIXTURES = Path(__file__).parent / "fixtures"
CORRELATION_JS = FIXTURES / "html" / "db" / "dd1" / "structCorrelationTask.js"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Copy the config and HTML fixtures to a temporary directory."""
    shutil.copytree(FIXTURES / "html", tmp_path / "html")
    shutil.copy(FIXTURES / "doxynav.yml", tmp_path / "doxynav.yml")
    return tmp_path


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("show", "find", "validate", "format", "build", "init"):
        assert command in result.stdout


def test_cli_no_args_shows_help():
    result = runner.invoke(app, [])
    # Exit code 2 is standard for "no command specified" (usage error)
    assert result.exit_code == 2
    assert "validate" in result.stdout


def test_cli_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "doxynav" in result.stdout


def test_show():
    result = runner.invoke(app, ["show", str(CORRELATION_JS)])

    assert result.exit_code == 0
    assert "structCorrelationTask (30 entries, depth 2)" in result.stdout
    assert "    Photon  ->  db/dd1/structCorrelationTask.html#" in result.stdout
    assert "[de/dca/structCorrelationTask_1_1Config]" in result.stdout


def test_show_resolve_guesses_html_dir():
    result = runner.invoke(app, ["show", str(CORRELATION_JS), "--resolve"])

    assert result.exit_code == 0
    assert "(33 entries, depth 2)" in result.stdout
    assert "    binsEta  ->  " in result.stdout
    assert "db/d2d/structCorrelationTask_1_1QA not found" in result.output


def test_show_missing_fragment():
    result = runner.invoke(app, ["show", "/nonexistent/structFoo.js"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_show_malformed_fragment(tmp_path: Path):
    bad = tmp_path / "bad.js"
    bad.write_text("var x = [ [ 1 ] ];", encoding="utf-8")

    result = runner.invoke(app, ["show", str(bad)])

    assert result.exit_code == 1
    assert "3-element array" in result.output


def test_find_duplicates():
    result = runner.invoke(app, ["find", str(CORRELATION_JS), "init"])

    assert result.exit_code == 0
    assert "[9] init" in result.stdout
    assert "[10] init" in result.stdout


def test_find_nested():
    result = runner.invoke(app, ["find", str(CORRELATION_JS), "Phi"])

    assert result.exit_code == 0
    assert "[3][3] Phi" in result.stdout


def test_find_missing():
    result = runner.invoke(app, ["find", str(CORRELATION_JS), "nope"])

    assert result.exit_code == 1
    assert "No entry labelled 'nope'" in result.output


def test_validate_fixture():
    result = runner.invoke(app, ["validate", str(CORRELATION_JS)])

    assert result.exit_code == 0
    assert "Fragment valid" in result.output
    assert "Entries: 30" in result.output
    assert "Warnings: 1" in result.output


def test_validate_max_depth():
    result = runner.invoke(app, ["validate", str(CORRELATION_JS), "--max-depth", "1"])

    assert result.exit_code == 1
    assert "exceeds maximum of 1" in result.output
    assert "Fragment invalid" in result.output


def test_validate_check_anchors():
    result = runner.invoke(
        app, ["validate", str(CORRELATION_JS), "--check-anchors", "--verbose"]
    )

    # QA's page is not part of the fixture tree
    assert result.exit_code == 1
    assert "page not found: db/d2d/structCorrelationTask_1_1QA.html" in result.output
    assert "Checking links against" in result.output


def test_validate_quiet(tmp_path: Path):
    bad = tmp_path / "bad.js"
    bad.write_text('var x = [ [ "", "p.html#a", null ] ];', encoding="utf-8")

    result = runner.invoke(app, ["validate", str(bad), "--quiet"])

    assert result.exit_code == 1
    assert result.output == ""


def test_format_check_on_doxygen_output():
    result = runner.invoke(app, ["format", str(CORRELATION_JS), "--check"])

    assert result.exit_code == 0
    assert "already formatted" in result.output


def test_format_rewrites(tmp_path: Path):
    messy = tmp_path / "structFoo.js"
    messy.write_text('var structFoo = [["a","p.html#a",null]];\n', encoding="utf-8")

    check = runner.invoke(app, ["format", str(messy), "--check"])
    assert check.exit_code == 1
    assert "Would reformat" in check.output

    result = runner.invoke(app, ["format", str(messy)])
    assert result.exit_code == 0
    assert messy.read_text(encoding="utf-8") == (
        'var structFoo =\n[\n    [ "a", "p.html#a", null ]\n];'
    )


def test_format_output_option(tmp_path: Path):
    out = tmp_path / "copy.js"

    result = runner.invoke(app, ["format", str(CORRELATION_JS), "--output", str(out)])

    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8") == CORRELATION_JS.read_text(encoding="utf-8")


def test_build_missing_config():
    result = runner.invoke(app, ["build", "--config", "/nonexistent/doxynav.yml"])

    assert result.exit_code == 1
    assert "not found" in result.output.lower()


def test_build_missing_html_dir(tmp_path: Path):
    config_path = tmp_path / "doxynav.yml"
    config_path.write_text("html_dir: missing\n", encoding="utf-8")

    result = runner.invoke(app, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "HTML directory not found" in result.output


def test_build_no_tables(tmp_path: Path):
    (tmp_path / "html").mkdir()
    config_path = tmp_path / "doxynav.yml"
    config_path.write_text("html_dir: html\n", encoding="utf-8")

    result = runner.invoke(app, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "No navigation tables found" in result.output


def test_build_invalid_config(tmp_path: Path):
    config_path = tmp_path / "doxynav.yml"
    config_path.write_text("max_depth: deep\n", encoding="utf-8")

    result = runner.invoke(app, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Error loading config" in result.output


def test_build_success(project: Path):
    result = runner.invoke(app, ["build", "--config", str(project / "doxynav.yml")])

    assert result.exit_code == 0
    assert "Generated" in result.output
    assert (project / "html" / "nav.md").exists()
    assert (project / "html" / "nav-full.md").exists()


def test_build_output_dir(project: Path):
    out = project / "out"
    result = runner.invoke(
        app,
        ["build", "--config", str(project / "doxynav.yml"), "--output-dir", str(out)],
    )

    assert result.exit_code == 0
    index = (out / "nav.md").read_text(encoding="utf-8")
    assert "## CorrelationTask Struct Reference" in index


def test_build_dry_run(project: Path):
    out = project / "out"
    result = runner.invoke(
        app,
        [
            "build",
            "--config",
            str(project / "doxynav.yml"),
            "--output-dir",
            str(out),
            "--dry-run",
        ],
    )

    assert result.exit_code == 0
    assert "Would generate" in result.output
    assert not out.exists()


def test_build_quiet(project: Path):
    result = runner.invoke(
        app, ["build", "--config", str(project / "doxynav.yml"), "--quiet"]
    )

    assert result.exit_code == 0
    assert result.output == ""


def test_build_verbose_lists_skipped(project: Path):
    result = runner.invoke(
        app, ["build", "--config", str(project / "doxynav.yml"), "--verbose"]
    )

    assert result.exit_code == 0
    assert "Skipped entries:" in result.output
    assert "db/d2d/structCorrelationTask_1_1QA.html (HTML file not found)" in (
        result.output
    )


def test_build_fails_on_invalid_table(project: Path):
    config_path = project / "doxynav.yml"
    config_path.write_text(
        "doxynav:\n  html_dir: html\n  tables: [db/dd1/structCorrelationTask]\n"
        "  max_depth: 1\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "table db/dd1/structCorrelationTask is invalid" in result.output
    assert not (project / "html" / "nav.md").exists()


def test_build_missing_table(project: Path):
    config_path = project / "doxynav.yml"
    config_path.write_text(
        "doxynav:\n  html_dir: html\n  tables: [db/zz9/structMissing]\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Error reading table db/zz9/structMissing" in result.output


def test_build_unsafe_output(project: Path):
    config_path = project / "doxynav.yml"
    config_path.write_text(
        "doxynav:\n  html_dir: html\n  output: ../../escape.md\n", encoding="utf-8"
    )

    result = runner.invoke(app, ["build", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Error writing output files" in result.output


def test_init_creates_file(tmp_path: Path):
    config_path = tmp_path / "doxynav.yml"

    result = runner.invoke(app, ["init", "--config", str(config_path)])

    assert result.exit_code == 0
    content = config_path.read_text(encoding="utf-8")
    assert "doxynav:" in content
    assert "  # tables:" in content
    assert yaml.safe_load(content) == {"doxynav": {"html_dir": "html"}}


def test_init_preserves_existing_content(tmp_path: Path):
    config_path = tmp_path / "mkdocs.yml"
    config_path.write_text(
        "# Site settings\nsite_name: 'Docs'\nnav:\n  - Home: index.md\n",
        encoding="utf-8",
    )

    result = runner.invoke(
        app, ["init", "--config", str(config_path), "--html-dir", "api/html"]
    )

    assert result.exit_code == 0
    content = config_path.read_text(encoding="utf-8")
    assert content.startswith("# Site settings\nsite_name: 'Docs'\n")
    data = yaml.safe_load(content)
    assert data["doxynav"] == {"html_dir": "api/html"}
    assert data["nav"] == [{"Home": "index.md"}]


def test_init_refuses_existing_section(tmp_path: Path):
    config_path = tmp_path / "doxynav.yml"
    config_path.write_text("doxynav:\n  html_dir: out\n", encoding="utf-8")

    result = runner.invoke(app, ["init", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "already configured" in result.output


def test_init_force(tmp_path: Path):
    config_path = tmp_path / "doxynav.yml"
    config_path.write_text("doxynav:\n  html_dir: out\n", encoding="utf-8")

    result = runner.invoke(app, ["init", "--config", str(config_path), "--force"])

    assert result.exit_code == 0
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    assert data == {"doxynav": {"html_dir": "html"}}


def test_init_rejects_non_mapping(tmp_path: Path):
    config_path = tmp_path / "doxynav.yml"
    config_path.write_text("- a\n- b\n", encoding="utf-8")

    result = runner.invoke(app, ["init", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "must hold a mapping" in result.output
