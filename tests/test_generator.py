"""End-to-end tests for documentation generation."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from protondocs.config import CustomGuide, load_config
from protondocs.diagnostics import MISSING_DIRECTORY
from protondocs.generator import GenerationError, Generator, page_names
from protondocs.models import PackageSummary
from tests._fixtures.repo_builder import GoRepoBuilder

NOW = datetime(2024, 1, 2)


def _write_project(go_repo: GoRepoBuilder) -> None:
    go_repo.go_mod("github.com/acme/widgets")
    go_repo.write(
        {
            "widgets.go": """
            // Package widgets builds widgets.
            package widgets

            // Widget is a thing.
            type Widget struct {
                // Name labels the widget.
                Name string
            }

            // New returns a widget.
            func New() *Widget { return &Widget{} }

            // Render draws a widget.
            func Render(w *Widget) error { return nil }
            """,
            "widgets_test.go": """
            package widgets_test

            import "fmt"

            // ExampleNew shows construction.
            func ExampleNew() {
                fmt.Println("ok")
                // Output: ok
            }
            """,
            "internal/store/store.go": "package store\n\n// Open opens.\nfunc Open() {}\n",
            "examples/basic/main.go": "package main\n\nfunc main() {}\n",
            "guides/security.md": "Keep secrets safe.\n",
        }
    )


def _generator(go_repo: GoRepoBuilder) -> Generator:
    config = load_config(go_repo.path())
    config.discovery.guides.custom_guides = [
        CustomGuide(name="security", file="guides/security.md", title="Security")
    ]
    return Generator(config, go_repo.path(), now=NOW)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def test_generate_writes_gitbook_tree(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    result = _generator(go_repo).generate()
    out = go_repo.path("docs").resolve()

    assert result.output_dir == out
    assert [package.rel_path for package in result.packages] == [".", "examples/basic", "internal/store"]
    expected = [
        "README.md",
        "SUMMARY.md",
        ".gitbook.yml",
        "getting-started/README.md",
        "getting-started/widgets.md",
        "api-reference/README.md",
        "api-reference/widgets.md",
        "api-reference/store.md",
        "examples/README.md",
        "examples/widgets.md",
        "examples/examples.md",
        "examples/basic/README.md",
        "examples/basic/main.md",
        "guides/README.md",
        "guides/widgets/best-practices.md",
        "guides/contributing.md",
        "guides/faq.md",
        "guides/security.md",
    ]
    for relative in expected:
        assert (out / relative).is_file(), relative
    assert set(result.files) >= {out / relative for relative in expected}
    assert len(result.diagnostics) == 0


def test_generated_pages_content(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    _generator(go_repo).generate()
    out = go_repo.path("docs")

    index = _read(out / "README.md")
    assert index.startswith("# widgets\n")
    assert "go get github.com/acme/widgets" in index
    assert "- [widgets](api-reference/widgets.md): Package widgets builds widgets." in index
    assert "_This documentation was generated by proton on 2024-01-02._" in index

    api = _read(out / "api-reference" / "widgets.md")
    assert "## Table of Contents" in api
    assert "- [Types](#types)" in api
    assert "<!-- proton:toc -->" not in api
    assert "### Widget" in api
    assert "```go\nfunc New() *Widget\n```" in api
    assert "| `Name` | `string` | Name labels the widget. |" in api
    assert "### Render" in api

    examples = _read(out / "examples" / "widgets.md")
    assert "## ExampleNew" in examples
    assert "ExampleNew shows construction." in examples
    assert "// Output:\n// ok" in examples

    mirrored = _read(out / "examples" / "examples.md")
    assert "- [basic](basic/README.md)" in mirrored
    program = _read(out / "examples" / "basic" / "main.md")
    assert "package main" in program
    assert "go run main.go" in program

    practices = _read(out / "guides" / "widgets" / "best-practices.md")
    assert "`New`" in practices
    assert "Always check the error returned by `Render`." in practices

    assert _read(out / "guides" / "security.md") == "# Security\n\nKeep secrets safe.\n"
    assert 'title: "widgets"' in _read(out / ".gitbook.yml")

    summary = _read(out / "SUMMARY.md")
    assert "  * [widgets](api-reference/widgets.md)" in summary
    assert "  * [examples](examples/examples.md)" in summary
    assert "  * [Security](guides/security.md)" in summary


def test_generate_cleans_output_directory(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    go_repo.write({"docs/stale.md": "old\n"})
    _generator(go_repo).generate()
    assert not go_repo.path("docs/stale.md").exists()


def test_generate_keeps_existing_files_without_clean(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    go_repo.write({"docs/stale.md": "old\n"})
    generator = _generator(go_repo)
    generator.config.output.clean = False
    generator.generate()
    assert go_repo.path("docs/stale.md").exists()


def test_generate_refuses_to_clean_project_root(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    config = load_config(go_repo.path())
    config.output.directory = "."
    with pytest.raises(GenerationError, match="project root"):
        Generator(config, go_repo.path(), now=NOW).generate()


def test_missing_example_directory_is_a_warning(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    config = load_config(go_repo.path())
    config.discovery.examples.directories = ["demos"]
    result = Generator(config, go_repo.path(), now=NOW).generate()
    assert [entry.subject for entry in result.diagnostics.by_code(MISSING_DIRECTORY)] == ["demos"]


def test_disabled_sections_are_not_written(go_repo: GoRepoBuilder) -> None:
    _write_project(go_repo)
    config = load_config(go_repo.path())
    config.discovery.examples.enabled = False
    config.discovery.guides.enabled = False
    config.output.gitbook_config = False
    config.generation.include_toc = False
    Generator(config, go_repo.path(), now=NOW).generate()
    out = go_repo.path("docs")
    assert not (out / "examples").exists()
    assert not (out / "guides").exists()
    assert not (out / "SUMMARY.md").exists()
    api = _read(out / "api-reference" / "widgets.md")
    assert "Table of Contents" not in api
    assert "<!-- proton:toc -->" not in api


def test_page_names_disambiguate_clashing_packages() -> None:
    packages = [
        PackageSummary(name="util", path="/r/a/util", rel_path="a/util", import_path="m/a/util"),
        PackageSummary(name="util", path="/r/b/util", rel_path="b/util", import_path="m/b/util"),
        PackageSummary(name="core", path="/r/core", rel_path="core", import_path="m/core"),
    ]
    assert page_names(packages) == {"/r/a/util": "a-util", "/r/b/util": "b-util", "/r/core": "core"}
