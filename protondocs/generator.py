"""Documentation generation pipeline: discovery, rendering, and output layout."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .analyzers.discovery import (
    CATEGORY_API,
    CATEGORY_COMMANDS,
    CATEGORY_INTERNAL,
    CATEGORY_MAIN,
    CATEGORY_TEST,
    Discoverer,
    packages_by_category,
)
from .config import ProtonConfig
from .diagnostics import MISSING_DIRECTORY, Diagnostics
from .logging import get_logger
from .models import PackageSummary
from .postproc.toc import TableOfContentsBuilder
from .templates.engine import TemplateEngine

EXAMPLE_DIR_NAMES = ("examples", "example", "samples", "sample")

CATEGORY_TITLES = {
    CATEGORY_API: "Public API",
    CATEGORY_COMMANDS: "Commands",
    CATEGORY_INTERNAL: "Internal Packages",
    CATEGORY_MAIN: "Main Packages",
    CATEGORY_TEST: "Test Packages",
}


class GenerationError(RuntimeError):
    """Raised when the output tree cannot be produced."""


@dataclass
class ExampleDirectory:
    """An example source directory mirrored into `examples/`."""

    source: Path
    title: str
    output: Path
    link: str


@dataclass
class GenerationResult:
    """Outcome of a generation run."""

    output_dir: Path
    packages: List[PackageSummary]
    files: List[Path] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def page_names(packages: Iterable[PackageSummary]) -> Dict[str, str]:
    """Output page stem per package path; clashing names fall back to the relative path."""
    packages = list(packages)
    counts: Dict[str, int] = {}
    for package in packages:
        counts[package.name] = counts.get(package.name, 0) + 1
    names: Dict[str, str] = {}
    for package in packages:
        if counts[package.name] == 1:
            names[package.path] = package.name
        else:
            slug = package.rel_path.replace("/", "-") if package.rel_path != "." else package.name
            names[package.path] = slug.lstrip(".-") or package.name
    return names


class Generator:
    """Builds the GitBook documentation tree for a Go project."""

    def __init__(
        self,
        config: ProtonConfig,
        project_path: Path,
        *,
        diagnostics: Diagnostics | None = None,
        discoverer: Discoverer | None = None,
        engine: TemplateEngine | None = None,
        toc_builder: TableOfContentsBuilder | None = None,
        now: datetime | None = None,
    ) -> None:
        self.config = config
        self.project_path = Path(project_path).expanduser().resolve()
        output = Path(config.output.directory).expanduser()
        self.output_path = output if output.is_absolute() else self.project_path / output
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.discoverer = discoverer or Discoverer(config, self.project_path, self.diagnostics)
        self.engine = engine or TemplateEngine(config, self.project_path)
        self.toc_builder = toc_builder or TableOfContentsBuilder(config.generation.max_depth)
        self.now = now
        self.logger = get_logger("generator")
        self._written: List[Path] = []

    def generate(self) -> GenerationResult:
        """Run discovery and write every output document."""
        self._written = []
        self.logger.info("Generating documentation for %s", self.project_path)
        if self.config.output.clean:
            self._clean_output()
        self._ensure_dir(self.output_path)

        packages = self.discoverer.discover_packages()
        example_dirs = self._example_directories() if self.config.discovery.examples.enabled else []
        context = self.engine.build_context(
            packages,
            now=self.now,
            categories=packages_by_category(packages),
            category_titles=CATEGORY_TITLES,
            page_names=page_names(packages),
            example_directories=example_dirs,
        )

        self._render("index", context, self.output_path / "README.md")
        self._generate_getting_started(packages, context)
        if self.config.discovery.api_generation.enabled:
            self._generate_api_reference(packages, context)
        if self.config.discovery.examples.enabled:
            self._generate_examples(packages, context, example_dirs)
        if self.config.discovery.guides.enabled:
            self._generate_guides(packages, context)
        if self.config.output.gitbook_config:
            self._render("gitbook-config", context, self.output_path / ".gitbook.yml")
            self._render("gitbook-summary", context, self.output_path / self.config.gitbook.structure.summary)

        self.logger.info("Wrote %d file(s) to %s", len(self._written), self.output_path)
        return GenerationResult(
            output_dir=self.output_path,
            packages=packages,
            files=list(self._written),
            diagnostics=self.diagnostics,
        )

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------
    def _clean_output(self) -> None:
        if not self.output_path.exists():
            return
        if self.output_path == self.project_path:
            raise GenerationError("Refusing to clean the project root; choose a dedicated output directory")
        self.logger.debug("Cleaning output directory %s", self.output_path)
        try:
            for entry in self.output_path.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        except OSError as exc:
            raise GenerationError(f"failed to clean output directory {self.output_path}: {exc}") from exc

    @staticmethod
    def _ensure_dir(path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise GenerationError(f"failed to create directory {path}: {exc}") from exc

    def _write(self, path: Path, content: str) -> None:
        self._ensure_dir(path.parent)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise GenerationError(f"failed to write {path}: {exc}") from exc
        self._written.append(path)

    def _render(self, name: str, context: Dict[str, Any], path: Path, *, toc: bool = False) -> None:
        content = self.engine.render_to_string(name, context)
        if toc:
            content = self._apply_toc(content)
        self.logger.debug("Rendering %s -> %s", name, path)
        self._write(path, content)

    def _apply_toc(self, content: str) -> str:
        if self.config.generation.include_toc:
            return self.toc_builder.build(content)
        return content.replace(TableOfContentsBuilder.PLACEHOLDER, "", 1)

    @staticmethod
    def _package_context(context: Dict[str, Any], package: PackageSummary) -> Dict[str, Any]:
        return {**context, "package": package}

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------
    def _generate_getting_started(self, packages: List[PackageSummary], context: Dict[str, Any]) -> None:
        directory = self.output_path / "getting-started"
        self._render("getting-started-index", context, directory / "README.md")
        names = context["page_names"]
        for package in packages:
            self._render(
                "getting-started",
                self._package_context(context, package),
                directory / f"{names[package.path]}.md",
            )

    def _generate_api_reference(self, packages: List[PackageSummary], context: Dict[str, Any]) -> None:
        directory = self.output_path / "api-reference"
        self._render("index-api-reference", context, directory / "README.md")
        names = context["page_names"]
        for package in packages:
            self._render(
                "api-reference",
                self._package_context(context, package),
                directory / f"{names[package.path]}.md",
                toc=True,
            )

    def _generate_examples(
        self,
        packages: List[PackageSummary],
        context: Dict[str, Any],
        example_dirs: List[ExampleDirectory],
    ) -> None:
        directory = self.output_path / "examples"
        self._render("examples-index", context, directory / "README.md")
        names = context["page_names"]
        for package in packages:
            if package.examples:
                self._render(
                    "package-examples",
                    self._package_context(context, package),
                    directory / f"{names[package.path]}.md",
                )
        for example_dir in example_dirs:
            self._mirror_example_directory(example_dir.source, example_dir.output, example_dir.title, context)

    def _example_directories(self) -> List[ExampleDirectory]:
        """Configured directories first, then auto-discovered ones; duplicates dropped."""
        examples_config = self.config.discovery.examples
        candidates: List[Path] = []
        for entry in examples_config.directories:
            path = Path(entry).expanduser()
            path = path if path.is_absolute() else self.project_path / path
            if not path.is_dir():
                self.diagnostics.warn(MISSING_DIRECTORY, entry, f"example directory {entry} not found, skipping")
                continue
            candidates.append(path)
        if examples_config.auto_discover:
            for name in EXAMPLE_DIR_NAMES:
                candidates.append(self.project_path / name)
            for manual in self.config.discovery.packages.manual_packages:
                candidates.append(self.project_path / manual.path / "examples")

        base = self.output_path / "examples"
        seen = set()
        directories: List[ExampleDirectory] = []
        for path in candidates:
            resolved = path.resolve()
            if resolved in seen or not resolved.is_dir() or resolved == self.output_path:
                continue
            seen.add(resolved)
            try:
                rel = resolved.relative_to(self.project_path).as_posix()
            except ValueError:
                rel = resolved.name
            if rel == "examples":
                output = base
                link = "examples.md"
            else:
                output = base / rel
                link = f"{rel}/README.md"
            directories.append(ExampleDirectory(source=resolved, title=rel, output=output, link=link))
        return directories

    def _mirror_example_directory(
        self, source: Path, output: Path, title: str, context: Dict[str, Any]
    ) -> None:
        entries = []
        try:
            children = sorted(source.iterdir())
        except OSError as exc:
            raise GenerationError(f"failed to read example directory {source}: {exc}") from exc
        for child in children:
            if child.name.startswith("."):
                continue
            if child.is_dir():
                self._mirror_example_directory(child, output / child.name, child.name, context)
                entries.append({"name": child.name, "link": f"{child.name}/README.md"})
            elif child.suffix == ".go":
                self._render_example_file(child, output)
                entries.append({"name": child.name, "link": f"{child.stem}.md"})
        readme = output / "README.md"
        if output == self.output_path / "examples":
            readme = output / "examples.md"
        self._render(
            "example-directory",
            {**context, "title": title, "source": self._display_path(source), "entries": entries},
            readme,
        )

    def _render_example_file(self, source: Path, output: Path) -> None:
        try:
            code = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise GenerationError(f"failed to read example file {source}: {exc}") from exc
        context = self.engine.build_context(
            [],
            now=self.now,
            title=source.stem,
            doc="",
            source=self._display_path(source),
            code=code.rstrip("\n"),
            directory=self._display_path(source.parent),
            file_name=source.name,
        )
        self._render("example-file", context, output / f"{source.stem}.md")

    def _display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_path).as_posix() or "."
        except ValueError:
            return path.as_posix()

    def _generate_guides(self, packages: List[PackageSummary], context: Dict[str, Any]) -> None:
        guides = self.config.discovery.guides
        directory = self.output_path / "guides"
        self._render("guides-index", context, directory / "README.md")
        names = context["page_names"]
        for package in packages:
            self._render(
                "package-best-practices",
                self._package_context(context, package),
                directory / names[package.path] / "best-practices.md",
            )
        if guides.include_contributing:
            self._render("contributing", context, directory / "contributing.md")
        if guides.include_faq:
            self._render("faq", context, directory / "faq.md")
        for guide in guides.custom_guides:
            self._generate_custom_guide(guide.name, guide.file, guide.title, context, directory)

    def _generate_custom_guide(
        self, name: str, file: str, title: str, context: Dict[str, Any], directory: Path
    ) -> None:
        target = directory / f"{name}.md"
        if self.engine.has_template(name):
            self._render(name, context, target)
            return
        path = Path(file).expanduser()
        path = path if path.is_absolute() else self.project_path / path
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise GenerationError(f"failed to read custom guide {name} from {path}: {exc}") from exc
        if title and not content.lstrip().startswith("#"):
            content = f"# {title}\n\n{content}"
        self._write(target, content)


__all__ = [
    "CATEGORY_TITLES",
    "EXAMPLE_DIR_NAMES",
    "ExampleDirectory",
    "GenerationError",
    "GenerationResult",
    "Generator",
    "page_names",
]
