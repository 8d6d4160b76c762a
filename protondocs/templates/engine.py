"""Jinja2 rendering of documentation pages from builtin and project templates."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from jinja2 import Environment, FunctionLoader, TemplateError as JinjaTemplateError, TemplateNotFound

from ..config import ProtonConfig
from ..logging import get_logger
from ..models import Field, PackageSummary
from ..postproc.toc import slugify

BUILTIN_DIR = Path(__file__).with_name("builtin")
TEMPLATE_SUFFIXES = (".md", ".yml", ".yaml")


class TemplateError(RuntimeError):
    """Raised when a template is missing, cannot be loaded, or fails to render."""


def indent_text(text: str, spaces: int = 4) -> str:
    prefix = " " * spaces
    return "\n".join(prefix + line if line else line for line in (text or "").split("\n"))


def code_block(code: str, lang: str = "go") -> str:
    return f"```{lang}\n{code}\n```"


def link_to(text: str, path: str) -> str:
    return f"[{text}]({path})"


def is_main_package(package: PackageSummary) -> bool:
    return package.name == "main" or "cmd" in package.rel_path.split("/")


def has_examples(package: PackageSummary) -> bool:
    return bool(package.examples)


def format_example_output(output: str) -> str:
    if not output:
        return ""
    return "// Output:\n// " + output.rstrip("\n").replace("\n", "\n// ")


def format_field_name(field: Field) -> str:
    """Field name, or its type for embedded fields."""
    return field.name or field.type


def format_tag(tag: str) -> str:
    if not tag:
        return ""
    return "`" + tag.strip("`") + "`"


class TemplateEngine:
    """Renders named templates; later sources override earlier ones.

    Sources, in order: builtin templates, files under `templates.directory`,
    then each entry of `templates.custom_templates`.
    """

    def __init__(self, config: ProtonConfig, project_path: Path) -> None:
        self.config = config
        self.project_path = Path(project_path)
        self._logger = get_logger("templates")
        self._sources: Dict[str, Path] = {}
        self._load_directory(BUILTIN_DIR)
        if config.templates.directory:
            directory = self._resolve(config.templates.directory)
            if directory.is_dir():
                self._load_directory(directory)
            else:
                self._logger.debug("Template directory %s not found; using builtin templates", directory)
        for custom in config.templates.custom_templates:
            path = self._resolve(custom.file)
            if not path.is_file():
                raise TemplateError(f"custom template {custom.name} not found: {path}")
            self._sources[custom.name] = path
        self._env = self._create_env()

    def _resolve(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.project_path / path

    def _load_directory(self, directory: Path) -> None:
        for path in sorted(directory.rglob("*")):
            if not path.is_file() or path.suffix not in TEMPLATE_SUFFIXES:
                continue
            rel = path.relative_to(directory).with_suffix("")
            self._sources["-".join(rel.parts)] = path

    def _load_source(self, name: str) -> Optional[Tuple[str, str, Any]]:
        path = self._sources.get(name)
        if path is None:
            return None
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TemplateError(f"failed to read template {name} from {path}: {exc}") from exc
        mtime = path.stat().st_mtime
        return source, str(path), lambda: path.exists() and path.stat().st_mtime == mtime

    def _create_env(self) -> Environment:
        env = Environment(
            loader=FunctionLoader(self._load_source),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        env.filters.update(
            {
                "indent_text": indent_text,
                "code_block": code_block,
                "link_to": link_to,
                "package_path": self.package_path,
                "is_main_package": is_main_package,
                "has_examples": has_examples,
                "format_example_output": format_example_output,
                "format_field_name": format_field_name,
                "format_tag": format_tag,
                "anchor": slugify,
            }
        )
        return env

    def package_path(self, package: PackageSummary) -> str:
        """Import path relative to the module root."""
        root = self.config.repository.import_path.rstrip("/")
        if root and package.import_path.startswith(root + "/"):
            return package.import_path[len(root) + 1:]
        return package.import_path

    def has_template(self, name: str) -> bool:
        return name in self._sources

    def list_templates(self) -> List[str]:
        return sorted(self._sources)

    def render_to_string(self, name: str, context: Mapping[str, Any]) -> str:
        if name not in self._sources:
            raise TemplateError(f"template {name} not found")
        try:
            template = self._env.get_template(name)
            return template.render(**context)
        except TemplateNotFound as exc:
            raise TemplateError(f"template {name} not found") from exc
        except JinjaTemplateError as exc:
            raise TemplateError(f"failed to render template {name}: {exc}") from exc

    def render_to_file(self, name: str, context: Mapping[str, Any], output_path: Path) -> Path:
        rendered = self.render_to_string(name, context)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(rendered, encoding="utf-8")
        except OSError as exc:
            raise TemplateError(f"failed to write {output_path}: {exc}") from exc
        return output_path

    def build_context(
        self,
        packages: Iterable[PackageSummary],
        *,
        now: Optional[datetime] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        """Shared context: repository, metadata, config, packages and generation date."""
        now = now or datetime.now()
        context: Dict[str, Any] = {
            "repository": self.config.repository,
            "metadata": self.config.metadata,
            "gitbook": self.config.gitbook,
            "generation": self.config.generation,
            "config": self.config,
            "packages": list(packages),
            "generated_at": now.strftime(self.config.generation.date_format),
        }
        context.update(extra)
        return context


__all__ = [
    "BUILTIN_DIR",
    "TemplateEngine",
    "TemplateError",
    "code_block",
    "format_example_output",
    "format_field_name",
    "format_tag",
    "has_examples",
    "indent_text",
    "is_main_package",
    "link_to",
]
