"""Configuration loading for proton (.proton/config.yml)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .logging import get_logger

CONFIG_FILENAME = "config.yml"
CONFIG_SEARCH_DIRS = (".proton", ".config", "")

_LOGGER = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is incomplete."""


@dataclass
class RepositoryConfig:
    """Identity of the documented Go module."""

    name: str = ""
    owner: str = ""
    description: str = ""
    import_path: str = ""
    branch: str = "main"
    url: str = ""


@dataclass
class OutputConfig:
    directory: str = "docs"
    clean: bool = True
    gitbook_config: bool = True


@dataclass
class ManualPackage:
    """A package listed explicitly in the configuration."""

    path: str
    name: str = ""
    description: str = ""


@dataclass
class PackagesConfig:
    auto_discover: bool = True
    include_patterns: List[str] = field(default_factory=lambda: ["./..."])
    exclude_patterns: List[str] = field(default_factory=lambda: ["./vendor/...", "./test/..."])
    manual_packages: List[ManualPackage] = field(default_factory=list)


@dataclass
class APIGenerationConfig:
    enabled: bool = True
    include_tests: bool = False
    include_examples: bool = True
    comment_scan_fallback: bool = True


@dataclass
class ExamplesConfig:
    enabled: bool = True
    auto_discover: bool = True
    directories: List[str] = field(default_factory=list)


@dataclass
class CustomGuide:
    name: str
    file: str
    title: str = ""


@dataclass
class GuidesConfig:
    enabled: bool = True
    include_contributing: bool = True
    include_faq: bool = True
    custom_guides: List[CustomGuide] = field(default_factory=list)


@dataclass
class DiscoveryConfig:
    packages: PackagesConfig = field(default_factory=PackagesConfig)
    api_generation: APIGenerationConfig = field(default_factory=APIGenerationConfig)
    examples: ExamplesConfig = field(default_factory=ExamplesConfig)
    guides: GuidesConfig = field(default_factory=GuidesConfig)


@dataclass
class CustomTemplate:
    name: str
    file: str


@dataclass
class TemplatesConfig:
    directory: str = ""
    custom_templates: List[CustomTemplate] = field(default_factory=list)


@dataclass
class GitBookStructure:
    readme: str = "README.md"
    summary: str = "SUMMARY.md"


@dataclass
class GitBookConfig:
    title: str = ""
    description: str = ""
    theme: str = "default"
    plugins: List[str] = field(default_factory=list)
    structure: GitBookStructure = field(default_factory=GitBookStructure)


@dataclass
class MetadataConfig:
    version: str = "latest"
    go_version: str = ""
    author: str = ""
    license: str = "MIT"


@dataclass
class GenerationConfig:
    date_format: str = "%Y-%m-%d"
    include_generated_notice: bool = True
    include_toc: bool = True
    max_depth: int = 3


@dataclass
class ProtonConfig:
    """Represents the settings defined in a proton config file."""

    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    gitbook: GitBookConfig = field(default_factory=GitBookConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    source: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("source", None)
        return data


def find_config(project_path: Path) -> Optional[Path]:
    """Return the first config file found in the standard locations."""
    for directory in CONFIG_SEARCH_DIRS:
        candidate = project_path / directory / CONFIG_FILENAME if directory else project_path / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(
    project_path: Path,
    config_path: Optional[Path] = None,
    *,
    require_name: bool = True,
) -> ProtonConfig:
    """Load configuration for `project_path`, falling back to defaults.

    An explicit `config_path` must exist. Repository details missing from the
    file are detected from `go.mod`.
    """
    project_path = project_path.expanduser().resolve()
    if config_path is not None:
        config_file: Optional[Path] = config_path.expanduser().resolve()
        if not config_file.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_file = find_config(project_path)

    data: Dict[str, Any] = {}
    if config_file is not None:
        _LOGGER.debug("Loading configuration from %s", config_file)
        data = _read_config(config_file)
    else:
        _LOGGER.debug("No configuration file found under %s, using defaults", project_path)

    config = _build_config(data)
    config.source = config_file
    detect_repository(config, project_path)
    _apply_computed_defaults(config)

    if require_name and not config.repository.name:
        raise ConfigError("repository name is required (set repository.name or add a go.mod)")
    return config


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _build_config(data: Dict[str, Any]) -> ProtonConfig:
    config = ProtonConfig()

    repo_data = _as_dict(data.get("repository"))
    repo = config.repository
    repo.name = _as_str(repo_data.get("name")) or repo.name
    repo.owner = _as_str(repo_data.get("owner")) or repo.owner
    repo.description = _as_str(repo_data.get("description")) or repo.description
    repo.import_path = _as_str(repo_data.get("import_path")) or repo.import_path
    repo.branch = _as_str(repo_data.get("branch")) or repo.branch
    repo.url = _as_str(repo_data.get("url")) or repo.url

    output_data = _as_dict(data.get("output"))
    output = config.output
    output.directory = _as_str(output_data.get("directory")) or output.directory
    output.clean = _bool_or(output_data.get("clean"), output.clean)
    output.gitbook_config = _bool_or(output_data.get("gitbook_config"), output.gitbook_config)

    discovery_data = _as_dict(data.get("discovery"))

    packages_data = _as_dict(discovery_data.get("packages"))
    packages = config.discovery.packages
    packages.auto_discover = _bool_or(packages_data.get("auto_discover"), packages.auto_discover)
    if "include_patterns" in packages_data:
        packages.include_patterns = _as_str_list(packages_data.get("include_patterns"))
    if "exclude_patterns" in packages_data:
        packages.exclude_patterns = _as_str_list(packages_data.get("exclude_patterns"))
    for index, item in enumerate(_as_list(packages_data.get("manual_packages"))):
        item_data = _as_dict(item)
        path = _as_str(item_data.get("path"))
        if not path:
            raise ConfigError(f"discovery.packages.manual_packages[{index}] requires a path")
        packages.manual_packages.append(
            ManualPackage(
                path=path,
                name=_as_str(item_data.get("name")) or "",
                description=_as_str(item_data.get("description")) or "",
            )
        )

    api_data = _as_dict(discovery_data.get("api_generation"))
    api = config.discovery.api_generation
    api.enabled = _bool_or(api_data.get("enabled"), api.enabled)
    api.include_tests = _bool_or(api_data.get("include_tests"), api.include_tests)
    api.include_examples = _bool_or(api_data.get("include_examples"), api.include_examples)
    api.comment_scan_fallback = _bool_or(api_data.get("comment_scan_fallback"), api.comment_scan_fallback)

    examples_data = _as_dict(discovery_data.get("examples"))
    examples = config.discovery.examples
    examples.enabled = _bool_or(examples_data.get("enabled"), examples.enabled)
    examples.auto_discover = _bool_or(examples_data.get("auto_discover"), examples.auto_discover)
    examples.directories = _as_str_list(examples_data.get("directories"))

    guides_data = _as_dict(discovery_data.get("guides"))
    guides = config.discovery.guides
    guides.enabled = _bool_or(guides_data.get("enabled"), guides.enabled)
    guides.include_contributing = _bool_or(guides_data.get("include_contributing"), guides.include_contributing)
    guides.include_faq = _bool_or(guides_data.get("include_faq"), guides.include_faq)
    for index, item in enumerate(_as_list(guides_data.get("custom_guides"))):
        item_data = _as_dict(item)
        name = _as_str(item_data.get("name"))
        file = _as_str(item_data.get("file"))
        if not name or not file:
            raise ConfigError(f"discovery.guides.custom_guides[{index}] requires a name and a file")
        guides.custom_guides.append(CustomGuide(name=name, file=file, title=_as_str(item_data.get("title")) or ""))

    templates_data = _as_dict(data.get("templates"))
    templates = config.templates
    templates.directory = _as_str(templates_data.get("directory")) or ""
    for index, item in enumerate(_as_list(templates_data.get("custom_templates"))):
        item_data = _as_dict(item)
        name = _as_str(item_data.get("name"))
        file = _as_str(item_data.get("file"))
        if not name or not file:
            raise ConfigError(f"templates.custom_templates[{index}] requires a name and a file")
        templates.custom_templates.append(CustomTemplate(name=name, file=file))

    gitbook_data = _as_dict(data.get("gitbook"))
    gitbook = config.gitbook
    gitbook.title = _as_str(gitbook_data.get("title")) or ""
    gitbook.description = _as_str(gitbook_data.get("description")) or ""
    gitbook.theme = _as_str(gitbook_data.get("theme")) or gitbook.theme
    gitbook.plugins = _as_str_list(gitbook_data.get("plugins"))
    structure_data = _as_dict(gitbook_data.get("structure"))
    gitbook.structure.readme = _as_str(structure_data.get("readme")) or gitbook.structure.readme
    gitbook.structure.summary = _as_str(structure_data.get("summary")) or gitbook.structure.summary

    metadata_data = _as_dict(data.get("metadata"))
    metadata = config.metadata
    metadata.version = _as_str(metadata_data.get("version")) or metadata.version
    metadata.go_version = _as_str(metadata_data.get("go_version")) or ""
    metadata.author = _as_str(metadata_data.get("author")) or ""
    metadata.license = _as_str(metadata_data.get("license")) or metadata.license

    generation_data = _as_dict(data.get("generation"))
    generation = config.generation
    generation.date_format = _as_str(generation_data.get("date_format")) or generation.date_format
    generation.include_generated_notice = _bool_or(
        generation_data.get("include_generated_notice"), generation.include_generated_notice
    )
    generation.include_toc = _bool_or(generation_data.get("include_toc"), generation.include_toc)
    max_depth = _as_int(generation_data.get("max_depth"))
    if max_depth is not None:
        if max_depth < 1:
            raise ConfigError("generation.max_depth must be a positive integer")
        generation.max_depth = max_depth

    return config


def read_module_path(project_path: Path) -> str:
    """Module path declared in `go.mod`, or an empty string."""
    go_mod = project_path / "go.mod"
    try:
        lines = go_mod.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return ""
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("module "):
            return stripped[len("module "):].strip().strip('"')
    return ""


def read_go_version(project_path: Path) -> str:
    """`go` directive of `go.mod`, or an empty string."""
    try:
        lines = (project_path / "go.mod").read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return ""
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("go "):
            return stripped[len("go "):].strip()
    return ""


def detect_repository(config: ProtonConfig, project_path: Path) -> None:
    """Fill repository fields left empty in the config from `go.mod`."""
    repo = config.repository
    module_path = read_module_path(project_path)
    if module_path:
        if not repo.import_path:
            repo.import_path = module_path
        parts = module_path.split("/")
        if parts[0] == "github.com" and len(parts) >= 3:
            repo.owner = repo.owner or parts[1]
            repo.name = repo.name or parts[2]
        else:
            repo.name = repo.name or parts[-1]
    if not config.metadata.go_version:
        config.metadata.go_version = read_go_version(project_path)
    if not repo.url and repo.owner and repo.name:
        repo.url = f"https://github.com/{repo.owner}/{repo.name}"


def _apply_computed_defaults(config: ProtonConfig) -> None:
    if not config.gitbook.title:
        config.gitbook.title = config.repository.name
    if not config.gitbook.description:
        config.gitbook.description = config.repository.description


def save_config(config: ProtonConfig, path: Path) -> None:
    """Write `config` as YAML, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False),
            encoding="utf-8",
        )
    except OSError as exc:
        raise ConfigError(f"Failed to write {path}: {exc}") from exc


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "APIGenerationConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "CustomGuide",
    "CustomTemplate",
    "DiscoveryConfig",
    "ExamplesConfig",
    "GenerationConfig",
    "GitBookConfig",
    "GuidesConfig",
    "ManualPackage",
    "MetadataConfig",
    "OutputConfig",
    "PackagesConfig",
    "ProtonConfig",
    "RepositoryConfig",
    "TemplatesConfig",
    "detect_repository",
    "find_config",
    "load_config",
    "read_module_path",
    "save_config",
]
