"""CLI entrypoints for proton commands."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List

from .analyzers.discovery import Discoverer, DiscoveryError
from .analyzers.source_tree import SourceParseError
from .config import CONFIG_FILENAME, ConfigError, ProtonConfig, detect_repository, load_config, save_config
from .diagnostics import Diagnostics
from .generator import GenerationError, Generator
from .logging import configure_logging
from .templates.engine import TemplateEngine, TemplateError

_FAILURES = (ConfigError, DiscoveryError, SourceParseError, TemplateError, GenerationError)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the Go project root (defaults to current directory).",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (defaults to .proton/config.yml when present).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proton",
        description="Generate GitBook documentation for Go libraries from source comments.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate the documentation tree.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    _add_config_option(generate_parser)
    generate_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory (overrides output.directory).",
    )
    generate_parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Remove existing files from the output directory first (overrides output.clean).",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Write a starter configuration for a Go project.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_path_argument(init_parser)
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing configuration file.",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check configuration and project layout without generating.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    _add_path_argument(validate_parser)
    _add_config_option(validate_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for proton commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)
    project_path = Path(args.path).expanduser().resolve()

    if args.command == "generate":
        try:
            config = load_config(project_path, args.config)
            if args.output:
                config.output.directory = args.output
            if args.clean is not None:
                config.output.clean = bool(args.clean)
            result = Generator(config, project_path).generate()
        except _FAILURES as exc:
            parser.exit(1, f"proton generate failed: {exc}\nRun with --verbose for more details.\n")
        print(
            f"Documented {len(result.packages)} package(s) into {_relativize(result.output_dir)}"
        )
        if len(result.diagnostics):
            print(f"{len(result.diagnostics)} warning(s) reported")
    elif args.command == "init":
        try:
            config_path = run_init(project_path, force=bool(args.force))
        except FileExistsError as exc:
            parser.exit(1, f"{exc}\nUse --force to overwrite it.\n")
        except ConfigError as exc:
            parser.exit(1, f"proton init failed: {exc}\n")
        print(f"Configuration written to {_relativize(config_path)}")
    elif args.command == "validate":
        problems = run_validate(project_path, args.config)
        if problems:
            message = "\n".join(f"  - {problem}" for problem in problems)
            parser.exit(1, f"Configuration is invalid:\n{message}\n")
        print("Configuration is valid")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def run_init(project_path: Path, *, force: bool = False) -> Path:
    """Write `.proton/config.yml` populated with values detected from the project."""
    if not project_path.is_dir():
        raise ConfigError(f"Project path not found: {project_path}")
    config_path = project_path / ".proton" / CONFIG_FILENAME
    if config_path.exists() and not force:
        raise FileExistsError(f"{_relativize(config_path)} already exists")

    config = ProtonConfig()
    detect_repository(config, project_path)
    if not config.repository.name:
        config.repository.name = project_path.name
    config.gitbook.title = config.repository.name
    save_config(config, config_path)
    return config_path


def run_validate(project_path: Path, config_path: Path | None = None) -> List[str]:
    """Return a list of problems; an empty list means the project is ready to generate."""
    problems: List[str] = []
    try:
        config = load_config(project_path, config_path)
    except ConfigError as exc:
        return [f"configuration: {exc}"]

    if not config.repository.import_path:
        problems.append("repository: import_path is not set and no go.mod module was found")

    output = Path(config.output.directory).expanduser()
    output = output if output.is_absolute() else project_path / output
    existing = output
    while not existing.exists() and existing != existing.parent:
        existing = existing.parent
    if not existing.is_dir() or not os.access(existing, os.W_OK):
        problems.append(f"output: {output} is not writable")

    for manual in config.discovery.packages.manual_packages:
        directory = Path(manual.path).expanduser()
        directory = directory if directory.is_absolute() else project_path / directory
        if not directory.is_dir():
            problems.append(f"discovery: manual package directory {manual.path} does not exist")

    if not problems:
        try:
            packages = Discoverer(config, project_path, Diagnostics()).discover_packages()
        except DiscoveryError as exc:
            problems.append(f"discovery: {exc}")
        else:
            if not packages:
                problems.append("discovery: no Go packages found with the current include/exclude patterns")

    if config.templates.directory:
        directory = Path(config.templates.directory).expanduser()
        directory = directory if directory.is_absolute() else project_path / directory
        if not directory.is_dir():
            problems.append(f"templates: directory {config.templates.directory} does not exist")
    try:
        TemplateEngine(config, project_path)
    except TemplateError as exc:
        problems.append(f"templates: {exc}")

    return problems


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
