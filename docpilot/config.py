"""Configuration loading for docpilot (docpilot.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILE_NAME = "docpilot.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class HeuristicRule:
    """Maps a glob over changed paths to a documentation target template."""

    pattern: str
    doc_target: str
    section: Optional[str] = None
    confidence_boost: float = 0.0


@dataclass
class PathsConfig:
    """Documentation paths docpilot may write to."""

    allowlist: List[str] = field(default_factory=lambda: ["docs/**", "*.md", "README*"])
    ignorelist: List[str] = field(
        default_factory=lambda: [".git/**", "node_modules/**", "bin/**", "obj/**"]
    )


@dataclass
class LimitsConfig:
    """Upper bounds on the size of a diff docpilot will process."""

    max_files: int = 50
    max_lines: int = 5000
    max_tokens_per_request: int = 8000


@dataclass
class PublishConfig:
    """Pull request settings."""

    branch_prefix: str = "docpilot/"
    base_branch: Optional[str] = None
    labels: List[str] = field(default_factory=list)


def default_heuristics() -> List[HeuristicRule]:
    return [
        HeuristicRule("src/**/*.cs", "README.md", "## API Reference", 0.1),
        HeuristicRule("src/**/Controllers/**", "docs/api.md", "## Endpoints", 0.2),
        HeuristicRule("src/**/*Controller.cs", "docs/api.md", "## Endpoints", 0.2),
        HeuristicRule("packages/*/**", "packages/{0}/README.md", None, 0.15),
        HeuristicRule("terraform/**", "docs/infrastructure.md", "## Infrastructure", 0.1),
        HeuristicRule("bicep/**", "docs/infrastructure.md", "## Infrastructure", 0.1),
        HeuristicRule(".github/workflows/**", "docs/ci-cd.md", "## CI/CD", 0.1),
    ]


@dataclass
class DocPilotConfig:
    """Represents the settings defined in docpilot.yml."""

    root: Path
    paths: PathsConfig = field(default_factory=PathsConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    heuristics: List[HeuristicRule] = field(default_factory=default_heuristics)
    publish: PublishConfig = field(default_factory=PublishConfig)
    source: Optional[Path] = None


def load_config(config_path: Path | None = None, *, start: Path | None = None) -> DocPilotConfig:
    """Load configuration from disk.

    An explicit ``config_path`` (file or directory) is used as given.
    Otherwise docpilot.yml is searched for from ``start`` (default: the
    current directory) upwards. A missing file yields defaults.
    """
    if config_path is not None:
        config_file = _resolve_config_path(Path(config_path))
    else:
        config_file = _discover_config(Path(start) if start is not None else Path.cwd())

    if config_file is None or not config_file.exists():
        root = (config_file.parent if config_file is not None else Path(start or Path.cwd()))
        return DocPilotConfig(root=root.expanduser().resolve())

    root = config_file.parent.resolve()
    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    paths = PathsConfig()
    paths_data = _as_dict(data.get("paths"))
    if "allowlist" in paths_data:
        paths.allowlist = _as_str_list(paths_data.get("allowlist"))
    if "ignorelist" in paths_data:
        paths.ignorelist = _as_str_list(paths_data.get("ignorelist"))

    limits = LimitsConfig()
    limits_data = _as_dict(data.get("limits"))
    if limits_data:
        limits.max_files = _as_int(_first(limits_data, "max_files", "maxFiles")) or limits.max_files
        limits.max_lines = _as_int(_first(limits_data, "max_lines", "maxLines")) or limits.max_lines
        limits.max_tokens_per_request = (
            _as_int(_first(limits_data, "max_tokens_per_request", "maxTokensPerRequest"))
            or limits.max_tokens_per_request
        )

    heuristics = default_heuristics()
    if "heuristics" in data:
        heuristics = _parse_heuristics(data.get("heuristics"))

    publish = PublishConfig()
    publish_data = _as_dict(data.get("publish"))
    if publish_data:
        publish.branch_prefix = (
            _as_str(_first(publish_data, "branch_prefix", "branchPrefix")) or publish.branch_prefix
        )
        publish.base_branch = _as_str(_first(publish_data, "base_branch", "baseBranch"))
        publish.labels = _as_str_list(publish_data.get("labels"))

    return DocPilotConfig(
        root=root,
        paths=paths,
        limits=limits,
        heuristics=heuristics,
        publish=publish,
        source=config_file,
    )


def _parse_heuristics(value: Any) -> List[HeuristicRule]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("heuristics must be a list of rules")
    rules: List[HeuristicRule] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ConfigError(f"heuristics[{index}] must be a mapping")
        pattern = _as_str(entry.get("pattern"))
        doc_target = _as_str(_first(entry, "doc_target", "docTarget"))
        if not pattern or not doc_target:
            raise ConfigError(f"heuristics[{index}] requires pattern and doc_target")
        boost = _as_float(_first(entry, "confidence_boost", "confidenceBoost"))
        rules.append(
            HeuristicRule(
                pattern=pattern,
                doc_target=doc_target,
                section=_as_str(entry.get("section")),
                confidence_boost=boost if boost is not None else 0.0,
            )
        )
    return rules


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _discover_config(start: Path) -> Optional[Path]:
    current = start.expanduser().resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


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


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DocPilotConfig",
    "HeuristicRule",
    "LimitsConfig",
    "PathsConfig",
    "PublishConfig",
    "default_heuristics",
    "load_config",
]
