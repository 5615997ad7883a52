"""codescope configuration system.

Configuration is YAML-based with a few CLI overrides (--token, --output, --format).
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.codescope/config.yaml
3. ./codescope.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_IGNORE_DIRS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "vendor",
    "dist",
    "build",
    "__pycache__",
    ".next",
    "coverage",
    ".turbo",
    "out",
    ".vercel",
)

VALID_OUTPUT_FORMATS = {"json", "csv"}

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class GitHubConfig:
    """Remote repository API configuration.

    Attributes:
        token: Personal access token (falls back to GITHUB_TOKEN)
        api_base: REST API base URL
        timeout: Request timeout in seconds
        cache_ttl: Seconds a fetched response is reused for the same URL
    """

    token: str | None = None
    api_base: str = "https://api.github.com"
    timeout: float = 30.0
    cache_ttl: float = 300.0

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"github.timeout must be positive (got {self.timeout})")
        if self.cache_ttl < 0:
            raise ValueError(f"github.cache_ttl must not be negative (got {self.cache_ttl})")
        if not self.token:
            self.token = os.environ.get("GITHUB_TOKEN") or None
        self.api_base = self.api_base.rstrip("/")


@dataclass
class AnalysisConfig:
    """Analysis tuning.

    Attributes:
        concurrency: Maximum in-flight file fetches
        max_file_size: Files above this many bytes are not fetched
        ignore_dirs: Directory names excluded from the tree listing
        blast_depth: Maximum traversal depth for blast radius
    """

    concurrency: int = 10
    max_file_size: int = 200_000
    ignore_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_DIRS))
    blast_depth: int = 3

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"analysis.concurrency must be at least 1 (got {self.concurrency})")
        if self.max_file_size < 1:
            raise ValueError(f"analysis.max_file_size must be positive (got {self.max_file_size})")
        if self.blast_depth < 1:
            raise ValueError(f"analysis.blast_depth must be at least 1 (got {self.blast_depth})")


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        path: Output file path
        format: Output format (json, csv)
    """

    path: str = "codescope-analysis.json"
    format: str = "json"

    def __post_init__(self) -> None:
        if self.format not in VALID_OUTPUT_FORMATS:
            raise ValueError(f"Invalid output format: {self.format}. Valid: {sorted(VALID_OUTPUT_FORMATS)}")


@dataclass
class CodescopeConfig:
    """Top-level codescope configuration."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute ${VAR} references in config values.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_PATTERN.sub(replace_var, value)

    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find a configuration file in the standard locations.

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()
    candidates = [
        start_path / ".codescope" / "config.yaml",
        start_path / "codescope.yaml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> CodescopeConfig:
    """Build configuration from a parsed YAML mapping."""
    data = substitute_env_vars(data)
    config = CodescopeConfig()

    if "github" in data:
        github_data = data["github"] or {}
        config.github = GitHubConfig(
            token=github_data.get("token"),
            api_base=github_data.get("api_base", config.github.api_base),
            timeout=float(github_data.get("timeout", config.github.timeout)),
            cache_ttl=float(github_data.get("cache_ttl", config.github.cache_ttl)),
        )

    if "analysis" in data:
        analysis_data = data["analysis"] or {}
        config.analysis = AnalysisConfig(
            concurrency=int(analysis_data.get("concurrency", config.analysis.concurrency)),
            max_file_size=int(analysis_data.get("max_file_size", config.analysis.max_file_size)),
            ignore_dirs=list(analysis_data.get("ignore_dirs", config.analysis.ignore_dirs)),
            blast_depth=int(analysis_data.get("blast_depth", config.analysis.blast_depth)),
        )

    if "output" in data:
        output_data = data["output"] or {}
        config.output = OutputConfig(
            path=output_data.get("path", config.output.path),
            format=output_data.get("format", config.output.format),
        )

    return config


def load_config(config_path: Path | None = None, auto_discover: bool = True) -> CodescopeConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        CodescopeConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path: Path | None = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is None:
        return CodescopeConfig()

    with open(found_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    config = load_config_from_dict(data)
    config._config_path = found_path
    return config


def create_default_config() -> str:
    """Create default configuration YAML content."""
    ignore_lines = "\n".join(f"    - {name}" for name in DEFAULT_IGNORE_DIRS)
    return f"""# codescope configuration

# Remote repository API
github:
  # token: "${{GITHUB_TOKEN}}"   # raises the rate limit from 60 to 5000 requests/hour
  api_base: "https://api.github.com"
  timeout: 30
  cache_ttl: 300           # seconds a fetched response is reused

# Analysis tuning
analysis:
  concurrency: 10          # in-flight file fetches
  max_file_size: 200000    # bytes; larger files are listed but not parsed
  blast_depth: 3
  ignore_dirs:
{ignore_lines}

# Snapshot output
output:
  path: "codescope-analysis.json"
  format: "json"           # json, csv
"""
