"""Configuration system for PyConstVal.
Supports TOML configuration files with project-level and user-level settings.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pyconstval.logging import LogLevel, get_logger

CONFIG_FILES = [
    "pyconstval.toml",
    ".pyconstval.toml",
    "pyproject.toml",
]

DEFAULT_QUALIFIERS = ("unknown", "bottom")


@dataclass
class LimitsConfig:
    """Bounds on the work one evaluation pass may do."""

    cache_capacity: int = 200
    max_invocations: int = 100000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "cache_capacity": self.cache_capacity,
            "max_invocations": self.max_invocations,
        }


@dataclass
class EvaluationConfig:
    """Configuration for evaluation behavior."""

    default_qualifier: str = "unknown"
    byte_charset: str = "utf-8"
    analyze_constructors: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "default_qualifier": self.default_qualifier,
            "byte_charset": self.byte_charset,
            "analyze_constructors": self.analyze_constructors,
        }


@dataclass
class OutputConfig:
    """Configuration for logging output."""

    log_level: str = "normal"
    color: bool = True
    log_file: str | None = None

    @property
    def level(self) -> LogLevel:
        return LogLevel.parse(self.log_level)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "log_level": self.log_level,
            "color": self.color,
            "log_file": self.log_file,
        }


@dataclass
class ConstValConfig:
    """Main configuration for PyConstVal."""

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    project_root: Path | None = None
    config_file: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "limits": self.limits.to_dict(),
            "evaluation": self.evaluation.to_dict(),
            "output": self.output.to_dict(),
        }

    def to_toml(self) -> str:
        """Generate TOML configuration string."""
        lines = ["[tool.pyconstval]"]
        for section, values in self.to_dict().items():
            lines.append("")
            lines.append(f"[tool.pyconstval.{section}]")
            for key, value in values.items():
                if value is None:
                    continue
                lines.append(f"{key} = {_toml_value(value)}")
        return "\n".join(lines) + "\n"


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file by walking up directory tree.
    A pyproject.toml only counts when it has a [tool.pyconstval] table.
    """
    if start_dir is None:
        start_dir = Path.cwd()
    current = start_dir.resolve()
    while True:
        for config_name in CONFIG_FILES:
            config_path = current / config_name
            if config_path.exists() and _claims_config(config_path):
                return config_path
        if current == current.parent:
            break
        current = current.parent
    home = Path.home()
    for config_name in [".pyconstval.toml", "pyconstval.toml"]:
        config_path = home / config_name
        if config_path.exists():
            return config_path
    return None


def _claims_config(path: Path) -> bool:
    if path.name != "pyproject.toml":
        return True
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "pyconstval" in data.get("tool", {})


def load_config(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> ConstValConfig:
    """Load configuration from file or use defaults.
    Args:
        config_path: Explicit path to config file
        start_dir: Directory to start searching for config
    Returns:
        Loaded configuration
    """
    config = ConstValConfig()
    if config_path is None:
        config_path = find_config_file(start_dir)
    if config_path is None or not config_path.exists():
        return config
    config.config_file = config_path
    config.project_root = config_path.parent
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        get_logger().warning(f"Failed to parse config file {config_path}: {e}", category="config")
        return config
    if config_path.name == "pyproject.toml":
        section = data.get("tool", {}).get("pyconstval", {})
    else:
        section = data.get("tool", {}).get("pyconstval", data)
    _apply_config(config, section)
    return config


def _apply_config(config: ConstValConfig, data: dict[str, Any]) -> None:
    """Apply configuration data to config object."""
    if "limits" in data:
        lim_data = data["limits"]
        for key in ["cache_capacity", "max_invocations"]:
            if key in lim_data:
                setattr(config.limits, key, int(lim_data[key]))
    if "evaluation" in data:
        eval_data = data["evaluation"]
        if "default_qualifier" in eval_data:
            policy = str(eval_data["default_qualifier"]).lower()
            if policy in DEFAULT_QUALIFIERS:
                config.evaluation.default_qualifier = policy
            else:
                get_logger().warning(
                    f"Ignoring unknown default_qualifier {policy!r}", category="config"
                )
        if "byte_charset" in eval_data:
            config.evaluation.byte_charset = str(eval_data["byte_charset"])
        if "analyze_constructors" in eval_data:
            config.evaluation.analyze_constructors = bool(eval_data["analyze_constructors"])
    if "output" in data:
        out_data = data["output"]
        for key in ["log_level", "color", "log_file"]:
            if key in out_data:
                setattr(config.output, key, out_data[key])


def generate_default_config() -> str:
    """Generate default configuration file content."""
    config = ConstValConfig()
    return config.to_toml()


def init_config(directory: Path | None = None) -> Path:
    """Initialize a new configuration file in the given directory.
    Args:
        directory: Directory to create config in (default: current)
    Returns:
        Path to created config file
    """
    if directory is None:
        directory = Path.cwd()
    config_path = directory / "pyconstval.toml"
    if config_path.exists():
        raise FileExistsError(f"Config file already exists: {config_path}")
    content = generate_default_config()
    config_path.write_text(content, encoding="utf-8")
    return config_path


__all__ = [
    "ConstValConfig",
    "LimitsConfig",
    "EvaluationConfig",
    "OutputConfig",
    "CONFIG_FILES",
    "load_config",
    "find_config_file",
    "generate_default_config",
    "init_config",
]
