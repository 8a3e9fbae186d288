"""
Configuration management for the Agent Standards MCP Server.

This module implements the AppConfig Pydantic model and configuration loading.

Configuration is loaded from multiple sources with layered precedence:
1. Built-in defaults (Pydantic model defaults)
2. YAML config file (--config path or explicit argument)
3. Environment variables (AGENT_STANDARDS_MCP_* prefix, __ for nesting)
4. Command-line arguments (highest precedence)

The flat variables AGENT_STANDARDS_MCP_FOLDER, AGENT_STANDARDS_MCP_MAX_STANDARDS,
AGENT_STANDARDS_MCP_MAX_STANDARD_SIZE and AGENT_STANDARDS_MCP_LOG_LEVEL are
accepted as aliases for their nested equivalents.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from agent_standards_mcp import __version__

ENV_PREFIX = "AGENT_STANDARDS_MCP_"

DEFAULT_FOLDER = "~/agent-standards"
DEFAULT_MAX_STANDARDS = 100
DEFAULT_MAX_STANDARD_SIZE = 10240

LOG_FILE_NAME = "agent-standards-mcp.log"

# Permissions for a standards folder created at startup
FOLDER_PERMISSIONS = 0o750

VALID_LOG_LEVELS = {"none", "debug", "info", "warn", "warning", "error"}

# Flat environment variable names mapped to their nested config keys
_ENV_ALIASES: dict[str, tuple[str, str]] = {
    "folder": ("standards", "folder"),
    "max_standards": ("standards", "max_standards"),
    "max_standard_size": ("standards", "max_standard_size"),
    "log_level": ("server", "log_level"),
}


class ConfigError(Exception):
    """Raised when the configuration cannot be applied to the host."""


# =============================================================================
# Server Configuration
# =============================================================================


class ServerConfig(BaseModel):
    """Server settings configuration.

    Attributes:
        name: Server name reported to clients during initialization.
        title: Human-readable server title.
        log_level: Application log level ("none" disables logging).
    """

    name: str = Field(
        default="agent-standards-mcp",
        description="Server name reported in the initialize response",
    )
    title: str = Field(
        default="Agent Standards MCP Server",
        description="Human-readable server title",
    )
    log_level: str = Field(
        default="error",
        description="Log level: none, debug, info, warn, error",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        v_lower = v.strip().lower()
        if v_lower not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        # Normalize 'warn' to 'warning'
        if v_lower == "warn":
            return "warning"
        return v_lower

    @property
    def logging_enabled(self) -> bool:
        """Whether any log output should be produced."""
        return self.log_level != "none"


# =============================================================================
# Standards Configuration
# =============================================================================


class StandardsConfig(BaseModel):
    """Standards repository configuration.

    Immutable once built; the validation policy and the loader receive it
    at construction time.

    Attributes:
        folder: Directory holding the standard markdown files.
        max_standards: Maximum number of standard files in the folder.
        max_standard_size: Maximum size of a single standard file in bytes.
    """

    model_config = ConfigDict(frozen=True)

    folder: str = Field(
        default=DEFAULT_FOLDER,
        description="Directory holding the standard markdown files",
    )
    max_standards: int = Field(
        default=DEFAULT_MAX_STANDARDS,
        description="Maximum number of standard files",
        gt=0,
    )
    max_standard_size: int = Field(
        default=DEFAULT_MAX_STANDARD_SIZE,
        description="Maximum size of a single standard file in bytes",
        gt=0,
    )

    @field_validator("folder")
    @classmethod
    def validate_folder(cls, v: str) -> str:
        """Reject an empty folder path."""
        if not v.strip():
            raise ValueError("folder path cannot be empty")
        return v

    @property
    def folder_path(self) -> Path:
        """The standards folder with '~' expanded."""
        return Path(os.path.expanduser(self.folder))


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging and audit configuration.

    Attributes:
        log_to_stderr: Whether to log to stderr (stdout carries the protocol).
        log_to_file: Whether to also write a rotating log file.
        log_file_path: Log file path; defaults to <folder>/logs/agent-standards-mcp.log.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of rotated log files to keep.
        audit_log_path: Optional dedicated audit log file.
    """

    log_to_stderr: bool = Field(
        default=True,
        description="Whether to log to stderr",
    )
    log_to_file: bool = Field(
        default=True,
        description="Whether to write a rotating log file",
    )
    log_file_path: str | None = Field(
        default=None,
        description="Log file path (default: <folder>/logs/agent-standards-mcp.log)",
    )
    max_bytes: int = Field(
        default=100 * 1024 * 1024,
        description="Maximum log file size in bytes before rotation",
        gt=0,
    )
    backup_count: int = Field(
        default=7,
        description="Number of rotated log files to keep",
        ge=0,
    )
    audit_log_path: str | None = Field(
        default=None,
        description="Dedicated audit log file; audit records go to the app log when unset",
    )


# =============================================================================
# Main Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """
    Main application configuration model.

    Attributes:
        server: Server settings.
        standards: Standards folder and limits.
        logging: Logging configuration.
    """

    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="Server settings",
    )
    standards: StandardsConfig = Field(
        default_factory=StandardsConfig,
        description="Standards folder and limits",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    def resolved_log_file_path(self) -> Path:
        """
        Return the effective application log file path.

        Returns:
            The configured path, or <folder>/logs/agent-standards-mcp.log.
        """
        if self.logging.log_file_path:
            return Path(os.path.expanduser(self.logging.log_file_path))
        return self.standards.folder_path / "logs" / LOG_FILE_NAME


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: The base dictionary.
        override: The dictionary with values to override.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dictionary with configuration values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _load_env_config(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration from environment variables.

    Environment variables are parsed with the following rules:
    - Prefix: AGENT_STANDARDS_MCP_ (configurable)
    - Nested keys: Double underscore (__) separator
    - Example: AGENT_STANDARDS_MCP_STANDARDS__MAX_STANDARDS=50
    - Flat aliases: AGENT_STANDARDS_MCP_FOLDER, AGENT_STANDARDS_MCP_LOG_LEVEL, ...

    Values stay strings; Pydantic coerces them to the field types.

    Args:
        prefix: Environment variable prefix.

    Returns:
        Dictionary with configuration values.
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :].lower()
        if config_key in _ENV_ALIASES:
            parts = list(_ENV_ALIASES[config_key])
        else:
            parts = config_key.split("__")

        current = result
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = value

    return result


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="agent-standards-mcp",
        description="MCP server that serves agent standards from a folder of markdown files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"agent-standards-mcp {__version__}",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--folder",
        type=str,
        help="Override the standards folder",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=sorted(VALID_LOG_LEVELS),
        help="Override log level",
    )

    return parser


def _parse_cli_args(args: list[str] | None = None) -> dict[str, Any]:
    """
    Parse command-line arguments.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Dictionary with parsed arguments.
    """
    parsed = _build_arg_parser().parse_args(args)

    result: dict[str, Any] = {}

    if parsed.config:
        result["_config_path"] = parsed.config

    if parsed.folder:
        result["standards"] = {"folder": parsed.folder}

    if parsed.log_level:
        result["server"] = {"log_level": parsed.log_level}

    return result


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = ENV_PREFIX,
    cli_args: list[str] | None = None,
) -> AppConfig:
    """
    Load configuration from all sources with layered precedence.

    Args:
        config_path: Path to YAML configuration file. If None, uses the CLI
            --config argument when given.
        env_prefix: Prefix for environment variables.
        cli_args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Fully configured AppConfig instance.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
        ValidationError: If configuration is invalid.

    Example:
        >>> config = load_config(cli_args=[])
        >>> print(config.standards.max_standards)
        100
    """
    config_dict: dict[str, Any] = {}

    # Parse CLI args first to get config path
    cli_config = _parse_cli_args(cli_args)
    cli_config_path = cli_config.pop("_config_path", None)

    if config_path is None and cli_config_path is not None:
        config_path = Path(cli_config_path)
    elif isinstance(config_path, str):
        config_path = Path(config_path)

    if config_path is not None:
        yaml_config = _load_yaml_config(config_path)
        config_dict = _deep_merge(config_dict, yaml_config)

    env_config = _load_env_config(env_prefix)
    config_dict = _deep_merge(config_dict, env_config)

    config_dict = _deep_merge(config_dict, cli_config)

    return AppConfig(**config_dict)


def prepare_standards_folder(config: StandardsConfig) -> Path:
    """
    Make sure the standards folder exists and is a readable directory.

    A missing folder is created. This runs once at startup; the repository
    itself never creates anything.

    Args:
        config: Standards configuration.

    Returns:
        The expanded folder path.

    Raises:
        ConfigError: If the folder cannot be created, is not a directory,
            or is not readable.
    """
    folder = config.folder_path

    if not folder.exists():
        try:
            folder.mkdir(mode=FOLDER_PERMISSIONS, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(
                f"directory does not exist and failed to create: {folder} (error: {e})"
            ) from e
        return folder

    if not folder.is_dir():
        raise ConfigError(f"path is not a directory: {folder}")

    if not os.access(folder, os.R_OK | os.X_OK):
        raise ConfigError(f"directory lacks read permissions: {folder}")

    return folder
