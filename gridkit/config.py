"""Configuration system for gridkit using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.gridkit] section (project-level)
3. ./gridkit.toml (project-level, explicit)
4. ~/.config/gridkit/config.toml, %APPDATA%/gridkit/config.toml on Windows (user-level)
5. GRIDKIT_CONFIG_FILE (explicit file override)
6. Environment variables (highest priority)

Environment variables use GRIDKIT_ prefix with nested delimiter __.
Example: GRIDKIT_PAGINATION__PAGE_SIZE=50, GRIDKIT_UNDO_REDO__MAX_STEPS=100

The sections hold the defaults every feature engine starts from. Values
passed explicitly to an engine always override them.
"""

from __future__ import annotations

import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib  # type: ignore[import-not-found]
    except ImportError:
        tomllib = None


def user_config_path() -> Path:
    """Return the per-user config file path for this platform."""
    if sys.platform == "win32":
        return (Path(os.environ.get("APPDATA", "~")) / "gridkit" / "config.toml").expanduser()
    return Path("~/.config/gridkit/config.toml").expanduser()


def config_sources() -> list[tuple[str, Path]]:
    """List candidate config files as (label, path), lowest precedence first.

    Files that do not exist are included; ``GRIDKIT_CONFIG_FILE`` is listed
    only when set.
    """
    sources = [
        ("pyproject.toml [tool.gridkit]", Path("pyproject.toml")),
        ("gridkit.toml", Path("gridkit.toml")),
        ("user config", user_config_path()),
    ]
    env_config = os.environ.get("GRIDKIT_CONFIG_FILE")
    if env_config:
        sources.append(("GRIDKIT_CONFIG_FILE", Path(env_config)))
    return sources


def _find_config_files() -> list[Path]:
    """Find existing configuration files in order of precedence (lowest first)."""
    return [path for _, path in config_sources() if path.exists()]


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    if tomllib is None:
        return {}

    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            data = tomllib.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            # Imported lazily to keep log free of config imports
            from .log import warn

            warn(f"Ignoring unreadable config file {config_file}: {e}")
            continue

        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("gridkit", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    return v


class SortingSettings(BaseSettings):
    """Sorting defaults.

    Environment prefix: GRIDKIT_SORTING__
    Example: GRIDKIT_SORTING__MULTI_SORT=true
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_SORTING__",
        extra="ignore",
    )

    multi_sort: bool = False
    max_sort_columns: int = Field(default=3, ge=1, description="Sorted columns kept in multi mode")


class FilteringSettings(BaseSettings):
    """Filtering defaults.

    Environment prefix: GRIDKIT_FILTERING__
    Example: GRIDKIT_FILTERING__DEBOUNCE=500
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_FILTERING__",
        extra="ignore",
    )

    mode: Literal["quick", "advanced", "both"] = "both"
    debounce: int = Field(default=300, ge=0, description="Quick filter debounce in milliseconds")
    enable_floating_filter: bool = False
    enable_filter_tool_panel: bool = False


class PaginationSettings(BaseSettings):
    """Pagination defaults.

    Environment prefix: GRIDKIT_PAGINATION__
    Example: GRIDKIT_PAGINATION__PAGE_SIZE_OPTIONS="25,50,100"
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_PAGINATION__",
        extra="ignore",
    )

    mode: Literal["client", "server"] = "client"
    page_size: int = Field(default=20, gt=0)
    page_size_options: Annotated[list[int], NoDecode] = Field(default_factory=lambda: [10, 20, 50, 100])

    @field_validator("page_size_options", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> Any:
        """Parse comma-separated strings from env vars."""
        return _split_csv(v)


class SelectionSettings(BaseSettings):
    """Selection defaults.

    Environment prefix: GRIDKIT_SELECTION__
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_SELECTION__",
        extra="ignore",
    )

    mode: Literal["single", "multiple"] = "multiple"
    enable_select_all: bool = True
    select_on_row_click: bool = False


class EditingSettings(BaseSettings):
    """Editing defaults.

    Environment prefix: GRIDKIT_EDITING__
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_EDITING__",
        extra="ignore",
    )

    mode: Literal["batch", "inline"] = "batch"
    validate_on_change: bool = True


class UndoRedoSettings(BaseSettings):
    """Undo/redo history defaults.

    Environment prefix: GRIDKIT_UNDO_REDO__
    Example: GRIDKIT_UNDO_REDO__TRACKING_TYPES="UPDATE,DELETE"
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_UNDO_REDO__",
        extra="ignore",
    )

    max_steps: int = Field(default=20, ge=1, description="Maximum retained undo steps")
    tracking_types: Annotated[list[Literal["ADD", "UPDATE", "DELETE"]], NoDecode] = Field(
        default_factory=lambda: ["UPDATE", "ADD", "DELETE"]
    )
    enable_keyboard_shortcuts: bool = True

    @field_validator("tracking_types", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> Any:
        """Parse comma-separated strings from env vars."""
        return _split_csv(v)


class RowActionsSettings(BaseSettings):
    """Row action defaults.

    Environment prefix: GRIDKIT_ROW_ACTIONS__
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_ROW_ACTIONS__",
        extra="ignore",
    )

    enable_add: bool = True
    enable_delete: bool = True
    enable_duplicate: bool = True
    confirm_delete: bool = True
    confirm_batch_delete: bool = Field(
        default=False,
        description="Hold batch deletes for confirmation like single-row deletes",
    )


class ClipboardSettings(BaseSettings):
    """Clipboard shortcut defaults.

    Environment prefix: GRIDKIT_CLIPBOARD__
    Example: GRIDKIT_CLIPBOARD__MULTILINE_FIELDS="details,notes"
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_CLIPBOARD__",
        extra="ignore",
    )

    enabled: bool = True
    multiline_fields: Annotated[list[str], NoDecode] = Field(default_factory=list)

    @field_validator("multiline_fields", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> Any:
        """Parse comma-separated strings from env vars."""
        return _split_csv(v)


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: GRIDKIT_LOG__
    Example: GRIDKIT_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


_SECTIONS: tuple[str, ...] = (
    "sorting",
    "filtering",
    "pagination",
    "selection",
    "editing",
    "undo_redo",
    "row_actions",
    "clipboard",
    "log",
)


class GridKitSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: GRIDKIT_

    Configuration sources (in order of precedence):
    1. Built-in defaults
    2. pyproject.toml [tool.gridkit] section
    3. ./gridkit.toml (project-level)
    4. user config (see ``user_config_path``)
    5. Environment variables (highest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDKIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    sorting: SortingSettings = Field(default_factory=SortingSettings)
    filtering: FilteringSettings = Field(default_factory=FilteringSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    editing: EditingSettings = Field(default_factory=EditingSettings)
    undo_redo: UndoRedoSettings = Field(default_factory=UndoRedoSettings)
    row_actions: RowActionsSettings = Field(default_factory=RowActionsSettings)
    clipboard: ClipboardSettings = Field(default_factory=ClipboardSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def __init__(self, **data: Any) -> None:
        # Load TOML configuration first
        toml_config = _load_toml_config()

        # Merge TOML config with explicit data (explicit takes precedence)
        merged = _deep_merge(toml_config, data)

        super().__init__(**merged)

    def to_toml(self) -> str:
        """Export settings as TOML string."""
        lines = ["# gridkit Configuration", "# Generated by: gridkit defaults --format toml", ""]

        all_data = self.model_dump()
        for section_name in _SECTIONS:
            lines.append(f"[{section_name}]")
            for field_name, field_value in all_data[section_name].items():
                if isinstance(field_value, list):
                    value_str = "[" + ", ".join(_toml_scalar(v) for v in field_value) + "]"
                else:
                    value_str = _toml_scalar(field_value)
                lines.append(f"{field_name} = {value_str}")
            lines.append("")

        return "\n".join(lines)

    def to_env(self) -> str:
        """Export settings as shell environment variables."""
        lines = [
            "# gridkit Environment Variables",
            "# Generated by: gridkit defaults --format env",
            "",
        ]

        all_data = self.model_dump()
        for section_name in _SECTIONS:
            for field_name, field_value in all_data[section_name].items():
                env_name = f"GRIDKIT_{section_name.upper()}__{field_name.upper()}"
                if isinstance(field_value, list):
                    value_str = ",".join(str(v) for v in field_value)
                elif isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                else:
                    value_str = str(field_value)
                lines.append(f'export {env_name}="{value_str}"')

        return "\n".join(lines)


def _toml_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


@lru_cache(maxsize=1)
def get_settings() -> GridKitSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return GridKitSettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> GridKitSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
