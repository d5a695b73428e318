"""Configuration.

Loads ``.prthreads.toml`` from the project root (walking up to ``.git``),
validates with Pydantic, and provides sensible defaults so zero-config still works.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prthreads.models import ViewMode
from prthreads.skips import SKIP_FILENAME, default_state_dir

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".prthreads.toml"
LOG_FILENAME = "prthreads.log"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EditorConfig(BaseModel):
    """How replies are composed."""

    model_config = ConfigDict(extra="ignore")

    command: str | None = Field(
        default=None,
        min_length=1,
        description="Editor command line; falls back to $VISUAL, $EDITOR, then vi",
    )


class DisplayConfig(BaseModel):
    """Rendering preferences."""

    model_config = ConfigDict(extra="ignore")

    wrap_width: int = Field(default=80, ge=20, description="Column at which comment bodies wrap")
    show_diff: bool = Field(default=True, description="Whether diff hunks are visible when the tool starts")
    initial_view: ViewMode = Field(default=ViewMode.UNRESOLVED, description="Tab shown when the tool starts")


class StateConfig(BaseModel):
    """Where local state lives."""

    model_config = ConfigDict(extra="ignore")

    skip_file: Path | None = Field(default=None, description="Skip list path (default: XDG state dir)")

    @property
    def resolved_skip_file(self) -> Path:
        return self.skip_file.expanduser() if self.skip_file else default_state_dir() / SKIP_FILENAME


class LoggingConfig(BaseModel):
    """Log file settings. The terminal belongs to the UI, so logs always go to a file."""

    model_config = ConfigDict(extra="ignore")

    level: str = Field(default="WARNING", description="Standard logging level name")
    file: Path | None = Field(default=None, description="Log file path (default: XDG state dir)")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            msg = f"level must be one of {', '.join(_LOG_LEVELS)}"
            raise ValueError(msg)
        return upper

    @property
    def resolved_file(self) -> Path:
        return self.file.expanduser() if self.file else default_state_dir() / LOG_FILENAME


class Config(BaseModel):
    """Top-level prthreads configuration."""

    model_config = ConfigDict(extra="ignore")

    editor: EditorConfig = Field(default_factory=EditorConfig, description="Reply editor settings")
    display: DisplayConfig = Field(default_factory=DisplayConfig, description="Rendering settings")
    state: StateConfig = Field(default_factory=StateConfig, description="Local state settings")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Log file settings")


def _collect_unknown_keys(
    data: dict[str, Any],
    model_cls: type[BaseModel],
    prefix: str = "",
) -> list[str]:
    """Recursively find keys in *data* that don't match any field in *model_cls*.

    Returns dotted key paths like ``display.wrap``.
    """
    known = set(model_cls.model_fields)
    unknown: list[str] = []

    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if key not in known:
            unknown.append(dotted)
            continue
        annotation = model_cls.model_fields[key].annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel) and isinstance(value, dict):
            unknown.extend(_collect_unknown_keys(value, annotation, prefix=f"{dotted}."))

    return unknown


def _find_config_file(start: Path) -> Path | None:
    """Walk up from *start* looking for ``.prthreads.toml``, stopping at ``.git`` root."""
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        # Stop at filesystem root
        if current.parent == current:
            return None
        # Stop if we just checked a directory that contains .git
        if (current / ".git").exists():
            return None
        current = current.parent


def load_config(cwd: str | Path | None = None) -> tuple[Config, Path | None]:
    """Load configuration from ``.prthreads.toml``.

    Walks up from *cwd* (defaulting to the current directory) looking for the
    config file.  If not found, returns a ``Config`` with all defaults.

    Returns:
        (config, config_path): the parsed config and the file path (or None
        if no config file was found).

    Raises ``ValueError`` on invalid TOML or validation errors so the tool
    can refuse to start with a broken config.
    """
    start = Path(cwd) if cwd else Path.cwd()
    config_path = _find_config_file(start)

    if config_path is None:
        logger.info("No %s found, using defaults", CONFIG_FILENAME)
        return Config(), None

    logger.info("Loading config from %s", config_path)
    try:
        raw = config_path.read_text(encoding="utf-8")
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {config_path}: {exc}"
        raise ValueError(msg) from exc

    try:
        config = Config.model_validate(data)
    except Exception as exc:
        msg = f"Invalid config in {config_path}: {exc}"
        raise ValueError(msg) from exc

    for key in _collect_unknown_keys(data, Config):
        logger.warning("Unknown config key '%s' in %s", key, config_path)

    return config, config_path
