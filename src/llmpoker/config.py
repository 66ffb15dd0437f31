"""Application configuration for llmpoker."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Self, get_args, get_type_hints

from dotenv import load_dotenv

from .errors import ConfigurationError
from .providers import DEFAULT_MODEL


@dataclass
class TableConfig:
    """Table stakes and seating."""

    num_seats: int = 9
    initial_chips: int = 1000
    small_blind: int = 50
    big_blind: int = 100
    seed: int | None = None


@dataclass
class ProviderConfig:
    """Defaults for the Anthropic-backed decision provider."""

    model: str = DEFAULT_MODEL
    max_tokens: int = 2048
    temperature: float = 0.7
    timeout: float = 60.0


@dataclass
class RunConfig:
    """Where things are read from and written to."""

    players_dir: str = "players"
    games_dir: str = "games"
    max_hands: int | None = None
    log_level: str = "INFO"


@dataclass
class Config:
    """Application configuration."""

    table: TableConfig = field(default_factory=TableConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    run: RunConfig = field(default_factory=RunConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> Self:
        """Load config from ``path`` or the first file found, falling back to defaults."""
        load_dotenv()
        if path is not None:
            return cls._from_file(path)

        config_paths = [
            Path.cwd() / "llmpoker.toml",
            Path.cwd() / ".llmpoker.toml",
            Path.home() / ".config" / "llmpoker" / "config.toml",
            Path.home() / ".llmpoker.toml",
        ]
        for candidate in config_paths:
            if candidate.exists():
                return cls._from_file(candidate)

        return cls()

    @classmethod
    def _from_file(cls, path: Path) -> Self:
        """Load config from a TOML file."""
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Cannot read config {path}: {e}") from e

        config = cls(
            table=_section(TableConfig, data.get("table", {}), path),
            provider=_section(ProviderConfig, data.get("provider", {}), path),
            run=_section(RunConfig, data.get("run", {}), path),
        )
        table = config.table
        if not 0 < table.small_blind <= table.big_blind:
            raise ConfigurationError(
                f"{path}: blinds must satisfy 0 < small_blind <= big_blind"
            )
        if table.num_seats < 2:
            raise ConfigurationError(f"{path}: a table needs at least 2 seats")
        if table.initial_chips <= 0:
            raise ConfigurationError(f"{path}: initial_chips must be positive")
        if config.run.max_hands is not None and config.run.max_hands < 1:
            raise ConfigurationError(f"{path}: max_hands must be at least 1")
        return config


def _section(kind: type, values: dict[str, Any], path: Path) -> Any:
    if not isinstance(values, dict):
        raise ConfigurationError(f"{path}: [{kind.__name__}] must be a table")
    known = {f.name for f in fields(kind)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(f"{path}: unknown {kind.__name__} keys: {', '.join(sorted(unknown))}")

    hints = get_type_hints(kind)
    checked = {}
    for key, value in values.items():
        allowed = tuple(t for t in get_args(hints[key]) or (hints[key],) if t is not type(None))
        if float in allowed and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if isinstance(value, bool) or not isinstance(value, allowed):
            expected = " or ".join(t.__name__ for t in allowed)
            raise ConfigurationError(f"{path}: {key} must be {expected}, got {value!r}")
        checked[key] = value
    return kind(**checked)


def require_api_key() -> str:
    """The Anthropic API key from the environment (or a .env file)."""
    load_dotenv()
    key = os.environ.get("ANTHROPIC_API_KEY")
    if not key:
        raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set")
    return key
