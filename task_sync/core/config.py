"""
Configuration management for task-sync.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .models import CompletionPolicy, CreateDirection, NotesPolicy, Side

CONFIG_ENV_VAR = "TASK_SYNC_CONFIG"
CONFIG_DIR_NAME = "task-sync"
CONFIG_FILE = "config.json"

DEFAULT_NOTES_MAX_LENGTH = 8000
DEFAULT_SUFFIX_BUDGET = 100


def _normalize_path(path: str) -> str:
    """Expand user and convert to absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def _parse_enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"Invalid {key} '{value}' (expected one of: {allowed})")


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"Invalid {key} '{value}' (expected true or false)")


@dataclass
class StoreConfig:
    """Settings for one side's task store."""

    name: str
    type: str = "memory"
    path: Optional[str] = None
    page_size: int = 100
    notes_max_length: int = DEFAULT_NOTES_MAX_LENGTH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "path": self.path,
            "page_size": self.page_size,
            "notes_max_length": self.notes_max_length,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_name: str) -> StoreConfig:
        return cls(
            name=data.get("name") or default_name,
            type=data.get("type", "memory"),
            path=data.get("path"),
            page_size=int(data.get("page_size", 100)),
            notes_max_length=int(data.get("notes_max_length", DEFAULT_NOTES_MAX_LENGTH)),
        )


@dataclass
class SyncConfig:
    """Configuration for sync passes, selected once at startup."""

    completion_policy: CompletionPolicy = CompletionPolicy.LATEST_WINS
    notes_policy: NotesPolicy = NotesPolicy.LATEST_WINS
    create_direction: CreateDirection = CreateDirection.BIDIRECTIONAL
    skew_ms: int = 2000
    guard_debounce_seconds: float = 1.0
    include_completed_on_create: bool = False
    truncation_suffix_budget: int = DEFAULT_SUFFIX_BUDGET
    # Retry settings for per-record sub-fetches
    retry_attempts: int = 3
    retry_base_delay: float = 0.5
    retry_multiplier: float = 2.0
    # Scheduler / server settings
    sync_interval_minutes: float = 15
    initial_sync_delay_seconds: float = 5
    server_host: str = "127.0.0.1"
    server_port: int = 3000
    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    side_a: StoreConfig = field(default_factory=lambda: StoreConfig(name="Side A"))
    side_b: StoreConfig = field(default_factory=lambda: StoreConfig(name="Side B"))

    def __post_init__(self) -> None:
        self.validate()

    @property
    def primary_side(self) -> Side:
        """The side treated as authoritative for asymmetric behaviour."""
        if self.completion_policy is CompletionPolicy.B_ALWAYS_WINS:
            return Side.B
        return Side.A

    @property
    def is_symmetric(self) -> bool:
        return self.completion_policy is CompletionPolicy.LATEST_WINS

    def store_config(self, side: Side) -> StoreConfig:
        return self.side_a if side is Side.A else self.side_b

    def validate(self) -> None:
        if self.skew_ms < 0:
            raise ConfigurationError("skew_ms must be non-negative")
        if self.guard_debounce_seconds < 0:
            raise ConfigurationError("guard_debounce_seconds must be non-negative")
        if self.retry_attempts < 1:
            raise ConfigurationError("retry_attempts must be at least 1")
        if self.truncation_suffix_budget < 0:
            raise ConfigurationError("truncation_suffix_budget must be non-negative")
        if self.sync_interval_minutes <= 0:
            raise ConfigurationError("sync_interval_minutes must be positive")
        for store in (self.side_a, self.side_b):
            if store.notes_max_length <= self.truncation_suffix_budget:
                raise ConfigurationError(
                    f"notes_max_length for {store.name} must exceed the truncation "
                    f"suffix budget ({self.truncation_suffix_budget})"
                )
            if store.page_size < 1:
                raise ConfigurationError(f"page_size for {store.name} must be positive")

    def describe_policies(self) -> Dict[str, str]:
        return {
            "completion": self.completion_policy.value,
            "notes": self.notes_policy.value,
            "create_direction": self.create_direction.value,
            "primary_side": self.primary_side.value,
            "skew_ms": str(self.skew_ms),
        }

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SyncConfig:
        sync_settings = data.get("sync", {})
        retry = data.get("retry", {})
        server = data.get("server", {})
        logging_settings = data.get("logging", {})

        def setting(key: str, default: Any) -> Any:
            return sync_settings.get(key, data.get(key, default))

        try:
            return cls(
                completion_policy=_parse_enum(
                    CompletionPolicy, setting("completion_policy", "latest-wins"), "completion_policy"
                ),
                notes_policy=_parse_enum(NotesPolicy, setting("notes_policy", "latest-wins"), "notes_policy"),
                create_direction=_parse_enum(
                    CreateDirection, setting("create_direction", "bidirectional"), "create_direction"
                ),
                skew_ms=int(setting("skew_ms", 2000)),
                guard_debounce_seconds=float(setting("guard_debounce_seconds", 1.0)),
                include_completed_on_create=_parse_bool(
                    setting("include_completed_on_create", False), "include_completed_on_create"
                ),
                truncation_suffix_budget=int(setting("truncation_suffix_budget", DEFAULT_SUFFIX_BUDGET)),
                retry_attempts=int(retry.get("attempts", 3)),
                retry_base_delay=float(retry.get("base_delay", 0.5)),
                retry_multiplier=float(retry.get("multiplier", 2.0)),
                sync_interval_minutes=float(setting("interval_minutes", 15)),
                initial_sync_delay_seconds=float(setting("initial_delay_seconds", 5)),
                server_host=server.get("host", "127.0.0.1"),
                server_port=int(server.get("port", 3000)),
                log_level=logging_settings.get("level", "INFO"),
                log_dir=logging_settings.get("dir"),
                side_a=StoreConfig.from_dict(data.get("side_a", {}), "Side A"),
                side_b=StoreConfig.from_dict(data.get("side_b", {}), "Side B"),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sync": {
                "completion_policy": self.completion_policy.value,
                "notes_policy": self.notes_policy.value,
                "create_direction": self.create_direction.value,
                "skew_ms": self.skew_ms,
                "guard_debounce_seconds": self.guard_debounce_seconds,
                "include_completed_on_create": self.include_completed_on_create,
                "truncation_suffix_budget": self.truncation_suffix_budget,
                "interval_minutes": self.sync_interval_minutes,
                "initial_delay_seconds": self.initial_sync_delay_seconds,
            },
            "retry": {
                "attempts": self.retry_attempts,
                "base_delay": self.retry_base_delay,
                "multiplier": self.retry_multiplier,
            },
            "server": {"host": self.server_host, "port": self.server_port},
            "logging": {"level": self.log_level, "dir": self.log_dir},
            "side_a": self.side_a.to_dict(),
            "side_b": self.side_b.to_dict(),
        }

    @classmethod
    def load_from_file(cls, config_path: str) -> SyncConfig:
        config_path = _normalize_path(config_path)
        if not os.path.exists(config_path):
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Malformed configuration file {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a JSON object")
        return cls.from_dict(data)

    def save_to_file(self, config_path: str) -> None:
        config_path = _normalize_path(config_path)
        os.makedirs(os.path.dirname(config_path), exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as handle:
            json.dump(self.to_dict(), handle, indent=2, ensure_ascii=False)


def apply_env_overrides(config: SyncConfig, environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """Apply environment variable overrides on top of file settings."""
    env = os.environ if environ is None else environ

    if env.get("TASK_SYNC_COMPLETION_POLICY"):
        config.completion_policy = _parse_enum(
            CompletionPolicy, env["TASK_SYNC_COMPLETION_POLICY"], "TASK_SYNC_COMPLETION_POLICY"
        )
    if env.get("TASK_SYNC_NOTES_POLICY"):
        config.notes_policy = _parse_enum(NotesPolicy, env["TASK_SYNC_NOTES_POLICY"], "TASK_SYNC_NOTES_POLICY")
    if env.get("TASK_SYNC_CREATE_DIRECTION"):
        config.create_direction = _parse_enum(
            CreateDirection, env["TASK_SYNC_CREATE_DIRECTION"], "TASK_SYNC_CREATE_DIRECTION"
        )
    try:
        if env.get("TASK_SYNC_SKEW_MS"):
            config.skew_ms = int(env["TASK_SYNC_SKEW_MS"])
        if env.get("TASK_SYNC_INTERVAL_MINUTES"):
            config.sync_interval_minutes = float(env["TASK_SYNC_INTERVAL_MINUTES"])
        if env.get("PORT"):
            config.server_port = int(env["PORT"])
    except ValueError as exc:
        raise ConfigurationError(f"Invalid environment override: {exc}") from exc
    if env.get("TASK_SYNC_LOG_LEVEL"):
        config.log_level = env["TASK_SYNC_LOG_LEVEL"]

    config.validate()
    return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(_normalize_path(override))
    return Path.home() / ".config" / CONFIG_DIR_NAME / CONFIG_FILE


def load_config(config_path: Optional[str] = None) -> SyncConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        SyncConfig object with environment overrides applied
    """
    if config_path is None:
        config_path = str(get_default_config_path())

    return apply_env_overrides(SyncConfig.load_from_file(config_path))


def save_config(config: SyncConfig, config_path: Optional[str] = None) -> Path:
    """
    Save configuration to file.

    Args:
        config: SyncConfig object to save
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = Path(config_path) if config_path else get_default_config_path()
    config.save_to_file(str(path))
    return path
