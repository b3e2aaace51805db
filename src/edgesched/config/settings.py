"""
config/settings.py — EdgeSched Runtime Settings

Merges config.yaml (defaults/structure) with environment variables.
Pydantic-powered — all fields are validated and typed.

  - Field validators reject bad values at parse time (unknown strategy,
    non-positive limits, unknown log level, bad executor capacity)
  - validate_all() performs cross-field startup validation and raises
    ConfigError with a human-readable, numbered list of every problem
  - load_settings() respects EDGESCHED_CONFIG as a fallback when no
    explicit config_path argument is given
"""

from __future__ import annotations

import os
import threading as _threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from edgesched.scheduler.strategies import STRATEGIES
from edgesched.scheduler.types import Executor, ScheduleSpec, TaskSpec


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class ConfigError(Exception):
    """Raised by validate_all() when one or more config problems are found."""


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# ─────────────────────────────────────────────────────────────────────────────
# Sub-models
# ─────────────────────────────────────────────────────────────────────────────

class SchedulerConfig(BaseModel):
    max_concurrent_tasks: int = 100
    max_tasks: Optional[int] = 10000
    task_timeout_s: float = 300.0
    retry_attempts: int = 3
    retry_delay_s: float = 5.0
    strategy: str = "fifo"
    monitor_interval_s: float = 10.0
    throughput_window_s: float = 60.0
    event_queue_size: int = 1000
    keep_runs: Optional[int] = 10    # finished run instances kept per recurring task

    @field_validator("max_concurrent_tasks", "event_queue_size")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("keep_runs")
    @classmethod
    def _positive_keep_runs(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("scheduler.keep_runs must be >= 1 (or null to keep every run)")
        return v

    @field_validator("max_tasks")
    @classmethod
    def _positive_max_tasks(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("scheduler.max_tasks must be >= 1 (or null for unbounded)")
        return v

    @field_validator("task_timeout_s", "retry_delay_s", "monitor_interval_s", "throughput_window_s")
    @classmethod
    def _positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0 seconds")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def _non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("scheduler.retry_attempts must be >= 0")
        return v

    @field_validator("strategy")
    @classmethod
    def _known_strategy(cls, v: str) -> str:
        if v not in STRATEGIES:
            raise ValueError(
                f"scheduler.strategy '{v}' is not supported. "
                f"Supported: {sorted(STRATEGIES)}"
            )
        return v


class ExecutorConfig(BaseModel):
    id: str
    name: str = ""
    kind: str = "local"
    capacity: int = 10
    capabilities: list[str] = Field(default_factory=list)

    @field_validator("capacity")
    @classmethod
    def _positive_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("executor capacity must be >= 1")
        return v

    def to_executor(self) -> Executor:
        return Executor(
            id=self.id,
            name=self.name or self.id,
            kind=self.kind,
            capacity=self.capacity,
            capabilities=frozenset(self.capabilities),
        )


def _default_executors() -> list[ExecutorConfig]:
    return [
        ExecutorConfig(
            id="local", name="Local Executor", kind="local", capacity=10,
            capabilities=["compute", "storage", "network"],
        ),
        ExecutorConfig(
            id="edge", name="Edge Executor", kind="edge", capacity=50,
            capabilities=["compute", "storage", "network", "iot"],
        ),
        ExecutorConfig(
            id="cloud", name="Cloud Executor", kind="cloud", capacity=100,
            capabilities=["compute", "storage", "network", "ai", "ml"],
        ),
    ]


class SeedTask(TaskSpec):
    """A task declared in config.yaml, optionally with its schedule."""
    schedule: Optional[ScheduleSpec] = None

    def to_spec(self) -> TaskSpec:
        return TaskSpec(**self.model_dump(exclude={"schedule"}))


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: str = "./data/logs"
    max_file_size_mb: int = 100
    backup_count: int = 5
    console_output: bool = True
    json_format: Optional[bool] = None

    @field_validator("level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level '{v}' is not valid. "
                f"Must be one of: {sorted(_VALID_LOG_LEVELS)}"
            )
        return upper


# ─────────────────────────────────────────────────────────────────────────────
# Root Settings
# ─────────────────────────────────────────────────────────────────────────────

class Settings(BaseSettings):
    """
    EdgeSched runtime settings.

    Priority (highest to lowest):
      1. Environment variables (EDGESCHED_SCHEDULER__STRATEGY=priority)
      2. .env file
      3. config.yaml
      4. Field defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="EDGESCHED_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    executors: list[ExecutorConfig] = Field(default_factory=_default_executors)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tasks: list[SeedTask] = Field(default_factory=list)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # yaml values arrive as init kwargs; environment must still win
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    # -- Convenience properties ----------------------------------------------

    @property
    def log_level(self) -> str:
        return self.logging.level.upper()

    @property
    def log_dir(self) -> Path:
        return Path(self.logging.log_dir)

    def validate_all(self) -> None:
        """
        Full startup validation. Raises ConfigError listing every problem found.

        Pydantic field validators catch type/value errors at parse time; this
        method catches cross-field problems they can't see (duplicate executor
        ids, seed tasks pointing at unknown executors or needing capabilities
        their executor lacks, a task store too small for the seed tasks).
        """
        errors: list[str] = []

        # ── Executors ─────────────────────────────────────────────────────────
        if not self.executors:
            errors.append("executors: at least one executor must be configured.")
        seen: set[str] = set()
        for ex in self.executors:
            if ex.id in seen:
                errors.append(f"executors: duplicate executor id '{ex.id}'.")
            seen.add(ex.id)
        caps = {ex.id: set(ex.capabilities) for ex in self.executors}

        # ── Seed tasks ────────────────────────────────────────────────────────
        task_ids: set[str] = set()
        for i, t in enumerate(self.tasks):
            label = t.id or t.name or f"#{i + 1}"
            if t.id:
                if t.id in task_ids:
                    errors.append(f"tasks: duplicate task id '{t.id}'.")
                task_ids.add(t.id)
            if t.executor not in caps:
                errors.append(
                    f"tasks[{label}]: executor '{t.executor}' is not configured. "
                    f"Known: {sorted(caps)}"
                )
            elif not set(t.requires) <= caps[t.executor]:
                missing = sorted(set(t.requires) - caps[t.executor])
                errors.append(
                    f"tasks[{label}]: executor '{t.executor}' lacks capabilities {missing}."
                )

        max_tasks = self.scheduler.max_tasks
        if max_tasks is not None and len(self.tasks) > max_tasks:
            errors.append(
                f"scheduler.max_tasks ({max_tasks}) is smaller than the number "
                f"of seed tasks ({len(self.tasks)})."
            )

        if errors:
            numbered = "\n".join(f"  {i+1}. {e}" for i, e in enumerate(errors))
            raise ConfigError(
                f"\n\nEdgeSched startup failed — {len(errors)} configuration "
                f"problem(s) found:\n\n{numbered}\n\n"
                f"Fix the issues above in config/config.yaml or your environment "
                f"and restart.\n"
            )


# ─────────────────────────────────────────────────────────────────────────────
# Loader + singleton
# ─────────────────────────────────────────────────────────────────────────────

_singleton: Optional[Settings] = None
_singleton_lock = _threading.Lock()

_KNOWN_SECTIONS = {"scheduler", "executors", "logging", "tasks"}


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _resolve_config_path(config_path: str | Path | None) -> Path:
    """
    Resolve the config file path with this priority:
      1. Explicit config_path argument (from --config CLI flag)
      2. EDGESCHED_CONFIG environment variable
      3. Default: config/config.yaml
    """
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get("EDGESCHED_CONFIG")
    if env_path:
        return Path(env_path)
    return Path("config/config.yaml")


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings by merging config.yaml with environment variables."""
    global _singleton
    yaml_data = _load_yaml(_resolve_config_path(config_path))
    init_kwargs = {k: v for k, v in yaml_data.items() if k in _KNOWN_SECTIONS}

    instance = Settings(**init_kwargs)
    with _singleton_lock:
        _singleton = instance
    return instance


def get_settings() -> Settings:
    """
    Return the global Settings singleton, loading from the default config
    path on first use. Guarded by _singleton_lock against double init.
    """
    global _singleton
    if _singleton is not None:
        return _singleton
    with _singleton_lock:
        if _singleton is None:
            _singleton = Settings(
                **{k: v for k, v in _load_yaml(_resolve_config_path(None)).items() if k in _KNOWN_SECTIONS}
            )
    return _singleton
