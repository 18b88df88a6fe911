"""Runtime settings for zmem."""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from zmem.errors import ConfigError
from zmem.procfs import PROC_ROOT, SmapsSource


@dataclass(slots=True, frozen=True)
class Settings:
    """Settings for one invocation."""

    proc_root: Path = PROC_ROOT
    max_workers: int | None = None  # None: ThreadPoolExecutor default
    source: SmapsSource = SmapsSource.AUTO
    prefilter: bool = True
    log_level: str = "WARNING"

    def override(self, **changes: Any) -> "Settings":
        """Return a copy with every non-None value in ``changes`` applied."""
        return _validated(replace(self, **{k: v for k, v in changes.items() if v is not None}))


def _validated(settings: Settings) -> Settings:
    if settings.max_workers is not None and settings.max_workers < 1:
        raise ConfigError(f"max_workers must be at least 1, got {settings.max_workers}")
    if not isinstance(logging.getLevelName(settings.log_level.upper()), int):
        raise ConfigError(f"unknown log level: {settings.log_level}")
    return settings


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """
    Build settings from defaults and ``ZMEM_*`` environment variables.

    Args:
        environ: Environment to read, defaults to ``os.environ``.

    Raises:
        ConfigError: A variable holds a value that cannot be used.
    """
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}

    if proc_root := env.get("ZMEM_PROC_ROOT"):
        changes["proc_root"] = Path(proc_root)

    if workers := env.get("ZMEM_MAX_WORKERS"):
        try:
            changes["max_workers"] = int(workers)
        except ValueError as e:
            raise ConfigError(f"ZMEM_MAX_WORKERS is not an integer: {workers!r}") from e

    if source := env.get("ZMEM_SOURCE"):
        try:
            changes["source"] = SmapsSource(source.lower())
        except ValueError as e:
            raise ConfigError(f"ZMEM_SOURCE must be auto, rollup or smaps, got {source!r}") from e

    if level := env.get("ZMEM_LOG_LEVEL"):
        changes["log_level"] = level

    return Settings().override(**changes)
