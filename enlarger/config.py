"""Настройки приложения.

Значения по умолчанию заданы в коде, часть из них можно переопределить
переменными окружения `ENLARGER_*`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Tuple


class SubmitSource(str, Enum):
    """Какой растр уходит в сервис увеличения."""
    ORIGINAL = "original"  # исходное изображение без маски
    REFLECTED = "reflected"  # с применённым градиентом и прозрачностью


@dataclass(frozen=True)
class Settings:
    backend_host: str = "http://localhost:8000"
    request_timeout: float = 120.0

    progress_interval_ms: int = 200
    progress_step: int = 1
    progress_ceiling: int = 75

    max_pixel_budget: int = 2500 * 2500 * 2
    max_file_bytes: int = 5 * 1024 * 1024
    enlarge_factors: Tuple[int, ...] = (2, 3, 4, 8)

    preview_size: Tuple[int, int] = (480, 360)
    submit_source: SubmitSource = SubmitSource.ORIGINAL

    design_dir: Path = Path.home() / ".enlarger" / "design"
    log_level: int = logging.INFO
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Собирает настройки из переменных окружения.

        Raises:
            ValueError: если значение переменной не распознано.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        log_level_name = env.get("ENLARGER_LOG_LEVEL", "").upper()
        log_level = defaults.log_level
        if log_level_name:
            level = logging.getLevelName(log_level_name)
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {log_level_name}")
            log_level = level

        log_file = env.get("ENLARGER_LOG_FILE")
        design_dir = env.get("ENLARGER_DESIGN_DIR")
        timeout = env.get("ENLARGER_REQUEST_TIMEOUT")

        return cls(
            backend_host=env.get("ENLARGER_BACKEND_HOST", defaults.backend_host).rstrip("/"),
            request_timeout=float(timeout) if timeout else defaults.request_timeout,
            submit_source=SubmitSource(env.get("ENLARGER_SUBMIT_SOURCE", defaults.submit_source.value).lower()),
            design_dir=Path(design_dir).expanduser() if design_dir else defaults.design_dir,
            log_level=log_level,
            log_file=Path(log_file).expanduser() if log_file else None,
        )
