from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    return v if v is not None and v != "" else default


@dataclass(frozen=True)
class ProjectPaths:
    root: Path
    data_dir: Path
    reports_dir: Path


def get_project_root() -> Path:
    """
    Resolve repo root robustly.
    Assumes this file lives at: <root>/src/utils/config.py
    """
    return Path(__file__).resolve().parents[2]


def get_paths() -> ProjectPaths:
    root = get_project_root()
    return ProjectPaths(
        root=root,
        data_dir=root / "data",
        reports_dir=root / "reports",
    )


@dataclass(frozen=True)
class AppConfig:
    log_level: str
    include_policy_clauses: bool


def get_app_config() -> AppConfig:
    """
    Runtime settings from environment variables.

    Env:
      LOG_LEVEL               (default: INFO)
      INCLUDE_POLICY_CLAUSES  (default: true) attach instantiated clauses to full quotes
    """
    level = (_env("LOG_LEVEL", "INFO") or "INFO").upper()
    include = (_env("INCLUDE_POLICY_CLAUSES", "true") or "true").lower() in {"1", "true", "yes"}
    return AppConfig(log_level=level, include_policy_clauses=include)


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or get_app_config().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
