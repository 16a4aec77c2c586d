from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Union

import pandas as pd

SUPPORTED_TABLES = (".csv", ".parquet")


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _json_default(o: Any) -> Any:
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, (set, frozenset, tuple)):
        return list(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def write_json(obj: Any, path: Path) -> None:
    ensure_dir(path.parent)
    payload = asdict(obj) if is_dataclass(obj) else obj
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=_json_default)


def _table_suffix(path: Path) -> str:
    suf = path.suffix.lower()
    if suf not in SUPPORTED_TABLES:
        raise ValueError(f"Unsupported table format: {suf} (expected one of {', '.join(SUPPORTED_TABLES)})")
    return suf


def read_applications(path: Union[str, Path], required: Iterable[str] = ("sum_insured", "territorial_scope")) -> pd.DataFrame:
    """
    Read a table of quote applications (one row per applicant).

    Column names are stripped; rows are returned as-is, validation of the
    values happens per row in the quoting service.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    df = pd.read_csv(path) if _table_suffix(path) == ".csv" else pd.read_parquet(path)
    df.columns = [str(c).strip() for c in df.columns]

    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    return df


def write_table(df: pd.DataFrame, path: Union[str, Path]) -> None:
    path = Path(path)
    suf = _table_suffix(path)
    ensure_dir(path.parent)
    if suf == ".csv":
        df.to_csv(path, index=False)
    else:
        df.to_parquet(path, index=False)
