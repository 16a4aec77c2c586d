"""
Questionnaire (APK) builder for API and batch input.

Goal:
- Convert a raw questionnaire record (dict from JSON or a CSV row) into the
  ApkData value the pricing core expects.

Transforms:
- Accept camelCase keys from the broker front end (claimsLast3Years) as well
  as snake_case
- Map Yes/No style answers -> bool for the flag fields
- Coerce numeric fields; split "a|b" / "a,b" strings for list fields
- Unknown keys are ignored with a warning; an answer that cannot be read
  raises InvalidInput rather than pricing on a guessed default
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from src.pricing.errors import InvalidInput
from src.pricing.schemas import ApkData

APK_BOOLEAN = [
    "domestic_transport",
    "international_transport",
    "high_value_goods",
    "dangerous_goods",
    "temperature_controlled",
    "irregular_operations",
]

APK_FLOAT = [
    "average_cargo_value",
    "max_single_shipment_value",
]

APK_INT = [
    "monthly_shipments",
    "claims_last_3_years",
]

APK_LIST = [
    "main_cargo_types",
    "main_destinations",
]

# Front-end answers the pricing core does not use
IGNORED_KEYS = {
    "id",
    "policy_id",
    "completed_at",
    "requires_gross_negligence",
    "requires_parking_coverage",
    "requires_subcontractors_coverage",
    "client_signature",
    "client_signature_date",
}


@dataclass(frozen=True)
class ApkBuildResult:
    apk: ApkData
    warnings: List[str]


_YN_MAP = {
    "yes": True,
    "no": False,
    "y": True,
    "n": False,
    "tak": True,
    "nie": False,
    "true": True,
    "false": False,
    "1": True,
    "0": False,
    True: True,
    False: False,
    1: True,
    0: False,
}

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake(key: str) -> str:
    """claimsLast3Years -> claims_last_3_years"""
    snake = _CAMEL_RE.sub(r"_\1", key.strip()).lower()
    return re.sub(r"([a-z])(\d)", r"\1_\2", snake)


def _is_missing(val: Any) -> bool:
    return val is None or (isinstance(val, float) and np.isnan(val)) or (isinstance(val, str) and not val.strip())


def _to_bool(val: Any) -> Optional[bool]:
    if isinstance(val, str):
        return _YN_MAP.get(val.strip().lower())
    if isinstance(val, (bool, np.bool_)):
        return bool(val)
    if isinstance(val, (int, np.integer, float, np.floating)):
        return _YN_MAP.get(int(val)) if float(val) in (0.0, 1.0) else None
    return None


def _to_number(val: Any, as_int: bool) -> Optional[float]:
    try:
        num = float(val)
    except (TypeError, ValueError):
        return None
    if np.isnan(num) or np.isinf(num):
        return None
    if as_int:
        return int(num) if num.is_integer() else None
    return num


def _to_list(val: Any) -> Tuple[str, ...]:
    if isinstance(val, str):
        parts = re.split(r"[|,;]", val)
    elif isinstance(val, (list, tuple, set, frozenset)):
        parts = list(val)
    else:
        parts = [val]
    return tuple(str(p).strip() for p in parts if str(p).strip())


def build_apk_from_raw(raw: Optional[Dict[str, Any]]) -> ApkBuildResult:
    """
    Build ApkData from a raw questionnaire dict.

    Returns the record plus warnings for ignored fields. Raises InvalidInput
    for answers that cannot be read.
    """
    warnings: List[str] = []
    if raw is None:
        return ApkBuildResult(apk=ApkData(), warnings=warnings)
    if isinstance(raw, ApkData):
        return ApkBuildResult(apk=raw, warnings=warnings)
    if not isinstance(raw, Mapping):
        raise InvalidInput("apk_data must be an object of questionnaire answers", field="apk_data")

    known = {f.name for f in fields(ApkData)}
    values: Dict[str, Any] = {}

    for key, val in raw.items():
        name = to_snake(str(key))
        if name in IGNORED_KEYS:
            continue
        if name not in known:
            warnings.append(f"Ignored unknown questionnaire field '{key}'.")
            continue
        if _is_missing(val):
            continue

        if name in APK_BOOLEAN:
            mapped = _to_bool(val)
            if mapped is None:
                raise InvalidInput(f"Could not map {name}={val!r} to yes/no", field=f"apk_data.{name}", value=val)
            values[name] = mapped
        elif name in APK_FLOAT or name in APK_INT:
            num = _to_number(val, as_int=name in APK_INT)
            if num is None or num < 0:
                raise InvalidInput(
                    f"{name} must be a non-negative number, got {val!r}", field=f"apk_data.{name}", value=val
                )
            values[name] = num
        elif name in APK_LIST:
            values[name] = _to_list(val)
        elif name == "biggest_claim_amount":
            num = _to_number(val, as_int=False)
            if num is None:
                raise InvalidInput(f"{name} must be a number, got {val!r}", field=f"apk_data.{name}", value=val)
            values[name] = num

    return ApkBuildResult(apk=ApkData(**values), warnings=warnings)
