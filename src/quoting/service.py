"""
End-to-end quoting service for the OCPD Quote Engine.

Single source of truth for turning a request payload into a quote:
- raw payload dict -> questionnaire builder -> CalculationInput
- CalculationInput -> pricing + underwriting -> JSON-ready dict

The API and the batch script both go through here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from src.features.apk import build_apk_from_raw, to_snake
from src.pricing.clauses import DEFAULT_CATALOG, ClauseCatalog, PolicyClause
from src.pricing.config import DEFAULT_PRICING_CONFIG, PricingConfig
from src.pricing.errors import InvalidInput
from src.pricing.quote import calculate_premium, quick_quote, validate_input
from src.pricing.schemas import CalculationInput, CalculationResult, CargoType, DeductibleLevel

logger = logging.getLogger(__name__)

_REQUIRED = ("sum_insured", "territorial_scope")

# Applied when the broker front end omits a field
_DEFAULTS: Dict[str, Any] = {
    "selected_clauses": [],
    "years_in_business": 1,
    "fleet_size": 1,
    "cargo_type": CargoType.STANDARD.value,
    "subcontractor_percent": 0,
    "payment_installments": 1,
    "deductible_level": DeductibleLevel.STANDARD.value,
    "country_surcharge_percent": 0,
    "sublimit_overrides": {},
}


def _normalize_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    # apk_data keeps its own keys; build_apk_from_raw handles them
    return {to_snake(str(k)): v for k, v in payload.items()}


def calculation_input_from_payload(payload: Dict[str, Any]) -> Tuple[CalculationInput, List[str]]:
    """
    Build a CalculationInput from a request dict (camelCase or snake_case).
    Returns (input, warnings). Missing required fields raise InvalidInput.
    """
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")

    data = _normalize_keys(payload)
    missing = [k for k in _REQUIRED if data.get(k) is None]
    if missing:
        raise InvalidInput(f"{' and '.join(missing)} required", field=missing[0])

    built = build_apk_from_raw(data.get("apk_data"))

    values = {k: data[k] if data.get(k) is not None else default for k, default in _DEFAULTS.items()}
    inp = CalculationInput(
        sum_insured=data["sum_insured"],
        territorial_scope=data["territorial_scope"],
        apk_data=built.apk,
        **values,
    )
    return inp, built.warnings


def build_policy_clauses(
    inp: CalculationInput,
    result: CalculationResult,
    catalog: Optional[ClauseCatalog] = None,
) -> List[PolicyClause]:
    """Instantiate the selected clauses for storing alongside the quote."""
    catalog = catalog or DEFAULT_CATALOG
    return [
        catalog.instantiate(
            line.clause_type,
            inp.sum_insured,
            result.breakdown.base_premium,
            inp.sublimit_overrides.get(line.clause_type),
        )
        for line in result.breakdown.clause_premiums
    ]


def quote_from_payload(
    payload: Dict[str, Any],
    *,
    pricing_cfg: Optional[PricingConfig] = None,
    include_clauses: bool = True,
) -> Dict[str, Any]:
    """
    Full quote generation:
      payload -> CalculationInput -> CalculationResult -> dict
    The dict carries the normalized input echo, the result, instantiated
    policy clauses (optional) and questionnaire warnings.
    """
    inp, warnings = calculation_input_from_payload(payload)
    normalized = validate_input(inp, pricing_cfg or DEFAULT_PRICING_CONFIG)
    result = calculate_premium(normalized, cfg=pricing_cfg)

    logger.info(
        "Quote priced: scope=%s sum_insured=%.0f total=%.2f risk=%s auto_approved=%s",
        normalized.territorial_scope.value,
        normalized.sum_insured,
        result.total,
        result.risk_level.value,
        result.is_auto_approved,
    )
    if not result.is_auto_approved:
        logger.info("Quote referred to underwriter: %s", "; ".join(result.referral_reasons))

    out: Dict[str, Any] = {
        "type": "full",
        "input": {
            "sum_insured": normalized.sum_insured,
            "territorial_scope": normalized.territorial_scope.value,
            "selected_clauses": [line.clause_type.value for line in result.breakdown.clause_premiums],
            "years_in_business": normalized.years_in_business,
            "fleet_size": normalized.fleet_size,
            "deductible_level": normalized.deductible_level.value,
        },
        "result": result.to_dict(),
        "warnings": warnings,
    }
    if include_clauses:
        out["clauses"] = [c.to_dict() for c in build_policy_clauses(normalized, result)]
    return out


def quick_quote_from_payload(payload: Dict[str, Any], *, pricing_cfg: Optional[PricingConfig] = None) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    data = _normalize_keys(payload)
    missing = [k for k in _REQUIRED if data.get(k) is None]
    if missing:
        raise InvalidInput(f"{' and '.join(missing)} required", field=missing[0])

    q = quick_quote(data["sum_insured"], data["territorial_scope"], cfg=pricing_cfg)
    logger.debug("Quick quote: scope=%s estimate=%d", q.territorial_scope.value, q.estimate)
    out = q.to_dict()
    out["type"] = "quick"
    return out
