"""
Premium calculation for OCPD quotes.

Provides:
- quick_quote: clause-free indicative estimate from sum insured and scope
- build_breakdown: full itemized premium (base, clauses, loadings, bundle
  discount, installment surcharge, minimum premium floor)
- calculate_premium: build_breakdown composed with the underwriting rules

Notes:
- Every clause is priced against the base premium, never a running total,
  so selection order cannot change the result.
- Input is validated up front; an invalid request raises InvalidInput before
  any arithmetic runs.
- The engine is a pure function of its input: no clock, no randomness, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import replace
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from src.features.apk import APK_BOOLEAN
from src.pricing.clauses import DEFAULT_CATALOG, ClauseCatalog, coerce_clause_type
from src.pricing.config import DEFAULT_PRICING_CONFIG, PricingConfig
from src.pricing.errors import InvalidInput, UnknownClauseType
from src.pricing.schemas import (
    ApkData,
    CalculationInput,
    CalculationResult,
    CargoType,
    ClausePremiumLine,
    ClauseType,
    DeductibleLevel,
    LoadingLine,
    PremiumBreakdown,
    QuickQuote,
    TerritorialScope,
)
from src.pricing.variants import DEFAULT_MATCHER, VariantMatcher
from src.underwriting.decision import OcpdUnderwritingRules, bonus_malus_rate
from src.utils.money import round_half_up, round_to_unit


# ---------------------------
# Validation
# ---------------------------
def _is_number(v: Any) -> bool:
    return isinstance(v, Real) and not isinstance(v, bool)


def _check_sum_insured(value: Any) -> float:
    if not _is_number(value) or not math.isfinite(float(value)) or float(value) <= 0:
        raise InvalidInput(
            f"sum_insured must be a positive number, got {value!r}", field="sum_insured", value=value
        )
    return float(value)


def _coerce_scope(value: Any) -> TerritorialScope:
    try:
        return TerritorialScope(value)
    except ValueError as e:
        valid = ", ".join(s.value for s in TerritorialScope)
        raise InvalidInput(
            f"Invalid territorial_scope {value!r}. Must be one of: {valid}",
            field="territorial_scope",
            value=value,
        ) from e


def _check_whole(value: Any, name: str, minimum: int) -> int:
    if not _is_number(value) or not float(value).is_integer() or value < minimum:
        raise InvalidInput(f"{name} must be a whole number >= {minimum}, got {value!r}", field=name, value=value)
    return int(value)


def _check_percent(value: Any, name: str) -> float:
    if not _is_number(value) or not 0 <= float(value) <= 100:
        raise InvalidInput(f"{name} must be between 0 and 100, got {value!r}", field=name, value=value)
    return float(value)


def _coerce_clauses(values: Any) -> frozenset:
    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        raise InvalidInput("selected_clauses must be a collection of clause types", field="selected_clauses")
    try:
        return frozenset(coerce_clause_type(v) for v in values)
    except UnknownClauseType as e:
        valid = ", ".join(c.value for c in ClauseType)
        raise InvalidInput(
            f"Unknown clause type {e.value!r}. Must be one of: {valid}",
            field="selected_clauses",
            value=e.value,
        ) from e


def _check_apk(apk: Any) -> ApkData:
    if apk is None:
        return ApkData()
    if not isinstance(apk, ApkData):
        raise InvalidInput("apk_data must be an ApkData record", field="apk_data")
    for name in APK_BOOLEAN:
        v = getattr(apk, name)
        if not isinstance(v, (bool, np.bool_)):
            raise InvalidInput(f"apk_data.{name} must be true or false, got {v!r}", field=f"apk_data.{name}", value=v)
    amounts = ["average_cargo_value", "max_single_shipment_value"]
    if apk.biggest_claim_amount is not None:
        amounts.append("biggest_claim_amount")
    for name in amounts:
        v = getattr(apk, name)
        if not _is_number(v) or not math.isfinite(float(v)) or v < 0:
            raise InvalidInput(f"apk_data.{name} must be >= 0, got {v!r}", field=f"apk_data.{name}", value=v)
    _check_whole(apk.claims_last_3_years, "apk_data.claims_last_3_years", 0)
    _check_whole(apk.monthly_shipments, "apk_data.monthly_shipments", 0)
    return apk


def validate_input(inp: CalculationInput, cfg: PricingConfig = DEFAULT_PRICING_CONFIG) -> CalculationInput:
    """
    Check every field and return a normalized copy (enums resolved,
    selected_clauses as a frozenset). Raises InvalidInput on the first problem.
    """
    sum_insured = _check_sum_insured(inp.sum_insured)
    scope = _coerce_scope(inp.territorial_scope)
    clauses = _coerce_clauses(inp.selected_clauses)
    apk = _check_apk(inp.apk_data)
    years = _check_whole(inp.years_in_business, "years_in_business", 0)
    fleet = _check_whole(inp.fleet_size, "fleet_size", 1)

    try:
        cargo = CargoType(inp.cargo_type)
    except ValueError as e:
        raise InvalidInput(f"Unknown cargo_type {inp.cargo_type!r}", field="cargo_type", value=inp.cargo_type) from e

    subcontractors = _check_percent(inp.subcontractor_percent, "subcontractor_percent")
    country = _check_percent(inp.country_surcharge_percent, "country_surcharge_percent")

    installments = inp.payment_installments
    if not _is_number(installments) or installments not in cfg.installment_surcharges:
        allowed = ", ".join(str(k) for k in sorted(cfg.installment_surcharges))
        raise InvalidInput(
            f"payment_installments must be one of: {allowed}, got {installments!r}",
            field="payment_installments",
            value=installments,
        )

    try:
        deductible = DeductibleLevel(inp.deductible_level)
    except ValueError as e:
        valid = ", ".join(d.value for d in DeductibleLevel)
        raise InvalidInput(
            f"Invalid deductible_level {inp.deductible_level!r}. Must be one of: {valid}",
            field="deductible_level",
            value=inp.deductible_level,
        ) from e

    raw_overrides = inp.sublimit_overrides if inp.sublimit_overrides is not None else {}
    if not isinstance(raw_overrides, Mapping):
        raise InvalidInput(
            f"sublimit_overrides must map clause types to percentages, got {raw_overrides!r}",
            field="sublimit_overrides",
            value=raw_overrides,
        )

    overrides: Dict[ClauseType, float] = {}
    for key, pct in raw_overrides.items():
        try:
            clause = coerce_clause_type(key)
        except UnknownClauseType as e:
            raise InvalidInput(f"Unknown clause type {key!r} in sublimit_overrides", field="sublimit_overrides") from e
        if clause not in clauses:
            raise InvalidInput(
                f"Sublimit override given for unselected clause {clause.value}",
                field=f"sublimit_overrides.{clause.value}",
            )
        if not _is_number(pct) or not 0 < float(pct) <= 100:
            raise InvalidInput(
                f"Sublimit percentage for {clause.value} must be in (0, 100], got {pct!r}",
                field=f"sublimit_overrides.{clause.value}",
                value=pct,
            )
        overrides[clause] = float(pct)

    return replace(
        inp,
        sum_insured=sum_insured,
        territorial_scope=scope,
        selected_clauses=clauses,
        apk_data=apk,
        years_in_business=years,
        fleet_size=fleet,
        cargo_type=cargo,
        subcontractor_percent=subcontractors,
        payment_installments=int(installments),
        deductible_level=deductible,
        country_surcharge_percent=country,
        sublimit_overrides=overrides,
    )


# ---------------------------
# Quick quote
# ---------------------------
def quick_quote(
    sum_insured: float,
    territorial_scope: Any,
    cfg: Optional[PricingConfig] = None,
) -> QuickQuote:
    """
    Indicative estimate before the applicant has filled in the questionnaire.

    estimate = sum_insured * quick_rate_per_mille / 1000 * territorial_multiplier
    No clauses, no loadings, no decision.
    """
    cfg = cfg or DEFAULT_PRICING_CONFIG
    amount = _check_sum_insured(sum_insured)
    scope = _coerce_scope(territorial_scope)

    multiplier = float(cfg.territorial_multipliers[scope])
    raw = amount * cfg.quick_rate_per_mille / 1000.0 * multiplier

    return QuickQuote(
        currency=cfg.currency,
        sum_insured=amount,
        territorial_scope=scope,
        territorial_multiplier=multiplier,
        estimate=round_to_unit(raw),
        range_min=round_to_unit(raw * cfg.quick_range_low),
        range_max=round_to_unit(raw * cfg.quick_range_high),
    )


# ---------------------------
# Full calculation
# ---------------------------
def _bracket(value: float, brackets, above: float) -> float:
    """Loading of the first (upper_bound, loading) bracket containing value."""
    for upper, loading in brackets:
        if value <= upper:
            return loading
    return above


def compute_risk_loadings(inp: CalculationInput, subtotal: float, cfg: PricingConfig) -> List[LoadingLine]:
    """
    Percentage loadings on the base + clause subtotal, one line per factor.

    Order is fixed: operating history, fleet, claims (bonus-malus when
    shipment volume is declared) and declared cargo risks, then cargo type,
    subcontracting, deductible and country surcharge. Deductible and no-claims
    lines can be negative (discounts).
    """
    apk = inp.apk_data
    factors: List[tuple] = []

    experience = cfg.experience_loadings.get(inp.years_in_business, 0.0)
    if experience:
        factors.append(
            ("experience", f"Short operating history ({inp.years_in_business} years in business)", experience)
        )

    if inp.fleet_size <= cfg.small_fleet_max:
        factors.append(("small_fleet", f"Small fleet ({inp.fleet_size} vehicles)", cfg.small_fleet_loading))
    elif inp.fleet_size >= cfg.large_fleet_min:
        factors.append(("large_fleet", f"Large fleet ({inp.fleet_size} vehicles)", cfg.large_fleet_loading))

    bonus_malus = bonus_malus_rate(apk, cfg)
    if bonus_malus is not None:
        if bonus_malus:
            factors.append(
                (
                    "bonus_malus",
                    f"Bonus-malus ({apk.claims_last_3_years} claims on "
                    f"{apk.monthly_shipments} monthly shipments)",
                    bonus_malus,
                )
            )
    else:
        claims = _bracket(apk.claims_last_3_years, cfg.claims_loadings, cfg.claims_loading_max)
        if claims:
            factors.append(
                ("claims_history", f"Claims history ({apk.claims_last_3_years} claims in last 3 years)", claims)
            )
    if apk.dangerous_goods:
        factors.append(("dangerous_goods", "Dangerous goods declared", cfg.dangerous_goods_loading))
    if apk.temperature_controlled:
        factors.append(
            ("temperature_controlled", "Temperature-controlled cargo", cfg.temperature_controlled_loading)
        )
    if apk.high_value_goods:
        factors.append(("high_value_goods", "High-value goods declared", cfg.high_value_goods_loading))
    if apk.max_single_shipment_value > cfg.large_shipment_threshold:
        factors.append(
            (
                "large_shipment",
                f"Single shipment value above {cfg.large_shipment_threshold:,.0f}",
                cfg.large_shipment_loading,
            )
        )
    if apk.irregular_operations:
        factors.append(
            ("irregular_operations", "Irregular operations declared", cfg.irregular_operations_loading)
        )

    cargo = cfg.cargo_type_loadings.get(inp.cargo_type, 0.0)
    if cargo:
        factors.append(("cargo_type", f"Cargo type {inp.cargo_type.value}", cargo))

    subcontracting = _bracket(inp.subcontractor_percent, cfg.subcontractor_loadings, 0.0)
    if subcontracting:
        factors.append(
            ("subcontractors", f"Subcontracted share {inp.subcontractor_percent:g}%", subcontracting)
        )

    deductible = cfg.deductible_loadings.get(inp.deductible_level, 0.0)
    if deductible:
        amount = cfg.deductible_amounts.get(inp.deductible_level, 0.0)
        desc = f"Deductible {amount:,.0f} {cfg.currency}" if amount else "No deductible"
        factors.append(("deductible", desc, deductible))

    if inp.country_surcharge_percent:
        factors.append(
            (
                "country_surcharge",
                f"Country surcharge {inp.country_surcharge_percent:g}%",
                inp.country_surcharge_percent / 100.0,
            )
        )

    return [
        LoadingLine(code=code, description=desc, rate=float(rate), amount=round_half_up(subtotal * rate))
        for code, desc, rate in factors
    ]


def minimum_premium_for(inp: CalculationInput, cfg: PricingConfig) -> float:
    return float(cfg.minimum_premiums[inp.territorial_scope]) + cfg.minimum_premium_per_clause * len(
        inp.selected_clauses
    )


def build_breakdown(
    inp: CalculationInput,
    cfg: Optional[PricingConfig] = None,
    catalog: Optional[ClauseCatalog] = None,
    matcher: Optional[VariantMatcher] = None,
) -> PremiumBreakdown:
    """
    Itemized premium for a validated input.

    total = base + clauses + loadings - bundle discount + installment surcharge,
    raised to the minimum premium when it does not exceed it.
    """
    cfg = cfg or DEFAULT_PRICING_CONFIG
    catalog = catalog or DEFAULT_CATALOG
    matcher = matcher or DEFAULT_MATCHER

    # 1) Base premium
    base_rate = float(cfg.base_rates[inp.territorial_scope])
    base_premium = round_half_up(inp.sum_insured * base_rate / 1000.0)

    # 2) Clauses, in catalog order
    clause_lines: List[ClausePremiumLine] = []
    for definition in catalog:
        if definition.type not in inp.selected_clauses:
            continue
        override = inp.sublimit_overrides.get(definition.type)
        pct = override if override is not None else definition.default_sublimit_percentage
        clause_lines.append(
            ClausePremiumLine(
                clause_type=definition.type,
                rate=definition.base_premium_rate,
                sublimit_percentage=pct,
                sublimit=round_half_up(inp.sum_insured * pct / 100.0),
                premium=round_half_up(catalog.clause_premium(definition.type, base_premium, override)),
            )
        )
    clauses_premium = round_half_up(sum(c.premium for c in clause_lines))

    # 3) Risk loadings on base + clauses
    loadings = compute_risk_loadings(inp, base_premium + clauses_premium, cfg)
    loading_total = round_half_up(sum(ld.amount for ld in loadings))

    # 4) Bundle discount, clause premiums only
    variant = matcher.match(inp.selected_clauses)
    discount = float(matcher.bundle_savings(clauses_premium, variant))

    # 5) Installment surcharge, then floor
    # Discount lines never take the premium below zero
    after_discount = float(np.maximum(base_premium + clauses_premium + loading_total - discount, 0.0))
    installment_rate = float(cfg.installment_surcharges[inp.payment_installments])
    installment = round_half_up(after_discount * installment_rate)
    subtotal = round_half_up(after_discount + installment)

    minimum = minimum_premium_for(inp, cfg)
    floor_applied = subtotal <= minimum
    total = float(np.maximum(subtotal, minimum))

    return PremiumBreakdown(
        currency=cfg.currency,
        base_rate_per_mille=base_rate,
        base_premium=base_premium,
        clause_premiums=tuple(clause_lines),
        clauses_premium=clauses_premium,
        risk_loadings=tuple(loadings),
        risk_loading_total=loading_total,
        variant=variant,
        bundle_discount_rate=matcher.discount_for(variant),
        bundle_discount=discount,
        installment_surcharge_rate=installment_rate,
        installment_surcharge=installment,
        subtotal=subtotal,
        minimum_premium=minimum,
        floor_applied=floor_applied,
        minimum_premium_adjustment=round_half_up(total - subtotal) if floor_applied else 0.0,
        total=total,
    )


def calculate_premium(
    inp: CalculationInput,
    *,
    cfg: Optional[PricingConfig] = None,
    catalog: Optional[ClauseCatalog] = None,
    matcher: Optional[VariantMatcher] = None,
    rules=None,
) -> CalculationResult:
    """
    Full quote: validate -> breakdown -> underwriting decision.

    rules is any object with decide(input, breakdown) -> RiskDecision; the
    default is the OCPD underwriting rules bound to the same config and catalog.
    """
    cfg = cfg or DEFAULT_PRICING_CONFIG
    catalog = catalog or DEFAULT_CATALOG

    normalized = validate_input(inp, cfg)
    breakdown = build_breakdown(normalized, cfg=cfg, catalog=catalog, matcher=matcher)

    if rules is None:
        rules = OcpdUnderwritingRules(cfg=cfg, catalog=catalog)
    decision = rules.decide(normalized, breakdown)

    return CalculationResult(
        breakdown=breakdown,
        risk_level=decision.risk_level,
        referral_reasons=tuple(decision.referral_reasons),
        minimum_premium=breakdown.minimum_premium if breakdown.floor_applied else None,
    )
