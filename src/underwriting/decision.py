"""
Underwriting decision: overall risk level and referral reasons.

A single stateless evaluation per quote. The risk level is the highest of:
- each selected clause's risk category
- the questionnaire (APK) profile level
- ELEVATED for businesses younger than min_years_in_business
- ELEVATED for fleets outside the accepted band

Referral checks run in a fixed order (risk category, business history,
fleet size, declared incidents/operations). Each check that fires adds one
reason; a quote is auto-approved only when no reason was added.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from src.pricing.clauses import DEFAULT_CATALOG, ClauseCatalog
from src.pricing.config import DEFAULT_PRICING_CONFIG, PricingConfig
from src.pricing.schemas import ApkData, CalculationInput, PremiumBreakdown, RiskDecision, RiskLevel


class UnderwritingRules(Protocol):
    def decide(self, inp: CalculationInput, breakdown: PremiumBreakdown) -> RiskDecision: ...


def bonus_malus_rate(apk: ApkData, cfg: PricingConfig = DEFAULT_PRICING_CONFIG) -> Optional[float]:
    """
    Loading from the claims ratio over the last 3 years of shipments.

    None when no shipment volume is declared; the ratio is then unknown.
    """
    shipments = apk.monthly_shipments * cfg.bonus_malus_months
    if shipments <= 0:
        return None
    ratio = apk.claims_last_3_years / shipments
    if ratio == 0:
        return cfg.bonus_malus_no_claims
    for below, loading in cfg.bonus_malus_ratios:
        if ratio < below:
            return loading
    return cfg.bonus_malus_max


def profile_score(apk: ApkData, cfg: PricingConfig = DEFAULT_PRICING_CONFIG) -> int:
    score = 0
    if apk.high_value_goods:
        score += 2
    if apk.max_single_shipment_value > cfg.large_shipment_threshold:
        score += 2
    if apk.max_single_shipment_value > 2 * cfg.large_shipment_threshold:
        score += 1
    if apk.dangerous_goods:
        score += 3
    if apk.temperature_controlled:
        score += 2
    if apk.claims_last_3_years > cfg.max_claims_last_3_years:
        score += 2
    if apk.claims_last_3_years > 2 * cfg.max_claims_last_3_years:
        score += 2
    if apk.international_transport:
        score += 1
    return score


def profile_risk_level(apk: ApkData, cfg: PricingConfig = DEFAULT_PRICING_CONFIG) -> RiskLevel:
    score = profile_score(apk, cfg)
    if score <= cfg.profile_standard_max_score:
        return RiskLevel.STANDARD
    if score <= cfg.profile_elevated_max_score:
        return RiskLevel.ELEVATED
    return RiskLevel.HIGH


class OcpdUnderwritingRules:
    def __init__(self, cfg: Optional[PricingConfig] = None, catalog: Optional[ClauseCatalog] = None) -> None:
        self.cfg = cfg or DEFAULT_PRICING_CONFIG
        self.catalog = catalog or DEFAULT_CATALOG

    def _fleet_out_of_band(self, fleet_size: int) -> bool:
        return not self.cfg.fleet_size_min <= fleet_size <= self.cfg.fleet_size_max

    def risk_level(self, inp: CalculationInput) -> RiskLevel:
        levels = [self.catalog.lookup(c).risk_category for c in inp.selected_clauses]
        levels.append(profile_risk_level(inp.apk_data, self.cfg))
        if inp.years_in_business < self.cfg.min_years_in_business:
            levels.append(RiskLevel.ELEVATED)
        if self._fleet_out_of_band(inp.fleet_size):
            levels.append(RiskLevel.ELEVATED)
        return RiskLevel.highest(levels)

    def referral_reasons(self, inp: CalculationInput) -> List[str]:
        cfg = self.cfg
        apk = inp.apk_data
        reasons: List[str] = []

        # 1) Risk category
        for definition in self.catalog:
            if definition.type in inp.selected_clauses and definition.risk_category is not RiskLevel.STANDARD:
                reasons.append(
                    f"Clause {definition.type.value} ({definition.name}) carries "
                    f"{definition.risk_category.value} risk category"
                )
        profile = profile_risk_level(apk, cfg)
        if profile is not RiskLevel.STANDARD:
            reasons.append(f"Declared operating profile assessed as {profile.value} risk")
        if inp.sum_insured > cfg.sum_insured_referral_threshold:
            reasons.append(
                f"Sum insured {inp.sum_insured:,.0f} exceeds {cfg.sum_insured_referral_threshold:,.0f}"
            )

        # 2) Business history
        if inp.years_in_business < cfg.min_years_in_business:
            reasons.append(
                f"Only {inp.years_in_business} years in business "
                f"(minimum {cfg.min_years_in_business} for automatic approval)"
            )

        # 3) Fleet size
        if self._fleet_out_of_band(inp.fleet_size):
            reasons.append(
                f"Fleet size {inp.fleet_size} outside accepted range "
                f"{cfg.fleet_size_min}-{cfg.fleet_size_max}"
            )

        # 4) Declared incidents and operations
        if apk.claims_last_3_years > cfg.max_claims_last_3_years:
            reasons.append(f"High claims frequency: {apk.claims_last_3_years} claims in last 3 years")
        bonus_malus = bonus_malus_rate(apk, cfg)
        if bonus_malus is not None and bonus_malus > cfg.max_bonus_malus_loading:
            reasons.append(
                f"Significant claims surplus: {apk.claims_last_3_years} claims on "
                f"{apk.monthly_shipments} monthly shipments (bonus-malus +{bonus_malus:.0%})"
            )
        if apk.dangerous_goods:
            reasons.append("Transport of dangerous goods (ADR) declared")
        if apk.irregular_operations:
            reasons.append("Irregular operations declared in questionnaire")
        if inp.cargo_type in cfg.referral_cargo_types:
            reasons.append(f"High-value cargo type {inp.cargo_type.value} requires underwriter acceptance")
        if inp.subcontractor_percent > cfg.max_subcontractor_percent:
            reasons.append(
                f"Subcontracted share {inp.subcontractor_percent:g}% exceeds {cfg.max_subcontractor_percent:g}%"
            )
        if inp.country_surcharge_percent > cfg.max_country_surcharge_percent:
            reasons.append("High-risk destination countries require underwriter acceptance")

        return reasons

    def decide(self, inp: CalculationInput, breakdown: PremiumBreakdown) -> RiskDecision:
        level = self.risk_level(inp)
        reasons = self.referral_reasons(inp)
        if level is not RiskLevel.STANDARD and not reasons:
            reasons.append(f"Overall risk level {level.value} requires underwriter review")
        return RiskDecision(risk_level=level, referral_reasons=tuple(reasons))
