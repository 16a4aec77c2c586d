"""
Value types shared by the pricing core and the underwriting rules.

Everything here is a frozen dataclass or a str-valued Enum, so results can be
compared, hashed where needed and dumped to JSON with to_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple


class ClauseType(str, Enum):
    GROSS_NEGLIGENCE = "GROSS_NEGLIGENCE"
    PARKING = "PARKING"
    UNAUTHORIZED_RELEASE = "UNAUTHORIZED_RELEASE"
    DOCUMENTS = "DOCUMENTS"
    SUBCONTRACTORS = "SUBCONTRACTORS"
    REFRIGERATED = "REFRIGERATED"
    ADR = "ADR"


class TerritorialScope(str, Enum):
    POLAND = "POLAND"
    EUROPE = "EUROPE"
    WORLD = "WORLD"


class RiskLevel(str, Enum):
    """Clause risk category and overall quote risk level: STANDARD < ELEVATED < HIGH."""

    STANDARD = "STANDARD"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    @classmethod
    def highest(cls, levels) -> "RiskLevel":
        return max(levels, key=lambda lvl: lvl.rank, default=cls.STANDARD)


_RISK_RANK = {RiskLevel.STANDARD: 0, RiskLevel.ELEVATED: 1, RiskLevel.HIGH: 2}


class CoverageVariant(str, Enum):
    BASIC = "BASIC"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    CUSTOM = "CUSTOM"


class CargoType(str, Enum):
    STANDARD = "STANDARD"
    ELECTRONICS = "ELECTRONICS"
    ADR_DANGEROUS = "ADR_DANGEROUS"
    REFRIGERATED = "REFRIGERATED"
    FOOD_DRY = "FOOD_DRY"
    BULK_MATERIALS = "BULK_MATERIALS"
    ALCOHOL_TOBACCO = "ALCOHOL_TOBACCO"
    PHARMACEUTICALS = "PHARMACEUTICALS"
    AUTOMOTIVE_PARTS = "AUTOMOTIVE_PARTS"
    TEXTILES = "TEXTILES"


class DeductibleLevel(str, Enum):
    ZERO = "ZERO"
    STANDARD = "STANDARD"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"


@dataclass(frozen=True)
class ApkData:
    """
    Client needs analysis (APK) questionnaire answers.

    Every field has a neutral default so a partially completed questionnaire
    prices as "nothing declared".
    """

    main_cargo_types: Tuple[str, ...] = ()
    average_cargo_value: float = 0.0
    max_single_shipment_value: float = 0.0
    monthly_shipments: int = 0

    domestic_transport: bool = True
    international_transport: bool = False
    main_destinations: Tuple[str, ...] = ()

    high_value_goods: bool = False
    dangerous_goods: bool = False
    temperature_controlled: bool = False

    claims_last_3_years: int = 0
    biggest_claim_amount: Optional[float] = None

    # Declared non-standard operations (e.g. unregistered depots, night
    # transfers without escort).
    irregular_operations: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "main_cargo_types": list(self.main_cargo_types),
            "average_cargo_value": self.average_cargo_value,
            "max_single_shipment_value": self.max_single_shipment_value,
            "monthly_shipments": self.monthly_shipments,
            "domestic_transport": self.domestic_transport,
            "international_transport": self.international_transport,
            "main_destinations": list(self.main_destinations),
            "high_value_goods": self.high_value_goods,
            "dangerous_goods": self.dangerous_goods,
            "temperature_controlled": self.temperature_controlled,
            "claims_last_3_years": self.claims_last_3_years,
            "biggest_claim_amount": self.biggest_claim_amount,
            "irregular_operations": self.irregular_operations,
        }


@dataclass(frozen=True)
class CalculationInput:
    """
    One pricing request.

    selected_clauses accepts any iterable of ClauseType (or their string
    values); the calculator normalizes it to a frozenset before pricing.
    """

    sum_insured: float
    territorial_scope: TerritorialScope
    selected_clauses: FrozenSet[ClauseType] = frozenset()
    apk_data: ApkData = field(default_factory=ApkData)
    years_in_business: int = 0
    fleet_size: int = 1

    cargo_type: CargoType = CargoType.STANDARD
    subcontractor_percent: float = 0.0
    payment_installments: int = 1
    deductible_level: DeductibleLevel = DeductibleLevel.STANDARD
    country_surcharge_percent: float = 0.0
    sublimit_overrides: Mapping[ClauseType, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ClausePremiumLine:
    clause_type: ClauseType
    rate: float
    sublimit_percentage: float
    sublimit: float
    premium: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause_type": self.clause_type.value,
            "rate": self.rate,
            "sublimit_percentage": self.sublimit_percentage,
            "sublimit": self.sublimit,
            "premium": self.premium,
        }


@dataclass(frozen=True)
class LoadingLine:
    code: str
    description: str
    rate: float
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "description": self.description, "rate": self.rate, "amount": self.amount}


@dataclass(frozen=True)
class PremiumBreakdown:
    currency: str
    base_rate_per_mille: float
    base_premium: float
    clause_premiums: Tuple[ClausePremiumLine, ...]
    clauses_premium: float
    risk_loadings: Tuple[LoadingLine, ...]
    risk_loading_total: float
    variant: CoverageVariant
    bundle_discount_rate: float
    bundle_discount: float
    installment_surcharge_rate: float
    installment_surcharge: float
    subtotal: float
    minimum_premium: float
    floor_applied: bool
    minimum_premium_adjustment: float
    total: float

    def line_items(self) -> list[Tuple[str, float]]:
        """Every amount contributing to total, in the order it was applied."""
        items: list[Tuple[str, float]] = [("base_premium", self.base_premium)]
        items += [(f"clause:{c.clause_type.value}", c.premium) for c in self.clause_premiums]
        items += [(f"loading:{ld.code}", ld.amount) for ld in self.risk_loadings]
        if self.bundle_discount:
            items.append(("bundle_discount", -self.bundle_discount))
        if self.installment_surcharge:
            items.append(("installment_surcharge", self.installment_surcharge))
        if self.floor_applied:
            items.append(("minimum_premium_adjustment", self.minimum_premium_adjustment))
        return items

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "base_rate_per_mille": self.base_rate_per_mille,
            "base_premium": self.base_premium,
            "clause_premiums": [c.to_dict() for c in self.clause_premiums],
            "clauses_premium": self.clauses_premium,
            "risk_loadings": [ld.to_dict() for ld in self.risk_loadings],
            "risk_loading_total": self.risk_loading_total,
            "variant": self.variant.value,
            "bundle_discount_rate": self.bundle_discount_rate,
            "bundle_discount": self.bundle_discount,
            "installment_surcharge_rate": self.installment_surcharge_rate,
            "installment_surcharge": self.installment_surcharge,
            "subtotal": self.subtotal,
            "minimum_premium": self.minimum_premium,
            "floor_applied": self.floor_applied,
            "minimum_premium_adjustment": self.minimum_premium_adjustment,
            "total": self.total,
        }


@dataclass(frozen=True)
class RiskDecision:
    risk_level: RiskLevel
    referral_reasons: Tuple[str, ...]

    @property
    def is_auto_approved(self) -> bool:
        return not self.referral_reasons


@dataclass(frozen=True)
class CalculationResult:
    """
    Priced quote plus underwriting decision.

    is_auto_approved is derived from referral_reasons and cannot be set,
    so an approved quote with open referral reasons is unrepresentable.
    """

    breakdown: PremiumBreakdown
    risk_level: RiskLevel
    referral_reasons: Tuple[str, ...]
    # Floor the total was clamped to; None when the floor did not apply.
    minimum_premium: Optional[float] = None

    @property
    def is_auto_approved(self) -> bool:
        return not self.referral_reasons

    @property
    def total(self) -> float:
        return self.breakdown.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breakdown": self.breakdown.to_dict(),
            "risk_level": self.risk_level.value,
            "is_auto_approved": self.is_auto_approved,
            "referral_reasons": list(self.referral_reasons),
            "minimum_premium": self.minimum_premium,
        }


@dataclass(frozen=True)
class QuickQuote:
    currency: str
    sum_insured: float
    territorial_scope: TerritorialScope
    territorial_multiplier: float
    estimate: int
    range_min: int
    range_max: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "sum_insured": self.sum_insured,
            "territorial_scope": self.territorial_scope.value,
            "territorial_multiplier": self.territorial_multiplier,
            "estimate": self.estimate,
            "range": {"min": self.range_min, "max": self.range_max},
        }
