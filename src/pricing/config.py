"""
Pricing configuration for OCPD quotes.

All numbers the engine prices with live here, as code-level constant data:
- base_rates: per-mille rate on sum insured, by territorial scope
- risk loadings: percentage add-ons to the base + clause subtotal
- minimum premium floor (per scope, plus a per-clause add-on)
- referral thresholds used by the underwriting rules

A PricingConfig is immutable; build a different one and pass it in if a
product line needs other numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from src.pricing.schemas import CargoType, DeductibleLevel, TerritorialScope


def _frozen(d: dict) -> Mapping:
    return MappingProxyType(dict(d))


@dataclass(frozen=True)
class PricingConfig:
    currency: str = "PLN"

    # Annual base rate per 1000 of sum insured
    base_rates: Mapping[TerritorialScope, float] = field(
        default_factory=lambda: _frozen(
            {
                TerritorialScope.POLAND: 0.8,
                TerritorialScope.EUROPE: 1.2,
                TerritorialScope.WORLD: 1.8,
            }
        )
    )

    # Quick quote: estimate = sum_insured * quick_rate_per_mille / 1000 * multiplier
    quick_rate_per_mille: float = 0.8
    territorial_multipliers: Mapping[TerritorialScope, float] = field(
        default_factory=lambda: _frozen(
            {
                TerritorialScope.POLAND: 1.0,
                TerritorialScope.EUROPE: 1.5,
                TerritorialScope.WORLD: 2.25,
            }
        )
    )
    quick_range_low: float = 0.75
    quick_range_high: float = 1.5

    # Minimum premium = scope floor + per-clause add-on
    minimum_premiums: Mapping[TerritorialScope, float] = field(
        default_factory=lambda: _frozen(
            {
                TerritorialScope.POLAND: 1500.0,
                TerritorialScope.EUROPE: 2500.0,
                TerritorialScope.WORLD: 4000.0,
            }
        )
    )
    minimum_premium_per_clause: float = 200.0

    # ---------------------------
    # Risk loadings (fractions of the base + clause subtotal)
    # ---------------------------
    # Years in business -> loading; years beyond the last key carry none
    experience_loadings: Mapping[int, float] = field(
        default_factory=lambda: _frozen({0: 0.15, 1: 0.10, 2: 0.05})
    )

    small_fleet_max: int = 2
    small_fleet_loading: float = 0.05
    large_fleet_min: int = 50
    large_fleet_loading: float = 0.05

    # (max claims in the last 3 years, loading); counts above the last bound
    # take claims_loading_max
    claims_loadings: Tuple[Tuple[int, float], ...] = ((0, 0.0), (2, 0.05), (5, 0.15))
    claims_loading_max: float = 0.30

    # Bonus-malus on claims / (monthly_shipments * 36). Used instead of the
    # claim-count brackets once shipment volume is declared.
    bonus_malus_months: int = 36
    bonus_malus_no_claims: float = -0.20
    # (ratio strictly below, loading)
    bonus_malus_ratios: Tuple[Tuple[float, float], ...] = (
        (0.001, -0.10),
        (0.005, 0.0),
        (0.01, 0.15),
        (0.02, 0.30),
    )
    bonus_malus_max: float = 0.50

    dangerous_goods_loading: float = 0.20
    temperature_controlled_loading: float = 0.10
    high_value_goods_loading: float = 0.10
    large_shipment_threshold: float = 500_000.0
    large_shipment_loading: float = 0.10
    irregular_operations_loading: float = 0.15

    cargo_type_loadings: Mapping[CargoType, float] = field(
        default_factory=lambda: _frozen(
            {
                CargoType.STANDARD: 0.0,
                CargoType.ELECTRONICS: 1.0,
                CargoType.ADR_DANGEROUS: 0.30,
                CargoType.REFRIGERATED: 0.20,
                CargoType.FOOD_DRY: 0.0,
                CargoType.BULK_MATERIALS: 0.0,
                CargoType.ALCOHOL_TOBACCO: 0.80,
                CargoType.PHARMACEUTICALS: 0.50,
                CargoType.AUTOMOTIVE_PARTS: 0.30,
                CargoType.TEXTILES: 0.10,
            }
        )
    )

    # (max subcontracted share %, loading)
    subcontractor_loadings: Tuple[Tuple[float, float], ...] = (
        (0.0, 0.0),
        (25.0, 0.05),
        (50.0, 0.10),
        (75.0, 0.15),
        (100.0, 0.20),
    )

    # Deductible per claim (currency units) and the loading it earns;
    # higher deductibles are discounts
    deductible_amounts: Mapping[DeductibleLevel, float] = field(
        default_factory=lambda: _frozen(
            {
                DeductibleLevel.ZERO: 0.0,
                DeductibleLevel.STANDARD: 1000.0,
                DeductibleLevel.ELEVATED: 2500.0,
                DeductibleLevel.HIGH: 5000.0,
            }
        )
    )
    deductible_loadings: Mapping[DeductibleLevel, float] = field(
        default_factory=lambda: _frozen(
            {
                DeductibleLevel.ZERO: 0.10,
                DeductibleLevel.STANDARD: 0.0,
                DeductibleLevel.ELEVATED: -0.05,
                DeductibleLevel.HIGH: -0.10,
            }
        )
    )

    installment_surcharges: Mapping[int, float] = field(
        default_factory=lambda: _frozen({1: 0.0, 2: 0.03, 4: 0.05})
    )

    # ---------------------------
    # Underwriting thresholds
    # ---------------------------
    sum_insured_referral_threshold: float = 2_000_000.0
    min_years_in_business: int = 2
    fleet_size_min: int = 1
    fleet_size_max: int = 150
    max_claims_last_3_years: int = 5
    # Bonus-malus loading above this refers the quote
    max_bonus_malus_loading: float = 0.30
    max_subcontractor_percent: float = 50.0
    max_country_surcharge_percent: float = 30.0
    referral_cargo_types: Tuple[CargoType, ...] = (CargoType.ELECTRONICS, CargoType.ALCOHOL_TOBACCO)

    # Questionnaire risk score -> level
    profile_standard_max_score: int = 2
    profile_elevated_max_score: int = 5


DEFAULT_PRICING_CONFIG = PricingConfig()
