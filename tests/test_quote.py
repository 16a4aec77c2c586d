"""Tests for the premium calculation (quick quote and full breakdown)."""

import math

import pytest

from src.pricing.config import PricingConfig
from src.pricing.errors import InvalidInput
from src.pricing.quote import build_breakdown, calculate_premium, quick_quote, validate_input
from src.pricing.schemas import (
    ApkData,
    CargoType,
    ClauseType,
    CoverageVariant,
    DeductibleLevel,
    RiskDecision,
    RiskLevel,
    TerritorialScope,
)


# ---------------------------
# Quick quote
# ---------------------------
def test_quick_quote_poland():
    q = quick_quote(1_000_000, "POLAND")
    assert q.estimate == 800
    assert (q.range_min, q.range_max) == (600, 1200)
    assert q.currency == "PLN"


def test_quick_quote_world_is_higher_than_poland():
    world = quick_quote(1_000_000, TerritorialScope.WORLD)
    poland = quick_quote(1_000_000, TerritorialScope.POLAND)
    assert world.estimate == 1800
    assert world.estimate > poland.estimate
    assert world.to_dict()["range"] == {"min": 1350, "max": 2700}


@pytest.mark.parametrize("bad", [0, -5, "abc", None, math.nan, True])
def test_quick_quote_rejects_bad_sum_insured(bad):
    with pytest.raises(InvalidInput) as exc:
        quick_quote(bad, "POLAND")
    assert exc.value.field == "sum_insured"


def test_quick_quote_rejects_unknown_scope():
    with pytest.raises(InvalidInput) as exc:
        quick_quote(1_000_000, "MARS")
    assert exc.value.field == "territorial_scope"


# ---------------------------
# Full calculation
# ---------------------------
def test_small_policy_is_raised_to_minimum_premium(make_input):
    # base 800 + GN 120 = 920, floor 1500 + 200 -> 1700
    inp = make_input(selected_clauses=[ClauseType.GROSS_NEGLIGENCE])
    result = calculate_premium(inp)
    b = result.breakdown

    assert b.base_premium == pytest.approx(800.0)
    assert b.clauses_premium == pytest.approx(120.0)
    assert b.variant is CoverageVariant.BASIC
    assert b.bundle_discount == 0.0
    assert b.subtotal == pytest.approx(920.0)
    assert b.floor_applied is True
    assert b.minimum_premium_adjustment == pytest.approx(780.0)
    assert result.total == pytest.approx(1700.0)
    assert result.minimum_premium == pytest.approx(1700.0)


def test_premium_bundle_gets_discount_on_clauses_only(make_input, premium_clauses):
    # base 9000, clauses 10800, 10% of clauses off -> 18720
    inp = make_input(
        sum_insured=5_000_000,
        territorial_scope=TerritorialScope.WORLD,
        selected_clauses=premium_clauses,
    )
    b = calculate_premium(inp).breakdown

    assert b.base_premium == pytest.approx(9000.0)
    assert b.clauses_premium == pytest.approx(10_800.0)
    assert b.variant is CoverageVariant.PREMIUM
    assert b.bundle_discount == pytest.approx(1080.0)
    assert b.floor_applied is False
    assert b.total == pytest.approx(18_720.0)
    assert b.total >= b.minimum_premium


def test_installment_surcharge_applies_after_discount(make_input, premium_clauses):
    inp = make_input(
        sum_insured=5_000_000,
        territorial_scope=TerritorialScope.WORLD,
        selected_clauses=premium_clauses,
        payment_installments=4,
    )
    b = calculate_premium(inp).breakdown
    assert b.installment_surcharge == pytest.approx(936.0)
    assert b.total == pytest.approx(19_656.0)


def test_risk_loadings_apply_to_base_plus_clauses(make_input):
    inp = make_input(
        sum_insured=3_000_000,
        territorial_scope=TerritorialScope.EUROPE,
        selected_clauses=[],
        years_in_business=0,
        fleet_size=1,
        apk_data=ApkData(claims_last_3_years=3, dangerous_goods=True),
    )
    b = calculate_premium(inp).breakdown

    codes = [ld.code for ld in b.risk_loadings]
    assert codes == ["experience", "small_fleet", "claims_history", "dangerous_goods"]
    amounts = {ld.code: ld.amount for ld in b.risk_loadings}
    assert amounts["experience"] == pytest.approx(540.0)
    assert amounts["small_fleet"] == pytest.approx(180.0)
    assert amounts["claims_history"] == pytest.approx(540.0)
    assert amounts["dangerous_goods"] == pytest.approx(720.0)
    assert b.risk_loading_total == pytest.approx(1980.0)
    assert b.total == pytest.approx(5580.0)


def test_sublimit_override_scales_clause_premium(make_input):
    inp = make_input(
        selected_clauses=[ClauseType.PARKING],
        sublimit_overrides={"PARKING": 25},
    )
    line = calculate_premium(inp).breakdown.clause_premiums[0]
    assert line.sublimit_percentage == 25.0
    assert line.sublimit == pytest.approx(250_000.0)
    assert line.premium == pytest.approx(80.0)


def test_cargo_type_loading(make_input):
    inp = make_input(sum_insured=3_000_000, selected_clauses=[], cargo_type=CargoType.TEXTILES)
    b = calculate_premium(inp).breakdown
    # base 2400, textiles +10%
    assert [(ld.code, ld.amount) for ld in b.risk_loadings] == [("cargo_type", pytest.approx(240.0))]


def test_selection_order_does_not_change_breakdown(make_input):
    a = make_input(selected_clauses=[ClauseType.ADR, ClauseType.DOCUMENTS, ClauseType.PARKING])
    b = make_input(selected_clauses=["PARKING", "ADR", "DOCUMENTS", "ADR"])
    assert calculate_premium(a) == calculate_premium(b)
    lines = calculate_premium(a).breakdown.clause_premiums
    assert [c.clause_type for c in lines] == [ClauseType.PARKING, ClauseType.DOCUMENTS, ClauseType.ADR]


def test_same_input_gives_identical_result(make_input, premium_clauses):
    inp = make_input(sum_insured=2_500_000, selected_clauses=premium_clauses, payment_installments=2)
    first = calculate_premium(inp)
    second = calculate_premium(inp)
    assert first == second
    assert first.to_dict() == second.to_dict()


@pytest.mark.parametrize(
    "sum_insured,scope,clauses",
    [
        (10_000, "POLAND", []),
        (100_000, "EUROPE", ["DOCUMENTS"]),
        (1_500_000, "WORLD", ["ADR", "REFRIGERATED"]),
        (7_000_000, "EUROPE", ["GROSS_NEGLIGENCE", "PARKING", "SUBCONTRACTORS"]),
    ],
)
def test_total_never_below_floor_and_equal_only_when_floored(make_input, sum_insured, scope, clauses):
    b = calculate_premium(
        make_input(sum_insured=sum_insured, territorial_scope=scope, selected_clauses=clauses)
    ).breakdown
    assert b.total >= b.minimum_premium
    assert (b.total == b.minimum_premium) == b.floor_applied


def test_line_items_sum_to_total(make_input, premium_clauses):
    inp = make_input(
        sum_insured=4_000_000,
        territorial_scope="EUROPE",
        selected_clauses=premium_clauses,
        years_in_business=1,
        payment_installments=2,
    )
    b = calculate_premium(inp).breakdown
    assert sum(amount for _, amount in b.line_items()) == pytest.approx(b.total, abs=0.05)


def test_custom_config_changes_prices(make_input):
    cfg = PricingConfig(minimum_premium_per_clause=0.0)
    b = build_breakdown(validate_input(make_input(selected_clauses=[]), cfg), cfg=cfg)
    assert b.minimum_premium == pytest.approx(1500.0)


def test_custom_rules_are_used(make_input):
    class ApproveAll:
        def decide(self, inp, breakdown):
            return RiskDecision(risk_level=RiskLevel.STANDARD, referral_reasons=())

    inp = make_input(selected_clauses=[ClauseType.ADR])
    custom = calculate_premium(inp, rules=ApproveAll())
    default = calculate_premium(inp)
    assert custom.is_auto_approved is True
    assert default.is_auto_approved is False
    assert custom.breakdown == default.breakdown


# ---------------------------
# Validation
# ---------------------------
@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"sum_insured": 0}, "sum_insured"),
        ({"sum_insured": -100}, "sum_insured"),
        ({"sum_insured": "1000000"}, "sum_insured"),
        ({"territorial_scope": "MOON"}, "territorial_scope"),
        ({"selected_clauses": ["FOO"]}, "selected_clauses"),
        ({"selected_clauses": "ADR"}, "selected_clauses"),
        ({"years_in_business": -1}, "years_in_business"),
        ({"years_in_business": 2.5}, "years_in_business"),
        ({"fleet_size": 0}, "fleet_size"),
        ({"payment_installments": 3}, "payment_installments"),
        ({"subcontractor_percent": 120}, "subcontractor_percent"),
        ({"country_surcharge_percent": -1}, "country_surcharge_percent"),
        ({"cargo_type": "URANIUM"}, "cargo_type"),
        ({"apk_data": ApkData(claims_last_3_years=-2)}, "apk_data.claims_last_3_years"),
        ({"sublimit_overrides": {"ADR": 50}}, "sublimit_overrides.ADR"),
        ({"sublimit_overrides": {"DOCUMENTS": 0}}, "sublimit_overrides.DOCUMENTS"),
    ],
)
def test_invalid_input_is_rejected(make_input, overrides, field):
    with pytest.raises(InvalidInput) as exc:
        calculate_premium(make_input(**overrides))
    assert exc.value.field == field
    assert exc.value.to_dict()["field"] == field


def test_validate_input_normalizes(make_input):
    inp = validate_input(make_input(territorial_scope="WORLD", selected_clauses=["ADR", "ADR"]))
    assert inp.territorial_scope is TerritorialScope.WORLD
    assert inp.selected_clauses == frozenset({ClauseType.ADR})


# ---------------------------
# Deductible and bonus-malus
# ---------------------------
@pytest.mark.parametrize(
    "level,amount,description",
    [
        (DeductibleLevel.ZERO, 240.0, "No deductible"),
        (DeductibleLevel.ELEVATED, -120.0, "Deductible 2,500 PLN"),
        (DeductibleLevel.HIGH, -240.0, "Deductible 5,000 PLN"),
    ],
)
def test_deductible_line(make_input, level, amount, description):
    # base 2400 on 3M POLAND
    b = calculate_premium(make_input(sum_insured=3_000_000, selected_clauses=[], deductible_level=level)).breakdown
    (line,) = b.risk_loadings
    assert line.code == "deductible"
    assert line.description == description
    assert line.amount == pytest.approx(amount)
    assert b.total == pytest.approx(2400.0 + amount)


def test_standard_deductible_adds_no_line(make_input):
    b = calculate_premium(make_input(sum_insured=3_000_000, selected_clauses=[], deductible_level="STANDARD")).breakdown
    assert b.risk_loadings == ()


def test_claims_ratio_drives_bonus_malus(make_input):
    # 3 claims on 10/month -> ratio 0.0083 (+15%); on 5000/month -> ratio < 0.001 (-10%)
    def quote(monthly):
        inp = make_input(
            sum_insured=5_000_000,
            selected_clauses=[],
            apk_data=ApkData(claims_last_3_years=3, monthly_shipments=monthly),
        )
        return calculate_premium(inp).breakdown

    busy, quiet = quote(5000), quote(10)
    assert [(ld.code, ld.rate) for ld in quiet.risk_loadings] == [("bonus_malus", 0.15)]
    assert [(ld.code, ld.rate) for ld in busy.risk_loadings] == [("bonus_malus", -0.10)]
    assert quiet.total == pytest.approx(4600.0)
    assert busy.total == pytest.approx(3600.0)


def test_no_claims_bonus(make_input):
    inp = make_input(sum_insured=5_000_000, selected_clauses=[], apk_data=ApkData(monthly_shipments=50))
    b = calculate_premium(inp).breakdown
    assert b.risk_loadings[0].amount == pytest.approx(-800.0)
    assert b.total == pytest.approx(3200.0)


def test_discounts_never_take_total_below_floor(make_input):
    inp = make_input(
        sum_insured=50_000,
        selected_clauses=[],
        deductible_level=DeductibleLevel.HIGH,
        apk_data=ApkData(monthly_shipments=50),
    )
    b = calculate_premium(inp).breakdown
    assert b.subtotal > 0
    assert b.total == b.minimum_premium


# ---------------------------
# Strict questionnaire and override types
# ---------------------------
@pytest.mark.parametrize(
    "apk,field",
    [
        (ApkData(dangerous_goods="no"), "apk_data.dangerous_goods"),
        (ApkData(international_transport=1), "apk_data.international_transport"),
        (ApkData(irregular_operations=None), "apk_data.irregular_operations"),
        (ApkData(average_cargo_value=math.nan), "apk_data.average_cargo_value"),
        (ApkData(max_single_shipment_value=math.inf), "apk_data.max_single_shipment_value"),
        (ApkData(biggest_claim_amount=-1.0), "apk_data.biggest_claim_amount"),
        (ApkData(monthly_shipments=-3), "apk_data.monthly_shipments"),
    ],
)
def test_questionnaire_values_are_type_checked(make_input, apk, field):
    with pytest.raises(InvalidInput) as exc:
        calculate_premium(make_input(apk_data=apk))
    assert exc.value.field == field


@pytest.mark.parametrize("overrides", ["PARKING=25", ["PARKING", 25], 25])
def test_sublimit_overrides_must_be_a_mapping(make_input, overrides):
    with pytest.raises(InvalidInput) as exc:
        calculate_premium(make_input(selected_clauses=[ClauseType.PARKING], sublimit_overrides=overrides))
    assert exc.value.field == "sublimit_overrides"


def test_unknown_deductible_level(make_input):
    with pytest.raises(InvalidInput) as exc:
        calculate_premium(make_input(deductible_level="MAXIMUM"))
    assert exc.value.field == "deductible_level"
