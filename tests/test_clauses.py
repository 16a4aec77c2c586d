"""Tests for the clause catalog."""

import pytest

from src.pricing.clauses import CLAUSE_DEFINITIONS, DEFAULT_CATALOG, ClauseCatalog
from src.pricing.errors import InvalidInput, UnknownClauseType
from src.pricing.schemas import ClauseType, RiskLevel


def test_catalog_has_one_definition_per_clause_type():
    assert len(DEFAULT_CATALOG) == len(ClauseType)
    assert [d.type for d in DEFAULT_CATALOG] == list(ClauseType)
    assert all(d.base_premium_rate >= 0 for d in DEFAULT_CATALOG)


def test_lookup_accepts_enum_and_string_value():
    assert DEFAULT_CATALOG.lookup(ClauseType.PARKING).risk_category is RiskLevel.HIGH
    assert DEFAULT_CATALOG.lookup("DOCUMENTS").risk_category is RiskLevel.STANDARD


def test_lookup_unknown_clause_raises():
    with pytest.raises(UnknownClauseType) as exc:
        DEFAULT_CATALOG.lookup("TELEPORTATION")
    assert isinstance(exc.value, LookupError)


def test_clause_premium_at_default_sublimit():
    # 15% of base premium
    assert DEFAULT_CATALOG.clause_premium(ClauseType.GROSS_NEGLIGENCE, 800.0) == pytest.approx(120.0)


def test_clause_premium_scales_linearly_with_sublimit():
    # PARKING default sublimit 50%, rate 20%; halving the sublimit halves the premium
    full = DEFAULT_CATALOG.clause_premium(ClauseType.PARKING, 800.0)
    half = DEFAULT_CATALOG.clause_premium(ClauseType.PARKING, 800.0, custom_sublimit_percentage=25)
    double = DEFAULT_CATALOG.clause_premium(ClauseType.PARKING, 800.0, custom_sublimit_percentage=100)
    assert full == pytest.approx(160.0)
    assert half == pytest.approx(80.0)
    assert double == pytest.approx(320.0)


@pytest.mark.parametrize("pct", [0, -10, 150])
def test_clause_premium_rejects_out_of_range_sublimit(pct):
    with pytest.raises(InvalidInput):
        DEFAULT_CATALOG.clause_premium(ClauseType.PARKING, 800.0, custom_sublimit_percentage=pct)


def test_instantiate_resolves_sublimit_and_premium():
    clause = DEFAULT_CATALOG.instantiate(ClauseType.PARKING, sum_insured=1_000_000, base_premium=800.0)
    assert clause.type is ClauseType.PARKING
    assert clause.id.startswith("clause-PARKING-")
    assert clause.sublimit_percentage == 50.0
    assert clause.sublimit == pytest.approx(500_000.0)
    assert clause.premium == pytest.approx(160.0)
    assert clause.is_active is True


def test_instantiate_with_override_and_fresh_ids():
    a = DEFAULT_CATALOG.instantiate("ADR", 2_000_000, 1600.0, custom_sublimit_percentage=25)
    b = DEFAULT_CATALOG.instantiate("ADR", 2_000_000, 1600.0, custom_sublimit_percentage=25)
    assert a.sublimit == pytest.approx(500_000.0)
    # ADR: 30% rate, default sublimit 50% -> modifier 0.5
    assert a.premium == pytest.approx(240.0)
    assert a.id != b.id


def test_catalog_rejects_duplicate_definitions():
    with pytest.raises(ValueError, match="Duplicate"):
        ClauseCatalog(CLAUSE_DEFINITIONS + (CLAUSE_DEFINITIONS[0],))


def test_catalog_rejects_missing_definitions():
    with pytest.raises(ValueError, match="missing"):
        ClauseCatalog(CLAUSE_DEFINITIONS[:-1])


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_CATALOG._table[ClauseType.ADR] = CLAUSE_DEFINITIONS[0]
