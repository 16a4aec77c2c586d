"""Pytest fixtures for pricing and underwriting tests."""

import pytest

from src.pricing.schemas import CalculationInput, ClauseType, TerritorialScope


@pytest.fixture
def make_input():
    """Factory for a clean, auto-approvable baseline input with overrides."""

    def _make(**overrides):
        values = dict(
            sum_insured=1_000_000,
            territorial_scope=TerritorialScope.POLAND,
            selected_clauses=frozenset({ClauseType.DOCUMENTS}),
            years_in_business=5,
            fleet_size=10,
        )
        values.update(overrides)
        return CalculationInput(**values)

    return _make


@pytest.fixture
def premium_clauses():
    return frozenset(
        {
            ClauseType.GROSS_NEGLIGENCE,
            ClauseType.PARKING,
            ClauseType.SUBCONTRACTORS,
            ClauseType.ADR,
            ClauseType.REFRIGERATED,
            ClauseType.UNAUTHORIZED_RELEASE,
        }
    )
