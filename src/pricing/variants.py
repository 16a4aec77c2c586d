"""
Coverage variants: predefined clause bundles with a bundle discount.

BASIC, STANDARD and PREMIUM each carry a fixed clause set. A selection maps to
a variant only on exact set equality; supersets, subsets and the empty
selection all resolve to CUSTOM (no discount).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from src.pricing.clauses import coerce_clause_type
from src.pricing.schemas import ClauseType, CoverageVariant
from src.utils.money import round_to_unit


@dataclass(frozen=True)
class VariantDefinition:
    type: CoverageVariant
    name_pl: str
    name_en: str
    description_pl: str
    included_clauses: FrozenSet[ClauseType]
    # Fraction taken off the clause premiums when the bundle is bought as-is
    bundle_discount: float
    recommended: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "name_pl": self.name_pl,
            "name_en": self.name_en,
            "description_pl": self.description_pl,
            "included_clauses": [c.value for c in ClauseType if c in self.included_clauses],
            "bundle_discount": self.bundle_discount,
            "recommended": self.recommended,
        }


# Match priority order
COVERAGE_VARIANTS: Tuple[VariantDefinition, ...] = (
    VariantDefinition(
        type=CoverageVariant.BASIC,
        name_pl="Podstawowy",
        name_en="Basic",
        description_pl=(
            "Podstawowa ochrona dla przewoźników z niskim ryzykiem. "
            "Zawiera klauzulę rażącego niedbalstwa."
        ),
        included_clauses=frozenset({ClauseType.GROSS_NEGLIGENCE}),
        bundle_discount=0.0,
    ),
    VariantDefinition(
        type=CoverageVariant.STANDARD,
        name_pl="Standardowy",
        name_en="Standard",
        description_pl=(
            "Rozszerzona ochrona dla większości przewoźników. "
            "Klauzula rażącego niedbalstwa, postojowa i podwykonawców."
        ),
        included_clauses=frozenset(
            {ClauseType.GROSS_NEGLIGENCE, ClauseType.PARKING, ClauseType.SUBCONTRACTORS}
        ),
        bundle_discount=0.05,
        recommended=True,
    ),
    VariantDefinition(
        type=CoverageVariant.PREMIUM,
        name_pl="Premium",
        name_en="Premium",
        description_pl=(
            "Kompleksowa ochrona dla wymagających przewoźników. "
            "Wszystkie kluczowe klauzule włączone."
        ),
        included_clauses=frozenset(
            {
                ClauseType.GROSS_NEGLIGENCE,
                ClauseType.PARKING,
                ClauseType.SUBCONTRACTORS,
                ClauseType.ADR,
                ClauseType.REFRIGERATED,
                ClauseType.UNAUTHORIZED_RELEASE,
            }
        ),
        bundle_discount=0.10,
    ),
)


class VariantMatcher:
    def __init__(self, variants: Iterable[VariantDefinition] = COVERAGE_VARIANTS) -> None:
        self._variants: Tuple[VariantDefinition, ...] = tuple(variants)
        if any(v.type is CoverageVariant.CUSTOM for v in self._variants):
            raise ValueError("CUSTOM is not a predefined bundle")
        self._by_type = {v.type: v for v in self._variants}

    def variants(self) -> Tuple[VariantDefinition, ...]:
        return self._variants

    def get(self, variant: CoverageVariant) -> Optional[VariantDefinition]:
        return self._by_type.get(CoverageVariant(variant))

    def match(self, selected_clauses: Iterable[Any]) -> CoverageVariant:
        """First predefined variant whose clause set equals the selection, else CUSTOM."""
        selected = frozenset(coerce_clause_type(c) for c in selected_clauses)
        for v in self._variants:
            if v.included_clauses == selected:
                return v.type
        return CoverageVariant.CUSTOM

    def discount_for(self, variant: CoverageVariant) -> float:
        v = self.get(variant)
        return v.bundle_discount if v is not None else 0.0

    def bundle_savings(self, base_premium: float, variant: CoverageVariant) -> int:
        """Savings from the bundle discount, rounded half-up to a whole currency unit."""
        return round_to_unit(float(base_premium) * self.discount_for(variant))


DEFAULT_MATCHER = VariantMatcher()
