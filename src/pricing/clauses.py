"""
Clause catalog for OCPD (carrier's liability) policies.

Provides:
- one ClauseDefinition per ClauseType (rate, default sublimit, risk category)
- clause premium pricing against a base policy premium
- PolicyClause instantiation for a concrete quote

Notes:
- The sublimit modifier is linear: halving a clause's sublimit halves its
  premium. There is no diminishing-returns curve.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from uuid import uuid4

from src.pricing.errors import InvalidInput, UnknownClauseType
from src.pricing.schemas import ClauseType, RiskLevel
from src.utils.money import round_half_up


@dataclass(frozen=True)
class ClauseDefinition:
    type: ClauseType
    name: str
    name_pl: str
    description: str
    description_pl: str
    # % of sum insured covered under this clause by default
    default_sublimit_percentage: float
    # % of the policy base premium charged for the clause at its default sublimit
    base_premium_rate: float
    risk_category: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["type"] = self.type.value
        d["risk_category"] = self.risk_category.value
        return d


@dataclass(frozen=True)
class PolicyClause:
    id: str
    type: ClauseType
    name: str
    description: str
    sublimit: float
    sublimit_percentage: float
    premium: float
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["type"] = self.type.value
        return d


CLAUSE_DEFINITIONS: Tuple[ClauseDefinition, ...] = (
    ClauseDefinition(
        type=ClauseType.GROSS_NEGLIGENCE,
        name="Gross Negligence",
        name_pl="Rażące niedbalstwo",
        description=(
            "Coverage for damage caused by the driver's gross negligence, such as leaving the "
            "vehicle unlocked, improper cargo securing or incorrect temperature settings."
        ),
        description_pl=(
            "Ochrona na wypadek szkód spowodowanych rażącym niedbalstwem kierowcy, takich jak "
            "pozostawienie pojazdu niezabezpieczonego, niewłaściwe zabezpieczenie ładunku czy "
            "błędne ustawienie temperatury."
        ),
        default_sublimit_percentage=100.0,
        base_premium_rate=15.0,
        risk_category=RiskLevel.ELEVATED,
    ),
    ClauseDefinition(
        type=ClauseType.PARKING,
        name="Parking Coverage",
        name_pl="Klauzula postojowa",
        description=(
            "Extended coverage for theft of cargo from unguarded parking lots. Defines security "
            "requirements for stopping places."
        ),
        description_pl=(
            "Rozszerzona ochrona na wypadek kradzieży ładunku z parkingu niestrzeżonego. "
            "Definiuje wymogi bezpieczeństwa dla miejsc postoju."
        ),
        default_sublimit_percentage=50.0,
        base_premium_rate=20.0,
        risk_category=RiskLevel.HIGH,
    ),
    ClauseDefinition(
        type=ClauseType.UNAUTHORIZED_RELEASE,
        name="Unauthorized Release",
        name_pl="Wydanie osobie nieuprawnionej",
        description=(
            "Protection against logistics fraud and fake subcontractors. Covers losses from "
            "releasing cargo to unauthorized persons."
        ),
        description_pl=(
            "Ochrona przed oszustwami logistycznymi i fałszywymi podwykonawcami. Pokrywa straty "
            "z wydania ładunku osobom nieuprawnionym."
        ),
        default_sublimit_percentage=100.0,
        base_premium_rate=12.0,
        risk_category=RiskLevel.ELEVATED,
    ),
    ClauseDefinition(
        type=ClauseType.DOCUMENTS,
        name="Transport Documents",
        name_pl="Dokumenty przewozowe",
        description=(
            "Coverage for errors in CMR waybills and transport documentation, particularly "
            "relevant for international transport."
        ),
        description_pl=(
            "Ochrona na wypadek błędów w listach przewozowych CMR i dokumentacji transportowej. "
            "Szczególnie istotne przy transporcie międzynarodowym."
        ),
        default_sublimit_percentage=30.0,
        base_premium_rate=5.0,
        risk_category=RiskLevel.STANDARD,
    ),
    ClauseDefinition(
        type=ClauseType.SUBCONTRACTORS,
        name="Subcontractors Coverage",
        name_pl="Klauzula podwykonawców",
        description=(
            "Extends liability coverage to transport operations performed by subcontractors on "
            "behalf of the insured carrier."
        ),
        description_pl=(
            "Rozszerza ochronę odpowiedzialności na operacje transportowe wykonywane przez "
            "podwykonawców w imieniu ubezpieczonego przewoźnika."
        ),
        default_sublimit_percentage=100.0,
        base_premium_rate=18.0,
        risk_category=RiskLevel.HIGH,
    ),
    ClauseDefinition(
        type=ClauseType.REFRIGERATED,
        name="Refrigerated Cargo",
        name_pl="Ładunki chłodnicze",
        description=(
            "Coverage for temperature-controlled cargo, including spoilage due to equipment "
            "failure or incorrect settings."
        ),
        description_pl=(
            "Specjalna ochrona dla ładunków wymagających kontroli temperatury, w tym zepsucie "
            "z powodu awarii sprzętu lub błędnych ustawień."
        ),
        default_sublimit_percentage=100.0,
        base_premium_rate=25.0,
        risk_category=RiskLevel.HIGH,
    ),
    ClauseDefinition(
        type=ClauseType.ADR,
        name="Dangerous Goods (ADR)",
        name_pl="Towary niebezpieczne (ADR)",
        description=(
            "Extended coverage for transport of dangerous goods under the ADR convention. "
            "Requires valid ADR certificates."
        ),
        description_pl=(
            "Rozszerzona ochrona dla transportu towarów niebezpiecznych zgodnie z konwencją ADR. "
            "Wymaga ważnych certyfikatów ADR."
        ),
        default_sublimit_percentage=50.0,
        base_premium_rate=30.0,
        risk_category=RiskLevel.HIGH,
    ),
)


def coerce_clause_type(value: Any) -> ClauseType:
    """Map a ClauseType or its string value to ClauseType; raise UnknownClauseType otherwise."""
    if isinstance(value, ClauseType):
        return value
    try:
        return ClauseType(value)
    except ValueError as e:
        raise UnknownClauseType(value) from e


class ClauseCatalog:
    """
    Read-only table of clause definitions, one per ClauseType.

    Built once (DEFAULT_CATALOG at import) and shared; nothing mutates it
    afterwards, so concurrent readers need no locking.
    """

    def __init__(self, definitions: Iterable[ClauseDefinition]) -> None:
        table: Dict[ClauseType, ClauseDefinition] = {}
        for d in definitions:
            if d.type in table:
                raise ValueError(f"Duplicate clause definition: {d.type.value}")
            if d.base_premium_rate < 0:
                raise ValueError(f"Negative base premium rate for {d.type.value}")
            if not 0 < d.default_sublimit_percentage <= 100:
                raise ValueError(f"Default sublimit for {d.type.value} must be in (0, 100]")
            table[d.type] = d

        missing = [t.value for t in ClauseType if t not in table]
        if missing:
            raise ValueError(f"Clause catalog missing definitions: {missing}")

        # Keep enumeration order regardless of input order
        self._table: Mapping[ClauseType, ClauseDefinition] = MappingProxyType(
            {t: table[t] for t in ClauseType}
        )

    def __iter__(self):
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, clause_type: Any) -> ClauseDefinition:
        return self._table[coerce_clause_type(clause_type)]

    def clause_premium(
        self,
        clause_type: Any,
        base_policy_premium: float,
        custom_sublimit_percentage: Optional[float] = None,
    ) -> float:
        """
        Premium for one clause.

        premium = base_policy_premium * base_premium_rate * sublimit_modifier / 100
        sublimit_modifier = custom / default sublimit when an override is given, else 1.
        """
        definition = self.lookup(clause_type)
        modifier = 1.0
        if custom_sublimit_percentage is not None:
            _check_sublimit(definition.type, custom_sublimit_percentage)
            modifier = float(custom_sublimit_percentage) / definition.default_sublimit_percentage
        return float(base_policy_premium) * definition.base_premium_rate * modifier / 100.0

    def instantiate(
        self,
        clause_type: Any,
        sum_insured: float,
        base_premium: float,
        custom_sublimit_percentage: Optional[float] = None,
    ) -> PolicyClause:
        """
        Attach a clause to a quote: resolve its sublimit and premium under a
        fresh id. Amounts are rounded half-up to match the breakdown lines.
        """
        definition = self.lookup(clause_type)
        if custom_sublimit_percentage is None:
            sublimit_pct = definition.default_sublimit_percentage
        else:
            sublimit_pct = float(custom_sublimit_percentage)

        return PolicyClause(
            id=f"clause-{definition.type.value}-{uuid4().hex[:12]}",
            type=definition.type,
            name=definition.name_pl,
            description=definition.description_pl,
            sublimit=round_half_up(float(sum_insured) * sublimit_pct / 100.0),
            sublimit_percentage=sublimit_pct,
            premium=round_half_up(self.clause_premium(definition.type, base_premium, sublimit_pct)),
            is_active=True,
        )


def _check_sublimit(clause_type: ClauseType, pct: float) -> None:
    if isinstance(pct, bool) or not isinstance(pct, (int, float)) or not 0 < pct <= 100:
        raise InvalidInput(
            f"Sublimit percentage for {clause_type.value} must be in (0, 100], got {pct!r}",
            field=f"sublimit_overrides.{clause_type.value}",
            value=pct,
        )


DEFAULT_CATALOG = ClauseCatalog(CLAUSE_DEFINITIONS)
