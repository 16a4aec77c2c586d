import json

from src.pricing.quote import calculate_premium, quick_quote
from src.pricing.schemas import CalculationInput, ClauseType, TerritorialScope

# Pre-qualification estimate, then a full quote for the same carrier
print(json.dumps(quick_quote(1_000_000, "WORLD").to_dict(), indent=2))

inp = CalculationInput(
    sum_insured=1_000_000,
    territorial_scope=TerritorialScope.POLAND,
    selected_clauses=frozenset({ClauseType.GROSS_NEGLIGENCE}),
    years_in_business=5,
    fleet_size=10,
)
result = calculate_premium(inp)

print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
for name, amount in result.breakdown.line_items():
    print(f"{name:<40} {amount:>12,.2f}")
