"""
FastAPI service for the OCPD Quote Engine (thin API wrapper).

Endpoints:
- GET  /health
- GET  /clauses          -> clause catalog
- GET  /variants         -> predefined coverage bundles
- POST /quotes/quick     -> indicative estimate from sum insured + scope
- POST /quotes/calculate -> full premium breakdown + underwriting decision
                            (or a quick quote when quickQuote is true)

The API layer stays thin:
- validates request shape (pydantic)
- calls src.quoting.service
- maps InvalidInput to HTTP 400
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.pricing.clauses import DEFAULT_CATALOG
from src.pricing.errors import InvalidInput
from src.pricing.variants import DEFAULT_MATCHER
from src.quoting.service import quick_quote_from_payload, quote_from_payload
from src.utils.config import configure_logging, get_app_config

logger = logging.getLogger(__name__)

APP_CONFIG = get_app_config()
configure_logging(APP_CONFIG.log_level)

app = FastAPI(title="OCPD Quote Engine", version="0.1.0")


# -----------------------------
# Schemas
# -----------------------------
class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ApkInput(_CamelModel):
    # Transport characteristics
    main_cargo_types: Optional[List[str]] = None
    average_cargo_value: Optional[float] = None
    max_single_shipment_value: Optional[float] = None
    monthly_shipments: Optional[int] = None

    # Routes
    domestic_transport: Optional[Union[bool, str]] = None
    international_transport: Optional[Union[bool, str]] = None
    main_destinations: Optional[List[str]] = None

    # Declared risks (accept bool or Yes/No strings)
    high_value_goods: Optional[Union[bool, str]] = None
    dangerous_goods: Optional[Union[bool, str]] = None
    temperature_controlled: Optional[Union[bool, str]] = None
    irregular_operations: Optional[Union[bool, str]] = None

    # History
    claims_last_3_years: Optional[int] = None
    biggest_claim_amount: Optional[float] = None


class CalculateRequest(_CamelModel):
    sum_insured: Optional[float] = None
    territorial_scope: Optional[str] = None
    selected_clauses: List[str] = Field(default_factory=list)
    apk_data: Optional[ApkInput] = None
    years_in_business: Optional[int] = None
    fleet_size: Optional[int] = None

    cargo_type: Optional[str] = None
    subcontractor_percent: Optional[float] = None
    payment_installments: Optional[int] = None
    deductible_level: Optional[str] = None
    country_surcharge_percent: Optional[float] = None
    sublimit_overrides: Dict[str, float] = Field(default_factory=dict)

    quick_quote: bool = False


class QuickQuoteRequest(_CamelModel):
    sum_insured: Optional[float] = None
    territorial_scope: Optional[str] = None


class QuickQuoteResponse(BaseModel):
    type: str
    currency: str
    sum_insured: float
    territorial_scope: str
    territorial_multiplier: float
    estimate: int
    range: Dict[str, int]


class FullQuoteResponse(BaseModel):
    type: str
    input: Dict[str, Any]
    result: Dict[str, Any]
    clauses: List[Dict[str, Any]] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


# -----------------------------
# Errors
# -----------------------------
@app.exception_handler(InvalidInput)
async def _invalid_input(request: Request, exc: InvalidInput) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content=exc.to_dict())


# -----------------------------
# Routes
# -----------------------------
@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok", "clauses": len(DEFAULT_CATALOG), "variants": len(DEFAULT_MATCHER.variants())}


@app.get("/clauses")
def clauses() -> List[Dict[str, Any]]:
    return [d.to_dict() for d in DEFAULT_CATALOG]


@app.get("/variants")
def variants() -> List[Dict[str, Any]]:
    return [v.to_dict() for v in DEFAULT_MATCHER.variants()]


@app.post("/quotes/quick", response_model=QuickQuoteResponse)
def quick(req: QuickQuoteRequest) -> QuickQuoteResponse:
    out = quick_quote_from_payload(req.model_dump())
    return QuickQuoteResponse(**out)


@app.post("/quotes/calculate", response_model=Union[FullQuoteResponse, QuickQuoteResponse])
def calculate(req: CalculateRequest) -> Union[FullQuoteResponse, QuickQuoteResponse]:
    payload = req.model_dump(exclude_none=True)
    if payload.pop("quick_quote", False):
        return QuickQuoteResponse(**quick_quote_from_payload(payload))

    out = quote_from_payload(payload, include_clauses=APP_CONFIG.include_policy_clauses)
    return FullQuoteResponse(**out)
