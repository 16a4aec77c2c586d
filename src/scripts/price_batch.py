"""
Price a table of OCPD quote applications in one go.

Inputs (CSV or Parquet, one row per application):
- sum_insured, territorial_scope (required)
- selected_clauses: clause types separated by "|" or ","
- years_in_business, fleet_size, cargo_type, subcontractor_percent,
  payment_installments, country_surcharge_percent (optional)
- apk_<field> columns for questionnaire answers, e.g. apk_claims_last_3_years

Outputs:
- a quotes table (total, risk level, decision, referral reasons, or the
  validation error for rejected rows)
- a JSON summary report

Usage:
  python -m src.scripts.price_batch --in_path data/applications.csv
  python -m src.scripts.price_batch --in_path apps.parquet --out_path reports/quotes.parquet
"""

from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd

from src.pricing.errors import InvalidInput
from src.quoting.service import quote_from_payload
from src.utils.config import configure_logging, get_paths
from src.utils.io import read_applications, write_json, write_table

logger = logging.getLogger(__name__)

APK_PREFIX = "apk_"


@dataclass
class BatchReport:
    rows_in: int
    rows_priced: int
    rows_rejected: int
    auto_approved: int
    referred: int
    total_premium: float
    mean_premium: float
    floor_applied: int
    risk_levels: Dict[str, int] = field(default_factory=dict)
    variants: Dict[str, int] = field(default_factory=dict)


def _present(val: Any) -> bool:
    return not (val is None or (not isinstance(val, (list, tuple)) and pd.isna(val)))


def row_to_payload(row: Dict[str, Any]) -> Dict[str, Any]:
    """Map one table row to the request payload the quoting service takes."""
    payload: Dict[str, Any] = {}
    apk: Dict[str, Any] = {}
    for col, val in row.items():
        if not _present(val):
            continue
        if col.startswith(APK_PREFIX):
            apk[col[len(APK_PREFIX):]] = val
        elif col == "selected_clauses":
            payload[col] = [c.strip() for c in re.split(r"[|,]", str(val)) if c.strip()]
        else:
            payload[col] = val
    if apk:
        payload["apk_data"] = apk
    return payload


def price_applications(df: pd.DataFrame) -> pd.DataFrame:
    out: List[Dict[str, Any]] = []
    for idx, row in enumerate(df.to_dict(orient="records")):
        record: Dict[str, Any] = {"row": idx}
        try:
            quote = quote_from_payload(row_to_payload(row), include_clauses=False)
        except InvalidInput as e:
            logger.warning("Row %d rejected: %s", idx, e.message)
            record["error"] = e.message
            out.append(record)
            continue

        result = quote["result"]
        breakdown = result["breakdown"]
        record.update(
            {
                "currency": breakdown["currency"],
                "variant": breakdown["variant"],
                "base_premium": breakdown["base_premium"],
                "clauses_premium": breakdown["clauses_premium"],
                "risk_loading_total": breakdown["risk_loading_total"],
                "bundle_discount": breakdown["bundle_discount"],
                "floor_applied": breakdown["floor_applied"],
                "total": breakdown["total"],
                "risk_level": result["risk_level"],
                "is_auto_approved": result["is_auto_approved"],
                "referral_reasons": "; ".join(result["referral_reasons"]),
                "error": None,
            }
        )
        out.append(record)
    return pd.DataFrame(out)


def summarize(quotes: pd.DataFrame) -> BatchReport:
    priced = quotes[quotes["error"].isna()] if "error" in quotes.columns else quotes
    if "total" not in priced.columns:
        priced = priced.assign(total=pd.Series(dtype=float))

    approved = int(priced["is_auto_approved"].fillna(False).astype(bool).sum()) if len(priced) else 0
    return BatchReport(
        rows_in=int(len(quotes)),
        rows_priced=int(len(priced)),
        rows_rejected=int(len(quotes) - len(priced)),
        auto_approved=approved,
        referred=int(len(priced) - approved),
        total_premium=float(priced["total"].sum()) if len(priced) else 0.0,
        mean_premium=float(priced["total"].mean()) if len(priced) else 0.0,
        floor_applied=int(priced["floor_applied"].fillna(False).astype(bool).sum()) if len(priced) else 0,
        risk_levels={str(k): int(v) for k, v in priced["risk_level"].value_counts().items()} if len(priced) else {},
        variants={str(k): int(v) for k, v in priced["variant"].value_counts().items()} if len(priced) else {},
    )


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Price a table of OCPD quote applications.")
    p.add_argument("--in_path", type=str, required=True, help="Applications table (.csv or .parquet).")
    p.add_argument(
        "--out_path",
        type=str,
        default="reports/quotes.csv",
        help="Output path for the priced quotes table.",
    )
    p.add_argument(
        "--report_path",
        type=str,
        default="reports/batch_report.json",
        help="Output path for the summary report JSON.",
    )
    return p.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging()
    paths = get_paths()

    in_path = paths.root / args.in_path
    out_path = paths.root / args.out_path
    report_path = paths.root / args.report_path

    quotes = price_applications(read_applications(in_path))
    report = summarize(quotes)

    write_table(quotes, out_path)
    write_json(report, report_path)

    print(f"[OK] Quotes saved : {out_path}")
    print(f"[OK] Report saved : {report_path}")
    print(
        f"Rows={report.rows_in} | Priced={report.rows_priced} | Rejected={report.rows_rejected} | "
        f"AutoApproved={report.auto_approved} | Referred={report.referred} | "
        f"TotalPremium={report.total_premium:,.2f}"
    )


if __name__ == "__main__":
    main()
