# logic/deals.py
"""
Deal board logic: tab/search filtering, status transitions and documents.
No Streamlit dependencies - can be imported by both logic and UI modules.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pandas as pd

from logic.selection import NotFoundError
from utils.constants import DEAL_STATUSES, DEAL_SEARCH_FIELDS
from utils.helpers import normalize_text, contains_ci

logger = logging.getLogger(__name__)

DEAL_COLUMNS = [
    "id", "title", "status", "companyDescription", "industry", "geography",
    "yearsInBusiness", "trailingRevenue", "trailingEbitda", "averageGrowth", "netIncome",
    "askingPrice", "businessModel", "managementPreference", "sellerPhone", "sellerEmail",
]

NUMERIC_COLUMNS = [
    "yearsInBusiness", "trailingRevenue", "trailingEbitda", "averageGrowth", "netIncome", "askingPrice",
]


def load_sample_deals(path: str) -> List[Dict[str, Any]]:
    """Read the bundled deal list; missing or invalid file yields an empty board."""
    if not path or not os.path.exists(path):
        logger.warning("Deal data not found: %s", path)
        return []
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as e:
        logger.error("Failed to read deals from %s: %s", path, e)
        return []
    if not isinstance(data, list):
        logger.error("Deal file %s must hold a JSON list, got %s", path, type(data).__name__)
        return []
    deals = []
    for raw in data:
        deal = dict(raw)
        deal.setdefault("documents", [])
        if deal.get("status") not in DEAL_STATUSES:
            deal["status"] = "pending"
        deals.append(deal)
    return deals


def deals_to_frame(deals: List[Dict[str, Any]]) -> pd.DataFrame:
    """Tabular view of deals (documents collapsed to a count)."""
    if not deals:
        return pd.DataFrame(columns=DEAL_COLUMNS + ["documents"])
    df = pd.DataFrame(deals)
    for col in DEAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df["documents"] = [len(d.get("documents") or []) for d in deals]
    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df[DEAL_COLUMNS + ["documents"]]


def filter_deals(deals: List[Dict[str, Any]], status: str, query: str = "") -> List[Dict[str, Any]]:
    """Deals in the given tab, narrowed by a case-insensitive search over the text fields."""
    q = normalize_text(query)
    out = []
    for deal in deals or []:
        if deal.get("status") != status:
            continue
        if q and not any(contains_ci(deal.get(f, ""), q) for f in DEAL_SEARCH_FIELDS):
            continue
        out.append(deal)
    return out


def count_by_status(deals: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {s: 0 for s in DEAL_STATUSES}
    for deal in deals or []:
        status = deal.get("status")
        if status in counts:
            counts[status] += 1
    return counts


def status_title(status: str) -> str:
    """'active' -> 'Active Deals'."""
    s = normalize_text(status)
    return f"{s[:1].upper()}{s[1:]} Deals"


def find_deal(deals: List[Dict[str, Any]], deal_id: str) -> Dict[str, Any]:
    for deal in deals or []:
        if deal.get("id") == deal_id:
            return deal
    raise NotFoundError(f"No deal with id '{deal_id}'")


def _replace(deals: List[Dict[str, Any]], deal_id: str, **changes) -> List[Dict[str, Any]]:
    find_deal(deals, deal_id)
    return [dict(d, **changes) if d.get("id") == deal_id else d for d in deals]


def pass_deal(deals: List[Dict[str, Any]], deal_id: str) -> List[Dict[str, Any]]:
    """Move a deal to the passed tab."""
    return _replace(deals, deal_id, status="passed")


def approve_terms(deals: List[Dict[str, Any]], deal_id: str) -> List[Dict[str, Any]]:
    """Accepting the CIM terms moves a deal to the active tab."""
    return _replace(deals, deal_id, status="active")


def add_document(deals: List[Dict[str, Any]], deal_id: str, filename: str,
                 url: str = "#") -> List[Dict[str, Any]]:
    name = normalize_text(filename)
    if not name:
        raise ValueError("Document name is required")
    deal = find_deal(deals, deal_id)
    doc = {
        "id": f"doc-{uuid4().hex[:12]}",
        "name": name,
        "url": url or "#",
        "uploadedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }
    return _replace(deals, deal_id, documents=list(deal.get("documents") or []) + [doc])


def delete_document(deals: List[Dict[str, Any]], deal_id: str, document_id: str) -> List[Dict[str, Any]]:
    deal = find_deal(deals, deal_id)
    docs = [d for d in deal.get("documents") or [] if d.get("id") != document_id]
    return _replace(deals, deal_id, documents=docs)


def profile_picture_url(api_url: str, path: Optional[str]) -> Optional[str]:
    """Resolve a server-relative picture path against the API base URL."""
    p = normalize_text(path)
    if not p:
        return None
    if p.startswith("http://") or p.startswith("https://"):
        return p
    p = p.replace("\\", "/").lstrip("/")
    return f"{normalize_text(api_url).rstrip('/')}/{p}"
