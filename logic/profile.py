# logic/profile.py
"""
Company profile (acquisition criteria) form model.
No Streamlit dependencies - can be imported by both logic and UI modules.

Profiles are plain dicts shaped like the API's JSON body so they can be posted as-is.
"""

import copy
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from logic.selection import SelectionState, Taxonomy, flatten
from utils.helpers import normalize_text, dedupe_preserve_order

COMPANY_TYPES = [
    "Private Equity",
    "Holding Company",
    "Family Office",
    "Independent Sponsor",
    "Entrepreneurship through Acquisition",
    "Single Acquisition Search",
    "Strategic Operating Company",
    "Buy Side Mandate",
]

CAPITAL_ENTITIES = ["Fund", "Holding Company", "SPV", "Direct Investment"]

BUSINESS_MODELS = ["Recurring Revenue", "Project-Based", "Asset Light", "Asset Heavy"]

MANAGEMENT_PREFERENCES = ["Owner(s) Departing", "Owner(s) Staying", "Management Team Staying", "No Preference"]

CURRENCIES = ["USD", "EUR", "GBP", "CAD", "AUD"]

CAPITAL_AVAILABILITY = {
    "ready_to_deploy": "Ready to deploy immediately",
    "need_to_raise": "Need to raise",
}

MAX_CONTACTS = 3

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# (min key, max key, label) for range checks
RANGE_FIELDS = [
    ("revenueMin", "revenueMax", "revenue"),
    ("ebitdaMin", "ebitdaMax", "EBITDA"),
    ("transactionSizeMin", "transactionSizeMax", "transaction size"),
]


def blank_contact() -> Dict[str, str]:
    return {"name": "", "email": "", "phone": ""}


def default_profile() -> Dict[str, Any]:
    """Empty form state."""
    return {
        "companyName": "",
        "website": "",
        "contacts": [blank_contact()],
        "companyType": "",
        "capitalEntity": "",
        "dealsCompletedLast5Years": None,
        "averageDealSize": None,
        "preferences": {
            "stopSendingDeals": False,
            "dontShowMyDeals": False,
            "dontSendDealsToMyCompetitors": False,
            "allowBuyerLikeDeals": False,
        },
        "targetCriteria": {
            "countries": [],
            "industrySectors": [],
            "revenueMin": None,
            "revenueMax": None,
            "ebitdaMin": None,
            "ebitdaMax": None,
            "transactionSizeMin": None,
            "transactionSizeMax": None,
            "minStakePercent": None,
            "minYearsInBusiness": None,
            "preferredBusinessModels": [],
            "managementTeamPreference": [],
            "description": "",
        },
        "agreements": {
            "termsAndConditionsAccepted": False,
            "ndaAccepted": False,
            "feeAgreementAccepted": False,
        },
        "selectedCurrency": "USD",
        "capitalAvailability": "need_to_raise",
    }


def normalize_management_preference(value: Any) -> List[str]:
    """
    Coerce every stored shape of managementTeamPreference to a list.

    Older profiles saved a single string (or "" for none); newer ones save a list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return dedupe_preserve_order([value])
    if isinstance(value, (list, tuple, set)):
        return dedupe_preserve_order(value)
    return dedupe_preserve_order([value])


def merge_profile(saved: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Overlay a saved profile onto the defaults, merging nested sections key by key."""
    profile = default_profile()
    if not saved:
        return profile
    for key, value in saved.items():
        if key in ("preferences", "targetCriteria", "agreements"):
            profile[key].update(value or {})
        else:
            profile[key] = copy.deepcopy(value)

    tc = profile["targetCriteria"]
    tc["managementTeamPreference"] = normalize_management_preference(tc.get("managementTeamPreference"))
    tc["countries"] = dedupe_preserve_order(tc.get("countries") or [])
    tc["industrySectors"] = dedupe_preserve_order(tc.get("industrySectors") or [])
    tc["preferredBusinessModels"] = dedupe_preserve_order(tc.get("preferredBusinessModels") or [])
    if not profile.get("contacts"):
        profile["contacts"] = [blank_contact()]
    profile["selectedCurrency"] = profile.get("selectedCurrency") or "USD"
    profile["capitalAvailability"] = profile.get("capitalAvailability") or "need_to_raise"
    return profile


def profile_check_missing(result: Optional[Dict[str, Any]]) -> bool:
    """True only when the profile check answered that no profile exists; unknown counts as present."""
    if not result:
        return False
    return result.get("exists") is False or result.get("profileExists") is False


def add_contact(contacts: List[Dict[str, str]]) -> List[Dict[str, str]]:
    if len(contacts or []) >= MAX_CONTACTS:
        raise ValueError(f"You can only add up to {MAX_CONTACTS} contacts.")
    return list(contacts or []) + [blank_contact()]


def remove_contact(contacts: List[Dict[str, str]], index: int) -> List[Dict[str, str]]:
    return [c for i, c in enumerate(contacts or []) if i != index]


def is_valid_website(website: str) -> bool:
    site = normalize_text(website)
    if not site:
        return False
    url = site if site.startswith("http") else f"https://{site}"
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return False
    return "." in host


def validate_profile(profile: Dict[str, Any]) -> Optional[str]:
    """Return the first validation error message, or None when the form can be submitted."""
    if not normalize_text(profile.get("companyName")):
        return "Company name is required"
    if not normalize_text(profile.get("website")):
        return "Website is required"
    if not profile.get("companyType"):
        return "Company type is required"
    if not profile.get("capitalEntity"):
        return "Capital entity is required"

    if not is_valid_website(profile.get("website")):
        return "Please enter a valid website URL"

    contacts = profile.get("contacts") or []
    if not contacts:
        return "At least one contact is required"
    for contact in contacts:
        if not normalize_text(contact.get("name")):
            return "Contact name is required"
        if not normalize_text(contact.get("email")):
            return "Contact email is required"
        if not normalize_text(contact.get("phone")):
            return "Contact phone is required"
        if not EMAIL_RE.match(normalize_text(contact.get("email"))):
            return f"Invalid email format for contact: {normalize_text(contact.get('name'))}"

    agreements = profile.get("agreements") or {}
    if not agreements.get("termsAndConditionsAccepted"):
        return "You must accept the terms and conditions"
    if not agreements.get("ndaAccepted"):
        return "You must accept the NDA"
    if not agreements.get("feeAgreementAccepted"):
        return "You must accept the fee agreement"

    tc = profile.get("targetCriteria") or {}
    for lo_key, hi_key, label in RANGE_FIELDS:
        lo, hi = tc.get(lo_key), tc.get(hi_key)
        if lo is not None and hi is not None and lo > hi:
            return f"Minimum {label} cannot be greater than maximum {label}"

    return None


def build_submission_payload(profile: Dict[str, Any],
                             geography: Optional[Taxonomy], geo_state: Optional[SelectionState],
                             industry: Optional[Taxonomy], industry_state: Optional[SelectionState],
                             buyer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    JSON body for POST /company-profiles.

    countries / industrySectors are re-derived from the selection; when a taxonomy is not
    loaded the labels already on the profile are kept as they are.
    """
    payload = copy.deepcopy(profile)
    tc = payload.setdefault("targetCriteria", {})
    if geography is not None:
        tc["countries"] = flatten(geography, geo_state)
    if industry is not None:
        tc["industrySectors"] = flatten(industry, industry_state)
    tc["managementTeamPreference"] = normalize_management_preference(tc.get("managementTeamPreference"))
    payload["contacts"] = [
        {k: normalize_text(v) for k, v in c.items()} for c in payload.get("contacts") or []
    ]
    if buyer_id:
        payload["buyer"] = buyer_id
    else:
        payload.pop("buyer", None)
    return _drop_none(payload)


def _drop_none(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _drop_none(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, list):
        return [_drop_none(v) for v in obj]
    return obj


def parse_amount(text: Any) -> Optional[float]:
    """'1,250,000' -> 1250000.0; blank -> None. Raises ValueError on junk."""
    s = normalize_text(text).replace(",", "")
    if not s:
        return None
    value = float(s)
    return int(value) if value.is_integer() else value


def format_amount(value: Optional[float]) -> str:
    """1250000 -> '1,250,000'; None -> ''."""
    if value is None:
        return ""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"
