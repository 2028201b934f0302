# ui/tabs/profile.py
import copy
import logging
from typing import Any, Dict, List, Tuple

import streamlit as st

import utils.state as USTATE
from logic.profile import (
    BUSINESS_MODELS, CAPITAL_AVAILABILITY, CAPITAL_ENTITIES, COMPANY_TYPES, CURRENCIES,
    MANAGEMENT_PREFERENCES, MAX_CONTACTS, add_contact, blank_contact, build_submission_payload,
    format_amount, merge_profile, normalize_management_preference, parse_amount, remove_contact,
    validate_profile,
)
from logic.selection import reverse_apply
from services.api import ApiError, AuthenticationError
from services.export import (
    criteria_frame, export_dataframe_to_csv_bytes, export_dataframe_to_excel_bytes, export_profile_json
)
from ui.components.tree_picker import render_tree_picker, sync_profile_labels
from ui.data import INDUSTRY_DEPTH_KEY, get_api_client, get_industry_depth, load_geography, load_industry
from ui.utils.guards import ensure_logged_in
from utils.constants import INDUSTRY_LEVELS, TAB_ICONS
from utils.helpers import normalize_text

logger = logging.getLogger(__name__)

# (profile key, label) for free-text amounts at the top level of the profile
COMPANY_NUMBERS = [
    ("dealsCompletedLast5Years", "Deals completed in the last 5 years"),
    ("averageDealSize", "Average deal size"),
]

# (targetCriteria key, label) for free-text amounts
CRITERIA_NUMBERS = [
    ("revenueMin", "Revenue min"),
    ("revenueMax", "Revenue max"),
    ("ebitdaMin", "EBITDA min"),
    ("ebitdaMax", "EBITDA max"),
    ("transactionSizeMin", "Transaction size min"),
    ("transactionSizeMax", "Transaction size max"),
    ("minStakePercent", "Minimum stake (%)"),
    ("minYearsInBusiness", "Minimum years in business"),
]

PREFERENCE_LABELS = {
    "stopSendingDeals": "Stop sending me deals",
    "dontShowMyDeals": "Don't show my deals to other buyers",
    "dontSendDealsToMyCompetitors": "Don't send deals to my competitors",
    "allowBuyerLikeDeals": "Allow deals similar to ones I liked",
}

AGREEMENT_LABELS = {
    "termsAndConditionsAccepted": "I accept the terms and conditions",
    "ndaAccepted": "I accept the NDA",
    "feeAgreementAccepted": "I accept the fee agreement",
}

CONTACT_FIELDS = ("name", "email", "phone")


def _k(*parts) -> str:
    return "pf_" + "_".join(str(p) for p in parts)


def _with_current(options: List[str], current: List[str]) -> List[str]:
    """Options plus any saved values the current option list no longer knows."""
    return list(options) + [v for v in current if v not in options]


# ----------------- widget <-> profile -----------------

def _seed_widgets(profile: Dict[str, Any], only_missing: bool = False) -> None:
    """
    Write profile values into the form's widget keys.

    Streamlit drops widget keys for widgets that were not drawn in a run, so this is
    also called with only_missing=True on every render to restore them after navigation.
    """
    ss = st.session_state
    tc = profile.get("targetCriteria") or {}

    values: Dict[str, Any] = {
        _k("companyName"): profile.get("companyName") or "",
        _k("website"): profile.get("website") or "",
        _k("companyType"): profile.get("companyType") or "",
        _k("capitalEntity"): profile.get("capitalEntity") or "",
        _k("selectedCurrency"): profile.get("selectedCurrency") or "USD",
        _k("capitalAvailability"): profile.get("capitalAvailability") or "need_to_raise",
        _k("tc", "preferredBusinessModels"): list(tc.get("preferredBusinessModels") or []),
        _k("tc", "managementTeamPreference"):
            normalize_management_preference(tc.get("managementTeamPreference")),
        _k("tc", "description"): tc.get("description") or "",
        _k("industryDepth"): get_industry_depth(),
    }
    for key, _ in COMPANY_NUMBERS:
        values[_k(key)] = format_amount(profile.get(key))
    for key, _ in CRITERIA_NUMBERS:
        values[_k("tc", key)] = format_amount(tc.get(key))
    for key in PREFERENCE_LABELS:
        values[_k("pref", key)] = bool((profile.get("preferences") or {}).get(key))
    for key in AGREEMENT_LABELS:
        values[_k("agr", key)] = bool((profile.get("agreements") or {}).get(key))

    contacts = profile.get("contacts") or [blank_contact()]
    for i, contact in enumerate(contacts):
        for field in CONTACT_FIELDS:
            values[_k("contact", i, field)] = contact.get(field) or ""
    if not only_missing:
        for i in range(len(contacts), MAX_CONTACTS + 1):
            for field in CONTACT_FIELDS:
                ss.pop(_k("contact", i, field), None)

    for key, value in values.items():
        if only_missing and key in ss:
            continue
        ss[key] = value


def _read_number(key: str, label: str, problems: List[str]):
    try:
        return parse_amount(st.session_state.get(key))
    except ValueError:
        problems.append(f"{label} must be a number")
        return None


def _collect(profile: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Read the form widgets back into a copy of the profile. Returns (profile, number problems)."""
    ss = st.session_state
    out = copy.deepcopy(profile)
    problems: List[str] = []

    for key in ("companyName", "website", "companyType", "capitalEntity",
                "selectedCurrency", "capitalAvailability"):
        if _k(key) in ss:
            out[key] = normalize_text(ss[_k(key)])
    for key, label in COMPANY_NUMBERS:
        if _k(key) in ss:
            out[key] = _read_number(_k(key), label, problems)

    out["contacts"] = [
        {field: normalize_text(ss.get(_k("contact", i, field), c.get(field))) for field in CONTACT_FIELDS}
        for i, c in enumerate(out.get("contacts") or [])
    ]
    for key in PREFERENCE_LABELS:
        if _k("pref", key) in ss:
            out["preferences"][key] = bool(ss[_k("pref", key)])
    for key in AGREEMENT_LABELS:
        if _k("agr", key) in ss:
            out["agreements"][key] = bool(ss[_k("agr", key)])

    tc = out["targetCriteria"]
    for key, label in CRITERIA_NUMBERS:
        if _k("tc", key) in ss:
            tc[key] = _read_number(_k("tc", key), label, problems)
    if _k("tc", "preferredBusinessModels") in ss:
        tc["preferredBusinessModels"] = list(ss[_k("tc", "preferredBusinessModels")])
    if _k("tc", "managementTeamPreference") in ss:
        tc["managementTeamPreference"] = normalize_management_preference(
            ss[_k("tc", "managementTeamPreference")]
        )
    if _k("tc", "description") in ss:
        tc["description"] = ss[_k("tc", "description")] or ""
    return out, problems


# ----------------- callbacks -----------------

def _on_add_contact():
    profile, _ = _collect(USTATE.get_profile())
    try:
        profile["contacts"] = add_contact(profile["contacts"])
    except ValueError as e:
        USTATE.push_flash("warning", str(e))
        return
    USTATE.set_profile(profile)
    _seed_widgets(profile)


def _on_remove_contact(index: int):
    profile, _ = _collect(USTATE.get_profile())
    profile["contacts"] = remove_contact(profile["contacts"], index) or [blank_contact()]
    USTATE.set_profile(profile)
    _seed_widgets(profile)


def _on_industry_depth_change():
    """Re-derive the industry selection for the new depth from the current labels."""
    st.session_state[INDUSTRY_DEPTH_KEY] = st.session_state[_k("industryDepth")]
    industry = load_industry()
    labels = USTATE.get_profile()["targetCriteria"].get("industrySectors") or []
    USTATE.set_selection("industry", reverse_apply(industry, labels))
    sync_profile_labels("industry", industry)


def _on_submit():
    profile, problems = _collect(USTATE.get_profile())
    USTATE.set_profile(profile)
    if problems:
        USTATE.push_flash("error", problems[0])
        return
    error = validate_profile(profile)
    if error:
        USTATE.push_flash("error", error)
        return

    geography, industry = load_geography(), load_industry()
    payload = build_submission_payload(
        profile,
        geography, USTATE.get_selection("geography"),
        industry, USTATE.get_selection("industry"),
        buyer_id=USTATE.get_session().user_id,
    )
    try:
        get_api_client().submit_profile(payload)
    except AuthenticationError as e:
        USTATE.push_flash("error", str(e))
        st.session_state["nav"] = "login"
        return
    except ApiError as e:
        logger.error("Profile submission failed: %s", e)
        USTATE.push_flash("error", f"Failed to submit profile: {e}")
        return
    logger.info("Profile submitted (%d countries, %d industries)",
                len(payload["targetCriteria"].get("countries") or []),
                len(payload["targetCriteria"].get("industrySectors") or []))
    USTATE.push_flash("success", "Profile submitted successfully")
    USTATE.set_profile_missing(False)
    st.session_state["nav"] = "deals"


# ----------------- load -----------------

def _load_saved_profile() -> None:
    """Fetch the saved profile once per login and rebuild both pickers from its labels."""
    if USTATE.is_profile_loaded():
        return
    USTATE.mark_profile_loaded()
    try:
        with st.spinner("Loading your profile..."):
            saved = get_api_client().get_my_profile()
    except AuthenticationError as e:
        st.error(str(e))
        return
    except ApiError as e:
        logger.warning("Could not load saved profile: %s", e)
        st.warning("Failed to load your existing profile. Starting with a new form.")
        _seed_widgets(USTATE.get_profile())
        return

    profile = merge_profile(saved)
    if saved:
        tc = profile["targetCriteria"]
        USTATE.set_selection("geography", reverse_apply(load_geography(), tc["countries"]))
        USTATE.set_selection("industry", reverse_apply(load_industry(), tc["industrySectors"]))
        st.toast("Profile loaded")
    USTATE.set_profile(profile)
    _seed_widgets(profile)


# ----------------- sections -----------------

def render():
    """Render the Company Profile tab (acquisition criteria form)."""
    try:
        st.header(f"{TAB_ICONS['profile']} Company Profile")
        if not ensure_logged_in("Company Profile"):
            return

        _load_saved_profile()
        profile = USTATE.get_profile()
        _seed_widgets(profile, only_missing=True)

        _render_company_section()
        st.markdown("---")
        _render_contacts_section(profile)
        st.markdown("---")
        _render_criteria_section()
        st.markdown("---")
        _render_preferences_section()
        st.markdown("---")
        _render_agreements_section()

        st.button("Submit profile", type="primary", on_click=_on_submit, key="pf_submit_button")

        collected, _ = _collect(profile)
        USTATE.set_profile(collected)

        st.markdown("---")
        _render_export_section(collected)
    except Exception as e:
        st.exception(e)


def _render_company_section():
    st.subheader("🏢 Company")
    c1, c2 = st.columns(2)
    with c1:
        st.text_input("Company name *", key=_k("companyName"))
        options = _with_current([""] + COMPANY_TYPES, [st.session_state.get(_k("companyType"), "")])
        st.selectbox("Company type *", options, key=_k("companyType"),
                     format_func=lambda v: v or "Select a company type")
        st.text_input(COMPANY_NUMBERS[0][1], key=_k(COMPANY_NUMBERS[0][0]))
    with c2:
        st.text_input("Website *", key=_k("website"), placeholder="example.com")
        options = _with_current([""] + CAPITAL_ENTITIES, [st.session_state.get(_k("capitalEntity"), "")])
        st.selectbox("Capital entity *", options, key=_k("capitalEntity"),
                     format_func=lambda v: v or "Select a capital entity")
        st.text_input(COMPANY_NUMBERS[1][1], key=_k(COMPANY_NUMBERS[1][0]))

    c3, c4 = st.columns([1, 2])
    with c3:
        st.selectbox("Currency", _with_current(CURRENCIES, [st.session_state.get(_k("selectedCurrency"))]),
                     key=_k("selectedCurrency"))
    with c4:
        st.radio("Capital availability", list(CAPITAL_AVAILABILITY), key=_k("capitalAvailability"),
                 format_func=lambda v: CAPITAL_AVAILABILITY.get(v, v), horizontal=True)


def _render_contacts_section(profile: Dict[str, Any]):
    st.subheader("👥 Contacts")
    contacts = profile.get("contacts") or [blank_contact()]
    for i in range(len(contacts)):
        c1, c2, c3, c4 = st.columns([3, 3, 3, 1])
        with c1:
            st.text_input("Name *", key=_k("contact", i, "name"))
        with c2:
            st.text_input("Email *", key=_k("contact", i, "email"))
        with c3:
            st.text_input("Phone *", key=_k("contact", i, "phone"))
        with c4:
            st.button("🗑️", key=_k("contact", i, "remove"), on_click=_on_remove_contact, args=(i,),
                      disabled=len(contacts) <= 1, help="Remove contact")
    st.button("➕ Add contact", key=_k("contact", "add"), on_click=_on_add_contact,
              disabled=len(contacts) >= MAX_CONTACTS)


def _render_criteria_section():
    st.subheader("🎯 Target Criteria")

    geo_col, ind_col = st.columns(2)
    with geo_col:
        render_tree_picker("geography", load_geography(), f"{TAB_ICONS['geography']} Geography")
    with ind_col:
        st.radio(
            "Industry detail",
            [len(INDUSTRY_LEVELS), len(INDUSTRY_LEVELS) - 1],
            key=_k("industryDepth"),
            format_func=lambda d: " > ".join(INDUSTRY_LEVELS[:d]),
            on_change=_on_industry_depth_change,
            help="Labels that do not exist at the chosen depth are dropped from the selection.",
        )
        render_tree_picker("industry", load_industry(), f"{TAB_ICONS['industry']} Industry")

    currency = st.session_state.get(_k("selectedCurrency")) or "USD"
    st.caption(f"Amounts in {currency}; leave blank for no limit.")
    for row in range(0, len(CRITERIA_NUMBERS), 2):
        cols = st.columns(2)
        for col, (key, label) in zip(cols, CRITERIA_NUMBERS[row:row + 2]):
            with col:
                st.text_input(label, key=_k("tc", key))

    models_key = _k("tc", "preferredBusinessModels")
    st.multiselect("Preferred business models", _with_current(BUSINESS_MODELS, st.session_state.get(models_key) or []),
                   key=models_key)
    mgmt_key = _k("tc", "managementTeamPreference")
    st.multiselect("Management team preference",
                   _with_current(MANAGEMENT_PREFERENCES, st.session_state.get(mgmt_key) or []),
                   key=mgmt_key)
    st.text_area("Description", key=_k("tc", "description"),
                 placeholder="Anything else sellers should know about what you are looking for")


def _render_preferences_section():
    st.subheader("⚙️ Preferences")
    for key, label in PREFERENCE_LABELS.items():
        st.checkbox(label, key=_k("pref", key))


def _render_agreements_section():
    st.subheader("📝 Agreements")
    for key, label in AGREEMENT_LABELS.items():
        st.checkbox(label, key=_k("agr", key))


def _render_export_section(profile: Dict[str, Any]):
    with st.expander("📥 Export criteria", expanded=False):
        geography, industry = load_geography(), load_industry()
        df = criteria_frame(geography, USTATE.get_selection("geography"),
                            industry, USTATE.get_selection("industry"))
        if df.empty:
            st.caption("No geography or industry selected yet.")
        else:
            st.dataframe(df, use_container_width=True, hide_index=True)

        payload = build_submission_payload(
            profile,
            geography, USTATE.get_selection("geography"),
            industry, USTATE.get_selection("industry"),
            buyer_id=USTATE.get_session().user_id,
        )
        c1, c2, c3 = st.columns(3)
        with c1:
            st.download_button("Download CSV", data=export_dataframe_to_csv_bytes(df),
                               file_name="target_criteria.csv", mime="text/csv")
        with c2:
            st.download_button("Download Excel", data=export_dataframe_to_excel_bytes(df, "Criteria"),
                               file_name="target_criteria.xlsx",
                               mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
        with c3:
            st.download_button("Download profile JSON", data=export_profile_json(payload),
                               file_name="company_profile.json", mime="application/json")
