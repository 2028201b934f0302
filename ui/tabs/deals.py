# ui/tabs/deals.py
import logging
from typing import Any, Dict

import streamlit as st

import utils.state as USTATE
from logic.deals import (
    add_document, approve_terms, count_by_status, deals_to_frame, delete_document,
    filter_deals, pass_deal, profile_picture_url, status_title,
)
from logic.profile import profile_check_missing
from logic.selection import NotFoundError
from services.api import ApiError, AuthenticationError
from services.export import export_dataframe_to_csv_bytes
from ui.data import get_api_client, get_deals
from ui.utils.rerun import safe_rerun
from ui.utils.guards import ensure_logged_in
from utils.constants import DEAL_STATUSES, TAB_ICONS
from utils.helpers import normalize_text

logger = logging.getLogger(__name__)

STATUS_KEY = "deals_status"
TERMS_KEY_PREFIX = "deal_terms_"


def render():
    """Render the Deals tab (active / pending / passed board)."""
    try:
        st.header(f"{TAB_ICONS['deals']} Deals")
        if not ensure_logged_in("Deals"):
            return

        if _profile_missing():
            st.warning("Submit your company profile before reviewing deals.")
            st.button("Go to company profile", key="deals_to_profile", on_click=_go_to_profile)
            return

        _render_buyer_header()

        deals = get_deals()
        counts = count_by_status(deals)
        status = st.radio(
            "Deal status",
            DEAL_STATUSES,
            key=STATUS_KEY,
            horizontal=True,
            format_func=lambda s: f"{status_title(s)} ({counts.get(s, 0)})",
            label_visibility="collapsed",
        )
        query = st.text_input("Search deals", key="deals_search", placeholder="Search by title, industry, geography...")

        visible = filter_deals(deals, status, query)
        if not visible:
            if normalize_text(query):
                st.info(f"No {status} deals match '{normalize_text(query)}'.")
            else:
                st.info(f"No {status} deals.")
        for deal in visible:
            _render_deal_card(deal)

        st.markdown("---")
        _render_export_section(deals)
    except Exception as e:
        st.exception(e)


def _profile_missing() -> bool:
    """Ask /company-profiles/check once per login whether a profile was ever submitted."""
    missing = USTATE.get_profile_missing()
    if missing is None:
        try:
            missing = profile_check_missing(get_api_client().check_profile())
        except AuthenticationError as e:
            st.error(str(e))
            return False
        USTATE.set_profile_missing(missing)
    return missing


def _go_to_profile():
    st.session_state["nav"] = "profile"


def _render_buyer_header():
    """Buyer name and picture from /buyers/profile, fetched once per login."""
    buyer = USTATE.get_buyer_profile()
    if buyer is None:
        try:
            buyer = get_api_client().get_buyer_profile()
        except AuthenticationError as e:
            st.error(str(e))
            return
        except ApiError as e:
            logger.warning("Could not load buyer profile: %s", e)
            buyer = {}
        USTATE.set_buyer_profile(buyer)
    if not buyer:
        return

    c1, c2 = st.columns([1, 8])
    picture = profile_picture_url(USTATE.get_session().api_url, buyer.get("profilePicture"))
    with c1:
        if picture:
            st.image(picture, width=64)
    with c2:
        st.markdown(f"**{buyer.get('fullName') or 'Buyer'}**")
        if buyer.get("companyName"):
            st.caption(buyer["companyName"])


# ----------------- callbacks -----------------

def _update_deals(fn, *args) -> None:
    try:
        USTATE.set_deals(fn(get_deals(), *args))
    except NotFoundError as e:
        USTATE.push_flash("error", f"Deal not found: {e}")
    except ValueError as e:
        USTATE.push_flash("error", str(e))


def _on_pass(deal_id: str):
    _update_deals(pass_deal, deal_id)
    USTATE.push_flash("info", "Deal moved to Passed")


def _on_approve(deal_id: str):
    if not st.session_state.get(f"{TERMS_KEY_PREFIX}{deal_id}"):
        USTATE.push_flash("warning", "Please accept the CIM terms first")
        return
    _update_deals(approve_terms, deal_id)
    USTATE.push_flash("success", "Terms approved, deal moved to Active")


def _on_delete_document(deal_id: str, document_id: str):
    _update_deals(delete_document, deal_id, document_id)


# ----------------- sections -----------------

def _render_deal_card(deal: Dict[str, Any]):
    deal_id = deal.get("id")
    with st.container(border=True):
        st.markdown(f"### {deal.get('title') or 'Untitled deal'}")
        st.write(deal.get("companyDescription") or "")

        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Revenue", _money(deal.get("trailingRevenue")))
        m2.metric("EBITDA", _money(deal.get("trailingEbitda")))
        m3.metric("Asking price", _money(deal.get("askingPrice")))
        m4.metric("Years in business", deal.get("yearsInBusiness") or "-")
        st.caption(
            " • ".join(str(v) for v in (deal.get("industry"), deal.get("geography"), deal.get("businessModel")) if v)
        )

        status = deal.get("status")
        if status == "active":
            _render_active_actions(deal)
        elif status == "pending":
            st.checkbox("I accept the CIM terms for this deal", key=f"{TERMS_KEY_PREFIX}{deal_id}")
            c1, c2 = st.columns(2)
            c1.button("Approve terms", key=f"approve_{deal_id}", type="primary",
                      on_click=_on_approve, args=(deal_id,))
            c2.button("Pass", key=f"pass_{deal_id}", on_click=_on_pass, args=(deal_id,))
        else:
            st.caption("You passed on this deal.")


def _render_active_actions(deal: Dict[str, Any]):
    deal_id = deal.get("id")
    with st.expander("Details & documents", expanded=False):
        d1, d2 = st.columns(2)
        with d1:
            st.write(f"**Average growth:** {deal.get('averageGrowth', '-')}%")
            st.write(f"**Net income:** {_money(deal.get('netIncome'))}")
            st.write(f"**Management:** {deal.get('managementPreference') or '-'}")
        with d2:
            st.write(f"**Seller email:** {deal.get('sellerEmail') or '-'}")
            st.write(f"**Seller phone:** {deal.get('sellerPhone') or '-'}")

        st.markdown("**Documents**")
        docs = deal.get("documents") or []
        if not docs:
            st.caption("No documents uploaded yet.")
        for doc in docs:
            c1, c2 = st.columns([6, 1])
            c1.markdown(f"[{doc.get('name')}]({doc.get('url') or '#'}) · {doc.get('uploadedAt', '')}")
            c2.button("🗑️", key=f"deldoc_{deal_id}_{doc.get('id')}",
                      on_click=_on_delete_document, args=(deal_id, doc.get("id")))

        upload = st.file_uploader("Upload document", key=f"upload_{deal_id}")
        if upload is not None and st.button("Add document", key=f"adddoc_{deal_id}"):
            _update_deals(add_document, deal_id, upload.name)
            safe_rerun()

    st.button("Pass", key=f"pass_{deal_id}", on_click=_on_pass, args=(deal_id,))


def _render_export_section(deals):
    with st.expander("📥 Export deal board", expanded=False):
        df = deals_to_frame(deals)
        st.dataframe(df, use_container_width=True, hide_index=True)
        st.download_button("Download CSV", data=export_dataframe_to_csv_bytes(df),
                           file_name="deals.csv", mime="text/csv")


def _money(value) -> str:
    if value in (None, ""):
        return "-"
    try:
        return f"${float(value):,.0f}"
    except (TypeError, ValueError):
        return str(value)
