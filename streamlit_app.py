"""
Buyer Portal - Streamlit application
Login, company profile with hierarchical geography / industry pickers, and the deal board.
"""

import logging
import os

import streamlit as st

import utils.state as USTATE
from utils import APP_VERSION, TAB_ICONS
from ui.data import get_api_client
from ui.tabs import auth, profile, deals
from ui.utils.debug import dump_state, render_guard, banner

NAV_KEY = "nav"
PAGES = {
    "login": ("Login", auth.render),
    "profile": ("Company Profile", profile.render),
    "deals": ("Deals", deals.render),
}


def _configure_logging():
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title=f"Buyer Portal {APP_VERSION}",
        page_icon="💼",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    _configure_logging()

    USTATE.adopt_url_credentials()
    sess = USTATE.get_session()

    if st.session_state.pop("login_redirect", False):
        st.session_state[NAV_KEY] = "profile"
    if not sess.is_authenticated:
        st.session_state[NAV_KEY] = "login"
    elif st.session_state.get(NAV_KEY) not in PAGES:
        st.session_state[NAV_KEY] = "profile"

    _render_sidebar(sess)

    for level, message in USTATE.pop_flashes():
        getattr(st, level, st.info)(message)

    page = st.session_state.get(NAV_KEY, "login")
    label, render = PAGES[page]
    render_guard(label, render)

    if st.session_state.get("debug_mode"):
        banner(f"Rendered {label}")
        dump_state("Session", expanded=False)


def _on_logout():
    get_api_client().logout()
    USTATE.clear_session_state()
    st.session_state[NAV_KEY] = "login"


def _render_sidebar(sess):
    with st.sidebar:
        st.markdown(f"## 💼 Buyer Portal {APP_VERSION}")
        pages = list(PAGES) if sess.is_authenticated else ["login"]
        st.radio(
            "Navigation",
            pages,
            key=NAV_KEY,
            format_func=lambda p: f"{TAB_ICONS[p]} {PAGES[p][0]}",
        )

        if sess.is_authenticated:
            st.caption(f"Signed in • user {sess.user_id or 'unknown'}")
            st.button("🚪 Logout", key="logout_button", on_click=_on_logout)

        st.markdown("---")
        st.checkbox("🛠 Debug mode", key="debug_mode")
        st.button("🧹 Reset session state", key="reset_session", on_click=st.session_state.clear)


if __name__ == "__main__":
    main()
