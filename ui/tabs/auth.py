# ui/tabs/auth.py
import logging

import streamlit as st

import utils.state as USTATE
from services.api import ApiError
from ui.data import get_api_client
from ui.utils.rerun import safe_rerun
from utils.helpers import normalize_text

logger = logging.getLogger(__name__)


def render():
    """Render the Login tab (sign in or create a buyer account)."""
    try:
        st.header("🔐 Login")
        sess = USTATE.get_session()
        if sess.is_authenticated:
            st.success("You are logged in.")
            st.caption(f"API: {sess.api_url}")
            return

        login_tab, register_tab = st.tabs(["Sign in", "Create account"])
        with login_tab:
            _render_login_section()
        with register_tab:
            _render_register_section()
    except Exception as e:
        st.exception(e)


def _render_login_section():
    with st.form("login_form"):
        email = st.text_input("Email", key="login_email")
        password = st.text_input("Password", type="password", key="login_password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if not submitted:
        return
    if not normalize_text(email) or not password:
        st.error("Email and password are required")
        return
    try:
        with st.spinner("Signing in..."):
            get_api_client().login(email, password)
    except ApiError as e:
        st.error(f"Login failed: {e}")
        return
    st.success("Login successful")
    st.session_state["login_redirect"] = True
    safe_rerun()


def _render_register_section():
    with st.form("register_form"):
        full_name = st.text_input("Full name", key="register_full_name")
        company = st.text_input("Company name", key="register_company")
        email = st.text_input("Email", key="register_email")
        password = st.text_input("Password", type="password", key="register_password")
        confirm = st.text_input("Confirm password", type="password", key="register_confirm")
        submitted = st.form_submit_button("Create account", type="primary")

    if not submitted:
        return
    if not all(normalize_text(v) for v in (full_name, company, email)) or not password:
        st.error("All fields are required")
        return
    if password != confirm:
        st.error("Passwords do not match")
        return
    try:
        with st.spinner("Creating your account..."):
            get_api_client().register(full_name, email, password, company)
    except ApiError as e:
        st.error(f"Registration failed: {e}")
        return
    st.success("Account created")
    st.session_state["login_redirect"] = True
    safe_rerun()
