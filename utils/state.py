# utils/state.py
"""
Unified session-state helpers for the buyer portal.
All tabs should use these helpers instead of touching st.session_state keys directly.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from logic.selection import SelectionState
from logic.profile import default_profile
from .session import SessionConfig, resolve_api_url
from .helpers import mask_token

logger = logging.getLogger(__name__)

SESSION_KEY = "session"               # SessionConfig
PROFILE_KEY = "profile"               # Dict (form state)
PROFILE_LOADED_KEY = "profile_loaded"  # bool, saved profile merged once
BUYER_KEY = "buyer_profile"           # Dict from /buyers/profile
PROFILE_CHECK_KEY = "profile_missing"  # Optional[bool], None until checked
DEALS_KEY = "deals"                   # List[Dict]
EXPANDED_KEY = "expanded"             # Dict[str, bool]
FLASH_KEY = "flash"                   # List[(level, message)] shown on the next run
SELECTION_KEYS = {
    "geography": "geo_selection",
    "industry": "industry_selection",
}
# widget keys owned by the profile form and the tree pickers
WIDGET_PREFIXES = ("pf_", "chk|", "search|")


def _secrets() -> Dict[str, Any]:
    """st.secrets as a plain dict; empty when no secrets file is configured."""
    try:
        return {k: st.secrets[k] for k in st.secrets}
    except Exception:
        return {}


def get_session() -> SessionConfig:
    """Session object for this browser session, created on first access."""
    sess = st.session_state.get(SESSION_KEY)
    if not isinstance(sess, SessionConfig):
        sess = SessionConfig(api_url=resolve_api_url(_secrets()))
        st.session_state[SESSION_KEY] = sess
        logger.info("New session against %s", sess.api_url)
    return sess


def adopt_url_credentials() -> None:
    """Pick up ?token=...&userId=... handed over by the marketing site."""
    try:
        params = {k: st.query_params.get(k) for k in ("token", "userId")}
    except Exception:
        return
    sess = get_session()
    if sess.adopt_query_params(params):
        logger.info("Credentials taken from URL (token %s)", mask_token(sess.token))


def get_selection(kind: str) -> Optional[SelectionState]:
    return st.session_state.get(SELECTION_KEYS[kind])


def set_selection(kind: str, state: Optional[SelectionState]) -> None:
    st.session_state[SELECTION_KEYS[kind]] = state


def get_profile() -> Dict[str, Any]:
    profile = st.session_state.get(PROFILE_KEY)
    if not isinstance(profile, dict):
        profile = default_profile()
        st.session_state[PROFILE_KEY] = profile
    return profile


def set_profile(profile: Dict[str, Any]) -> None:
    st.session_state[PROFILE_KEY] = profile


def is_profile_loaded() -> bool:
    return bool(st.session_state.get(PROFILE_LOADED_KEY))


def mark_profile_loaded() -> None:
    st.session_state[PROFILE_LOADED_KEY] = True


def get_buyer_profile() -> Optional[Dict[str, Any]]:
    return st.session_state.get(BUYER_KEY)


def set_buyer_profile(buyer: Optional[Dict[str, Any]]) -> None:
    st.session_state[BUYER_KEY] = buyer


def get_profile_missing() -> Optional[bool]:
    return st.session_state.get(PROFILE_CHECK_KEY)


def set_profile_missing(missing: bool) -> None:
    st.session_state[PROFILE_CHECK_KEY] = missing


def get_deals() -> Optional[List[Dict[str, Any]]]:
    return st.session_state.get(DEALS_KEY)


def set_deals(deals: List[Dict[str, Any]]) -> None:
    st.session_state[DEALS_KEY] = deals


def _expanded_key(kind: str, level: int, node_id: str) -> str:
    return f"{kind}|L{level}|{node_id}"


def is_expanded(kind: str, level: int, node_id: str) -> bool:
    return bool((st.session_state.get(EXPANDED_KEY) or {}).get(_expanded_key(kind, level, node_id)))


def toggle_expanded(kind: str, level: int, node_id: str) -> None:
    expanded = dict(st.session_state.get(EXPANDED_KEY) or {})
    key = _expanded_key(kind, level, node_id)
    expanded[key] = not expanded.get(key, False)
    st.session_state[EXPANDED_KEY] = expanded


def push_flash(level: str, message: str) -> None:
    """Queue a message (success / info / warning / error) for the next render."""
    st.session_state[FLASH_KEY] = list(st.session_state.get(FLASH_KEY) or []) + [(level, message)]


def pop_flashes() -> List[Tuple[str, str]]:
    return list(st.session_state.pop(FLASH_KEY, None) or [])


def clear_session_state() -> None:
    """Forget credentials and every form/board key (logout)."""
    sess = st.session_state.get(SESSION_KEY)
    if isinstance(sess, SessionConfig):
        sess.clear_credentials()
    for key in [PROFILE_KEY, PROFILE_LOADED_KEY, BUYER_KEY, PROFILE_CHECK_KEY, DEALS_KEY, EXPANDED_KEY,
                *SELECTION_KEYS.values()]:
        if key in st.session_state:
            del st.session_state[key]
    for key in [k for k in list(st.session_state.keys()) if str(k).startswith(WIDGET_PREFIXES)]:
        del st.session_state[key]
    logger.info("Session state cleared")
