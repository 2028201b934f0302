# ui/utils/guards.py
"""
Guard utilities for tab rendering to prevent blank tabs and provide clear messages.
"""

import streamlit as st
from typing import Optional

import utils.state as USTATE
from logic.selection import Taxonomy


def ensure_logged_in(tab_name: str) -> bool:
    """True when the session carries a token; otherwise point the user at the login tab."""
    try:
        if USTATE.get_session().is_authenticated:
            return True
        st.warning("Please log in to access this page. Use 🔐 Login in the sidebar.")
        return False
    except Exception as e:
        st.error(f"[{tab_name}] guard failed: {e}")
        st.exception(e)
        return False


def ensure_reference_data(kind: str, taxonomy: Optional[Taxonomy]) -> bool:
    """Render a loading note instead of an empty picker when reference data is missing."""
    if taxonomy is None:
        st.info(f"Loading {kind} data... (reference data unavailable)")
        return False
    if not taxonomy.roots:
        st.warning(f"The {kind} reference data is empty.")
        return False
    return True
