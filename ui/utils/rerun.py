"""
Safe rerun abstraction.

Callbacks already trigger a rerun on their own; this is for plain button branches
that change state after widgets were drawn.
"""

import streamlit as st


def safe_rerun():
    """Trigger a Streamlit rerun, falling back to a nonce bump when unavailable."""
    try:
        st.rerun()
    except AttributeError:
        st.session_state["__force_rerun_nonce"] = st.session_state.get("__force_rerun_nonce", 0) + 1
