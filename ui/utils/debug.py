# ui/utils/debug.py
from __future__ import annotations
import json, datetime as dt, logging, traceback
import streamlit as st

from logic.selection import SelectionState
from utils.session import SessionConfig
from utils.helpers import mask_token

logger = logging.getLogger(__name__)

def _summ(v):
    try:
        t = type(v).__name__
        if isinstance(v, SessionConfig):
            return f"<session api={v.api_url} token={mask_token(v.token)} user={v.user_id}>"
        if isinstance(v, SelectionState):
            return f"<selection selected={len(v.selected_pairs())}>"
        if isinstance(v, dict):
            return f"dict(len={len(v)})"
        if isinstance(v, list):
            return f"list(len={len(v)})"
        if isinstance(v, (str, int, float, bool)) or v is None:
            s = repr(v)
            return s if len(s) <= 120 else s[:117] + "..."
        return f"<{t}>"
    except Exception:
        return "<unrepr>"

def dump_state(where: str, keys: list[str] | None = None, expanded: bool = False):
    """Side-bar dump of session state (types, sizes, or short reprs; tokens masked)."""
    try:
        snap = {}
        for k in sorted(st.session_state.keys()):
            if keys and k not in keys:
                continue
            snap[k] = _summ(st.session_state[k])
        with st.sidebar.expander(f"🛠 Debug: {where}", expanded=expanded):
            st.code(json.dumps(snap, indent=2), language="json")
    except Exception as e:
        with st.sidebar.expander(f"🛠 Debug: {where} (error)", expanded=True):
            st.error(f"{type(e).__name__}: {e}")
            st.code(traceback.format_exc())

def banner(msg: str):
    """Inline caption in the main area; never throws."""
    try:
        st.caption(f"🚦 {msg} • {dt.datetime.now(dt.timezone.utc).isoformat(timespec='seconds')}")
    except Exception:
        pass

def render_guard(label: str, fn):
    """Run a tab render function with visible error reporting (no blank tabs)."""
    try:
        return fn()
    except Exception as e:
        logger.exception("Render of %s failed", label)
        st.error(f"Exception in {label}.render(): {type(e).__name__}: {e}")
        st.code(traceback.format_exc())
        return None
