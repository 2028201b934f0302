# ui/data.py
"""
Cached reference-data loaders and the per-session API client.
"""

import logging
from typing import Any, Dict, List, Optional

import streamlit as st

import utils.state as USTATE
from logic.deals import load_sample_deals
from logic.selection import Taxonomy
from logic.taxonomy import load_reference_taxonomy, truncate
from services.api import ApiClient
from utils.constants import (
    GEOGRAPHY_CSV, INDUSTRY_CSV, SAMPLE_DEALS_JSON, GEOGRAPHY_LEVELS, INDUSTRY_LEVELS
)

logger = logging.getLogger(__name__)

API_CLIENT_KEY = "api_client"
INDUSTRY_DEPTH_KEY = "industry_depth"


@st.cache_data(ttl=600, show_spinner=False)
def load_geography() -> Optional[Taxonomy]:
    """Continent > Region > Sub-region tree; None when the reference file is unavailable."""
    return load_reference_taxonomy(GEOGRAPHY_CSV, GEOGRAPHY_LEVELS)


@st.cache_data(ttl=600, show_spinner=False)
def _load_industry_full() -> Optional[Taxonomy]:
    return load_reference_taxonomy(INDUSTRY_CSV, INDUSTRY_LEVELS)


def get_industry_depth() -> int:
    return int(st.session_state.get(INDUSTRY_DEPTH_KEY) or len(INDUSTRY_LEVELS))


def load_industry(depth: Optional[int] = None) -> Optional[Taxonomy]:
    """Industry tree cut to the picker depth chosen in the profile tab (3 or 4 levels)."""
    return truncate(_load_industry_full(), depth or get_industry_depth())


@st.cache_data(ttl=600, show_spinner=False)
def _load_deal_seed() -> List[Dict[str, Any]]:
    return load_sample_deals(SAMPLE_DEALS_JSON)


def get_deals() -> List[Dict[str, Any]]:
    """The session's deal board, seeded from the bundled list on first access."""
    deals = USTATE.get_deals()
    if deals is None:
        deals = _load_deal_seed()
        USTATE.set_deals(deals)
        logger.info("Deal board seeded with %d deal(s)", len(deals))
    return deals


def get_api_client() -> ApiClient:
    """One ApiClient (and HTTP connection pool) per browser session."""
    sess = USTATE.get_session()
    client = st.session_state.get(API_CLIENT_KEY)
    if not isinstance(client, ApiClient) or client.session is not sess:
        client = ApiClient(sess)
        st.session_state[API_CLIENT_KEY] = client
    return client

