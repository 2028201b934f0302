# utils/constants.py
import os

APP_VERSION = "v1.4.0"

# Remote API (overridden by st.secrets["api"]["base_url"] or DEALS_API_URL)
DEFAULT_API_URL = "https://cim-amp.onrender.com"
API_URL_ENV_VAR = "DEALS_API_URL"
REQUEST_TIMEOUT_S = 20

# Level schemas for the hierarchical pickers
GEOGRAPHY_LEVELS = ("Continent", "Region", "Sub-region")
INDUSTRY_LEVELS = ("Sector", "Industry Group", "Industry", "Sub-industry")

# Child list keys used by the API's nested reference payloads
GEOGRAPHY_CHILD_KEYS = ("regions", "subRegions")
INDUSTRY_CHILD_KEYS = ("industryGroups", "industries", "subIndustries")

# Separator for path-derived node ids
ID_PATH_SEP = "/"

# Bundled reference data
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data")
GEOGRAPHY_CSV = os.path.join(DATA_DIR, "geography.csv")
INDUSTRY_CSV = os.path.join(DATA_DIR, "industry.csv")
SAMPLE_DEALS_JSON = os.path.join(DATA_DIR, "deals.json")

# Deal board
DEAL_STATUSES = ["active", "pending", "passed"]
DEAL_SEARCH_FIELDS = ["title", "companyDescription", "industry", "geography", "businessModel"]

# Node status values for tri-state checkboxes
STATUS_CHECKED = "checked"
STATUS_PARTIAL = "partial"
STATUS_UNCHECKED = "unchecked"

# UI strings
TAB_ICONS = {
    "login": "🔐", "profile": "🏢", "deals": "💼", "geography": "🌍", "industry": "🏭",
}
