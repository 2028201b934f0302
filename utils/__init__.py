# utils package
from .constants import (
    APP_VERSION, DEFAULT_API_URL, GEOGRAPHY_LEVELS, INDUSTRY_LEVELS, DEAL_STATUSES, TAB_ICONS
)
from .helpers import (
    normalize_text, contains_ci, slugify, path_id, dedupe_preserve_order, mask_token
)
from .session import SessionConfig, resolve_api_url

__all__ = [
    'APP_VERSION', 'DEFAULT_API_URL', 'GEOGRAPHY_LEVELS', 'INDUSTRY_LEVELS', 'DEAL_STATUSES', 'TAB_ICONS',
    'normalize_text', 'contains_ci', 'slugify', 'path_id', 'dedupe_preserve_order', 'mask_token',
    'SessionConfig', 'resolve_api_url'
]
