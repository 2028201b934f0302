# utils/session.py
"""
Per-user session configuration: API base URL plus the credentials issued at login.
Passed explicitly to the API client instead of being read from globals.
"""

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .constants import DEFAULT_API_URL, API_URL_ENV_VAR
from .helpers import normalize_text


def resolve_api_url(secrets: Optional[Mapping[str, Any]] = None,
                    environ: Optional[Mapping[str, str]] = None) -> str:
    """secrets["api"]["base_url"] -> $DEALS_API_URL -> default, trailing slash removed."""
    environ = os.environ if environ is None else environ
    url = ""
    try:
        if secrets and "api" in secrets:
            url = normalize_text(secrets["api"].get("base_url"))
    except Exception:
        url = ""
    if not url:
        url = normalize_text(environ.get(API_URL_ENV_VAR))
    return (url or DEFAULT_API_URL).rstrip("/")


@dataclass
class SessionConfig:
    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set_credentials(self, token: Optional[str], user_id: Optional[str] = None) -> None:
        self.token = normalize_text(token) or None
        if user_id is not None:
            self.user_id = normalize_text(user_id) or None

    def clear_credentials(self) -> None:
        self.token = None
        self.user_id = None

    def adopt_query_params(self, params: Mapping[str, Any]) -> bool:
        """Take token / userId handed over in the URL. Returns True if anything changed."""
        changed = False
        token = normalize_text(params.get("token")) if params else ""
        user_id = normalize_text(params.get("userId")) if params else ""
        if token and token != self.token:
            self.token = token
            changed = True
        if user_id and user_id != self.user_id:
            self.user_id = user_id
            changed = True
        return changed
