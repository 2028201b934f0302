# services/api.py
"""
Client for the deal-marketplace REST API (auth, buyer and company profiles).
No Streamlit dependencies - can be imported by both logic and UI modules.

The session object is passed in explicitly; credentials obtained at login are written
back to it, and cleared again whenever the API answers 401.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from utils.constants import REQUEST_TIMEOUT_S
from utils.helpers import mask_token, normalize_text
from utils.session import SessionConfig

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-success answer (or transport failure) from the remote API."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload


class AuthenticationError(ApiError):
    """Missing, invalid or expired bearer token."""


def _json_or_empty(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


class ApiClient:
    def __init__(self, session: SessionConfig, http: Optional[requests.Session] = None,
                 timeout: float = REQUEST_TIMEOUT_S):
        self.session = session
        self.http = http or requests.Session()
        self.http.headers.update({"Content-Type": "application/json"})
        self.timeout = timeout

    # ===== plumbing =====

    def _url(self, path: str) -> str:
        return f"{self.session.api_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, auth: bool = True,
                 json_body: Optional[Dict[str, Any]] = None) -> requests.Response:
        headers = {}
        if auth:
            if not self.session.token:
                raise AuthenticationError("No authentication token found")
            headers["Authorization"] = f"Bearer {self.session.token}"
            logger.debug("%s %s with token %s", method, path, mask_token(self.session.token))
        try:
            response = self.http.request(
                method, self._url(path), headers=headers, json=json_body, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ApiError(f"Could not reach the API at {self.session.api_url}: {e}") from e
        logger.debug("%s %s -> %s", method, path, response.status_code)
        return response

    def _raise_for_status(self, response: requests.Response, context: str) -> None:
        if response.ok:
            return
        payload = _json_or_empty(response)
        if response.status_code == 401:
            logger.warning("%s: authentication failed, clearing credentials", context)
            self.session.clear_credentials()
            raise AuthenticationError(
                "Authentication expired. Please log in again.", status=401, payload=payload
            )
        message = payload.get("message") if isinstance(payload, dict) else None
        logger.error("%s failed: %s %s", context, response.status_code, payload)
        raise ApiError(
            message or f"API Error: {response.status_code} - {payload}",
            status=response.status_code,
            payload=payload,
        )

    # ===== auth =====

    def login(self, email: str, password: str) -> Tuple[str, str]:
        """
        Log in and store the issued credentials on the session.

        Returns:
            (token, user_id)

        Raises:
            ApiError: If the login is rejected or the response lacks a token / user id
        """
        logger.info("Attempting login for %s", normalize_text(email))
        response = self._request(
            "POST", "/auth/login", auth=False,
            json_body={"email": normalize_text(email), "password": password},
        )
        if not response.ok:
            payload = _json_or_empty(response)
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ApiError(message or f"Login failed with status: {response.status_code}",
                           status=response.status_code, payload=payload)

        data = _json_or_empty(response)
        token = data.get("token") or data.get("access_token")
        if not token:
            raise ApiError("Login response missing token", status=response.status_code, payload=data)
        user = data.get("user") or {}
        user_id = data.get("userId") or user.get("id") or user.get("_id")
        if not user_id:
            raise ApiError("Login response missing userId", status=response.status_code, payload=data)

        self.session.set_credentials(token, str(user_id))
        logger.info("Login successful, token %s stored", mask_token(token))
        return self.session.token, self.session.user_id

    def register(self, full_name: str, email: str, password: str, company_name: str) -> Tuple[str, str]:
        """Create a buyer account, then log straight in."""
        response = self._request(
            "POST", "/buyers/register", auth=False,
            json_body={
                "fullName": normalize_text(full_name),
                "email": normalize_text(email),
                "password": password,
                "companyName": normalize_text(company_name),
            },
        )
        self._raise_for_status(response, "Registration")
        return self.login(email, password)

    def logout(self) -> None:
        self.session.clear_credentials()
        logger.info("Logged out, credentials removed")

    # ===== profiles =====

    def get_my_profile(self) -> Optional[Dict[str, Any]]:
        """Saved company profile, or None when the buyer has not submitted one yet."""
        response = self._request("GET", "/company-profiles/my-profile")
        if response.status_code == 404:
            logger.info("No existing profile found")
            return None
        self._raise_for_status(response, "Fetching company profile")
        return _json_or_empty(response) or None

    def submit_profile(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST the profile; the API decides between create and update."""
        response = self._request("POST", "/company-profiles", json_body=payload)
        self._raise_for_status(response, "Submitting company profile")
        return _json_or_empty(response)

    def get_buyer_profile(self) -> Dict[str, Any]:
        response = self._request("GET", "/buyers/profile")
        self._raise_for_status(response, "Fetching buyer profile")
        return _json_or_empty(response)

    def check_profile(self) -> Optional[Dict[str, Any]]:
        """
        Optional endpoint telling whether a profile exists. Any failure other than an
        expired session is treated as "unknown" and returns None.
        """
        try:
            response = self._request("GET", "/company-profiles/check")
            self._raise_for_status(response, "Profile check")
        except AuthenticationError:
            raise
        except ApiError as e:
            logger.info("Profile check failed or not supported: %s", e)
            return None
        return _json_or_empty(response)
