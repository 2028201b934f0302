import json

import pytest
import requests

from services.api import ApiClient, ApiError, AuthenticationError
from utils.session import SessionConfig


def _response(status, body=None, url="https://api.test/x"):
    r = requests.Response()
    r.status_code = status
    r.url = url
    r._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return r


class FakeHttp:
    """Stands in for requests.Session: records calls, replays queued responses."""

    def __init__(self, *responses):
        self.headers = {}
        self.calls = []
        self.responses = list(responses)

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers or {}, "json": json})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def session():
    return SessionConfig(api_url="https://api.test")


@pytest.fixture
def logged_in():
    return SessionConfig(api_url="https://api.test/", token="tok-1234567890abc", user_id="u-1")


class TestLogin:
    """Test login / register / logout."""

    def test_login_stores_credentials(self, session):
        http = FakeHttp(_response(200, {"token": "abc", "userId": "u-9"}))
        client = ApiClient(session, http=http)

        assert client.login(" jo@acme.com ", "pw") == ("abc", "u-9")
        assert session.token == "abc" and session.user_id == "u-9"
        call = http.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api.test/auth/login"
        assert call["json"] == {"email": "jo@acme.com", "password": "pw"}
        assert "Authorization" not in call["headers"]
        assert http.headers["Content-Type"] == "application/json"

    def test_login_alternate_field_names(self, session):
        http = FakeHttp(_response(200, {"access_token": "abc", "user": {"_id": "u-7"}}))
        ApiClient(session, http=http).login("jo@acme.com", "pw")
        assert session.token == "abc" and session.user_id == "u-7"

    def test_login_rejected(self, session):
        http = FakeHttp(_response(401, {"message": "Invalid credentials"}))
        with pytest.raises(ApiError, match="Invalid credentials") as exc:
            ApiClient(session, http=http).login("jo@acme.com", "bad")
        assert exc.value.status == 401
        assert not session.is_authenticated

    def test_login_without_token(self, session):
        http = FakeHttp(_response(200, {"userId": "u-1"}))
        with pytest.raises(ApiError, match="missing token"):
            ApiClient(session, http=http).login("jo@acme.com", "pw")

    def test_login_without_user_id(self, session):
        http = FakeHttp(_response(200, {"token": "abc"}))
        with pytest.raises(ApiError, match="missing userId"):
            ApiClient(session, http=http).login("jo@acme.com", "pw")
        assert session.token is None

    def test_register_then_login(self, session):
        http = FakeHttp(_response(201, {"id": "u-2"}), _response(200, {"token": "t", "userId": "u-2"}))
        ApiClient(session, http=http).register("Jo Smith", "jo@acme.com", "pw", "Acme")
        assert [c["url"] for c in http.calls] == ["https://api.test/buyers/register", "https://api.test/auth/login"]
        assert http.calls[0]["json"]["companyName"] == "Acme"
        assert session.user_id == "u-2"

    def test_register_conflict(self, session):
        http = FakeHttp(_response(409, {"message": "Email already registered"}))
        with pytest.raises(ApiError, match="already registered"):
            ApiClient(session, http=http).register("Jo", "jo@acme.com", "pw", "Acme")

    def test_logout(self, logged_in):
        ApiClient(logged_in, http=FakeHttp()).logout()
        assert not logged_in.is_authenticated
        assert logged_in.user_id is None


class TestProfiles:
    """Test authenticated profile endpoints."""

    def test_bearer_header_and_url(self, logged_in):
        http = FakeHttp(_response(200, {"companyName": "Acme"}))
        assert ApiClient(logged_in, http=http).get_my_profile() == {"companyName": "Acme"}
        call = http.calls[0]
        assert call["url"] == "https://api.test/company-profiles/my-profile"
        assert call["headers"]["Authorization"] == "Bearer tok-1234567890abc"

    def test_missing_profile_is_none(self, logged_in):
        http = FakeHttp(_response(404, {"message": "Not found"}))
        assert ApiClient(logged_in, http=http).get_my_profile() is None

    def test_no_token_fails_before_request(self, session):
        http = FakeHttp()
        with pytest.raises(AuthenticationError):
            ApiClient(session, http=http).get_my_profile()
        assert http.calls == []

    def test_unauthorized_clears_session(self, logged_in):
        http = FakeHttp(_response(401, {"message": "jwt expired"}))
        with pytest.raises(AuthenticationError):
            ApiClient(logged_in, http=http).submit_profile({"companyName": "Acme"})
        assert not logged_in.is_authenticated

    def test_server_error(self, logged_in):
        http = FakeHttp(_response(500, {"error": "boom"}))
        with pytest.raises(ApiError) as exc:
            ApiClient(logged_in, http=http).get_buyer_profile()
        assert exc.value.status == 500
        assert not isinstance(exc.value, AuthenticationError)
        assert logged_in.is_authenticated

    def test_transport_error_wrapped(self, logged_in):
        http = FakeHttp(requests.ConnectionError("refused"))
        with pytest.raises(ApiError, match="Could not reach the API") as exc:
            ApiClient(logged_in, http=http).get_buyer_profile()
        assert isinstance(exc.value.__cause__, requests.ConnectionError)

    def test_submit_posts_payload(self, logged_in):
        http = FakeHttp(_response(200, {"_id": "p-1"}))
        payload = {"companyName": "Acme", "targetCriteria": {"countries": ["Europe"]}}
        assert ApiClient(logged_in, http=http).submit_profile(payload) == {"_id": "p-1"}
        assert http.calls[0]["method"] == "POST"
        assert http.calls[0]["json"] == payload

    def test_check_profile_unsupported(self, logged_in):
        http = FakeHttp(_response(404))
        assert ApiClient(logged_in, http=http).check_profile() is None

    def test_check_profile_expired(self, logged_in):
        http = FakeHttp(_response(401))
        with pytest.raises(AuthenticationError):
            ApiClient(logged_in, http=http).check_profile()

    def test_check_profile_ok(self, logged_in):
        http = FakeHttp(_response(200, {"exists": True}))
        assert ApiClient(logged_in, http=http).check_profile() == {"exists": True}
