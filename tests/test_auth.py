# SPDX-License-Identifier: Apache-2.0

import base64

import pytest
import requests

from rosagitops import auth
from rosagitops.kube import KubeClient

from .fakes import API_URL, FakeResponse, FakeSession

OAUTH_URL = "https://oauth.test.abcd.p1.openshiftapps.com"
LOCATION = (
    f"{OAUTH_URL}/oauth/token/implicit#access_token=sha256~secret"
    "&expires_in=86400&scope=user%3Afull&token_type=Bearer"
)


def oauth_server(authorize):
    """OAuth server whose healthz answers and whose authorize endpoint
    returns the given responses in order."""
    responses = iter(authorize)

    def handler(method, url, **kwargs):
        if url.endswith("/oauth/authorize"):
            return next(responses)
        return FakeResponse(200, text="ok")

    return FakeSession(handler)


def test_cluster_domain():
    assert auth.cluster_domain(API_URL) == "test.abcd.p1.openshiftapps.com"


def test_token_from_location():
    assert auth.token_from_location(LOCATION) == "sha256~secret"
    assert auth.token_from_location(f"{OAUTH_URL}/oauth/token/implicit") is None
    assert auth.token_from_location(None) is None


def test_discover_oauth_url_from_well_known():
    session = FakeSession(
        lambda method, url, **kwargs: FakeResponse(200, {"issuer": f"{OAUTH_URL}/"})
    )

    assert auth.discover_oauth_url(session, API_URL) == OAUTH_URL


def test_discover_oauth_url_hcp_pattern():
    def handler(method, url, **kwargs):
        if url.startswith("https://oauth.test"):
            return FakeResponse(200, text="ok")
        raise requests.ConnectionError("unreachable")

    session = FakeSession(handler)

    assert auth.discover_oauth_url(session, API_URL) == OAUTH_URL


def test_discover_oauth_url_defaults_to_classic():
    def handler(method, url, **kwargs):
        raise requests.ConnectionError("unreachable")

    session = FakeSession(handler)

    assert (
        auth.discover_oauth_url(session, API_URL)
        == "https://oauth-openshift.apps.test.abcd.p1.openshiftapps.com"
    )


def test_request_token():
    session = oauth_server([FakeResponse(302, headers={"Location": LOCATION})])

    assert auth.request_token(session, OAUTH_URL, "admin", "password") == "sha256~secret"

    _, url, kwargs = session.calls[-1]
    assert kwargs["allow_redirects"] is False
    assert kwargs["headers"]["X-CSRF-Token"] == "1"
    assert kwargs["params"]["client_id"] == "openshift-challenging-client"
    expected = base64.b64encode(b"admin:password").decode()
    assert kwargs["headers"]["Authorization"] == f"Basic {expected}"


@pytest.mark.parametrize(
    "status_code, message", [(401, "invalid credentials"), (403, "access forbidden")]
)
def test_request_token_permanent_errors(status_code, message):
    session = oauth_server([FakeResponse(status_code)])

    with pytest.raises(auth.PermanentAuthError) as excinfo:
        auth.request_token(session, OAUTH_URL, "admin", "wrong")
    assert str(excinfo.value) == message


def test_get_token_retries_transient_errors():
    session = oauth_server(
        [
            FakeResponse(500),
            FakeResponse(302, headers={"Location": f"{OAUTH_URL}/login"}),
            FakeResponse(302, headers={"Location": LOCATION}),
        ]
    )
    sleeps = []

    result = auth.get_token(
        session, API_URL, "admin", "password", oauth_url=OAUTH_URL, sleep=sleeps.append
    )

    assert result.as_dict() == {
        "token": "sha256~secret",
        "authenticated": "true",
        "error": "",
    }
    assert sleeps == [10, 20]


def test_get_token_does_not_retry_invalid_credentials():
    session = oauth_server([FakeResponse(401)])
    sleeps = []

    result = auth.get_token(
        session, API_URL, "admin", "wrong", oauth_url=OAUTH_URL, sleep=sleeps.append
    )

    assert result.authenticated == "false"
    assert result.error == "invalid credentials"
    assert sleeps == []


def test_get_token_gives_up():
    def handler(method, url, **kwargs):
        raise requests.ConnectionError("unreachable")

    sleeps = []

    result = auth.get_token(
        FakeSession(handler),
        API_URL,
        "admin",
        "password",
        oauth_url=OAUTH_URL,
        max_retries=4,
        sleep=sleeps.append,
    )

    assert result.token == ""
    assert "oauth server not reachable after 4 attempts" in result.error
    assert sleeps == [10, 20, 30]


def test_get_token_missing_input():
    session = FakeSession()

    assert auth.get_token(session, "", "admin", "pw").error == "api_url not provided in input"
    assert auth.get_token(session, API_URL, "admin", "").error
    assert session.calls == []


def test_service_account_token():
    encoded = base64.b64encode(b"eyJhbGciOi").decode()

    def handler(method, url, **kwargs):
        if method == "GET":
            return FakeResponse(200, {"data": {"token": encoded}})
        return FakeResponse(201, {})

    session = FakeSession(handler)
    client = KubeClient(API_URL, "sha256~secret", session=session)

    assert auth.service_account_token(client) == "eyJhbGciOi"

    kinds = [call[1].rsplit("/", 1)[-1] for call in session.posted()]
    assert kinds == ["serviceaccounts", "clusterrolebindings", "secrets"]
    assert session.calls[-1][1].endswith(
        "/api/v1/namespaces/openshift-gitops/secrets/terraform-gitops-token"
    )


def test_discover_oauth_url_ignores_non_object_document():
    def handler(method, url, **kwargs):
        if url.endswith("/.well-known/oauth-authorization-server"):
            return FakeResponse(200, ["not", "an", "object"])
        raise requests.ConnectionError("unreachable")

    assert (
        auth.discover_oauth_url(FakeSession(handler), API_URL)
        == "https://oauth-openshift.apps.test.abcd.p1.openshiftapps.com"
    )
