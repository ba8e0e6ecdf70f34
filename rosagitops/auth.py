# SPDX-License-Identifier: Apache-2.0

"""Cluster credentials for the GitOps bootstrap.

An OAuth bearer token is obtained once with the htpasswd user, it is used
to create a persistent ServiceAccount whose token replaces it afterwards.
"""

import base64
from dataclasses import asdict, dataclass
import re
import time
from urllib.parse import parse_qs, urlparse

from loguru import logger
import requests

from rosagitops import settings
from rosagitops.data import (
    TEMPLATE_CLUSTER_ROLE_BINDING,
    TEMPLATE_SERVICE_ACCOUNT,
    TEMPLATE_SERVICE_ACCOUNT_TOKEN,
)
from rosagitops.utils import render_manifest, wait_for

CHALLENGING_CLIENT = "openshift-challenging-client"


class PermanentAuthError(Exception):
    """Retrying will not help (wrong credentials, forbidden)."""


class TransientAuthError(Exception):
    pass


@dataclass
class TokenResult:
    token: str = ""
    authenticated: str = "false"
    error: str = ""

    def as_dict(self):
        return asdict(self)


def cluster_domain(api_url):
    """api.<cluster>.<domain>:6443 -> <cluster>.<domain>"""
    host = urlparse(api_url).hostname or api_url
    return re.sub(r"^api\.", "", host)


def is_reachable(session, url, timeout=10):
    for candidate in (f"{url}/healthz", url):
        try:
            session.get(candidate, timeout=timeout, allow_redirects=True)
            return True
        except requests.RequestException:
            continue
    return False


def discover_oauth_url(session, api_url):
    """Find the OAuth server of a cluster.

    The issuer from the .well-known document works for Classic and HCP.
    If the API does not answer, both URL patterns are probed; HCP first
    (oauth.<domain>), then Classic (oauth-openshift.apps.<domain>), which
    is also the default when neither answers.
    """
    api_url = api_url.rstrip("/")

    try:
        response = session.get(
            f"{api_url}/.well-known/oauth-authorization-server", timeout=30
        )
        if response.status_code == 200:
            payload = response.json()
            issuer = payload.get("issuer") if isinstance(payload, dict) else None
            if issuer:
                logger.debug(f"Discovered OAuth URL: {issuer}")
                return issuer.rstrip("/")
    except (requests.RequestException, ValueError) as exc:
        logger.debug(f"OAuth discovery failed: {exc}")

    domain = cluster_domain(api_url)
    hcp_url = f"https://oauth.{domain}"
    classic_url = f"https://oauth-openshift.apps.{domain}"

    logger.debug(f"Discovery failed, trying HCP pattern: {hcp_url}")
    if is_reachable(session, hcp_url, timeout=10):
        return hcp_url

    logger.debug(f"HCP pattern not reachable, trying Classic pattern: {classic_url}")
    if is_reachable(session, classic_url, timeout=10):
        return classic_url

    logger.debug(f"Neither pattern answered, defaulting to Classic: {classic_url}")
    return classic_url


def token_from_location(location):
    """Extract access_token from the fragment of an OAuth redirect."""
    parsed = urlparse(location or "")
    for part in (parsed.fragment, parsed.query):
        values = parse_qs(part).get("access_token")
        if values:
            return values[0]
    return None


def request_token(session, oauth_url, username, password):
    """One attempt of the challenging client implicit flow.

    The token is in the Location header of the 302 answer, so redirects
    must not be followed.

    Raises:
        PermanentAuthError: 401 or 403
        TransientAuthError: everything else that did not yield a token
    """
    if not is_reachable(session, oauth_url):
        raise TransientAuthError("oauth_not_reachable")

    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode()
    try:
        response = session.get(
            f"{oauth_url}/oauth/authorize",
            params={"response_type": "token", "client_id": CHALLENGING_CLIENT},
            headers={
                "Authorization": f"Basic {credentials}",
                "X-CSRF-Token": "1",
            },
            allow_redirects=False,
            timeout=30,
        )
    except requests.RequestException as exc:
        raise TransientAuthError("auth_failed") from exc

    token = token_from_location(response.headers.get("Location"))
    if token:
        return token

    if response.status_code == 401:
        raise PermanentAuthError("invalid credentials")
    if response.status_code == 403:
        raise PermanentAuthError("access forbidden")

    raise TransientAuthError("auth_failed")


def get_token(
    session,
    api_url,
    username,
    password,
    oauth_url=None,
    max_retries=settings.OAUTH_MAX_RETRIES,
    initial_wait=settings.OAUTH_INITIAL_WAIT,
    max_wait=settings.OAUTH_MAX_WAIT,
    sleep=time.sleep,
):
    """Obtain an OAuth token, retrying while the OAuth server reconciles.

    Never raises; failures are reported in TokenResult.error so that the
    result can always be handed to Terraform as JSON.
    """
    if not api_url:
        return TokenResult(error="api_url not provided in input")
    if not username or not password:
        return TokenResult(error="username and password are required")

    if oauth_url:
        logger.debug(f"Using provided OAuth URL: {oauth_url}")
    else:
        oauth_url = discover_oauth_url(session, api_url)
    oauth_url = oauth_url.rstrip("/")

    logger.info(f"OAuth URL: {oauth_url}, username: {username}")

    wait = initial_wait
    last_error = ""
    for attempt in range(1, max_retries + 1):
        try:
            token = request_token(session, oauth_url, username, password)
            return TokenResult(token=token, authenticated="true")
        except PermanentAuthError as exc:
            return TokenResult(error=str(exc))
        except TransientAuthError as exc:
            last_error = str(exc)

        if attempt < max_retries:
            logger.warning(
                f"OAuth token retrieval attempt {attempt} failed ({last_error}), retrying in {wait}s"
            )
            sleep(wait)
            wait = min(wait * 2, max_wait)

    logger.error(f"All {max_retries} attempts exhausted. Last error: {last_error}")
    logger.error("The OAuth server may still be reconciling after IDP changes.")
    logger.error("Wait a few minutes and re-run: terraform apply -var-file=<your>.tfvars")

    if last_error == "oauth_not_reachable":
        error = (
            f"oauth server not reachable after {max_retries} attempts. OAuth may "
            "still be reconciling - re-run terraform apply to retry."
        )
    elif last_error == "auth_failed":
        error = (
            f"authentication failed after {max_retries} attempts. IDP may still be "
            "initializing - re-run terraform apply to retry."
        )
    else:
        error = (
            f"authentication failed after {max_retries} attempts: {last_error}. "
            "Re-run terraform apply to retry."
        )
    return TokenResult(error=error)


def service_account_token(
    client,
    name="terraform-gitops",
    namespace=settings.GITOPS_NAMESPACE,
    cluster_role="cluster-admin",
    timeout=60,
    **wait_kwargs,
):
    """Create a ServiceAccount with a long-lived token and return the token.

    The namespace must exist. Re-running returns the token of the existing
    secret.
    """
    client.apply_manifest(
        render_manifest(TEMPLATE_SERVICE_ACCOUNT, name=name, namespace=namespace)
    )
    client.apply_manifest(
        render_manifest(
            TEMPLATE_CLUSTER_ROLE_BINDING,
            name=f"{name}-{cluster_role}",
            cluster_role=cluster_role,
            service_account=name,
            namespace=namespace,
        )
    )
    client.apply_manifest(
        render_manifest(TEMPLATE_SERVICE_ACCOUNT_TOKEN, name=name, namespace=namespace)
    )

    path = f"/api/v1/namespaces/{namespace}/secrets/{name}-token"
    found = {}

    def populated():
        secret = client.get_json(path) or {}
        encoded = (secret.get("data") or {}).get("token")
        if encoded:
            found["value"] = base64.b64decode(encoded).decode("utf-8")
        return bool(encoded)

    wait_for(
        populated,
        timeout,
        delay=wait_kwargs.pop("delay", 2),
        max_delay=wait_kwargs.pop("max_delay", 10),
        description=f"token of service account {namespace}/{name}",
        **wait_kwargs,
    )
    return found["value"]
