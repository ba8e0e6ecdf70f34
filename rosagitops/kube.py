# SPDX-License-Identifier: Apache-2.0

"""Thin client for the Kubernetes/OpenShift REST API.

Every create call is a POST of a YAML document. The HTTP status is mapped
to an Outcome so that a repeated run is idempotent: an object that already
exists counts as success, an API that is not served yet can be skipped on
optional calls.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from loguru import logger
import requests
import yaml

from rosagitops import settings
from rosagitops.core.enums import Outcome
from rosagitops.utils import SessionManager


class ApiError(Exception):
    """Base class for fatal cluster API errors."""

    def __init__(self, message, status_code=None, body=""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(ApiError):
    pass


class UnreachableError(ApiError):
    pass


class UnexpectedResponseError(ApiError):
    pass


@dataclass
class ApplyResult:
    outcome: Outcome
    status_code: Optional[int]
    description: str
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FATAL


def classify(status_code: Optional[int], optional: bool = False) -> Outcome:
    """Map the status of a create call to an Outcome."""
    if status_code in (200, 201):
        return Outcome.CREATED
    if status_code == 409:
        return Outcome.ALREADY_EXISTS
    if status_code is None or status_code in (401, 403):
        return Outcome.FATAL
    if optional:
        if status_code == 404:
            return Outcome.NOT_READY
        return Outcome.IGNORED
    return Outcome.FATAL


def excerpt(body: str, lines: int = 5) -> str:
    return "\n".join((body or "").splitlines()[:lines])


def plural(kind: str) -> str:
    """Resource name of a kind as used in API paths (ArgoCD -> argocds)."""
    name = kind.lower()
    if name.endswith("y") and name[-2:-1] not in "aeiou":
        return name[:-1] + "ies"
    if name.endswith("s"):
        return name + "es"
    return name + "s"


def api_prefix(api_version: str) -> str:
    if "/" in api_version:
        return f"/apis/{api_version}"
    return f"/api/{api_version}"


def resource_path(
    api_version: str,
    kind: str,
    namespace: Optional[str] = None,
    name: Optional[str] = None,
) -> str:
    """Collection path of a kind, or the object path when a name is given."""
    path = api_prefix(api_version)
    if namespace:
        path += f"/namespaces/{namespace}"
    path += f"/{plural(kind)}"
    if name:
        path += f"/{name}"
    return path


def manifest_path(manifest: Dict[str, Any]) -> str:
    metadata = manifest.get("metadata") or {}
    return resource_path(
        manifest["apiVersion"], manifest["kind"], metadata.get("namespace")
    )


class KubeClient:
    """Bearer token authenticated access to one cluster API server."""

    def __init__(
        self,
        api_url: str,
        token: str,
        session: Optional[requests.Session] = None,
        ignore_ssl_errors: bool = settings.IGNORE_SSL_ERRORS,
        timeout: int = settings.REQUEST_TIMEOUT,
    ):
        self.api_url = (api_url or "").rstrip("/")
        self.token = token or ""
        self.session = session or SessionManager.get_session(
            ignore_ssl_errors=ignore_ssl_errors, timeout=timeout
        )

    def request(
        self,
        method: str,
        path: str,
        body: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        content_type: str = "application/yaml",
    ) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }
        if body is not None:
            headers["Content-Type"] = content_type

        try:
            return self.session.request(
                method,
                f"{self.api_url}{path}",
                headers=headers,
                data=body,
                params=params,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise UnreachableError(
                f"No response from {self.api_url}, cluster may be unreachable: {exc}"
            ) from exc

    def get(self, path: str, params: Optional[Dict[str, Any]] = None):
        return self.request("GET", path, params=params)

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None):
        """GET an object. Returns None if it does not exist."""
        response = self.get(path, params=params)

        if response.status_code == 404:
            return None
        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed for GET {path}",
                response.status_code,
                response.text,
            )
        if response.status_code != 200:
            raise UnexpectedResponseError(
                f"Unexpected response {response.status_code} for GET {path}",
                response.status_code,
                response.text,
            )

        return response.json()

    def get_text(self, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        response = self.get(path, params=params)
        if response.status_code == 200:
            return response.text
        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed for GET {path}",
                response.status_code,
                response.text,
            )
        return ""

    def api_resources(self, group: str, version: str):
        """Discovery document of an API group version, None if not served."""
        return self.get_json(f"/apis/{group}/{version}")

    def create(
        self,
        path: str,
        body: Union[str, Dict[str, Any]],
        description: str,
        optional: bool = False,
    ) -> ApplyResult:
        """POST a document and interpret the status code.

        Raises:
            AuthenticationError: 401 or 403
            UnreachableError: no response at all
            UnexpectedResponseError: any other failure on a strict call
        """
        if not isinstance(body, str):
            body = yaml.safe_dump(body, sort_keys=False)

        logger.info(f">>> {description}")
        response = self.request("POST", path, body=body)
        status_code = response.status_code
        text = response.text or ""
        logger.info(f"HTTP Status: {status_code}")

        outcome = classify(status_code, optional)
        result = ApplyResult(outcome, status_code, description, text)

        if outcome is Outcome.CREATED:
            logger.success("SUCCESS")
        elif outcome is Outcome.ALREADY_EXISTS:
            logger.info("OK (already exists)")
        elif outcome is Outcome.NOT_READY:
            logger.warning("SKIPPED: CRD not ready yet (operator still installing)")
            logger.warning(
                "Re-run 'terraform apply' after the operator finished installing"
            )
        elif outcome is Outcome.IGNORED:
            logger.warning("Unexpected response (continuing anyway)")
            logger.warning(excerpt(text))
        elif status_code in (401, 403):
            logger.error(excerpt(text))
            raise AuthenticationError(
                f"Authentication failed: {description}", status_code, text
            )
        else:
            logger.error(excerpt(text, 10))
            raise UnexpectedResponseError(
                f"Unexpected response {status_code}: {description}", status_code, text
            )

        return result

    def apply_manifest(
        self,
        manifest: Dict[str, Any],
        optional: bool = False,
        description: Optional[str] = None,
    ) -> ApplyResult:
        if description is None:
            metadata = manifest.get("metadata") or {}
            description = f"Creating {manifest['kind']} {metadata.get('name', '')}".strip()
        return self.create(manifest_path(manifest), manifest, description, optional)
