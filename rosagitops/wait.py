# SPDX-License-Identifier: Apache-2.0

from loguru import logger

from rosagitops import settings
from rosagitops.kube import UnexpectedResponseError, UnreachableError
from rosagitops.utils import wait_for


def kind_available(discovery, kind):
    """Check whether a discovery document serves the given kind.

    A resource matches when its kind is the requested kind or its name
    (the lower-case plural) starts with the lower-cased kind.
    """
    if not discovery:
        return False

    kind_lower = kind.lower()
    for resource in discovery.get("resources", []):
        if resource.get("kind", "").lower() == kind_lower:
            return True
        if resource.get("name", "").lower().startswith(kind_lower):
            return True
    return False


def wait_for_kind(
    client,
    group,
    version,
    kind,
    timeout=settings.OPERATOR_WAIT_TIMEOUT,
    delay=settings.WAIT_DELAY,
    max_delay=settings.WAIT_MAX_DELAY,
    **kwargs,
):
    """Wait until the API server serves kind in group/version.

    Authentication errors abort the wait. A missing group, an error from
    the aggregated API or a dropped connection just means "not yet".

    Returns:
        int: Number of checks that were needed

    Raises:
        WaitTimeout: the kind did not show up in time
    """

    def check():
        try:
            discovery = client.api_resources(group, version)
        except (UnexpectedResponseError, UnreachableError) as exc:
            logger.debug(f"Discovery of {group}/{version} failed: {exc}")
            return False
        return kind_available(discovery, kind)

    logger.info(f"Waiting for {kind} CRD ({group}/{version})")
    attempts = wait_for(
        check,
        timeout,
        delay=delay,
        max_delay=max_delay,
        description=f"{kind} CRD",
        **kwargs,
    )
    logger.success(f"{kind} CRD is ready (attempt {attempts})")
    return attempts
