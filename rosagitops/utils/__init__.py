# SPDX-License-Identifier: Apache-2.0

import atexit
import threading
import time

import jinja2
from loguru import logger
import requests
from requests.adapters import HTTPAdapter
import urllib3
import yaml


class WaitTimeout(TimeoutError):
    """Raised by wait_for when the deadline passed before the check succeeded."""


class TimeoutHTTPAdapter(HTTPAdapter):
    """HTTPAdapter that sets a default timeout for all requests."""

    def __init__(
        self, timeout=None, pool_connections=10, pool_maxsize=10, *args, **kwargs
    ):
        self.timeout = timeout
        super().__init__(
            pool_connections=pool_connections,
            pool_maxsize=pool_maxsize,
            *args,
            **kwargs,
        )

    def send(self, request, **kwargs):
        if kwargs.get("timeout") is None and self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


class SessionManager:
    """Manages a shared HTTP session for all cluster API connections.

    The session is created lazily on first use and closed at interpreter
    exit.
    """

    _session = None
    _lock = threading.Lock()

    @classmethod
    def get_session(cls, ignore_ssl_errors=False, timeout=30):
        """Get or create the shared session (lazy initialization).

        Args:
            ignore_ssl_errors: Whether to ignore SSL certificate errors
            timeout: Request timeout in seconds (default: 30)

        Returns:
            requests.Session: The shared session instance
        """
        if cls._session is None:
            with cls._lock:
                if cls._session is None:
                    cls._session = create_session(ignore_ssl_errors, timeout)
        return cls._session

    @classmethod
    def close_session(cls):
        """Close the shared session and release resources."""
        if cls._session is not None:
            cls._session.close()
            cls._session = None


def create_session(ignore_ssl_errors=False, timeout=30):
    session = requests.Session()
    adapter = TimeoutHTTPAdapter(timeout=timeout, pool_connections=10, pool_maxsize=10)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if ignore_ssl_errors:
        urllib3.disable_warnings()
        session.verify = False
    return session


atexit.register(SessionManager.close_session)


def wait_for(
    check,
    timeout,
    delay=5.0,
    max_delay=30.0,
    factor=2.0,
    description="condition",
    sleep=time.sleep,
    clock=time.monotonic,
):
    """Call check() until it returns a truthy value or the deadline passes.

    The pause between two checks starts at delay and grows by factor up to
    max_delay. A pause never extends past the deadline, so the last check
    happens right at the deadline.

    Args:
        check: Callable without arguments
        timeout: Total time budget in seconds
        delay: First pause in seconds
        max_delay: Upper bound for a single pause
        factor: Growth factor of the pause
        description: Used in log and error messages

    Returns:
        int: Number of checks that were needed

    Raises:
        WaitTimeout: check() did not succeed before the deadline
    """
    deadline = clock() + timeout
    attempt = 0

    while True:
        attempt += 1
        if check():
            return attempt

        remaining = deadline - clock()
        if remaining <= 0:
            raise WaitTimeout(
                f"{description} not ready after {timeout}s ({attempt} attempts)"
            )

        pause = min(delay, remaining)
        logger.info(
            f"Waiting for {description}... (attempt {attempt}, next check in {pause:.0f}s)"
        )
        sleep(pause)
        delay = min(delay * factor, max_delay)


def render_template(template, **parameters):
    environment = jinja2.Environment(
        trim_blocks=True, lstrip_blocks=True, undefined=jinja2.StrictUndefined
    )
    return environment.from_string(template).render(parameters)


def render_manifest(template, **parameters):
    """Render a manifest template and parse the result.

    Parsing catches broken templates before anything is sent to the
    cluster.
    """
    return yaml.safe_load(render_template(template, **parameters))


# https://stackoverflow.com/questions/2361426/get-the-first-item-from-an-iterable-that-matches-a-condition
def first(iterable, condition=lambda x: True, default=None):
    """
    Returns the first item in the `iterable` that
    satisfies the `condition`, or `default` if there is none.

    >>> first( (1,2,3), condition=lambda x: x % 2 == 0)
    2
    >>> first( () ) is None
    True
    """

    return next((x for x in iterable if condition(x)), default)
