# SPDX-License-Identifier: Apache-2.0

from enum import Enum


class Outcome(Enum):
    """Result of a single create call against the cluster API.

    CREATED and ALREADY_EXISTS are both successes, the latter keeps a
    repeated apply idempotent. NOT_READY is returned for optional calls
    whose CRD is not served yet. IGNORED is an unexpected status on an
    optional call. FATAL always aborts.
    """

    CREATED = "created"
    ALREADY_EXISTS = "already exists"
    NOT_READY = "not ready"
    IGNORED = "ignored"
    FATAL = "fatal"


class CheckStatus(Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"
