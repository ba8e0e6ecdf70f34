# SPDX-License-Identifier: Apache-2.0

from rosagitops.version import __version__  # noqa: F401
