"""Exception taxonomy shared by the scan pipeline and its callers.

Per-site network problems are never raised; they end up as terminal site
statuses. These exceptions cover the conditions that abort a whole run.
"""

from __future__ import annotations


class ScoutError(Exception):
    """Base class for every leadscout failure."""


class ScanInputError(ScoutError, ValueError):
    """Caller input was rejected before any fetch started."""


class PolicyError(ScoutError, ValueError):
    """A keyword policy could not be built from the supplied terms."""


class ScanError(ScoutError, RuntimeError):
    """Unrecoverable internal defect while running a batch."""
