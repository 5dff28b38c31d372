"""Failures raised at the persistence boundary."""

from __future__ import annotations


class PersistenceError(Exception):
    """A repository read or write did not complete."""


class DuplicateOpenDelayError(PersistenceError):
    """A second open delay was inserted for a site that already has one.

    The storage-level form of the "one open delay per site" rule.  The
    lifecycle tracker treats it as a benign race and continues the
    existing delay.
    """

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id
        super().__init__(f"Site {site_id} already has an open delay")
