"""Exception types shared by the ReelHub services."""

from __future__ import annotations


class ReelHubError(Exception):
    """Base class for service level failures."""


class CatalogUnavailable(ReelHubError):
    """The media catalog could not produce a usable payload.

    Raised for transport errors, non-2xx responses and malformed bodies alike;
    callers treat every variant as the same generic failure.
    """


class StorageUnavailable(ReelHubError):
    """The favorites/reviews store could not be read or written."""
