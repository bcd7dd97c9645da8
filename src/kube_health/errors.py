"""Errors raised while scanning a cluster."""

from __future__ import annotations


class ClusterHealthError(Exception):
    """Base class for scan failures.

    ``resource`` names the resource kind involved (``nodes``, ``pods``,
    ``events``) when known, ``cause`` holds the underlying exception.
    """

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.resource = resource
        self.cause = cause


class ClusterUnreachable(ClusterHealthError):
    """The API server could not be reached."""


class Unauthorized(ClusterHealthError):
    """Credentials were rejected or could not be resolved."""


class ResourceListError(ClusterHealthError):
    """The API returned an error or a malformed list for a resource kind."""


class MalformedSnapshot(ClusterHealthError):
    """A snapshot entity is missing fields the rules need."""


class ScanTimeout(ClusterHealthError):
    """The scan deadline was exceeded."""
