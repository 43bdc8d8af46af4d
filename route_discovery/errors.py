"""Error taxonomy for route discovery.

Only collaborator failures are exceptions. Expected "return empty" outcomes
(route too short, nothing enabled) are DiscoveryOutcome values instead.
"""
from __future__ import annotations

from typing import Optional


class DiscoveryError(RuntimeError):
    pass


class SearchUnavailableError(DiscoveryError):
    """A search provider failed or reported that the search mode is unavailable."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LookupUnavailableError(DiscoveryError):
    pass
