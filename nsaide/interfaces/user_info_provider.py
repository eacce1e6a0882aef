"""Abstract base class for forum user-profile lookups."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IUserInfoProvider(ABC):
    """Contract for fetching one user's profile from the forum."""

    @abstractmethod
    async def fetch_user_info(self, user_id: str) -> dict[str, Any]:
        """Return the profile object for *user_id*.

        Raises
        ------
        TransportError
            On network failure, a non-2xx status, or an API response that
            reports failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
