"""NodeSeek user-profile provider.

Calls ``GET {forum_base_url}/api/account/getInfo/{user_id}``, which answers
``{"success": true, "detail": {...}}`` on success.  The endpoint needs the
forum session cookie, configured via ``NSAIDE_FORUM_SESSION_COOKIE``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from nsaide.config.settings import Settings
from nsaide.interfaces.user_info_provider import IUserInfoProvider
from nsaide.utils.errors import TransportError

logger = structlog.get_logger(logger_name=__name__)


class NodeSeekUserInfoProvider(IUserInfoProvider):
    """:class:`IUserInfoProvider` for the NodeSeek account API."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._settings = settings
        self._client = http_client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._settings.forum_session_cookie:
            headers["Cookie"] = self._settings.forum_session_cookie
        return headers

    async def fetch_user_info(self, user_id: str) -> dict[str, Any]:
        url = self._settings.user_info_url(user_id)
        try:
            response = await self._client.get(url, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                message=f"HTTP {exc.response.status_code} for user {user_id}",
                provider_name=self.get_provider_name(),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                message=f"Request for user {user_id} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                message=f"Non-JSON response for user {user_id}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict) or not payload.get("success"):
            raise TransportError(
                message=f"API reported failure for user {user_id}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
            )

        detail = payload.get("detail")
        if not isinstance(detail, dict):
            raise TransportError(
                message=f"Response for user {user_id} has no detail object",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
            )

        logger.debug("user_info_fetched", user_id=user_id)
        return detail

    def get_provider_name(self) -> str:
        return "nodeseek_user_info"
