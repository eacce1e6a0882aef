"""HTTP adapters built on a shared ``httpx.AsyncClient``."""

from nsaide.providers.http.resource_fetcher import HttpResourceFetcher
from nsaide.providers.http.user_info_provider import NodeSeekUserInfoProvider

__all__ = ["HttpResourceFetcher", "NodeSeekUserInfoProvider"]
