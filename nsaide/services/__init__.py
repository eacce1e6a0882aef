"""Application services: caching orchestration and the module system."""

from nsaide.services.bootstrap import Bootstrap
from nsaide.services.module_registry import ModuleRegistry
from nsaide.services.module_settings import ModuleSettings
from nsaide.services.request_coalescer import RequestCoalescer
from nsaide.services.resource_loader import RemoteResourceLoader
from nsaide.services.user_data_service import UserDataService

__all__ = [
    "Bootstrap",
    "ModuleRegistry",
    "ModuleSettings",
    "RemoteResourceLoader",
    "RequestCoalescer",
    "UserDataService",
]
