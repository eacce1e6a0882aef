"""Feature-module plugin catalog."""

from nsaide.modules.catalog import ModuleCatalog, ModuleFactory

__all__ = ["ModuleCatalog", "ModuleFactory"]
