"""Static catalog of the feature modules this build can run.

The remote manifest names modules by id; the catalog maps each id to a
factory that builds the module from its manifest entry and the payload
text fetched from the entry's URL.  Ids not in the catalog cannot be
loaded, so nothing downloaded is ever executed.
"""

from __future__ import annotations

from typing import Callable, Iterable

from nsaide.interfaces.feature_module import IFeatureModule
from nsaide.models.module import ModuleInfo
from nsaide.utils.errors import ConfigurationError, ModuleLoadError

ModuleFactory = Callable[[ModuleInfo, str], IFeatureModule]


class ModuleCatalog:
    """Mapping of module id to :data:`ModuleFactory`."""

    def __init__(self) -> None:
        self._factories: dict[str, ModuleFactory] = {}

    def register(self, module_id: str, factory: ModuleFactory) -> None:
        if module_id in self._factories:
            raise ConfigurationError(f"Module '{module_id}' is already in the catalog")
        self._factories[module_id] = factory

    def register_instance(self, module: IFeatureModule) -> None:
        """Offer an already-built module under its own id."""
        self.register(module.id, lambda _info, _payload: module)

    def resolve(self, module_id: str) -> ModuleFactory:
        try:
            return self._factories[module_id]
        except KeyError:
            raise ModuleLoadError(
                message=f"Module '{module_id}' is not available in this build",
                module_id=module_id,
            ) from None

    def restricted_to(self, module_ids: Iterable[str]) -> ModuleCatalog:
        """Return a copy offering only *module_ids*."""
        allowed = set(module_ids)
        narrowed = ModuleCatalog()
        for module_id, factory in self._factories.items():
            if module_id in allowed:
                narrowed.register(module_id, factory)
        return narrowed

    def ids(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._factories
