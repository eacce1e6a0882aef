"""Plugin contract for forum feature modules.

A feature module is a Python object registered in the
:class:`~nsaide.modules.catalog.ModuleCatalog` at startup.  The remote
manifest decides which catalog entries are loaded; module code itself is
never fetched and executed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IFeatureModule(ABC):
    """Contract for feature modules managed by the module registry."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Stable identifier; also the manifest ``id`` and settings key."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name used in logs."""

    @abstractmethod
    async def init(self) -> None:
        """Start the module.

        Called once per session for enabled modules.  An exception here is
        logged by the registry and does not affect other modules.
        """
