"""Module-system models.

``ModuleManifest`` mirrors the remote ``config.json``::

    {"modules": [{"id": "userDataService", "name": "...", "url": "https://..."}]}

Unknown keys in the manifest are ignored so that newer manifests keep
loading on older clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from nsaide.interfaces.feature_module import IFeatureModule


class ModuleInfo(BaseModel):
    """One manifest entry."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    name: str = ""
    url: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id


class ModuleManifest(BaseModel):
    """The remote list of modules to load."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    modules: list[ModuleInfo] = Field(default_factory=list)


@dataclass
class ModuleDescriptor:
    """A registered module.

    ``enabled`` is read from the persisted per-module setting once, at
    registration, and is not re-read for the rest of the session.
    """

    id: str
    name: str
    module: IFeatureModule
    enabled: bool = True


@dataclass(frozen=True)
class ModuleInitOutcome:
    """Whether one module's ``init()`` completed."""

    module_id: str
    ok: bool
    error: str | None = None


@dataclass
class BootstrapReport:
    """Summary of a bootstrap run."""

    manifest_loaded: bool = False
    loaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    init_outcomes: list[ModuleInitOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def initialised(self) -> list[str]:
        return [o.module_id for o in self.init_outcomes if o.ok]
