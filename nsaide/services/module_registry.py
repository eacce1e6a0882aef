"""Registry of feature modules and their one-time initialisation.

# ─── MODULE LIFECYCLE ─────────────────────────────────────────────────
#
#   register(module)  → descriptor stored, ``enabled`` read once
#   init_all()        → every enabled module's init() runs concurrently;
#                       a failure is logged and recorded, never propagated
#   ready             → fires after every init has settled
#
# Components that need the module system await
# ``wait_until_ready(timeout)`` instead of polling for it.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import inspect

import structlog

from nsaide.interfaces.feature_module import IFeatureModule
from nsaide.models.module import ModuleDescriptor, ModuleInitOutcome
from nsaide.services.module_settings import ModuleSettings
from nsaide.utils.concurrency import ReadinessSignal, settle_all
from nsaide.utils.logging import get_logger


class ModuleRegistry:
    """Holds registered modules and runs their ``init`` hooks once.

    Parameters
    ----------
    settings:
        Source of the persisted per-module enablement flags.
    version:
        Application version, reported in log lines.
    """

    def __init__(self, settings: ModuleSettings, version: str = "") -> None:
        self._settings = settings
        self._version = version
        self._modules: dict[str, ModuleDescriptor] = {}
        self._ready = ReadinessSignal("module_registry")
        self._init_task: asyncio.Task[list[ModuleInitOutcome]] | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register(self, module: IFeatureModule | None) -> ModuleDescriptor | None:
        """Register *module*; returns ``None`` when it has no id.

        Registering an id twice replaces the earlier descriptor.
        """
        module_id = getattr(module, "id", None) if module is not None else None
        if not module_id:
            self._logger.warning("module_rejected", reason="missing id")
            return None

        enabled = await self._settings.is_enabled(module_id)
        descriptor = ModuleDescriptor(
            id=module_id,
            name=module.name or module_id,
            module=module,
            enabled=enabled,
        )
        self._modules[module_id] = descriptor
        self._logger.info("module_registered", module_id=module_id, name=descriptor.name, enabled=enabled)
        return descriptor

    async def set_enabled(self, module_id: str, enabled: bool) -> None:
        """Persist *module_id*'s switch; takes effect from the next session."""
        await self._settings.set_enabled(module_id, enabled)

    def get(self, module_id: str) -> ModuleDescriptor | None:
        return self._modules.get(module_id)

    @property
    def modules(self) -> list[ModuleDescriptor]:
        return list(self._modules.values())

    def enabled_modules(self) -> list[ModuleDescriptor]:
        return [d for d in self._modules.values() if d.enabled]

    def __len__(self) -> int:
        return len(self._modules)

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    async def init_all(self) -> list[ModuleInitOutcome]:
        """Run ``init()`` on every enabled module, once per registry.

        Concurrent and repeated calls share the first run's outcomes.
        """
        if self._init_task is None:
            self._init_task = asyncio.create_task(self._run_inits())
        return await self._init_task

    async def wait_until_ready(self, timeout: float | None = None) -> None:
        """Wait for :meth:`init_all` to finish.

        Raises
        ------
        ReadinessTimeoutError
            If the registry is not ready within *timeout* seconds.
        """
        await self._ready.wait(timeout)

    async def _init_one(self, descriptor: ModuleDescriptor) -> None:
        # Plugins written with a plain-function init are accepted too.
        result = descriptor.module.init()
        if inspect.isawaitable(result):
            await result

    async def _run_inits(self) -> list[ModuleInitOutcome]:
        enabled = self.enabled_modules()
        self._logger.info(
            "modules_initializing",
            count=len(enabled),
            registered=len(self._modules),
            version=self._version,
        )

        settled = await settle_all(
            [(d.id, self._init_one(d)) for d in enabled],
            logger=self._logger,
            error_msg="module_init_failed",
        )

        outcomes: list[ModuleInitOutcome] = []
        for module_id, result in settled:
            if isinstance(result, BaseException):
                outcomes.append(ModuleInitOutcome(module_id=module_id, ok=False, error=str(result)))
            else:
                self._logger.info("module_initialized", module_id=module_id)
                outcomes.append(ModuleInitOutcome(module_id=module_id, ok=True))

        self._ready.set()
        self._logger.info(
            "modules_ready",
            succeeded=sum(1 for o in outcomes if o.ok),
            failed=sum(1 for o in outcomes if not o.ok),
        )
        return outcomes
