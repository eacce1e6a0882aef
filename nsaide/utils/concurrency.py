"""Shared asyncio primitives for the module system.

Two patterns are exposed:

1. **settle_all** -- ``asyncio.gather`` with ``return_exceptions=True`` that
   pairs every outcome with a label and logs the failures.  The bootstrap
   uses it to load and initialise modules so that one failing module never
   stops its siblings.

2. **ReadinessSignal** -- a one-shot completion notification.  Components
   that depend on the module system await it with a bounded deadline and get
   :class:`~nsaide.utils.errors.ReadinessTimeoutError` instead of polling.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Sequence, TypeVar

import structlog

from nsaide.utils.errors import ReadinessTimeoutError
from nsaide.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def settle_all(
    labelled: Sequence[tuple[str, Awaitable[_T]]],
    logger: structlog.BoundLogger | None = None,
    error_msg: str = "task_failed",
) -> list[tuple[str, _T | BaseException]]:
    """Run awaitables concurrently and wait until every one has settled.

    Parameters
    ----------
    labelled:
        ``(label, awaitable)`` pairs.  The label is used in log lines and
        returned alongside each outcome.
    logger:
        Optional structured logger for failure warnings.
    error_msg:
        Event name logged for each failed awaitable.

    Returns
    -------
    list[tuple[str, _T | BaseException]]
        ``(label, result_or_exception)`` in input order.
    """
    if logger is None:
        logger = _logger

    if not labelled:
        return []

    labels = [label for label, _ in labelled]
    outcomes = await asyncio.gather(
        *(aw for _, aw in labelled), return_exceptions=True
    )

    for label, outcome in zip(labels, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning(error_msg, label=label, error=str(outcome))

    return list(zip(labels, outcomes))


class ReadinessSignal:
    """One-shot readiness notification backed by :class:`asyncio.Event`.

    Once :meth:`set` is called the signal stays set; every current and
    future :meth:`wait` returns immediately.
    """

    def __init__(self, name: str = "ready") -> None:
        self._name = name
        self._event = asyncio.Event()

    @property
    def name(self) -> str:
        return self._name

    def is_set(self) -> bool:
        return self._event.is_set()

    def set(self) -> None:
        self._event.set()

    async def wait(self, timeout: float | None = None) -> None:
        """Block until the signal fires.

        Parameters
        ----------
        timeout:
            Deadline in seconds.  ``None`` waits indefinitely.

        Raises
        ------
        ReadinessTimeoutError
            If the deadline passes first.
        """
        if self._event.is_set():
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ReadinessTimeoutError(
                message=f"'{self._name}' not signalled within {timeout}s",
            ) from exc
