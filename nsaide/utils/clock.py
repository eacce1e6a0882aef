"""Wall-clock helper for cache timestamps.

Cache entries carry epoch milliseconds so that persisted values stay
readable by every version of the store format.  Components accept any
``Clock`` callable so tests can move time forward deterministically.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Return the current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)
