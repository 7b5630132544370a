"""Clock: wall time source, swappable in tests."""
from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Current Unix time in seconds."""
        ...


class SystemClock:
    def now(self) -> int:
        return int(time.time())
