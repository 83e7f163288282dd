"""Time source shared by caches and the retail rate gate."""

import asyncio
import time


class SystemClock:
    """Monotonic clock backed by asyncio sleep. Tests substitute a fake."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
