"""
Short-lived guards around inbound processing.

- DuplicateGuard: drop an identical (phone, raw text) seen within a few seconds
  (gateway retries, double taps).
- BusyNoticeGuard: rate-limit the "please wait" notice sent while a preview is
  being generated.
- PreviewInFlight: single-flight membership set for preview generation.
- NudgeScheduler: one delayed re-engagement message per phone.

Caches are bounded and time-indexed so they cannot grow without limit.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)


class ExpiringCache:
    """
    Insertion-ordered map of key -> timestamp with a TTL and a size cap.

    Entries are kept in timestamp order (writes move the key to the end), so
    expiry only ever has to look at the front.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 10_000):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: OrderedDict[Hashable, float] = OrderedDict()

    def _evict(self, now: float) -> None:
        cutoff = now - self.ttl_seconds
        while self._entries:
            key, ts = next(iter(self._entries.items()))
            if ts > cutoff:
                break
            self._entries.popitem(last=False)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def get(self, key: Hashable, now: float | None = None) -> float | None:
        now = time.time() if now is None else now
        self._evict(now)
        return self._entries.get(key)

    def touch(self, key: Hashable, now: float | None = None) -> None:
        now = time.time() if now is None else now
        self._entries[key] = now
        self._entries.move_to_end(key)
        self._evict(now)

    def __len__(self) -> int:
        return len(self._entries)


class DuplicateGuard:
    def __init__(self, window_seconds: float = 8, max_entries: int = 10_000):
        self._seen = ExpiringCache(window_seconds, max_entries)

    def is_duplicate(self, phone: str, text: str, now: float | None = None) -> bool:
        """
        True if the same (phone, text) was first seen less than the window ago.

        Only first sightings are recorded, so the window is measured from the
        original message rather than sliding with every retry.
        """
        key = (phone, text)
        if self._seen.get(key, now) is not None:
            return True
        self._seen.touch(key, now)
        return False


class BusyNoticeGuard:
    def __init__(self, interval_seconds: float = 15, max_entries: int = 10_000):
        self._notified = ExpiringCache(interval_seconds, max_entries)

    def should_notify(self, phone: str, now: float | None = None) -> bool:
        if self._notified.get(phone, now) is not None:
            return False
        self._notified.touch(phone, now)
        return True


class PreviewInFlight:
    """Phones with a preview generation job running. Entry is refused, never queued."""

    def __init__(self):
        self._phones: set[str] = set()

    def try_acquire(self, phone: str) -> bool:
        if phone in self._phones:
            return False
        self._phones.add(phone)
        return True

    def release(self, phone: str) -> None:
        self._phones.discard(phone)

    def is_busy(self, phone: str) -> bool:
        return phone in self._phones


class NudgeScheduler:
    """At most one pending delayed action per phone; fires once, cancellable."""

    def __init__(self):
        self._tasks: dict[str, asyncio.Task] = {}

    def schedule(
        self,
        phone: str,
        delay_seconds: float,
        action: Callable[[], Awaitable[None]],
    ) -> None:
        self.cancel(phone)
        self._tasks[phone] = asyncio.get_running_loop().create_task(
            self._run(phone, delay_seconds, action)
        )
        logger.debug(f"Nudge scheduled for {phone} in {delay_seconds}s")

    async def _run(
        self,
        phone: str,
        delay_seconds: float,
        action: Callable[[], Awaitable[None]],
    ) -> None:
        try:
            await asyncio.sleep(delay_seconds)
            # Drop our own entry before firing so a cancel() from inside the action is a no-op
            self._tasks.pop(phone, None)
            await action()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Nudge for {phone} failed: {e}", exc_info=True)

    def cancel(self, phone: str) -> bool:
        task = self._tasks.pop(phone, None)
        if task is None:
            return False
        if not task.done():
            task.cancel()
        return True

    def is_pending(self, phone: str) -> bool:
        task = self._tasks.get(phone)
        return task is not None and not task.done()

    def cancel_all(self) -> None:
        for phone in list(self._tasks):
            self.cancel(phone)
