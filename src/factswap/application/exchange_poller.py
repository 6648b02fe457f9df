"""Client-side polling of the exchange mailbox.

One cycle = fetch a batch, merge each record in delivery order, publish.
The next cycle is scheduled only after the previous one's merges are done.
"""

import asyncio
import logging
from collections.abc import Callable

from factswap.application.contact_merger import ContactMerger
from factswap.application.dto import MergeResult
from factswap.application.errors import MissingIdentityError, RemoteServiceError
from factswap.application.events import ExchangesApplied
from factswap.application.ports import ShareApi

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 15.0


class PollHandle:
    """Returned by ExchangePoller.start(). stop() ends the loop; a fetch in flight completes but is discarded."""

    def __init__(self, task: asyncio.Task, stop_event: asyncio.Event) -> None:
        self._task = task
        self._stop_event = stop_event

    @property
    def running(self) -> bool:
        return not self._task.done()

    def stop(self) -> None:
        self._stop_event.set()

    async def wait_closed(self) -> None:
        await self._task

    async def close(self) -> None:
        self.stop()
        await self.wait_closed()


class ExchangePoller:
    def __init__(
        self,
        api: ShareApi,
        merger: ContactMerger,
        profile_id: str,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if not (profile_id or "").strip():
            raise ValueError("profile_id must be non-empty")
        self._api = api
        self._merger = merger
        self._profile_id = profile_id.strip()
        self._interval = interval
        self._cycle_lock = asyncio.Lock()
        self._handle: PollHandle | None = None

    async def poll_once(
        self, *, cancelled: Callable[[], bool] = lambda: False
    ) -> list[MergeResult]:
        """Fetch and merge one batch. Raises RemoteServiceError if the fetch fails."""
        async with self._cycle_lock:
            exchanges = await self._api.fetch_exchanges(self._profile_id)
            if cancelled():
                if exchanges:
                    logger.debug("Poller stopped; discarding %d fetched exchange(s)", len(exchanges))
                return []
            results: list[MergeResult] = []
            for exchange in exchanges:
                try:
                    results.append(self._merger.merge(exchange.payload))
                except MissingIdentityError:
                    logger.warning("Skipping exchange %s: payload has no owner id", exchange.id)
            if results:
                self._merger.events.exchanges_applied.publish(
                    ExchangesApplied(
                        contact_ids=tuple(r.contact.id for r in results),
                        added_facts=sum(r.added_facts for r in results),
                    )
                )
            return results

    def start(self) -> PollHandle:
        """Start polling on the running event loop. Returns the live handle if already started."""
        if self._handle is not None and self._handle.running:
            return self._handle
        stop_event = asyncio.Event()
        task = asyncio.create_task(self._run(stop_event))
        self._handle = PollHandle(task, stop_event)
        return self._handle

    async def _run(self, stop_event: asyncio.Event) -> None:
        logger.info("Polling exchanges for %s every %.1fs", self._profile_id, self._interval)
        while not stop_event.is_set():
            try:
                await self.poll_once(cancelled=stop_event.is_set)
            except RemoteServiceError as e:
                logger.warning("Exchange poll failed, retrying next cycle: %s", e.message)
            except Exception:
                logger.exception("Exchange poll cycle failed for %s, retrying next cycle", self._profile_id)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Stopped polling exchanges for %s", self._profile_id)
