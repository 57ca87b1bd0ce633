"""
Single-flight refresh: fetch (or generate) -> enrich -> filter -> render.
At most one cycle runs at a time; the busy flag is checked and set before the
first await and always cleared in `finally`.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Callable, Optional

from core import config
from core.classifier import enrich_all
from core.errors import FeedError
from core.models import Coordinate, dataset_ids_unique
from core.synchronizer import Synchronizer, format_clock
from core.view_state import ViewState, apply_filter
from feeds.synthetic import generate as generate_synthetic

logger = logging.getLogger("traffic_api.scheduler")


class RefreshScheduler:
    def __init__(
        self,
        feed,
        synchronizer: Synchronizer,
        view_state: ViewState,
        generator: Callable = generate_synthetic,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
        default_center: Optional[Coordinate] = None,
        interval: Optional[float] = None,
    ):
        self.feed = feed
        self.synchronizer = synchronizer
        self.view_state = view_state
        self.generator = generator
        self.rng = rng
        self.clock = clock
        self.default_center = default_center or config.default_center()
        self.interval = interval if interval is not None else config.refresh_interval()

        self.dataset: tuple = ()
        self.source: Optional[str] = None  # "feed" | "synthetic" for the current dataset
        self.user_location: Optional[Coordinate] = None
        self.last_refreshed: Optional[datetime] = None
        self.busy = False
        self.cycles = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def fallback_center(self) -> Coordinate:
        return self.user_location or self.default_center

    @property
    def last_updated_display(self) -> Optional[str]:
        return format_clock(self.last_refreshed) if self.last_refreshed else None

    async def _load_records(self) -> tuple[list[dict], str]:
        try:
            return await self.feed.fetch(), "feed"
        except FeedError as e:
            logger.warning("feed unavailable reason=%s detail=%s; using synthetic data", e.reason, e.detail)
            center = self.fallback_center
            return self.generator(center, rng=self.rng), "synthetic"

    def rerender(self) -> None:
        """Re-apply the current filter to the held dataset."""
        filtered = apply_filter(self.dataset, self.view_state.filter)
        self.synchronizer.render(filtered, self.dataset)
        self.view_state.reconcile_focus(i.id for i in self.dataset)

    async def refresh(self) -> bool:
        """Run one refresh cycle. Returns False when ignored (already busy) or when the cycle failed."""
        if self.busy:
            logger.info("refresh ignored: cycle already in progress")
            return False
        self.busy = True
        try:
            self.synchronizer.list.show_loading()
            records, source = await self._load_records()
            dataset = enrich_all(records)
            if not dataset_ids_unique(dataset):
                raise ValueError("dataset contains duplicate incident ids")
            self.dataset = dataset
            self.source = source
            self.rerender()
            self.last_refreshed = self.clock()
            self.cycles += 1
            logger.info("refresh done source=%s incidents=%d filter=%s at=%s",
                        source, len(dataset), self.view_state.filter, self.last_updated_display)
            return True
        except Exception:
            logger.exception("refresh failed; keeping previous dataset incidents=%d", len(self.dataset))
            self.rerender()
            return False
        finally:
            self.busy = False

    # -------------------------------------------------------------------------
    # Periodic polling
    # -------------------------------------------------------------------------
    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.refresh()

    def start(self) -> None:
        """Start the periodic refresh task on the running loop (idempotent)."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._poll())
        logger.info("periodic refresh started interval=%ss", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("periodic refresh stopped")
