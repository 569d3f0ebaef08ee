"""Chunked, timer-driven exposure of a sorted sensor list."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from pysensormap.fetch.state import FetchMode, FetchSource, FetchState
from pysensormap.models.sensor import SensorRecord

_logger = logging.getLogger(__name__)


class ProgressiveReveal:
    """Exposes a growing prefix of a sorted list so a UI can render in steps.

    A fresh viewport result starts at zero and grows by ``chunk_size`` every
    ``interval`` seconds. Cached and location results, whose order matters
    less, are shown at once. When the list shrinks the visible count is
    clamped immediately.

    The timer needs a running event loop; without one (or with
    ``autostart=False``) drive it by calling :meth:`tick`.
    """

    def __init__(
        self,
        chunk_size: int = 200,
        interval: float = 0.05,
        on_change: Callable[[int], None] | None = None,
        *,
        autostart: bool = True,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self._chunk_size = chunk_size
        self._interval = interval
        self._on_change = on_change
        self._autostart = autostart
        self._records: tuple[SensorRecord, ...] = ()
        self._count = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def visible_count(self) -> int:
        return self._count

    @property
    def visible(self) -> list[SensorRecord]:
        return list(self._records[: self._count])

    @property
    def total(self) -> int:
        return len(self._records)

    @property
    def complete(self) -> bool:
        return self._count >= len(self._records)

    def _set_count(self, count: int) -> None:
        if count == self._count:
            return
        self._count = count
        if self._on_change is not None:
            try:
                self._on_change(count)
            except Exception:
                _logger.debug("on_change callback failed", exc_info=True)

    def set_records(
        self,
        records: Sequence[SensorRecord],
        reveal_all: bool = False,
        *,
        restart: bool = True,
    ) -> None:
        """Replace the list.

        ``reveal_all`` shows everything at once. ``restart=False`` keeps the
        current count (clamped to the new length) for a re-filtered list.
        """
        self._records = tuple(records)
        if reveal_all:
            self._set_count(len(self._records))
        elif restart:
            self._set_count(0)
        else:
            self._set_count(min(self._count, len(self._records)))

        if self.complete:
            self.stop()
        elif self._autostart:
            self.start()

    def follow(self, state: FetchState, records: Sequence[SensorRecord] | None = None) -> None:
        """Track a published :class:`FetchState` (or a filtered view of it)."""
        shown = state.records if records is None else records
        if state.loading or state.source is FetchSource.CONTAINED:
            self.set_records(shown, restart=False)
            return
        reveal_all = state.mode is FetchMode.LOCATION or state.source is FetchSource.CACHE
        self.set_records(shown, reveal_all)

    def tick(self) -> bool:
        """Grow by one chunk. Returns whether anything new became visible."""
        if self.complete:
            return False
        self._set_count(min(self._count + self._chunk_size, len(self._records)))
        return True

    def start(self) -> None:
        """Start the reveal timer if it is not already running."""
        if self._task is not None and not self._task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.debug("No running loop; progressive reveal must be ticked manually")
            return
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while not self.complete:
            await asyncio.sleep(self._interval)
            self.tick()

    async def wait_complete(self) -> None:
        """Wait until the whole list is visible (or the timer is stopped)."""
        task = self._task
        if task is None:
            return
        await asyncio.wait({task})
