"""
Polling session: watches one spreadsheet for one client connection.

Lifecycle:
- Baselining: one read sets the row-count watermark. A failed read reports
  the error once and ends the session without ever scheduling a tick.
- Active: every ``interval`` seconds after the previous read finished, read
  again and push rows past the watermark as one ``new-leads`` batch.
- Stopped / Errored: terminal. The task is released and the session is
  never reused.

The diff is count based (``rows[last_row_count:]``): rows are assumed to be
appended only. A shrinking sheet is adopted as the new watermark without an
error.
"""

import asyncio
import logging
from typing import Callable, Optional

from leadring.broadcast import Broadcaster
from leadring.errors import BaselineFailure, LeadringError, PollFailure
from leadring.models.messages import MonitoringError, NewLeads
from leadring.models.session import Credentials, SessionInfo, SessionStatus
from leadring.sheets import Rows, SpreadsheetReader

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 5.0
NO_BASELINE = -1

BASELINE_ERROR_MESSAGE = "Failed to access spreadsheet. Check the ID and permissions."
POLL_ERROR_MESSAGE = "Lost connection to spreadsheet."


class PollingSession:
    def __init__(
        self,
        connection_id: str,
        source_id: str,
        credentials: Credentials,
        reader: SpreadsheetReader,
        broadcaster: Broadcaster,
        interval: float = DEFAULT_POLL_INTERVAL_S,
        on_finished: Optional[Callable[["PollingSession"], None]] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.connection_id = connection_id
        self.source_id = source_id
        self.credentials = credentials
        self.interval = interval
        self.last_row_count = NO_BASELINE
        self.status = SessionStatus.BASELINING
        self.failure: Optional[LeadringError] = None
        self._reader = reader
        self._broadcaster = broadcaster
        self._on_finished = on_finished
        self._cancelled = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None

    def __repr__(self) -> str:
        return (
            f"PollingSession(connection_id={self.connection_id!r}, source_id={self.source_id!r}, "
            f"status={self.status.value!r}, last_row_count={self.last_row_count})"
        )

    @property
    def alive(self) -> bool:
        return not self.status.terminal and not self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def info(self) -> SessionInfo:
        return SessionInfo(
            connection_id=self.connection_id,
            source_id=self.source_id,
            status=self.status,
            last_row_count=self.last_row_count,
        )

    def start(self) -> None:
        """Schedule the baseline read and the tick loop on the running loop."""
        if self._task is not None:
            raise RuntimeError("PollingSession already started")
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"leadring-poll:{self.connection_id}"
        )
        self._task.add_done_callback(self._task_done)

    def cancel(self) -> None:
        """Stop the session. Safe to call repeatedly and from any state.

        A read in flight is abandoned; if it still completes, its result is
        dropped by the liveness check that follows every read.
        """
        if not self.status.terminal:
            self.status = SessionStatus.STOPPED
            logger.info("Stopped monitoring %s for %s", self.source_id, self.connection_id)
        self._cancelled.set()
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the session task has finished. Never raises."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def _run(self) -> None:
        try:
            rows = await self._reader.fetch_rows(self.credentials, self.source_id)
        except Exception as e:
            if self.alive:
                await self._fail(BaselineFailure(BASELINE_ERROR_MESSAGE, e))
            return
        if not self.alive:
            return
        self.last_row_count = len(rows)
        self.status = SessionStatus.ACTIVE
        logger.info(
            "Baseline for %s on %s: %d rows", self.connection_id, self.source_id, self.last_row_count
        )

        while await self._wait_interval():
            try:
                rows = await self._reader.fetch_rows(self.credentials, self.source_id)
            except Exception as e:
                if self.alive:
                    await self._fail(PollFailure(POLL_ERROR_MESSAGE, e))
                return
            if not self.alive:
                return
            await self._apply(rows)

    async def _wait_interval(self) -> bool:
        """Sleep one interval. False once the session has been cancelled."""
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return self.alive
        return False

    async def _apply(self, rows: Rows) -> None:
        count = len(rows)
        previous = self.last_row_count
        self.last_row_count = count
        if previous == NO_BASELINE:
            return
        if count > previous:
            leads = rows[previous:]
            logger.info("%d new lead(s) on %s (total %d)", len(leads), self.source_id, count)
            await self._broadcaster.send(self.connection_id, NewLeads(leads=leads, total=count))
        elif count < previous:
            logger.debug("Row count on %s dropped from %d to %d", self.source_id, previous, count)

    async def _fail(self, failure: LeadringError) -> None:
        self.status = SessionStatus.ERRORED
        self.failure = failure
        cause = getattr(failure, "cause", None)
        logger.warning(
            "Monitoring %s for %s ended (%s): %s", self.source_id, self.connection_id, failure.code, cause
        )
        await self._broadcaster.send(self.connection_id, MonitoringError(message=failure.message))

    def _task_done(self, task: "asyncio.Task[None]") -> None:
        if not task.cancelled() and task.exception() is not None:
            self.status = SessionStatus.ERRORED
            logger.error(
                "Polling task for %s crashed", self.connection_id, exc_info=task.exception()
            )
        elif not self.status.terminal:
            # Only reachable when the task was cancelled without cancel().
            self.status = SessionStatus.STOPPED
        if self._on_finished is not None:
            self._on_finished(self)
