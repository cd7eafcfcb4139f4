"""
LeadringClient — Socket.IO client for a running leadring server.

Mirrors what the browser does: connect with an access token, send
start-monitoring, then receive new-leads batches until monitoring stops.
"""

import asyncio
from typing import Any, AsyncGenerator, Optional

import socketio
from socketio import exceptions as sio_exceptions

from leadring.errors import LeadringError
from leadring.models.events import C2SEvent, S2CEvent
from leadring.models.messages import MonitoringError, NewLeads, OutboundMessage, StartAck


class LeadringClient:
    def __init__(
        self,
        url: str,
        access_token: Optional[str] = None,
        transports: Optional[list[str]] = None,
        ack_timeout: float = 10.0,
    ):
        self._url = url
        self._access_token = access_token
        self._transports = transports or ["websocket", "polling"]
        self._ack_timeout = ack_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._queue: asyncio.Queue[Optional[OutboundMessage]] = asyncio.Queue()

    @property
    def connected(self) -> bool:
        return self._sio is not None and self._sio.connected

    async def connect(self) -> None:
        if self._sio and self._sio.connected:
            return

        self._sio = socketio.AsyncClient()

        @self._sio.on(S2CEvent.NEW_LEADS)
        async def on_new_leads(data: Any) -> None:
            self._queue.put_nowait(NewLeads.model_validate(data))

        @self._sio.on(S2CEvent.MONITORING_ERROR)
        async def on_monitoring_error(data: Any) -> None:
            self._queue.put_nowait(MonitoringError.model_validate(data))

        @self._sio.event
        async def disconnect(*_args: Any) -> None:
            self._queue.put_nowait(None)

        auth = {"access_token": self._access_token} if self._access_token else None
        try:
            await self._sio.connect(self._url, auth=auth, transports=self._transports)
        except sio_exceptions.ConnectionError as e:
            self._sio = None
            raise LeadringError("connection_error", f"Failed to connect to {self._url}: {e}") from e

    async def start_monitoring(self, spreadsheet: str) -> StartAck:
        """Ask the server to watch ``spreadsheet`` (URL or bare id). Waits for the ack."""
        sio = self._ensure_connected()
        # Anything still queued belongs to an earlier session.
        while not self._queue.empty():
            self._queue.get_nowait()
        try:
            ack = await sio.call(
                C2SEvent.START_MONITORING, {"spreadsheetId": spreadsheet}, timeout=self._ack_timeout
            )
        except sio_exceptions.TimeoutError:
            raise TimeoutError(f"Timeout waiting for {C2SEvent.START_MONITORING} ack")
        return StartAck.model_validate(ack or {"accepted": False})

    async def stop_monitoring(self) -> None:
        sio = self._ensure_connected()
        await sio.emit(C2SEvent.STOP_MONITORING, {})

    async def messages(self) -> AsyncGenerator[OutboundMessage, None]:
        """Yield server messages until an error ends monitoring or the socket closes."""
        while True:
            msg = await self._queue.get()
            if msg is None:
                return
            yield msg
            if isinstance(msg, MonitoringError):
                return

    async def disconnect(self) -> None:
        if self._sio:
            await self._sio.disconnect()
            self._sio = None

    def _ensure_connected(self) -> socketio.AsyncClient:
        if not self._sio or not self._sio.connected:
            raise LeadringError("connection_error", "Not connected. Call connect() first.")
        return self._sio
