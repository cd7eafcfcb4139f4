"""
Socket.IO server — binds client connections to the session registry.

Inbound:  start-monitoring {spreadsheetId}, stop-monitoring, disconnect.
Outbound: new-leads {leads, total, observedAt}, monitoring-error {message}.

Credentials arrive with the connection, either as the Socket.IO ``auth``
payload ({access_token, refresh_token?, token_type?}) or as an
``Authorization: Bearer`` header on the handshake request.
"""

import logging
from typing import Any, Optional

import socketio
from pydantic import ValidationError

from leadring.config import Settings
from leadring.errors import RejectedRequest
from leadring.models.events import C2SEvent
from leadring.models.messages import OutboundMessage, StartAck, StartMonitoring
from leadring.models.session import Credentials
from leadring.registry import SessionRegistry
from leadring.sheets import GoogleSheetsReader, SpreadsheetReader

logger = logging.getLogger(__name__)


class SocketIOBroadcaster:
    """Emits to exactly one connection (its own room). Never raises."""

    def __init__(self, sio: socketio.AsyncServer):
        self._sio = sio

    async def send(self, connection_id: str, message: OutboundMessage) -> None:
        try:
            await self._sio.emit(message.event, message.to_payload(), to=connection_id)
        except Exception as e:
            logger.error(f"Emit failed for {message.event} to {connection_id}: {e}")


def credentials_from_handshake(environ: dict[str, Any], auth: Any) -> Optional[Credentials]:
    if isinstance(auth, dict) and auth.get("access_token"):
        try:
            return Credentials.model_validate(auth)
        except ValidationError as e:
            logger.debug("Invalid auth payload, falling back to the Authorization header: %s", e.error_count())
    header = environ.get("HTTP_AUTHORIZATION", "") if environ else ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return Credentials(access_token=token.strip())
    return None


class LeadMonitorServer:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        reader: Optional[SpreadsheetReader] = None,
        sio: Optional[socketio.AsyncServer] = None,
    ):
        self.settings = settings or Settings()
        self.sio = sio or socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=self.settings.cors_allowed_origins,
        )
        self._owns_reader = reader is None
        self.reader = reader or GoogleSheetsReader(
            base_url=self.settings.sheets_base_url,
            sheet_range=self.settings.sheet_range,
            timeout=self.settings.request_timeout,
        )
        self.broadcaster = SocketIOBroadcaster(self.sio)
        self.registry = SessionRegistry(self.reader, self.broadcaster, interval=self.settings.poll_interval)
        self._credentials: dict[str, Credentials] = {}

        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on(C2SEvent.START_MONITORING, self.on_start_monitoring)
        self.sio.on(C2SEvent.STOP_MONITORING, self.on_stop_monitoring)

    def asgi_app(self) -> socketio.ASGIApp:
        return socketio.ASGIApp(self.sio, on_shutdown=self.shutdown)

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        credentials = credentials_from_handshake(environ, auth)
        if credentials is not None:
            self._credentials[sid] = credentials
        logger.info("Client connected: %s authenticated=%s", sid, credentials is not None)

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        await self.registry.on_disconnect(sid)
        self._credentials.pop(sid, None)
        logger.info("Client disconnected: %s", sid)

    async def on_start_monitoring(self, sid: str, data: Any = None) -> dict[str, Any]:
        if isinstance(data, str):
            data = {"spreadsheetId": data}
        try:
            request = StartMonitoring.model_validate(data or {})
        except ValidationError:
            request = StartMonitoring()
        try:
            session = await self.registry.start(sid, request.spreadsheet_id, self._credentials.get(sid))
        except RejectedRequest as e:
            logger.info("Monitoring request from %s rejected: %s", sid, e.code)
            return StartAck(accepted=False, reason=e.message).to_payload()
        return StartAck(accepted=True, spreadsheet_id=session.source_id).to_payload()

    async def on_stop_monitoring(self, sid: str, data: Any = None) -> None:
        await self.registry.stop(sid)

    async def shutdown(self) -> None:
        await self.registry.close()
        if self._owns_reader and isinstance(self.reader, GoogleSheetsReader):
            await self.reader.close()


def create_app(settings: Optional[Settings] = None, reader: Optional[SpreadsheetReader] = None) -> socketio.ASGIApp:
    return LeadMonitorServer(settings, reader).asgi_app()
