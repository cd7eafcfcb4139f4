"""
Session registry — one polling session per client connection.

The transport layer owns a single registry and calls ``start``, ``stop`` and
``on_disconnect``. Mutations are serialized by one asyncio lock; a session's
own fields are only touched by its own task.
"""

import asyncio
import logging
import re
from typing import Any, Optional, Union

from pydantic import ValidationError

from leadring.broadcast import Broadcaster
from leadring.errors import RejectedRequest
from leadring.models.session import Credentials
from leadring.polling import DEFAULT_POLL_INTERVAL_S, PollingSession
from leadring.sheets import SpreadsheetReader

logger = logging.getLogger(__name__)

URL_MARKER = "/d/"
_URL_ID = re.compile(r"/d/([^/?#]*)")
_VALID_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def normalize_source_id(value: Optional[str]) -> str:
    """Reduce a spreadsheet URL or bare id to the bare id.

    ``https://docs.google.com/spreadsheets/d/<id>/edit#gid=0`` -> ``<id>``.
    Raises RejectedRequest when nothing usable is left.
    """
    if not isinstance(value, str) or not value.strip():
        raise RejectedRequest("Missing spreadsheet ID.", code="missing_source_id")
    source_id = value.strip()
    if URL_MARKER in source_id:
        match = _URL_ID.search(source_id)
        source_id = match.group(1) if match else ""
    if not _VALID_ID.match(source_id):
        raise RejectedRequest(
            "Invalid spreadsheet ID.", code="invalid_source_id", details={"source_id": value}
        )
    return source_id


def coerce_credentials(credentials: Union[Credentials, dict[str, Any], None]) -> Credentials:
    if credentials is None:
        raise RejectedRequest("Not authenticated.", code="missing_credentials")
    if isinstance(credentials, dict):
        try:
            credentials = Credentials.model_validate(credentials)
        except ValidationError as e:
            raise RejectedRequest("Invalid credentials.", code="invalid_credentials") from e
    if not credentials.access_token:
        raise RejectedRequest("Not authenticated.", code="missing_credentials")
    return credentials


class SessionRegistry:
    def __init__(
        self,
        reader: SpreadsheetReader,
        broadcaster: Broadcaster,
        interval: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self._reader = reader
        self._broadcaster = broadcaster
        self._interval = interval
        self._sessions: dict[str, PollingSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions

    def get(self, connection_id: str) -> Optional[PollingSession]:
        return self._sessions.get(connection_id)

    async def start(
        self,
        connection_id: str,
        source_id: Optional[str],
        credentials: Union[Credentials, dict[str, Any], None],
    ) -> PollingSession:
        """Start monitoring ``source_id`` for a connection.

        Replaces any session the connection already has. Raises RejectedRequest
        before anything is read if the id or credentials are unusable.
        """
        sheet_id = normalize_source_id(source_id)
        creds = coerce_credentials(credentials)
        async with self._lock:
            previous = self._sessions.pop(connection_id, None)
            if previous is not None:
                previous.cancel()
            session = PollingSession(
                connection_id,
                sheet_id,
                creds,
                self._reader,
                self._broadcaster,
                interval=self._interval,
                on_finished=self._discard,
            )
            self._sessions[connection_id] = session
            session.start()
        logger.info("Starting monitor for %s on %s", connection_id, sheet_id)
        return session

    async def stop(self, connection_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(connection_id, None)
        if session is not None:
            session.cancel()

    async def on_disconnect(self, connection_id: str) -> None:
        await self.stop(connection_id)

    async def close(self) -> None:
        """Stop every session and wait for their tasks to finish."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.cancel()
        await asyncio.gather(*(session.wait() for session in sessions))

    def _discard(self, session: PollingSession) -> None:
        # Called from the session's done callback. Only drop the entry if it
        # still belongs to this session; a replacement may already be there.
        if self._sessions.get(session.connection_id) is session:
            del self._sessions[session.connection_id]
