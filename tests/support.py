"""Test doubles for the sheet reader and the broadcaster."""

import asyncio
from typing import Any, Callable, Optional, Union

from leadring.models.messages import MonitoringError, NewLeads, OutboundMessage
from leadring.models.session import Credentials

INTERVAL = 0.01
CREDENTIALS = Credentials(access_token="test-token")


def rows(n: int) -> list[list[str]]:
    return [[f"Lead {i}", f"lead{i}@example.com"] for i in range(n)]


class ScriptedReader:
    """Returns scripted results in order, repeating the last one forever.

    A result is a row list or an exception to raise. ``gates`` maps a call
    index to an event the read waits on before returning.
    """

    def __init__(self, *results: Union[list[list[str]], BaseException]):
        self.results = list(results)
        self.calls = 0
        self.sources: list[str] = []
        self.gates: dict[int, asyncio.Event] = {}
        self.blocked = asyncio.Event()

    async def fetch_rows(self, credentials: Credentials, source_id: str) -> list[list[str]]:
        index = self.calls
        self.calls += 1
        self.sources.append(source_id)
        gate = self.gates.get(index)
        if gate is not None:
            self.blocked.set()
            await gate.wait()
        result = self.results[min(index, len(self.results) - 1)]
        if isinstance(result, BaseException):
            raise result
        return [list(row) for row in result]


class PerSourceReader:
    def __init__(self, readers: dict[str, ScriptedReader]):
        self.readers = readers

    async def fetch_rows(self, credentials: Credentials, source_id: str) -> list[list[str]]:
        return await self.readers[source_id].fetch_rows(credentials, source_id)


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.sent: list[tuple[str, OutboundMessage]] = []

    async def send(self, connection_id: str, message: OutboundMessage) -> None:
        self.sent.append((connection_id, message))

    @property
    def leads(self) -> list[NewLeads]:
        return [m for _, m in self.sent if isinstance(m, NewLeads)]

    @property
    def errors(self) -> list[MonitoringError]:
        return [m for _, m in self.sent if isinstance(m, MonitoringError)]


async def eventually(predicate: Callable[[], Any], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


async def ticks(n: int = 5) -> None:
    await asyncio.sleep(INTERVAL * n)
