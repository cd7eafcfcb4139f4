from unittest.mock import AsyncMock, MagicMock

import pytest

from leadring.client import LeadringClient
from leadring.errors import LeadringError
from leadring.models.messages import MonitoringError, NewLeads


class TestLeadringClient:
    @pytest.mark.asyncio
    async def test_requires_connection(self):
        client = LeadringClient("http://localhost:3000", access_token="tok")
        assert not client.connected
        with pytest.raises(LeadringError):
            await client.start_monitoring("abc")
        with pytest.raises(LeadringError):
            await client.stop_monitoring()

    @pytest.mark.asyncio
    async def test_messages_end_after_error(self):
        client = LeadringClient("http://localhost:3000")
        first = NewLeads(leads=[["a"]], total=1)
        error = MonitoringError(message="Lost connection to spreadsheet.")
        client._queue.put_nowait(first)
        client._queue.put_nowait(error)
        client._queue.put_nowait(NewLeads(leads=[["b"]], total=2))

        received = [m async for m in client.messages()]

        assert received == [first, error]

    @pytest.mark.asyncio
    async def test_messages_end_on_disconnect(self):
        client = LeadringClient("http://localhost:3000")
        client._queue.put_nowait(None)
        assert [m async for m in client.messages()] == []

    @pytest.mark.asyncio
    async def test_start_discards_messages_from_an_earlier_session(self):
        client = LeadringClient("http://localhost:3000", access_token="tok")
        sio = MagicMock(connected=True)
        sio.call = AsyncMock(side_effect=[
            {"accepted": False, "reason": "Missing spreadsheet ID."},
            {"accepted": True, "spreadsheetId": "sheet123"},
        ])
        client._sio = sio

        rejected = await client.start_monitoring("")
        client._queue.put_nowait(MonitoringError(message="Missing spreadsheet ID."))
        accepted = await client.start_monitoring("sheet123")
        leads = NewLeads(leads=[["a"]], total=3)
        client._queue.put_nowait(leads)
        client._queue.put_nowait(None)

        assert rejected.accepted is False
        assert rejected.reason == "Missing spreadsheet ID."
        assert accepted.accepted is True
        assert accepted.spreadsheet_id == "sheet123"
        assert [m async for m in client.messages()] == [leads]
        sio.call.assert_awaited_with("start-monitoring", {"spreadsheetId": "sheet123"}, timeout=10.0)
