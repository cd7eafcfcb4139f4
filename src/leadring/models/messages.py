"""
Wire messages exchanged over Socket.IO.
"""

from datetime import datetime, timezone
from typing import ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from leadring.models.events import S2CEvent


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Lead(BaseModel):
    """One appended row and the time it was first seen as new."""

    cells: list[str]
    observed_at: datetime = Field(default_factory=_utcnow)


class NewLeads(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: ClassVar[str] = S2CEvent.NEW_LEADS

    leads: list[list[str]]
    total: int
    observed_at: datetime = Field(default_factory=_utcnow, alias="observedAt")

    def as_leads(self) -> list[Lead]:
        return [Lead(cells=row, observed_at=self.observed_at) for row in self.leads]

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MonitoringError(BaseModel):
    event: ClassVar[str] = S2CEvent.MONITORING_ERROR

    message: str

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


OutboundMessage = Union[NewLeads, MonitoringError]


class StartMonitoring(BaseModel):
    """Inbound start-monitoring payload. Accepts the browser's camelCase key."""

    model_config = ConfigDict(populate_by_name=True)

    spreadsheet_id: Optional[str] = Field(default=None, alias="spreadsheetId")


class StartAck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    accepted: bool
    spreadsheet_id: Optional[str] = Field(default=None, alias="spreadsheetId")
    reason: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
