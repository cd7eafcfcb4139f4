"""
Monitoring session models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionStatus(str, Enum):
    BASELINING = "baselining"
    ACTIVE = "active"
    STOPPED = "stopped"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self in (SessionStatus.STOPPED, SessionStatus.ERRORED)


class Credentials(BaseModel):
    """OAuth token bundle handed to the sheet reader. Never mutated here."""

    model_config = ConfigDict(frozen=True, extra="allow")

    access_token: str = Field(repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    token_type: str = "Bearer"
    expiry_date: Optional[int] = None

    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"


class SessionInfo(BaseModel):
    connection_id: str
    source_id: str
    status: SessionStatus
    last_row_count: int = -1
