"""
leadring — near-real-time notifications for new rows in a Google Sheet.

Each client connection gets one polling session that baselines the sheet's
row count, re-reads it on an interval, and pushes appended rows over
Socket.IO.
"""

__version__ = "0.1.0"

from leadring.errors import (
    LeadringError,
    RejectedRequest,
    SheetReadError,
    BaselineFailure,
    PollFailure,
)
from leadring.models.events import C2SEvent, S2CEvent
from leadring.models.messages import Lead, NewLeads, MonitoringError
from leadring.models.session import Credentials, SessionStatus
from leadring.polling import PollingSession
from leadring.registry import SessionRegistry, normalize_source_id
from leadring.sheets import GoogleSheetsReader

__all__ = [
    "LeadringError",
    "RejectedRequest",
    "SheetReadError",
    "BaselineFailure",
    "PollFailure",
    "C2SEvent",
    "S2CEvent",
    "Lead",
    "NewLeads",
    "MonitoringError",
    "Credentials",
    "SessionStatus",
    "PollingSession",
    "SessionRegistry",
    "normalize_source_id",
    "GoogleSheetsReader",
]
