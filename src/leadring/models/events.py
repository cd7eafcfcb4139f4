"""
Socket.IO event names.
"""


class C2SEvent:
    """Client to server."""

    START_MONITORING = "start-monitoring"
    STOP_MONITORING = "stop-monitoring"


class S2CEvent:
    """Server to client."""

    NEW_LEADS = "new-leads"
    MONITORING_ERROR = "monitoring-error"
