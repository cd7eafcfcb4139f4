"""
Leadring error types.

Readers raise SheetReadError; the registry raises RejectedRequest. Polling
sessions never raise: terminal failures are kept on the session as
BaselineFailure / PollFailure and reported to the client once.
"""

from typing import Any, Optional


class LeadringError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class RejectedRequest(LeadringError):
    def __init__(self, message: str, code: str = "rejected_request", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SheetReadError(LeadringError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__("sheet_read_error", message, details)
        self.status_code = status_code


class BaselineFailure(LeadringError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__("baseline_failure", message)
        self.cause = cause


class PollFailure(LeadringError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__("poll_failure", message)
        self.cause = cause
