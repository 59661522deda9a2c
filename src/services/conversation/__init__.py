"""
Conversation module - session log and backend requests (conversation, report).
"""

from .backend_client import BackendClient
from .report import ReportRequester
from .session_log import SessionLog
from .submission import SubmissionClient

__all__ = ["BackendClient", "ReportRequester", "SessionLog", "SubmissionClient"]
