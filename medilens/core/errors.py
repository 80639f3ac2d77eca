# medilens/core/errors.py
"""
Error taxonomy shared by the upload, extraction and chat layers.

Every error carries a user-facing ``message``. The chat pipeline turns any
``MediLensError`` raised while answering into a single bot message; the HTTP
layer turns the ones that escape a router into a JSON ``detail``.
"""
from typing import Optional


class MediLensError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MediLensError):
    code = "validation_error"


class ExtractionError(MediLensError):
    code = "extraction_error"
    status_code = 422


class NetworkError(MediLensError):
    code = "network_error"
    status_code = 502


class WebhookTimeoutError(NetworkError):
    code = "timeout"
    status_code = 504


class ServerError(MediLensError):
    code = "server_error"
    status_code = 502

    def __init__(self, message: str, upstream_status: int, body: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class ParseError(MediLensError):
    code = "parse_error"


class NotConfiguredError(MediLensError):
    code = "not_configured"
    status_code = 503


class SessionBusyError(MediLensError):
    code = "session_busy"
    status_code = 409
