from __future__ import annotations

from typing import Optional


# Fatal errors share the Bronze tier status; scheduled wrappers around the tool depend on it.
FAILURE_EXIT_STATUS = 2


class PortalError(RuntimeError):
    """
    Base class for fatal failures talking to the EZPass portal.

    `body` holds the response text that triggered the failure (if any) so the CLI can save it
    as a debug artifact. `distinct_status` is only used when distinct error statuses are enabled.
    """

    kind = "PortalError"
    exit_status = FAILURE_EXIT_STATUS
    distinct_status = 10

    def __init__(self, message: str, *, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.body = body


class ServiceUnavailableError(PortalError):
    kind = "ServiceUnavailable"
    distinct_status = 11


class CsrfTokenNotFoundError(PortalError):
    kind = "CsrfTokenNotFound"
    distinct_status = 12


class LoginConflictUnresolvedError(PortalError):
    kind = "LoginConflictUnresolved"
    distinct_status = 13


class InvalidCredentialsError(PortalError):
    kind = "InvalidCredentials"
    distinct_status = 14


class NetworkError(PortalError):
    kind = "NetworkError"
    distinct_status = 15


class DataFormatError(PortalError):
    kind = "DataFormatError"
    distinct_status = 16
