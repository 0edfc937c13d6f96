"""Error taxonomy shared by the services, the API and the CLI.

Services raise these; the API maps ``status_code`` onto the HTTP response and
the CLI turns them into ``typer`` errors.
"""

from __future__ import annotations


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(PortalError):
    status_code = 400


class NotFound(PortalError):
    status_code = 404


class Conflict(PortalError):
    status_code = 409


class AuthenticationFailed(PortalError):
    status_code = 401


class PermissionDenied(PortalError):
    status_code = 403


class StorageError(PortalError):
    status_code = 500
