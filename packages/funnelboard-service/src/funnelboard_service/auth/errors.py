"""Workspace authorization errors."""

from __future__ import annotations


class WorkspaceAccessError(Exception):
    """Base class for authorization failures rendered as 403."""


class AccessDeniedError(WorkspaceAccessError):
    """Authenticated identity has no membership in a resolvable workspace."""

    def __init__(self, message: str = "Access denied to workspace") -> None:
        super().__init__(message)
        self.message = message


class InsufficientPermissionsError(WorkspaceAccessError):
    """The resolved role is below the required role."""

    def __init__(self, required_role: str) -> None:
        self.required_role = required_role
        self.message = f"Insufficient permissions. Required: {required_role}"
        super().__init__(self.message)


class WorkspaceContextRequiredError(Exception):
    """No session or no workspace selected where one is mandatory."""

    def __init__(self, message: str = "Workspace context required") -> None:
        super().__init__(message)
        self.message = message
