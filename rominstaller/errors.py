"""Domain errors raised by the install / uninstall / launch services.

The planner never raises for ambiguous input: it returns a plan with
``needs_prompt`` set and human-readable notes.  Everything that mutates disk
raises one of the errors below instead, and the CLI maps each class to a
stable process exit code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class RomInstallerError(Exception):
    """Base class for all domain errors."""

    default_code = "ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        """Structured form for JSON output and logging."""
        return {
            "error_code": self.error_code,
            "message": str(self),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class UsageError(RomInstallerError):
    """Malformed or missing required input."""

    default_code = "USAGE_ERROR"


class ResourceMissing(RomInstallerError):
    """A source file, companion file, manifest entry or executable is absent."""

    default_code = "RESOURCE_MISSING"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        info = details or {}
        if path:
            info["path"] = str(path)
        super().__init__(message, details=info)


class ConflictError(RomInstallerError):
    """A file or manifest entry already occupies the destination."""

    default_code = "CONFLICT"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        info = details or {}
        if path:
            info["path"] = str(path)
        super().__init__(message, details=info)


class ConfigError(RomInstallerError):
    """A plan or a configuration file is not usable as-is."""

    default_code = "CONFIG_ERROR"


class IOFailure(RomInstallerError):
    """Copy / move / write failed in the underlying filesystem."""

    default_code = "IO_FAILURE"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        info = details or {}
        if path:
            info["path"] = str(path)
        if operation:
            info["operation"] = operation
        super().__init__(message, details=info)


class LaunchError(RomInstallerError):
    """The emulator process could not be started."""

    default_code = "LAUNCH_ERROR"


class StartFailure(LaunchError):
    """The emulator executable could not be executed at all."""

    default_code = "START_FAILURE"
