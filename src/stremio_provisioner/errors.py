"""Exception taxonomy for stremio-provisioner."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stremio_provisioner.connector.ssh import CommandResult


class ProvisionError(Exception):
    """Base class for all provisioning errors."""


class ConfigError(ProvisionError):
    """Configuration file could not be read or is malformed."""


class CommandFailedError(ProvisionError):
    """An external command exited non-zero where success was required."""

    def __init__(self, result: "CommandResult") -> None:
        self.result = result
        detail = (result.stderr or result.stdout).strip()
        message = f"Command failed (exit {result.exit_code}): {result.command}"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)


class ProvisionAborted(ProvisionError):
    """The run was stopped before completing all stages."""

    def __init__(self, reason: str, exit_code: int = 1) -> None:
        self.reason = reason
        self.exit_code = exit_code
        super().__init__(reason)
