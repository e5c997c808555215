"""Local Connector - Provision the machine this process runs on."""

import logging
import socket
import subprocess
from pathlib import Path

from stremio_provisioner.connector.ssh import CommandResult
from stremio_provisioner.errors import CommandFailedError

logger = logging.getLogger(__name__)


class LocalConnector:
    """Run provisioning commands on the local host through /bin/sh.

    Mirrors SSHConnector so the provisioner can target either one.
    """

    COMMAND_TIMEOUT = 1800

    def __init__(self) -> None:
        self.target = socket.gethostname()

    def __enter__(self) -> "LocalConnector":
        return self

    def __exit__(self, *args: object) -> None:
        pass

    def run(self, command: str, timeout: float | None = None) -> CommandResult:
        """Execute a shell command and capture its output."""
        logger.debug("local: %s", command)
        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout if timeout is not None else self.COMMAND_TIMEOUT,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            return CommandResult(
                command=command,
                stdout="",
                stderr=f"Timed out after {e.timeout}s",
                exit_code=124,
            )
        return CommandResult(
            command=command,
            stdout=proc.stdout,
            stderr=proc.stderr,
            exit_code=proc.returncode,
        )

    def run_checked(self, command: str, timeout: float | None = None) -> CommandResult:
        """Execute a command and raise CommandFailedError on non-zero exit."""
        result = self.run(command, timeout=timeout)
        if not result.success:
            raise CommandFailedError(result)
        return result

    def read_file(self, path: str) -> str | None:
        try:
            return Path(path).read_text(errors="replace")
        except FileNotFoundError:
            return None

    def file_exists(self, path: str) -> bool:
        p = Path(path)
        return p.exists() or p.is_symlink()

    def make_dirs(self, path: str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write_file(self, path: str, content: str) -> None:
        logger.debug("local: write %s", path)
        Path(path).write_text(content)

    def append_file(self, path: str, content: str) -> None:
        logger.debug("local: append %s", path)
        with open(path, "a") as f:
            f.write(content)
