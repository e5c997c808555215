"""SSH Connector - Provision a remote host over SSH.

This module handles all SSH communication with the target host.
It exposes the same surface as the local connector so stages never
care where their commands actually run.
"""

import base64
import logging
import shlex
import time
from dataclasses import dataclass, field
from pathlib import Path

import paramiko
from paramiko.ssh_exception import AuthenticationException, SSHException

from stremio_provisioner.errors import CommandFailedError

logger = logging.getLogger(__name__)


@dataclass
class SSHConfig:
    """SSH connection configuration."""

    host: str
    user: str = "root"
    port: int = 22
    key_path: str | None = None
    password: str | None = None  # Fallback, prefer keys
    use_sudo: bool = True
    timeout: int = 30


@dataclass
class CommandResult:
    """Result of a command execution."""

    command: str
    stdout: str
    stderr: str
    exit_code: int
    success: bool = field(init=False)

    def __post_init__(self) -> None:
        self.success = self.exit_code == 0


class SSHConnector:
    """SSH connection manager for provisioning a remote host.

    Example:
        >>> config = SSHConfig(host="203.0.113.10", user="root")
        >>> with SSHConnector(config) as ssh:
        ...     result = ssh.run("docker --version")
        ...     print(result.stdout)
    """

    # Package installs and the docker bootstrap script can take minutes.
    COMMAND_TIMEOUT = 1800
    READ_CHUNK = 32768

    def __init__(self, config: SSHConfig) -> None:
        """Initialize SSH connector with configuration."""
        self.config = config
        self._client: paramiko.SSHClient | None = None

    @property
    def target(self) -> str:
        return f"{self.config.user}@{self.config.host}"

    def connect(self) -> None:
        """Establish SSH connection."""
        self._client = paramiko.SSHClient()
        self._client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        connect_kwargs: dict = {
            "hostname": self.config.host,
            "port": self.config.port,
            "username": self.config.user,
            "timeout": self.config.timeout,
        }

        # Prefer key-based authentication
        if self.config.key_path:
            key_path = Path(self.config.key_path).expanduser()
            if key_path.exists():
                connect_kwargs["key_filename"] = str(key_path)
        elif self.config.password:
            connect_kwargs["password"] = self.config.password

        try:
            self._client.connect(**connect_kwargs)
        except AuthenticationException as e:
            raise ConnectionError(f"Authentication failed: {e}") from e
        except SSHException as e:
            raise ConnectionError(f"SSH error: {e}") from e

    def disconnect(self) -> None:
        """Close SSH connection."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "SSHConnector":
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()

    def run(self, command: str, use_sudo: bool | None = None, timeout: float | None = None) -> CommandResult:
        """Execute a command on the remote host.

        Args:
            command: The shell command to execute.
            use_sudo: Whether to use sudo. Defaults to config setting.
            timeout: Command timeout in seconds.

        Returns:
            CommandResult with stdout, stderr, and exit_code.
        """
        if not self._client:
            raise RuntimeError("Not connected. Use 'with SSHConnector(config):' context.")

        if use_sudo is None:
            use_sudo = self.config.use_sudo

        shown = command
        if use_sudo and self.config.user != "root":
            wrapped = f"sh -c {shlex.quote(command)}"
            if self.config.password:
                # Use -S to read password from stdin
                command = f"echo {shlex.quote(self.config.password)} | sudo -S {wrapped}"
            else:
                command = f"sudo {wrapped}"

        cmd_timeout = timeout if timeout is not None else self.COMMAND_TIMEOUT
        logger.debug("ssh %s: %s", self.target, shown)

        try:
            stdin, stdout, stderr = self._client.exec_command(command, timeout=cmd_timeout)
            out, err, exit_code = self._collect(stdout.channel, cmd_timeout)
        except (SSHException, OSError) as e:
            return CommandResult(
                command=shown,
                stdout="",
                stderr=f"SSH Execution Error: {e}",
                exit_code=255,
            )

        if exit_code is None:
            logger.warning("ssh %s: timed out after %ss: %s", self.target, cmd_timeout, shown)
            err = (err.rstrip() + b"\n" if err else b"") + f"Timed out after {cmd_timeout}s".encode()
            exit_code = 124

        return CommandResult(
            command=shown,
            stdout=out.decode("utf-8", errors="replace"),
            stderr=err.decode("utf-8", errors="replace"),
            exit_code=exit_code,
        )

    def _collect(self, channel: paramiko.Channel, timeout: float) -> tuple[bytes, bytes, int | None]:
        """Drain stdout and stderr until the command exits.

        Both streams are read as data arrives; unread output would fill
        the channel window and stall the remote process. The exit code is
        None when `timeout` elapses first.
        """
        out: list[bytes] = []
        err: list[bytes] = []
        deadline = time.monotonic() + timeout
        while True:
            if channel.recv_ready():
                out.append(channel.recv(self.READ_CHUNK))
                continue
            if channel.recv_stderr_ready():
                err.append(channel.recv_stderr(self.READ_CHUNK))
                continue
            if channel.exit_status_ready():
                break
            if time.monotonic() >= deadline:
                channel.close()
                return b"".join(out), b"".join(err), None
            channel.status_event.wait(0.1)
        return b"".join(out), b"".join(err), channel.recv_exit_status()

    def run_checked(self, command: str, timeout: float | None = None) -> CommandResult:
        """Execute a command and raise CommandFailedError on non-zero exit."""
        result = self.run(command, timeout=timeout)
        if not result.success:
            raise CommandFailedError(result)
        return result

    def read_file(self, path: str) -> str | None:
        """Read file contents, or None if the file doesn't exist."""
        result = self.run(f"cat {shlex.quote(path)}")
        if result.success:
            return result.stdout
        return None

    def file_exists(self, path: str) -> bool:
        """Check if a file (or symlink) exists on the remote host."""
        quoted = shlex.quote(path)
        return self.run(f"test -e {quoted} || test -L {quoted}").success

    def make_dirs(self, path: str) -> None:
        self.run_checked(f"mkdir -p {shlex.quote(path)}")

    def write_file(self, path: str, content: str) -> None:
        """Replace a remote file's content.

        Content travels base64-encoded to avoid shell escaping issues.
        """
        encoded = base64.b64encode(content.encode()).decode()
        self.run_checked(f"echo '{encoded}' | base64 -d > {shlex.quote(path)}")

    def append_file(self, path: str, content: str) -> None:
        """Append content to a remote file, creating it if needed."""
        encoded = base64.b64encode(content.encode()).decode()
        self.run_checked(f"echo '{encoded}' | base64 -d >> {shlex.quote(path)}")
