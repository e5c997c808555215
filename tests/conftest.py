"""Pytest configuration and fixtures for stremio-provisioner tests."""

import io
import shlex

import pytest
from rich.console import Console

from stremio_provisioner.actions.report import StatusReporter
from stremio_provisioner.config import RunConfig
from stremio_provisioner.connector.ssh import CommandResult
from stremio_provisioner.errors import CommandFailedError


class FakeHost:
    """In-memory stand-in for a Debian host.

    Understands exactly the commands the stages issue and keeps enough
    state (installed binaries, files, ufw rules, running containers) for
    a second run to observe what the first one did.
    """

    target = "fake-host"

    def __init__(
        self,
        *,
        uid: int = 0,
        installed: tuple[str, ...] = (),
        ufw_active: bool = False,
        resolves: bool = True,
        server_ip: str = "203.0.113.10",
        domain_ip: str = "203.0.113.10",
        nginx_test_ok: bool = True,
        container_starts: bool = True,
        certbot_ok: bool = True,
        renew_ok: bool = True,
        files: dict[str, str] | None = None,
        fail_commands: tuple[str, ...] = (),
    ) -> None:
        self.uid = uid
        self.installed = set(installed)
        self.ufw_active = ufw_active
        self.resolves = resolves
        self.server_ip = server_ip
        self.domain_ip = domain_ip
        self.nginx_test_ok = nginx_test_ok
        self.container_starts = container_starts
        self.certbot_ok = certbot_ok
        self.renew_ok = renew_ok
        self.files: dict[str, str] = dict(files or {})
        self.fail_commands = fail_commands

        self.commands: list[str] = []
        self.dirs: set[str] = set()
        self.ufw_rules: list[str] = []
        self.running: set[str] = set()
        self.reloads = 0
        self.sysctl_applied = 0

    def __enter__(self) -> "FakeHost":
        return self

    def __exit__(self, *args: object) -> None:
        pass

    # Connector surface -----------------------------------------------------

    def run(self, command: str, timeout: float | None = None) -> CommandResult:
        self.commands.append(command)
        if any(marker in command for marker in self.fail_commands):
            return self._result(command, exit_code=1, stderr="forced failure")
        return self._dispatch(command)

    def run_checked(self, command: str, timeout: float | None = None) -> CommandResult:
        result = self.run(command, timeout=timeout)
        if not result.success:
            raise CommandFailedError(result)
        return result

    def read_file(self, path: str) -> str | None:
        return self.files.get(path)

    def file_exists(self, path: str) -> bool:
        return path in self.files

    def make_dirs(self, path: str) -> None:
        self.dirs.add(path)

    def write_file(self, path: str, content: str) -> None:
        self.files[path] = content

    def append_file(self, path: str, content: str) -> None:
        self.files[path] = self.files.get(path, "") + content

    # Helpers ---------------------------------------------------------------

    def ran(self, fragment: str) -> bool:
        return any(fragment in c for c in self.commands)

    def _result(self, command: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
        return CommandResult(command=command, stdout=stdout, stderr=stderr, exit_code=exit_code)

    def _dispatch(self, command: str) -> CommandResult:
        ok = self._result(command)
        fail = self._result(command, exit_code=1, stderr="failed")

        if command == "id -u":
            return self._result(command, stdout=f"{self.uid}\n")
        if command.startswith("command -v "):
            name = shlex.split(command)[2]
            return ok if name in self.installed else fail
        if "apt-get update" in command or "apt-get upgrade" in command:
            return ok
        if "apt-get install -y" in command:
            tokens = shlex.split(command)
            self.installed.update(tokens[tokens.index("-y") + 1:])
            return ok
        if command.startswith("curl -fsSL"):
            return ok
        if command.startswith("sh ") and "get-docker" in command:
            self.installed.add("docker")
            return ok
        if command.startswith("rm -f "):
            self.files.pop(shlex.split(command)[2], None)
            return ok
        if command.startswith("ln -sf "):
            _, _, source, dest = shlex.split(command)
            self.files[dest] = self.files.get(source, "")
            return ok
        if "docker-compose up -d" in command:
            if self.container_starts:
                self.running.add("stremio-server")
            return ok
        if command.startswith("docker ps"):
            return self._result(command, stdout="\n".join(sorted(self.running)) + "\n")
        if command == "nginx -t":
            if self.nginx_test_ok:
                return self._result(command, stderr="nginx: configuration file /etc/nginx/nginx.conf test is successful")
            return self._result(command, exit_code=1, stderr="nginx: [emerg] unexpected end of file")
        if command == "systemctl reload nginx":
            self.reloads += 1
            return ok
        if command.startswith("systemctl "):
            return ok
        if command == "ufw status numbered":
            return self._result(command, stdout=self._ufw_listing(numbered=True))
        if command == "ufw status":
            return self._result(command, stdout=self._ufw_listing(numbered=False))
        if command == "ufw --force enable":
            self.ufw_active = True
            return self._result(command, stdout="Firewall is active and enabled on system startup")
        if command.startswith("ufw allow "):
            rule = shlex.split(command)[2]
            if rule not in self.ufw_rules:
                self.ufw_rules.append(rule)
            return self._result(command, stdout="Rule added")
        if command.startswith("nslookup "):
            return ok if self.resolves else fail
        if command.startswith("curl -s "):
            return self._result(command, stdout=self.server_ip)
        if command.startswith("dig +short "):
            return self._result(command, stdout=f"{self.domain_ip}\n" if self.resolves else "")
        if command.startswith("certbot --nginx"):
            return ok if self.certbot_ok else self._result(command, exit_code=1, stderr="Challenge failed")
        if command == "certbot renew --dry-run":
            return ok if self.renew_ok else fail
        if command.startswith("sysctl -p"):
            self.sysctl_applied += 1
            return ok

        return self._result(command, exit_code=127, stderr=f"fake host: unknown command {command!r}")

    def _ufw_listing(self, numbered: bool) -> str:
        if not self.ufw_active:
            return "Status: inactive\n"
        lines = ["Status: active", "", "     To                         Action      From", "     --                         ------      ----"]
        for i, rule in enumerate(self.ufw_rules, start=1):
            prefix = f"[{i:>2}] " if numbered else ""
            lines.append(f"{prefix}{rule:<26} ALLOW IN    Anywhere")
        return "\n".join(lines) + "\n"


@pytest.fixture
def make_host():
    """Factory for FakeHost instances."""
    return FakeHost


@pytest.fixture
def fake_host():
    """A fresh, root-accessible host with nothing installed."""
    return FakeHost()


@pytest.fixture
def console_buffer():
    return io.StringIO()


@pytest.fixture
def reporter(console_buffer):
    """StatusReporter writing to an in-memory buffer."""
    return StatusReporter(Console(file=console_buffer, width=200, color_system=None))


@pytest.fixture
def run_config():
    return RunConfig(domain="media.example.org", email="ops@example.org", assume_yes=True)
