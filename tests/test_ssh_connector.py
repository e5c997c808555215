"""Tests for SSHConnector command wrapping with a mocked paramiko client."""

import base64
from unittest.mock import MagicMock, patch

import pytest
from paramiko.ssh_exception import AuthenticationException, SSHException

from stremio_provisioner.connector.ssh import SSHConfig, SSHConnector
from stremio_provisioner.errors import CommandFailedError


class _FakeChannel:
    """Hands out queued output chunks and records the order of calls."""

    def __init__(self, stdout=(), stderr=(), exit_code=0, exits=True):
        self.stdout = list(stdout)
        self.stderr = list(stderr)
        self.exit_code = exit_code
        self.exits = exits
        self.calls = []
        self.closed = False
        self.status_event = MagicMock()

    def recv_ready(self):
        return bool(self.stdout)

    def recv(self, nbytes):
        self.calls.append("recv")
        return self.stdout.pop(0)

    def recv_stderr_ready(self):
        return bool(self.stderr)

    def recv_stderr(self, nbytes):
        self.calls.append("recv_stderr")
        return self.stderr.pop(0)

    def exit_status_ready(self):
        return self.exits and not self.stdout and not self.stderr

    def recv_exit_status(self):
        self.calls.append("recv_exit_status")
        return self.exit_code

    def close(self):
        self.closed = True


def _connected(config: SSHConfig, exit_code: int = 0, stdout: bytes = b"", stderr: bytes = b"", channel=None):
    connector = SSHConnector(config)
    client = MagicMock()
    if channel is None:
        channel = _FakeChannel([stdout] if stdout else [], [stderr] if stderr else [], exit_code)
    out = MagicMock()
    out.channel = channel
    client.exec_command.return_value = (MagicMock(), out, MagicMock())
    connector._client = client
    return connector, client


def test_run_as_root_is_not_wrapped():
    connector, client = _connected(SSHConfig(host="203.0.113.10"), stdout=b"0\n")
    result = connector.run("id -u")

    assert result.success is True
    assert result.stdout == "0\n"
    assert client.exec_command.call_args.args[0] == "id -u"


def test_run_as_user_wraps_in_sudo_shell():
    connector, client = _connected(SSHConfig(host="203.0.113.10", user="deploy"))
    result = connector.run("cd /root/stremio-server && docker-compose up -d")

    sent = client.exec_command.call_args.args[0]
    assert sent == "sudo sh -c 'cd /root/stremio-server && docker-compose up -d'"
    assert result.command == "cd /root/stremio-server && docker-compose up -d"


def test_password_is_fed_to_sudo():
    connector, client = _connected(SSHConfig(host="203.0.113.10", user="deploy", password="s3cret"))
    connector.run("ufw status")
    assert client.exec_command.call_args.args[0] == "echo s3cret | sudo -S sh -c 'ufw status'"


def test_transport_error_becomes_failed_result():
    connector, client = _connected(SSHConfig(host="203.0.113.10"))
    client.exec_command.side_effect = SSHException("channel closed")

    result = connector.run("apt-get update")
    assert result.exit_code == 255
    assert "channel closed" in result.stderr


def test_run_checked_raises_on_failure():
    connector, _ = _connected(SSHConfig(host="203.0.113.10"), exit_code=1, stderr=b"E: unable to locate package")
    with pytest.raises(CommandFailedError) as exc:
        connector.run_checked("apt-get install -y nope")
    assert "unable to locate package" in str(exc.value)


def test_write_file_sends_base64_payload():
    connector, client = _connected(SSHConfig(host="203.0.113.10"))
    content = "server {\n    listen 80;\n}\n"
    connector.write_file("/etc/nginx/sites-available/media.example.org", content)

    sent = client.exec_command.call_args.args[0]
    encoded = base64.b64encode(content.encode()).decode()
    assert sent == f"echo '{encoded}' | base64 -d > /etc/nginx/sites-available/media.example.org"


def test_append_file_uses_append_redirect():
    connector, client = _connected(SSHConfig(host="203.0.113.10"))
    connector.append_file("/etc/sysctl.conf", "net.core.default_qdisc = fq\n")
    assert " | base64 -d >> /etc/sysctl.conf" in client.exec_command.call_args.args[0]


def test_read_file_missing_returns_none():
    connector, _ = _connected(SSHConfig(host="203.0.113.10"), exit_code=1)
    assert connector.read_file("/etc/sysctl.conf") is None


def test_run_requires_connection():
    with pytest.raises(RuntimeError):
        SSHConnector(SSHConfig(host="203.0.113.10")).run("true")


def test_authentication_failure_raises_connection_error():
    with patch("stremio_provisioner.connector.ssh.paramiko.SSHClient") as MockClient:
        MockClient.return_value.connect.side_effect = AuthenticationException("denied")
        with pytest.raises(ConnectionError, match="Authentication failed"):
            SSHConnector(SSHConfig(host="203.0.113.10", password="wrong")).connect()


def test_target_names_user_and_host():
    assert SSHConnector(SSHConfig(host="203.0.113.10", user="deploy")).target == "deploy@203.0.113.10"


def test_output_is_drained_before_exit_status():
    chunk = b"x" * SSHConnector.READ_CHUNK
    channel = _FakeChannel(stdout=[chunk] * 80, stderr=[b"warning\n"] * 3)
    connector, _ = _connected(SSHConfig(host="203.0.113.10"), channel=channel)

    result = connector.run("DEBIAN_FRONTEND=noninteractive apt-get upgrade -y")

    assert result.success is True
    assert len(result.stdout) == 80 * SSHConnector.READ_CHUNK
    assert result.stderr == "warning\n" * 3
    assert channel.calls[-1] == "recv_exit_status"
    assert channel.calls.count("recv") == 80


def test_command_timeout_closes_channel():
    channel = _FakeChannel(stdout=[b"partial\n"], exits=False)
    connector, _ = _connected(SSHConfig(host="203.0.113.10"), channel=channel)

    result = connector.run("sh /tmp/get-docker.sh", timeout=0)

    assert result.exit_code == 124
    assert result.stdout == "partial\n"
    assert "Timed out after 0s" in result.stderr
    assert channel.closed is True
    assert "recv_exit_status" not in channel.calls
