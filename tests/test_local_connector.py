"""Tests for the local connector against the real /bin/sh and a temp dir."""

import pytest

from stremio_provisioner.connector.local import LocalConnector
from stremio_provisioner.errors import CommandFailedError


@pytest.fixture
def local():
    with LocalConnector() as connector:
        yield connector


def test_run_captures_output_and_exit_code(local):
    result = local.run("echo hello; echo oops >&2; exit 3")

    assert result.exit_code == 3
    assert result.success is False
    assert result.stdout == "hello\n"
    assert result.stderr == "oops\n"


def test_run_checked_raises_with_command_in_message(local):
    with pytest.raises(CommandFailedError) as exc:
        local.run_checked("exit 2")

    assert exc.value.result.exit_code == 2
    assert "exit 2" in str(exc.value)


def test_run_timeout_reports_124(local):
    result = local.run("sleep 5", timeout=0.2)
    assert result.exit_code == 124
    assert "Timed out" in result.stderr


def test_file_operations(local, tmp_path):
    target = tmp_path / "nested" / "dir"
    local.make_dirs(str(target))
    path = str(target / "sysctl.conf")

    assert local.read_file(path) is None
    assert local.file_exists(path) is False

    local.write_file(path, "vm.swappiness = 10\n")
    local.append_file(path, "net.core.default_qdisc = fq\n")

    assert local.file_exists(path) is True
    assert local.read_file(path) == "vm.swappiness = 10\nnet.core.default_qdisc = fq\n"


def test_file_exists_sees_dangling_symlink(local, tmp_path):
    link = tmp_path / "default"
    link.symlink_to(tmp_path / "missing")
    assert local.file_exists(str(link)) is True


def test_target_is_hostname(local):
    assert local.target
