"""Connector package - Where provisioning commands run.

Both connectors share one surface: run, run_checked, read_file,
file_exists, make_dirs, write_file and append_file.
"""

from typing import Union

from stremio_provisioner.connector.local import LocalConnector
from stremio_provisioner.connector.ssh import CommandResult, SSHConfig, SSHConnector

Connector = Union[LocalConnector, SSHConnector]

__all__ = ["CommandResult", "Connector", "LocalConnector", "SSHConfig", "SSHConnector"]
