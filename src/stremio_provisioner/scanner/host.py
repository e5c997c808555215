"""Host Scanner - Privilege and installed-tool probes."""

import shlex

from stremio_provisioner.connector import Connector


class HostScanner:
    """Answers "is X already there?" questions about the target host."""

    def __init__(self, connector: Connector) -> None:
        self.connector = connector

    def is_root(self) -> bool:
        """True when commands on the target run with uid 0."""
        result = self.connector.run("id -u", timeout=10)
        return result.success and result.stdout.strip() == "0"

    def command_exists(self, name: str) -> bool:
        return self.connector.run(f"command -v {shlex.quote(name)} >/dev/null 2>&1", timeout=10).success

    def file_contains(self, path: str, needle: str) -> bool:
        """True when `path` exists and contains `needle` verbatim."""
        content = self.connector.read_file(path)
        return content is not None and needle in content
