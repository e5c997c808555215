"""Docker Scanner - Container liveness via the docker CLI."""

from stremio_provisioner.connector import Connector


class DockerScanner:
    """Reads the running-container listing."""

    def __init__(self, connector: Connector) -> None:
        self.connector = connector

    def running_containers(self) -> list[str]:
        res = self.connector.run("docker ps --format '{{.Names}}'", timeout=30)
        if not res.success:
            return []
        return [line.strip() for line in res.stdout.splitlines() if line.strip()]

    def is_running(self, container_name: str) -> bool:
        return container_name in self.running_containers()
