"""Stages 2-5 - Docker runtime, docker-compose, service definition and start."""

import shlex

from stremio_provisioner.model.stage import StageResult
from stremio_provisioner.scanner.docker import DockerScanner
from stremio_provisioner.scanner.host import HostScanner
from stremio_provisioner.stages import BaseStage, StageContext, register_stage
from stremio_provisioner.stages.system import apt_install

BOOTSTRAP_SCRIPT = "/tmp/get-docker.sh"


@register_stage
class DockerInstallStage(BaseStage):
    """Install the Docker engine via the vendor bootstrap script."""

    number = 2
    name = "docker"
    title = "Installing Docker"

    def run(self, context: StageContext) -> StageResult:
        if HostScanner(context.connector).command_exists("docker"):
            context.reporter.warning("Docker is already installed, skipping...")
            return self.skipped("docker already installed")

        conn = context.connector
        script = shlex.quote(BOOTSTRAP_SCRIPT)
        conn.run_checked(f"curl -fsSL {shlex.quote(context.layout.docker_install_url)} -o {script}")
        try:
            conn.run_checked(f"sh {script}")
        finally:
            conn.run(f"rm -f {script}")
        conn.run_checked("systemctl start docker")
        conn.run_checked("systemctl enable docker")
        context.reporter.success("Docker installed and enabled")
        return self.success()


@register_stage
class ComposeInstallStage(BaseStage):
    number = 3
    name = "docker-compose"
    title = "Installing Docker Compose"

    def run(self, context: StageContext) -> StageResult:
        if HostScanner(context.connector).command_exists("docker-compose"):
            context.reporter.warning("Docker Compose is already installed, skipping...")
            return self.skipped("docker-compose already installed")

        context.connector.run_checked(apt_install("docker-compose"))
        context.reporter.success("Docker Compose installed")
        return self.success()


@register_stage
class ServiceDefinitionStage(BaseStage):
    """Write docker-compose.yml into the install directory.

    Always overwritten; the service port is bound to 127.0.0.1 only.
    """

    number = 4
    name = "service-definition"
    title = "Setting up Stremio Server"

    def run(self, context: StageContext) -> StageResult:
        config = context.config
        context.connector.make_dirs(config.install_dir)
        context.connector.write_file(config.compose_path, context.renderer.render_compose())
        context.reporter.success(f"Docker Compose configuration created at {config.compose_path}")
        return self.success(config.compose_path)


@register_stage
class ServiceStartStage(BaseStage):
    """docker-compose up, then verify the container is listed as running."""

    number = 5
    name = "service-start"
    title = "Starting Stremio Server"

    def run(self, context: StageContext) -> StageResult:
        layout = context.layout
        context.connector.run_checked(f"cd {shlex.quote(context.config.install_dir)} && docker-compose up -d")

        # Give the container time to come up
        context.sleep(layout.start_grace_seconds)

        if DockerScanner(context.connector).is_running(layout.container_name):
            context.reporter.success("Stremio Server is running")
            return self.success()

        context.reporter.error("Failed to start Stremio Server")
        return self.fatal(f"container {layout.container_name} is not running")
