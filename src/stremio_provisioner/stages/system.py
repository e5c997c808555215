"""Stage 1 - System package update."""

import shlex

from stremio_provisioner.model.stage import StageResult
from stremio_provisioner.stages import BaseStage, StageContext, register_stage

APT = "DEBIAN_FRONTEND=noninteractive apt-get"


def apt_install(*packages: str) -> str:
    """apt-get install command line for `packages`."""
    return f"{APT} install -y " + " ".join(shlex.quote(p) for p in packages)


@register_stage
class SystemUpdateStage(BaseStage):
    """Refresh package lists, upgrade, and install base tooling. Always runs."""

    number = 1
    name = "system-update"
    title = "Updating system packages"

    def run(self, context: StageContext) -> StageResult:
        conn = context.connector
        conn.run_checked(f"{APT} update")
        conn.run_checked(f"{APT} upgrade -y")
        conn.run_checked(apt_install(*context.layout.base_packages))
        context.reporter.success("System updated")
        return self.success()
