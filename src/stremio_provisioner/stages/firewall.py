"""Stage 7 - ufw configuration."""

import shlex

from stremio_provisioner.model.stage import StageResult
from stremio_provisioner.scanner.firewall import FirewallScanner
from stremio_provisioner.stages import BaseStage, StageContext, register_stage

# The service port stays closed: it is bound to loopback only.
ALLOWED_APPS = ("OpenSSH", "Nginx Full")


@register_stage
class FirewallStage(BaseStage):
    number = 7
    name = "firewall"
    title = "Configuring firewall"

    def run(self, context: StageContext) -> StageResult:
        conn = context.connector

        if FirewallScanner(conn).is_active():
            context.reporter.warning("UFW is already active")
        else:
            # --force: ufw would otherwise prompt before enabling
            conn.run_checked("ufw --force enable")

        for app in ALLOWED_APPS:
            conn.run_checked(f"ufw allow {shlex.quote(app)}")

        context.reporter.success("Firewall configured")
        return self.success()
