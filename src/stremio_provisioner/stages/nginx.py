"""Stage 6 - nginx install and site configuration."""

from stremio_provisioner.actions.apply import SiteApplyAction
from stremio_provisioner.model.stage import StageResult
from stremio_provisioner.scanner.host import HostScanner
from stremio_provisioner.stages import BaseStage, StageContext, register_stage
from stremio_provisioner.stages.system import apt_install


@register_stage
class NginxStage(BaseStage):
    """Install nginx if needed, then (re)write and activate the site.

    The site is written on every run. A failed `nginx -t` stops the run
    before nginx is reloaded.
    """

    number = 6
    name = "nginx"
    title = "Installing and configuring Nginx"

    def run(self, context: StageContext) -> StageResult:
        conn = context.connector
        domain = context.config.domain

        if HostScanner(conn).command_exists("nginx"):
            context.reporter.warning("Nginx is already installed")
        else:
            conn.run_checked(apt_install("nginx"))
            conn.run_checked("systemctl start nginx")
            conn.run_checked("systemctl enable nginx")
            context.reporter.success("Nginx installed and enabled")

        site = context.renderer.render_site(domain)
        result = SiteApplyAction(conn, context.layout).apply_site(domain, site)
        if not result.success:
            context.reporter.error("Nginx configuration test failed, not reloading")
            if result.nginx_test_output:
                context.reporter.error(result.nginx_test_output)
            return self.fatal(result.error or "nginx -t failed")

        context.reporter.success(f"Nginx configured for {domain}")
        return self.success(result.site_path)
