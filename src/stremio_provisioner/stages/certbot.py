"""Stage 8 - TLS certificate issuance with certbot."""

import shlex

from stremio_provisioner.actions.report import CERT_ISSUANCE_FAILED
from stremio_provisioner.model.stage import StageResult
from stremio_provisioner.scanner.dns import DNSScanner
from stremio_provisioner.scanner.host import HostScanner
from stremio_provisioner.stages import BaseStage, StageContext, register_stage
from stremio_provisioner.stages.system import apt_install


def issue_command(domain: str, email: str) -> str:
    """certbot invocation that also rewrites nginx to redirect HTTP to HTTPS."""
    return (
        f"certbot --nginx -d {shlex.quote(domain)} --non-interactive --agree-tos "
        f"--email {shlex.quote(email)} --redirect"
    )


@register_stage
class CertificateStage(BaseStage):
    """Check DNS, then request a certificate.

    DNS that does not resolve is fatal. A DNS answer that does not point
    at this host needs the operator's consent. Issuance failure only
    warns: the site keeps serving plain HTTP and can be retried by hand.
    """

    number = 8
    name = "certificate"
    title = "Installing Certbot and setting up SSL"

    def run(self, context: StageContext) -> StageResult:
        conn = context.connector
        config = context.config
        reporter = context.reporter

        reporter.info(f"Checking DNS resolution for {config.domain}...")
        dns = DNSScanner(conn, context.layout.public_ip_url).check(config.domain)
        if not dns.resolves:
            reporter.error(f"DNS resolution failed for {config.domain}")
            reporter.error("Please ensure your domain is pointing to this server's IP before continuing")
            return self.fatal(f"{config.domain} does not resolve")

        reporter.info(f"Server IP: {dns.server_ip or 'unknown'}")
        reporter.info(f"Domain IP: {dns.domain_ip or 'unknown'}")

        if not dns.matches:
            reporter.warning("Domain IP doesn't match server IP!")
            if config.allow_dns_mismatch:
                reporter.warning("Continuing anyway (DNS mismatch allowed by configuration)")
            elif not context.confirm("SSL certificate may fail. Continue anyway?"):
                reporter.error("Setup cancelled. Please fix DNS and try again.")
                return self.fatal("DNS mismatch not accepted")

        if HostScanner(conn).command_exists("certbot"):
            reporter.warning("Certbot is already installed")
        else:
            conn.run_checked(apt_install("certbot", "python3-certbot-nginx"))
            reporter.success("Certbot installed")

        reporter.info("Obtaining SSL certificate...")
        issued = conn.run(issue_command(config.domain, config.email))
        if issued.success:
            reporter.success("SSL certificate obtained and configured")
            outcome = self.success()
        else:
            reporter.warning("Failed to obtain SSL certificate")
            reporter.warning(f"You can try running manually: sudo certbot --nginx -d {config.domain}")
            outcome = self.warning(CERT_ISSUANCE_FAILED)

        # With no certificate on the host this is a no-op that still exits 0.
        conn.run_checked("certbot renew --dry-run")
        reporter.success("SSL auto-renewal configured")
        return outcome
