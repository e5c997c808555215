"""Report Action - Console status lines and the final run summary.

CONTRACT:
- read_only: True
- requires_backup: False
- rollback_support: N/A
- prerequisites: None
"""

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from stremio_provisioner.config import RunConfig
from stremio_provisioner.model.stage import RunReport, StageStatus
from stremio_provisioner.scanner.firewall import FirewallStatus

logger = logging.getLogger("stremio_provisioner")

CERT_ISSUANCE_FAILED = "certificate issuance failed"


@dataclass
class StatusLine:
    """Single status line emitted during a run."""

    level: str  # INFO, SUCCESS, WARNING, ERROR
    message: str


class StatusReporter:
    """Prints severity-tagged, colored status lines.

    Every line is also kept in `lines` and mirrored to the
    `stremio_provisioner` logger.
    """

    STYLES = {
        "INFO": "bold blue",
        "SUCCESS": "bold green",
        "WARNING": "bold yellow",
        "ERROR": "bold red",
    }
    LOG_LEVELS = {
        "INFO": logging.INFO,
        "SUCCESS": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.lines: list[StatusLine] = []

    def log(self, message: str, level: str = "INFO") -> None:
        self.lines.append(StatusLine(level=level, message=message))
        self.console.print(f"[{self.STYLES[level]}]\\[{level}][/] {escape(message)}")
        logger.log(self.LOG_LEVELS[level], message)

    def info(self, message: str) -> None:
        self.log(message, "INFO")

    def success(self, message: str) -> None:
        self.log(message, "SUCCESS")

    def warning(self, message: str) -> None:
        self.log(message, "WARNING")

    def error(self, message: str) -> None:
        self.log(message, "ERROR")

    def messages(self, level: str | None = None) -> list[str]:
        return [line.message for line in self.lines if level is None or line.level == level]

    # =========================================================================
    # Framing output
    # =========================================================================

    def banner(self, version: str) -> None:
        self.console.print(
            Panel(
                f"[bold]Stremio Server Automated Setup[/]\nVersion {version}",
                style="green",
                expand=False,
            )
        )

    def config_summary(self, config: RunConfig, target: str) -> None:
        self.console.print()
        self.info("Configuration Summary:")
        self.console.print(f"  Target: {escape(target)}")
        self.console.print(f"  Domain: {escape(config.domain)}")
        self.console.print(f"  Email: {escape(config.email)}")
        self.console.print(f"  Installation Directory: {escape(config.install_dir)}")
        self.console.print()

    def stage_header(self, number: int, total: int, title: str) -> None:
        self.info(f"Step {number}/{total}: {title}...")

    def summary(self, config: RunConfig, report: RunReport, firewall: FirewallStatus | None) -> None:
        """Final, purely informational run summary."""
        install_dir = escape(config.install_dir)
        cert_warned = any(
            r.status == StageStatus.WARNING and r.message == CERT_ISSUANCE_FAILED for r in report.results
        )

        self.console.print()
        self.console.print(Panel("[bold green]Setup Complete![/]", style="green", expand=False))
        self.success("Stremio Server is now running!")

        lines = [
            "[bold]Setup Summary:[/]",
            "  ✓ Docker & Docker Compose installed",
            "  ✓ Stremio Server running in Docker",
            "  ✓ Nginx reverse proxy configured",
            "  ✗ SSL certificate NOT installed" if cert_warned else "  ✓ SSL certificate installed",
            "  ✓ Firewall configured",
            "  ✓ System optimized for streaming",
            "",
            f"[bold]Your Stremio Server URL:[/] {escape(config.url)}",
            f"[bold]Installation Directory:[/] {install_dir}",
            "",
            "[bold]Useful Commands:[/]",
            f"  • View logs: cd {install_dir} && docker-compose logs -f",
            f"  • Restart server: cd {install_dir} && docker-compose restart",
            f"  • Stop server: cd {install_dir} && docker-compose down",
            f"  • Start server: cd {install_dir} && docker-compose up -d",
            f"  • Update server: cd {install_dir} && docker-compose pull && docker-compose up -d",
            "",
            "[bold]SSL Certificate:[/]",
            "  • Certificates will auto-renew",
            "  • Check status: sudo certbot certificates",
            "  • Test renewal: sudo certbot renew --dry-run",
        ]
        if cert_warned:
            lines.append(f"  • Retry issuance: sudo certbot --nginx -d {escape(config.domain)}")
        for line in lines:
            self.console.print(line)

        self.console.print()
        self.console.print("[bold]Firewall Status:[/]")
        if firewall and firewall.raw:
            self.console.print(f"  Status: {'active' if firewall.active else 'inactive'}")
            for rule in firewall.rules:
                self.console.print(f"  {escape(rule)}", highlight=False)
        else:
            self.console.print("  [dim]Firewall status unavailable[/]")

        self.console.print()
        self.console.print(f"You can now configure your Stremio clients to use: {escape(config.url)}")
