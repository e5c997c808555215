"""
Click-based CLI for stremio-provisioner.

IMPORTANT: This module only ORCHESTRATES. It never touches the host itself.
- Loads the config file
- Collects missing values (flags, then file, then prompts)
- Picks the connector
- Runs the provisioner and turns its report into an exit code
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.text import Text

from stremio_provisioner import __version__
from stremio_provisioner.actions.report import StatusReporter
from stremio_provisioner.config import DEFAULT_INSTALL_DIR, ConfigManager, HostLayout, RunConfig
from stremio_provisioner.connector import Connector, LocalConnector, SSHConfig, SSHConnector
from stremio_provisioner.errors import ConfigError
from stremio_provisioner.provisioner import Provisioner
from stremio_provisioner.render import TemplateRenderer
from stremio_provisioner.scanner.host import HostScanner

console = Console()


def _configure_logging(verbose: bool, log_file: str | None) -> None:
    root = logging.getLogger("stremio_provisioner")
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    # Status lines already reach the console through StatusReporter.
    root.propagate = False
    if verbose:
        handler = RichHandler(console=console, show_path=False)
        handler.setLevel(logging.DEBUG)
        root.addHandler(handler)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(file_handler)
    if not root.handlers:
        root.addHandler(logging.NullHandler())


@click.group()
@click.version_option(version=__version__, prog_name="stremio-provision")
@click.option("--config", "-c", "config_file", type=click.Path(dir_okay=False), help="YAML config file")
@click.option("--verbose", "-v", is_flag=True, help="Show every command as it runs")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Append a debug log to this file")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, verbose: bool, log_file: str | None) -> None:
    """Provision a Stremio streaming server: Docker, Nginx, TLS, firewall and tuning."""
    ctx.ensure_object(dict)
    _configure_logging(verbose, log_file)
    ctx.obj["config_mgr"] = ConfigManager(Path(config_file) if config_file else None)


def _fail(message: str) -> None:
    console.print(f"[bold red]\\[ERROR][/] {message}")
    sys.exit(1)


def _resolve_connector(
    config_mgr: ConfigManager,
    host: str | None,
    user: str | None,
    port: int | None,
    key: str | None,
) -> Connector:
    """SSH target from flags or config file, otherwise the local host."""
    profile = config_mgr.ssh_profile()
    if host:
        profile = SSHConfig(host=host, user=user or "root", port=port or 22, key_path=key)
    elif profile:
        if user:
            profile.user = user
        if port:
            profile.port = port
        if key:
            profile.key_path = key
    if profile:
        return SSHConnector(profile)
    return LocalConnector()


def _collect_run_config(
    config_mgr: ConfigManager,
    domain: str | None,
    email: str | None,
    install_dir: str | None,
    yes: bool,
    allow_dns_mismatch: bool,
) -> RunConfig:
    """Flags win over the config file; anything still missing is prompted for.

    The install directory is only asked for in interactive runs, i.e. when
    the domain or email had to be prompted too.
    """
    values = config_mgr.run_values()
    domain = domain or values.get("domain")
    email = email or values.get("email")
    install_dir = install_dir or values.get("install_dir")
    interactive = not (domain and email)

    if interactive:
        console.print()
        console.print("[bold blue]\\[INFO][/] Please provide the following information:")
        console.print()
    if not domain:
        domain = Prompt.ask("Enter your domain (e.g., stremio.example.com)", console=console)
    if not email:
        email = Prompt.ask("Enter your email for SSL certificate", console=console)
    if interactive and not install_dir:
        install_dir = Prompt.ask(
            f"Enter installation directory (default: {DEFAULT_INSTALL_DIR})",
            default="",
            show_default=False,
            console=console,
        )

    if not domain or not email:
        _fail("Domain and email are required")

    return RunConfig(
        domain=domain.strip(),
        email=email.strip(),
        install_dir=(install_dir or "").strip() or DEFAULT_INSTALL_DIR,
        assume_yes=yes or values.get("assume_yes", False),
        allow_dns_mismatch=allow_dns_mismatch or values.get("allow_dns_mismatch", False),
        layout=config_mgr.layout(),
    )


@main.command()
@click.option("--domain", "-d", help="Public domain name (e.g. stremio.example.com)")
@click.option("--email", "-e", help="Contact email for the TLS certificate")
@click.option("--install-dir", help=f"Installation directory (default: {DEFAULT_INSTALL_DIR})")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.option("--allow-dns-mismatch", is_flag=True, help="Request a certificate even if DNS points elsewhere")
@click.option("--host", "-H", help="Provision this host over SSH instead of the local machine")
@click.option("--user", "-u", help="SSH username (default: root)")
@click.option("--port", "-p", type=int, help="SSH port (default: 22)")
@click.option("--key", "-k", type=click.Path(), help="Path to SSH private key")
@click.pass_context
def setup(
    ctx: click.Context,
    domain: str | None,
    email: str | None,
    install_dir: str | None,
    yes: bool,
    allow_dns_mismatch: bool,
    host: str | None,
    user: str | None,
    port: int | None,
    key: str | None,
) -> None:
    """Provision the server end to end.

    ⚠️  WARNING: This modifies the target host!
    """
    config_mgr: ConfigManager = ctx.obj["config_mgr"]
    reporter = StatusReporter(console)

    try:
        connector = _resolve_connector(config_mgr, host, user, port, key)
        with connector:
            if not HostScanner(connector).is_root():
                reporter.error("This script must be run as root (use sudo)")
                sys.exit(1)

            reporter.banner(__version__)
            run_config = _collect_run_config(config_mgr, domain, email, install_dir, yes, allow_dns_mismatch)
            provisioner = Provisioner(
                run_config,
                connector,
                reporter=reporter,
                confirm=lambda question: Confirm.ask(question, console=console),
            )
            report = provisioner.run()
    except ConfigError as e:
        _fail(str(e))
    except ConnectionError as e:
        _fail(f"Cannot connect: {e}")
    except KeyboardInterrupt:
        console.print()
        _fail("Interrupted; the host is left as the last completed command left it")

    if report.aborted_reason:
        reporter.error(f"Setup aborted: {report.aborted_reason}")
    sys.exit(report.exit_code)


@main.command()
@click.option("--domain", "-d", required=True, help="Public domain name")
@click.option("--install-dir", default=DEFAULT_INSTALL_DIR, show_default=True, help="Installation directory")
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), help="Write files here instead of printing")
@click.pass_context
def render(ctx: click.Context, domain: str, install_dir: str, output_dir: str | None) -> None:
    """Show the files setup would write, without touching any host.

    This is read-only. Files are written locally only with --output-dir.
    """
    config_mgr: ConfigManager = ctx.obj["config_mgr"]
    try:
        layout: HostLayout = config_mgr.layout()
    except ConfigError as e:
        _fail(str(e))

    renderer = TemplateRenderer(layout)
    artifacts = [
        (layout.compose_path(install_dir), layout.compose_file_name, renderer.render_compose()),
        (layout.site_available_path(domain), domain, renderer.render_site(domain)),
        (f"{layout.sysctl_path} (appended)", "sysctl.conf", renderer.render_sysctl_block()),
    ]

    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for _, filename, content in artifacts:
            (out / filename).write_text(content)
            console.print(f"[green]✓ Written:[/] {out / filename}")
        return

    for target, _, content in artifacts:
        console.print(Panel(Text(content.rstrip("\n")), title=target, style="cyan"))


if __name__ == "__main__":
    main()
