"""Template rendering for the files the provisioner writes to the host."""

import os

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from stremio_provisioner.config import HostLayout


class TemplateRenderer:
    """Render the compose file, nginx site and sysctl block from jinja2 templates."""

    COMPOSE_TEMPLATE = "docker-compose.yml.j2"
    SITE_TEMPLATE = "nginx-site.conf.j2"
    SYSCTL_TEMPLATE = "sysctl.conf.j2"

    def __init__(self, layout: HostLayout | None = None, template_dir: str | None = None) -> None:
        if template_dir is None:
            template_dir = os.path.join(os.path.dirname(__file__), "templates")

        self.layout = layout or HostLayout()
        # Config files, not HTML: no autoescape.
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render_compose(self) -> str:
        """Service definition with the port bound to loopback only."""
        return self.env.get_template(self.COMPOSE_TEMPLATE).render(layout=self.layout)

    def render_site(self, domain: str) -> str:
        """nginx server block routing `domain` to the loopback upstream."""
        return self.env.get_template(self.SITE_TEMPLATE).render(layout=self.layout, domain=domain)

    def render_sysctl_block(self) -> str:
        """Marked block of network tuning parameters for sysctl.conf."""
        return self.env.get_template(self.SYSCTL_TEMPLATE).render(layout=self.layout)
