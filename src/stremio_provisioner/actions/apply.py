"""Apply Action - Install an nginx site configuration.

CONTRACT:
- read_only: False (MODIFIES HOST)
- requires_backup: False (site file is regenerated on every run)
- rollback_support: False
- prerequisites: ["nginx -t passes"]
"""

import shlex
from dataclasses import dataclass

from stremio_provisioner.config import HostLayout
from stremio_provisioner.connector import Connector


@dataclass
class ApplyResult:
    """Result of apply action."""

    success: bool
    site_path: str = ""
    error: str | None = None
    nginx_test_output: str = ""


class SiteApplyAction:
    """Write, enable and activate an nginx site.

    Order of operations:
    1. Write sites-available/<domain> (last write wins)
    2. Symlink it into sites-enabled, drop the default site
    3. Test with nginx -t
    4. Reload only if the test passes
    """

    def __init__(self, connector: Connector, layout: HostLayout) -> None:
        self.connector = connector
        self.layout = layout

    def apply_site(self, domain: str, config_content: str) -> ApplyResult:
        """Install `config_content` as the site for `domain`.

        Returns:
            ApplyResult; `success` is False when nginx -t rejects the
            merged configuration, in which case nginx is not reloaded.
        """
        available = self.layout.site_available_path(domain)
        enabled = self.layout.site_enabled_path(domain)
        result = ApplyResult(success=False, site_path=available)

        # Step 1: Write site file
        self.connector.make_dirs(self.layout.nginx_sites_available)
        self.connector.write_file(available, config_content)

        # Step 2: Enable it and remove the default site
        self.connector.make_dirs(self.layout.nginx_sites_enabled)
        self.connector.run_checked(f"ln -sf {shlex.quote(available)} {shlex.quote(enabled)}")
        self.connector.run_checked(f"rm -f {shlex.quote(self.layout.default_site_path())}")

        # Step 3: Test merged configuration
        test_result = self.connector.run("nginx -t")
        result.nginx_test_output = (test_result.stderr or test_result.stdout).strip()
        if not test_result.success:
            result.error = f"nginx -t failed: {result.nginx_test_output}"
            return result

        # Step 4: Reload nginx
        self.connector.run_checked("systemctl reload nginx")
        result.success = True
        return result
