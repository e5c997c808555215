"""DNS Scanner - Domain resolution and public address lookup.

Runs the lookups on the target host itself, so the answers reflect
what the host (and the certificate authority) will see.
"""

import ipaddress
import shlex
from dataclasses import dataclass

from stremio_provisioner.connector import Connector


@dataclass
class DNSCheck:
    """Result of comparing the host's public IP with the domain's A record."""

    domain: str
    resolves: bool
    server_ip: str | None = None
    domain_ip: str | None = None

    @property
    def matches(self) -> bool:
        return bool(self.server_ip) and self.server_ip == self.domain_ip


class DNSScanner:
    """Resolve a domain and look up the host's public IP."""

    def __init__(self, connector: Connector, public_ip_url: str = "ifconfig.me") -> None:
        self.connector = connector
        self.public_ip_url = public_ip_url

    def resolves(self, domain: str) -> bool:
        return self.connector.run(f"nslookup {shlex.quote(domain)} >/dev/null 2>&1", timeout=30).success

    def public_ip(self) -> str | None:
        res = self.connector.run(f"curl -s {shlex.quote(self.public_ip_url)}", timeout=30)
        if not res.success:
            return None
        return self._first_address(res.stdout.splitlines())

    def domain_ip(self, domain: str) -> str | None:
        """Last address `dig +short` prints (CNAME chains come first)."""
        res = self.connector.run(f"dig +short {shlex.quote(domain)}", timeout=30)
        if not res.success:
            return None
        return self._first_address(reversed(res.stdout.splitlines()))

    def check(self, domain: str) -> DNSCheck:
        if not self.resolves(domain):
            return DNSCheck(domain=domain, resolves=False)
        return DNSCheck(
            domain=domain,
            resolves=True,
            server_ip=self.public_ip(),
            domain_ip=self.domain_ip(domain),
        )

    def _first_address(self, lines) -> str | None:
        for raw in lines:
            candidate = raw.strip()
            try:
                ipaddress.ip_address(candidate)
            except ValueError:
                continue
            return candidate
        return None
