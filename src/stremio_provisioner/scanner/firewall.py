"""Firewall Scanner - ufw activation state and rule listing."""

from dataclasses import dataclass, field

from stremio_provisioner.connector import Connector


@dataclass
class FirewallStatus:
    """Parsed `ufw status numbered` output."""

    active: bool
    rules: list[str] = field(default_factory=list)
    raw: str = ""


class FirewallScanner:
    """Scanner for local ufw state."""

    def __init__(self, connector: Connector) -> None:
        self.connector = connector

    def is_active(self) -> bool:
        res = self.connector.run("ufw status", timeout=15)
        return res.success and "status: active" in res.stdout.lower()

    def status(self) -> FirewallStatus:
        res = self.connector.run("ufw status numbered", timeout=15)
        out = res.stdout.strip() if res.success else ""
        return FirewallStatus(
            active="status: active" in out.lower(),
            rules=self._parse_ufw_rules(out),
            raw=out,
        )

    def _parse_ufw_rules(self, output: str) -> list[str]:
        """Extract compact rule lines from ufw status output."""
        rules: list[str] = []
        for raw in output.splitlines():
            line = raw.strip()
            if not line:
                continue
            low = line.lower()
            if low.startswith("status:") or low.startswith("to ") or low.startswith("--"):
                continue
            if "allow" not in low and "deny" not in low and "reject" not in low:
                continue
            rules.append(" ".join(line.split()))
        return rules
