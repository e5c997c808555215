"""Scanner package - Read-only probes of the target host.

Scanners run shell commands and collect raw data.
They do NOT change anything - that's the stages' job.
"""

from stremio_provisioner.scanner.dns import DNSCheck, DNSScanner
from stremio_provisioner.scanner.docker import DockerScanner
from stremio_provisioner.scanner.firewall import FirewallScanner, FirewallStatus
from stremio_provisioner.scanner.host import HostScanner

__all__ = [
    "DNSCheck",
    "DNSScanner",
    "DockerScanner",
    "FirewallScanner",
    "FirewallStatus",
    "HostScanner",
]
