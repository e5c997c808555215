"""Configuration for a provisioning run.

Values come from (lowest to highest precedence) built-in defaults,
an optional YAML file, and CLI flags or interactive prompts.
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import keyring
import yaml
from keyring.errors import KeyringError

from stremio_provisioner.connector.ssh import SSHConfig
from stremio_provisioner.errors import ConfigError

DEFAULT_INSTALL_DIR = "/root/stremio-server"


@dataclass(frozen=True)
class HostLayout:
    """Paths, image and tuning constants applied to the target host."""

    image: str = "stremio/server:latest"
    container_name: str = "stremio-server"
    service_port: int = 11470
    restart_policy: str = "unless-stopped"
    data_dir_name: str = "data"
    container_data_path: str = "/root/.stremio-server"
    log_max_size: str = "10m"
    log_max_file: int = 3
    compose_file_name: str = "docker-compose.yml"

    nginx_sites_available: str = "/etc/nginx/sites-available"
    nginx_sites_enabled: str = "/etc/nginx/sites-enabled"
    nginx_default_site: str = "default"
    client_max_body_size: str = "100M"
    client_body_buffer_size: str = "128k"
    proxy_timeout: str = "300s"

    sysctl_path: str = "/etc/sysctl.conf"
    sysctl_marker: str = "# Stremio Server Optimizations"

    start_grace_seconds: float = 5
    public_ip_url: str = "ifconfig.me"
    docker_install_url: str = "https://get.docker.com"
    base_packages: tuple[str, ...] = (
        "curl",
        "git",
        "ufw",
        "software-properties-common",
        "dnsutils",
    )

    def compose_path(self, install_dir: str) -> str:
        return f"{install_dir.rstrip('/')}/{self.compose_file_name}"

    def site_available_path(self, domain: str) -> str:
        return f"{self.nginx_sites_available}/{domain}"

    def site_enabled_path(self, domain: str) -> str:
        return f"{self.nginx_sites_enabled}/{domain}"

    def default_site_path(self) -> str:
        return f"{self.nginx_sites_enabled}/{self.nginx_default_site}"

    @property
    def upstream(self) -> str:
        """Loopback address the proxy forwards to."""
        return f"127.0.0.1:{self.service_port}"


@dataclass
class RunConfig:
    """Inputs collected once at the start of a run."""

    domain: str
    email: str
    install_dir: str = DEFAULT_INSTALL_DIR
    assume_yes: bool = False
    allow_dns_mismatch: bool = False
    layout: HostLayout = field(default_factory=HostLayout)

    def __post_init__(self) -> None:
        if not self.install_dir:
            self.install_dir = DEFAULT_INSTALL_DIR

    @property
    def url(self) -> str:
        return f"https://{self.domain}"

    @property
    def compose_path(self) -> str:
        return self.layout.compose_path(self.install_dir)


_RUN_KEYS = ("domain", "email", "install_dir", "assume_yes", "allow_dns_mismatch")
_BOOL_KEYS = ("assume_yes", "allow_dns_mismatch")


class ConfigManager:
    """Loads an optional YAML run configuration.

    Example file:

        domain: media.example.org
        email: ops@example.org
        install_dir: /root/stremio-server
        layout:
          service_port: 11470
        ssh:
          host: 203.0.113.10
          user: root
          key_path: ~/.ssh/id_ed25519
    """

    ENV_VAR = "STREMIO_PROVISIONER_CONFIG"
    SERVICE_ID = "stremio-provisioner"
    KEYRING_REF = "__keyring__"

    def __init__(self, config_file: Path | None = None) -> None:
        if config_file is None:
            env_config = os.getenv(self.ENV_VAR)
            if env_config:
                config_file = Path(env_config).expanduser().resolve()
        self.config_file = config_file
        self._data: dict[str, Any] | None = None

    def load(self) -> dict[str, Any]:
        """Return the parsed config file, or an empty dict when there is none."""
        if self._data is not None:
            return self._data
        if self.config_file is None:
            self._data = {}
            return self._data

        try:
            with open(self.config_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {self.config_file}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{self.config_file} must contain a mapping at the top level")
        self._data = data
        return data

    def run_values(self) -> dict[str, Any]:
        """Run-level values present in the file (domain, email, ...)."""
        data = self.load()
        values = {key: data[key] for key in _RUN_KEYS if data.get(key) is not None}
        for key in _BOOL_KEYS:
            if key in values and not isinstance(values[key], bool):
                raise ConfigError(f"'{key}' must be true or false, got {values[key]!r}")
        return values

    def layout(self) -> HostLayout:
        """Default HostLayout with the file's `layout:` overrides applied."""
        overrides = self.load().get("layout") or {}
        if not isinstance(overrides, dict):
            raise ConfigError("'layout' must be a mapping")

        known = {f.name for f in fields(HostLayout)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown layout keys: {', '.join(unknown)}")

        if "base_packages" in overrides:
            overrides = {**overrides, "base_packages": tuple(overrides["base_packages"])}
        return replace(HostLayout(), **overrides)

    def ssh_profile(self) -> SSHConfig | None:
        """SSH target from the file's `ssh:` section, if any."""
        data = self.load().get("ssh")
        if not data:
            return None
        if not isinstance(data, dict) or not data.get("host"):
            raise ConfigError("'ssh' must be a mapping with at least a 'host'")

        password = data.get("password")
        if password == self.KEYRING_REF:
            password = self._keyring_password(data["host"])

        return SSHConfig(
            host=data["host"],
            user=data.get("user", "root"),
            port=data.get("port", 22),
            key_path=data.get("key_path"),
            use_sudo=data.get("use_sudo", True),
            password=password,
        )

    def _keyring_password(self, host: str) -> str | None:
        try:
            return keyring.get_password(self.SERVICE_ID, host)
        except KeyringError as e:
            raise ConfigError(f"Cannot read SSH password for {host} from keyring: {e}") from e
