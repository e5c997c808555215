"""Stage plugin system for stremio-provisioner.

Each stage is a class registered with @register_stage. Stages run in
ascending `number` order and report a StageResult; the run loop stops
at the first FATAL one.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from stremio_provisioner.model.stage import StageResult, StageStatus

if TYPE_CHECKING:
    from stremio_provisioner.actions.report import StatusReporter
    from stremio_provisioner.config import HostLayout, RunConfig
    from stremio_provisioner.connector import Connector
    from stremio_provisioner.render import TemplateRenderer


@dataclass
class StageContext:
    """Everything a stage needs to act on the target host."""

    config: "RunConfig"
    connector: "Connector"
    reporter: "StatusReporter"
    renderer: "TemplateRenderer"
    confirm: Callable[[str], bool]
    sleep: Callable[[float], None] = field(default=time.sleep)

    @property
    def layout(self) -> "HostLayout":
        return self.config.layout


class BaseStage(ABC):
    """Abstract base class for all stages.

    Subclasses set `number`, `name` and `title`, and implement
    run(context) -> StageResult. A stage guards its own work: when the
    target state already exists it warns and skips instead of redoing it.
    """

    number: int = 0
    name: str = ""
    title: str = ""

    @abstractmethod
    def run(self, context: StageContext) -> StageResult:
        """Bring the host to this stage's desired state."""
        ...

    def result(self, status: StageStatus, message: str = "") -> StageResult:
        return StageResult(number=self.number, name=self.name, status=status, message=message)

    def success(self, message: str = "") -> StageResult:
        return self.result(StageStatus.SUCCESS, message)

    def skipped(self, message: str = "") -> StageResult:
        return self.result(StageStatus.SKIPPED, message)

    def warning(self, message: str = "") -> StageResult:
        return self.result(StageStatus.WARNING, message)

    def fatal(self, message: str = "") -> StageResult:
        return self.result(StageStatus.FATAL, message)


# Registry of all available stages
_stage_registry: list[type[BaseStage]] = []


def register_stage(stage_class: type[BaseStage]) -> type[BaseStage]:
    """Decorator to register a stage class."""
    _stage_registry.append(stage_class)
    return stage_class


def get_all_stages() -> list[type[BaseStage]]:
    """All registered stage classes in execution order."""
    return sorted(_stage_registry, key=lambda cls: cls.number)


# Importing the modules registers their stages.
from stremio_provisioner.stages import certbot, docker, firewall, nginx, sysctl, system  # noqa: E402,F401
