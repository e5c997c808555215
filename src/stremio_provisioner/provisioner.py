"""Provisioning run loop.

Public API:
    Provisioner(config, connector, ...).run() -> RunReport

The loop is explicit over StageStatus: SUCCESS, SKIPPED and WARNING
move on to the next stage, FATAL stops the run. Nothing is undone on
abort; re-running relies on each stage's own guard.
"""

import logging
import time
from typing import Callable

from stremio_provisioner.actions.report import StatusReporter
from stremio_provisioner.config import RunConfig
from stremio_provisioner.connector import Connector
from stremio_provisioner.errors import CommandFailedError, ProvisionAborted
from stremio_provisioner.model.stage import RunReport, StageStatus
from stremio_provisioner.render import TemplateRenderer
from stremio_provisioner.scanner.firewall import FirewallScanner
from stremio_provisioner.scanner.host import HostScanner
from stremio_provisioner.stages import BaseStage, StageContext, get_all_stages

logger = logging.getLogger(__name__)


def _deny(prompt: str) -> bool:
    return False


class Provisioner:
    """Runs every registered stage, in order, against one host."""

    def __init__(
        self,
        config: RunConfig,
        connector: Connector,
        *,
        reporter: StatusReporter | None = None,
        renderer: TemplateRenderer | None = None,
        confirm: Callable[[str], bool] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        stages: list[type[BaseStage]] | None = None,
    ) -> None:
        self.config = config
        self.connector = connector
        self.reporter = reporter or StatusReporter()
        self.renderer = renderer or TemplateRenderer(config.layout)
        # Without a prompt source every question is answered "no".
        self.confirm = confirm or _deny
        self.stages = stages if stages is not None else get_all_stages()
        self.context = StageContext(
            config=config,
            connector=connector,
            reporter=self.reporter,
            renderer=self.renderer,
            confirm=self.confirm,
            sleep=sleep,
        )

    def run(self) -> RunReport:
        """Execute the whole provisioning sequence.

        Returns:
            RunReport; `exit_code` is 0 when every stage finished
            without a FATAL result.
        """
        report = RunReport()
        try:
            self._preflight()
            self._run_stages(report)
        except ProvisionAborted as e:
            report.aborted_reason = e.reason
            return report

        self.reporter.summary(self.config, report, FirewallScanner(self.connector).status())
        return report

    def _preflight(self) -> None:
        """Privilege check and operator confirmation, before any mutation."""
        if not HostScanner(self.connector).is_root():
            self.reporter.error("This script must be run as root (use sudo)")
            raise ProvisionAborted("insufficient privileges")

        self.reporter.config_summary(self.config, self.connector.target)
        if self.config.assume_yes:
            return
        if not self.confirm("Continue with these settings?"):
            self.reporter.error("Setup cancelled by user")
            raise ProvisionAborted("cancelled by user")

    def _run_stages(self, report: RunReport) -> None:
        total = len(self.stages)
        for stage_class in self.stages:
            stage = stage_class()
            self.reporter.stage_header(stage.number, total, stage.title)

            try:
                result = stage.run(self.context)
            except CommandFailedError as e:
                self.reporter.error(str(e))
                result = stage.fatal(f"command failed: {e.result.command}")
            except OSError as e:
                self.reporter.error(f"File operation failed: {e}")
                result = stage.fatal(f"file operation failed: {e}")

            logger.debug("stage %s -> %s %s", stage.name, result.status.value, result.message)
            report.add(result)

            if result.status == StageStatus.FATAL:
                self.reporter.error(f"Step {stage.number}/{total} failed: {result.message}")
                raise ProvisionAborted(result.message)
