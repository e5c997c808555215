"""Stage 9 - Kernel network tuning."""

import shlex

from stremio_provisioner.model.stage import StageResult
from stremio_provisioner.scanner.host import HostScanner
from stremio_provisioner.stages import BaseStage, StageContext, register_stage


@register_stage
class KernelTuningStage(BaseStage):
    """Append the marked tuning block once and apply it live."""

    number = 9
    name = "kernel-tuning"
    title = "Applying system optimizations"

    def run(self, context: StageContext) -> StageResult:
        layout = context.layout

        if HostScanner(context.connector).file_contains(layout.sysctl_path, layout.sysctl_marker):
            context.reporter.warning("System optimizations already applied, skipping...")
            return self.skipped("marker present")

        context.connector.append_file(layout.sysctl_path, context.renderer.render_sysctl_block())
        context.connector.run_checked(f"sysctl -p {shlex.quote(layout.sysctl_path)}")
        context.reporter.success("System optimizations applied")
        return self.success()
