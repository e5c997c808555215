"""Actions package - Action layer with explicit contracts.

Each action module states its contract in its docstring:
read_only, requires_backup, rollback_support and prerequisites.
"""

from stremio_provisioner.actions.apply import ApplyResult, SiteApplyAction
from stremio_provisioner.actions.report import StatusReporter

__all__ = ["ApplyResult", "SiteApplyAction", "StatusReporter"]
