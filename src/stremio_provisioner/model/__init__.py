"""Model package - Core data structures for stremio-provisioner."""

from stremio_provisioner.model.stage import RunReport, StageResult, StageStatus

__all__ = [
    "RunReport",
    "StageResult",
    "StageStatus",
]
