"""Stage outcome model."""

from dataclasses import dataclass, field
from enum import Enum


class StageStatus(Enum):
    """Outcome of a single provisioning stage."""

    SUCCESS = "success"
    SKIPPED = "skipped"  # Target state already present
    WARNING = "warning"  # Degraded but the run continues
    FATAL = "fatal"  # The run stops here


@dataclass
class StageResult:
    """What a stage reports back to the run loop."""

    number: int
    name: str
    status: StageStatus
    message: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.status == StageStatus.FATAL


@dataclass
class RunReport:
    """Ordered stage results of one provisioning run."""

    results: list[StageResult] = field(default_factory=list)
    aborted_reason: str | None = None

    def add(self, result: StageResult) -> None:
        self.results.append(result)

    @property
    def completed(self) -> bool:
        return self.aborted_reason is None and not any(r.is_fatal for r in self.results)

    @property
    def exit_code(self) -> int:
        return 0 if self.completed else 1

    def get(self, number: int) -> StageResult | None:
        return next((r for r in self.results if r.number == number), None)
