"""Models for reporter operation results."""

from dataclasses import dataclass
from typing import Literal

type ReportStatus = Literal[
    "success",
    "remote_error",
    "not_initialized",
    "not_tracked",
]


@dataclass(frozen=True, kw_only=True)
class ReportResult:
    """Outcome of a single reporter operation.

    Remote failures are logged and folded into ``status`` rather than raised,
    so a reporting problem never interrupts the test run driving the reporter.
    """

    status: ReportStatus
    run_id: int | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        """Whether every remote call of the operation succeeded."""
        return self.status == "success"
