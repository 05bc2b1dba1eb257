"""Report automated test progress to Azure DevOps Test Management."""

from testrun_connect.config import ReporterConfig, initialize
from testrun_connect.models.result import ReportResult, ReportStatus
from testrun_connect.registry import RunRegistry, TrackedTest
from testrun_connect.reporter import RunReporter

__all__ = [
    "ReportResult",
    "ReportStatus",
    "ReporterConfig",
    "RunRegistry",
    "RunReporter",
    "TrackedTest",
    "initialize",
]
