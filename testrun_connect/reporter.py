"""Reporter driving Azure DevOps test runs from an automated test session."""

import base64
import logging
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import ValidationError

from testrun_connect.config import ReporterConfig
from testrun_connect.models.api import (
    SuiteTestCaseList,
    TestCaseResultList,
    TestOutcome,
    TestPointList,
    TestRun,
    TestSuite,
)
from testrun_connect.models.base import Model
from testrun_connect.models.result import ReportResult
from testrun_connect.registry import RunRegistry, TrackedTest

log = logging.getLogger(__name__)

REPORT_COMMENT = "Test Report"
REPORT_ATTACHMENT_TYPE = "GeneralAttachment"


class RemoteCallError(Exception):
    """Raised when a Test Management API call does not yield a JSON body."""


def now_ms() -> float:
    """Wall-clock time in epoch milliseconds."""
    return time.time() * 1000


@dataclass(frozen=True, kw_only=True)
class RunReporter:
    """Reports test run progress to Azure DevOps Test Management.

    A reporter built without configuration is not ready: every operation
    logs a warning and returns ``not_initialized`` without calling the API.
    Usage within one run must be serialized by the caller.
    """

    config: ReporterConfig | None
    session: aiohttp.ClientSession | None = field(default=None, repr=False)
    registry: RunRegistry = field(default_factory=RunRegistry)
    clock: Callable[[], float] = field(default=now_ms, repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ReporterConfig | None
    ) -> AsyncGenerator["RunReporter", None]:
        """Create reporter with managed session lifecycle."""
        if config is None:
            yield cls(config=None)
            return

        headers = {
            "Authorization": config.authorization,
            "Content-Type": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, session=session)

    @property
    def ready(self) -> bool:
        """Whether the reporter was built from a complete configuration."""
        return self.config is not None and self.session is not None

    @property
    def owner(self) -> dict[str, str | None]:
        """Owner attribution payload."""
        return {"displayName": self.config.owner if self.config else None}

    async def start_run(
        self,
        plan_id: str | int,
        suite_id: str | int,
        name: str | None = None,
    ) -> ReportResult:
        """Create an automated run for every test point of a plan suite.

        Args:
            plan_id: Test plan id
            suite_id: Test suite id within the plan
            name: Run name, defaults to one derived from the suite name

        Returns:
            Result carrying the created run id

        """
        if not self.ready:
            return self._not_initialized("start run")

        plan_id, suite_id = str(plan_id), str(suite_id)
        failed = False

        suite = await self._fetch(
            TestSuite, "GET", f"Plans/{plan_id}/suites/{suite_id}?api-version=5.0"
        )
        suite_name = suite.name if suite else ""
        failed |= suite is None

        suite_cases = await self._fetch(
            SuiteTestCaseList,
            "GET",
            f"Plans/{plan_id}/suites/{suite_id}/testcases?api-version=5.0",
        )
        test_case_ids = (
            [entry.test_case.id for entry in suite_cases.value] if suite_cases else []
        )
        failed |= suite_cases is None
        log.info("Found test cases: %s", ", ".join(test_case_ids))

        points = await self._fetch(
            TestPointList,
            "POST",
            "points?api-version=5.0-preview.2",
            {"PointsFilter": {"TestcaseIds": test_case_ids}},
        )
        # The points filter matches on test case only, other plans may share them
        point_ids = [
            point.id
            for point in (points.points if points else [])
            if point.test_plan.id == plan_id and point.suite.id == suite_id
        ]
        failed |= points is None
        log.info("Found test points: %s", ", ".join(map(str, point_ids)))

        if name is None:
            name = f"Automated <{suite_name}> (ID:{suite_id})"
        run = await self._fetch(
            TestRun,
            "POST",
            "runs?api-version=5.0",
            {
                "name": name,
                "automated": True,
                "plan": {"id": plan_id},
                "pointIds": point_ids,
                "owner": self.owner,
            },
        )
        if run is None or run.id is None:
            log.error("Failed creating new test run, progress won't be visible")
            return ReportResult(
                status="remote_error", message="Test run was not created"
            )
        log.info("Test run created (%s)", run.id)

        results = await self._fetch(
            TestCaseResultList, "GET", f"Runs/{run.id}/results?api-version=5.0"
        )
        failed |= results is None
        self.registry.register(
            run.id,
            (
                TrackedTest(
                    test_case_id=result.test_case.id,
                    test_point_id=result.test_point.id,
                    result_id=result.id,
                )
                for result in (results.value if results else [])
            ),
        )

        return ReportResult(
            status="remote_error" if failed else "success", run_id=run.id
        )

    async def start_test(self, run_id: int, test_case_id: str | int) -> ReportResult:
        """Mark a tracked test in progress and record its local start time."""
        if not self.ready:
            return self._not_initialized("start test")

        test = self.registry.find(run_id, test_case_id)
        if test is None:
            return self._not_tracked(run_id, test_case_id)

        updated = await self._update(
            f"runs/{run_id}/results?api-version=5.0",
            [
                {
                    "id": test.result_id,
                    "testPoint": {"id": test.test_point_id},
                    "state": "InProgress",
                    "owner": self.owner,
                }
            ],
        )
        if not updated:
            return ReportResult(status="remote_error", run_id=run_id)

        test.start_time = self.clock()
        return ReportResult(status="success", run_id=run_id)

    async def end_test(
        self,
        run_id: int,
        test_case_id: str | int,
        outcome: TestOutcome,
    ) -> ReportResult:
        """Complete a tracked test with its outcome and elapsed duration.

        The duration is measured from the local start time, so a test that
        was never started reports the time since the epoch.
        """
        if not self.ready:
            return self._not_initialized("end test")

        test = self.registry.find(run_id, test_case_id)
        if test is None:
            return self._not_tracked(run_id, test_case_id)

        elapsed = int(self.clock() - test.start_time)
        log.debug("Test case %s took %dms", test.test_case_id, elapsed)

        updated = await self._update(
            f"runs/{run_id}/results?api-version=6.0",
            [
                {
                    "id": test.result_id,
                    "testPoint": {"id": test.test_point_id},
                    "outcome": outcome,
                    "state": "Completed",
                    "durationInMs": elapsed,
                }
            ],
        )
        return ReportResult(
            status="success" if updated else "remote_error", run_id=run_id
        )

    async def end_run(
        self, run_id: int, report_path: Path | str | None = None
    ) -> ReportResult:
        """Complete a run and optionally attach a report file to it.

        Raises:
            OSError: If the report file cannot be read

        """
        if not self.ready:
            return self._not_initialized("end run")

        completed = await self._update(
            f"runs/{run_id}?api-version=5.0", {"state": "Completed"}
        )
        if completed:
            log.info("Test run ended (%s)", run_id)

        if report_path is None:
            return ReportResult(
                status="success" if completed else "remote_error", run_id=run_id
            )

        report = Path(report_path)
        content = base64.b64encode(report.read_bytes()).decode("ascii")
        attached = await self._update(
            f"runs/{run_id}/attachments?api-version=5.0-preview.1",
            {
                "stream": content,
                "fileName": report.name,
                "comment": REPORT_COMMENT,
                "attachmentType": REPORT_ATTACHMENT_TYPE,
            },
            method="POST",
        )
        if attached:
            log.info("Report %s attached to run %s", report.name, run_id)

        return ReportResult(
            status="success" if completed and attached else "remote_error",
            run_id=run_id,
        )

    async def _call(self, method: str, endpoint: str, payload: Any = None) -> Any:
        """Send a request to the Test Management API and return its JSON body.

        Unlike the bare service contract, a status >= 400 is a failure even
        when the body parses as JSON.

        Raises:
            RemoteCallError: On transport errors, timeouts, error statuses
                or a body that is not JSON

        """
        if self.config is None or self.session is None:
            raise RemoteCallError("Reporter is not initialised")
        url = f"{self.config.api_root}{endpoint}"

        try:
            async with self.session.request(method, url, json=payload) as response:
                if not response.ok:
                    text = await response.text()
                    raise RemoteCallError(
                        f"{method} {endpoint} failed: {response.status} {text}"
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            raise RemoteCallError(f"{method} {endpoint} failed: {exc}") from exc

    async def _fetch[M: Model](
        self, model: type[M], method: str, endpoint: str, payload: Any = None
    ) -> M | None:
        """Call the API and parse the response, None on any failure."""
        try:
            return model.model_validate(await self._call(method, endpoint, payload))
        except (RemoteCallError, ValidationError) as exc:
            log.error("Remote call failed: %s", exc, exc_info=exc)
            return None

    async def _update(
        self, endpoint: str, payload: Any, method: str = "PATCH"
    ) -> bool:
        """Call the API for its side effect, False on any failure."""
        try:
            await self._call(method, endpoint, payload)
        except RemoteCallError as exc:
            log.error("Remote call failed: %s", exc, exc_info=exc)
            return False
        return True

    def _not_initialized(self, action: str) -> ReportResult:
        log.warning(
            "Cannot %s before the reporter is initialised. "
            "Use 'initialize(subscription, project, pat)' first.",
            action,
        )
        return ReportResult(status="not_initialized")

    def _not_tracked(self, run_id: int, test_case_id: str | int) -> ReportResult:
        log.info("No test point found for test case %s in run %s", test_case_id, run_id)
        return ReportResult(status="not_tracked", run_id=run_id)
