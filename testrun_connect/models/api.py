"""Pydantic models for Azure DevOps Test Management API responses.

Only the fields read by the reporter are declared.
"""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field

from testrun_connect.models.base import Model

type TestOutcome = Literal[
    "Unspecified",
    "None",
    "Passed",
    "Failed",
    "Inconclusive",
    "Timeout",
    "Aborted",
    "Blocked",
    "NotExecuted",
    "Warning",
    "Error",
    "NotApplicable",
    "Paused",
    "InProgress",
    "NotImpacted",
]


class ShallowReference(Model):
    """Reference to another resource by id."""

    id: str


class TestSuite(Model):
    """Suite metadata from Plans/{plan}/suites/{suite}."""

    __test__ = False

    name: str = ""


class SuiteTestCase(Model):
    """Entry of Plans/{plan}/suites/{suite}/testcases."""

    __test__ = False

    test_case: ShallowReference = Field(alias="testCase")


class SuiteTestCaseList(Model):
    """List envelope for suite test cases."""

    value: Sequence[SuiteTestCase] = Field(default_factory=list)


class TestPoint(Model):
    """Binding of a test case to a plan, suite and configuration."""

    __test__ = False

    id: int
    url: str | None = None
    test_case: ShallowReference = Field(alias="testCase")
    test_plan: ShallowReference = Field(alias="testPlan")
    suite: ShallowReference


class TestPointList(Model):
    """Response of the points query."""

    __test__ = False

    points: Sequence[TestPoint] = Field(default_factory=list)


class TestRun(Model):
    """Created test run."""

    __test__ = False

    id: int | None = None


class TestCaseResult(Model):
    """Result entry of a run, one per bound test point."""

    __test__ = False

    id: int
    test_case: ShallowReference = Field(alias="testCase")
    test_point: ShallowReference = Field(alias="testPoint")


class TestCaseResultList(Model):
    """List envelope for run results."""

    __test__ = False

    value: Sequence[TestCaseResult] = Field(default_factory=list)
