"""In-memory correlation of runs to the tests they track."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field


@dataclass(kw_only=True)
class TrackedTest:
    """Remote identifiers of one test case within a run.

    ``start_time`` is in epoch milliseconds and stays 0 until the test starts.
    """

    __test__ = False

    test_case_id: str
    test_point_id: str
    result_id: int
    start_time: float = 0.0


@dataclass
class RunRegistry:
    """Mapping of run id to the tests tracked within that run."""

    _runs: dict[int, list[TrackedTest]] = field(default_factory=dict)

    def register(self, run_id: int, tests: Iterable[TrackedTest]) -> None:
        """Store the tracked tests of a run, replacing any previous entry.

        Only the first test per test case id is kept.
        """
        tracked: dict[str, TrackedTest] = {}
        for test in tests:
            tracked.setdefault(test.test_case_id, test)
        self._runs[run_id] = list(tracked.values())

    def tests(self, run_id: int) -> Sequence[TrackedTest]:
        """Return the tracked tests of a run, empty for unknown runs."""
        return self._runs.get(run_id, [])

    def find(self, run_id: int, test_case_id: str | int) -> TrackedTest | None:
        """Look up a tracked test by test case id within a run."""
        key = str(test_case_id)
        return next(
            (test for test in self.tests(run_id) if test.test_case_id == key),
            None,
        )

    def __contains__(self, run_id: object) -> bool:
        return run_id in self._runs

    def __len__(self) -> int:
        return len(self._runs)
