"""Translate test-runner outcomes into TestResult values.

When a JUnit XML reports directory is configured the counts come from
the reports. Otherwise a minimal result is derived from whether the
runner returned normally or raised.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from image_pipelines.models import TestResult

_log = logging.getLogger(__name__)


@dataclass
class _Counts:
    tests: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0


def _int_attr(element: ET.Element, name: str) -> int:
    try:
        return int(element.get(name, "0") or 0)
    except ValueError:
        return 0


def parse_junit_file(path: Path) -> _Counts:
    """Sum the counts of every ``<testsuite>`` in one report file."""
    root = ET.parse(path).getroot()
    suites = [root] if root.tag == "testsuite" else root.findall("testsuite")
    counts = _Counts()
    for suite in suites:
        counts.tests += _int_attr(suite, "tests")
        counts.failures += _int_attr(suite, "failures")
        counts.errors += _int_attr(suite, "errors")
        counts.skipped += _int_attr(suite, "skipped")
    return counts


class TestResultCapture:
    """Builds TestResult values from runner completion or failure."""

    __test__ = False  # not a pytest test class

    def __init__(self, reports_dir: str | Path | None = None) -> None:
        self.reports_dir = Path(reports_dir) if reports_dir else None

    def capture_success(self, runner_name: str) -> TestResult:
        _log.info("Capturing test results from runner: %s", runner_name)
        result = self.capture_from_reports()
        if result is not None:
            return result
        return TestResult.passed(total=1)

    def capture_failure(self, runner_name: str, error: Exception) -> TestResult:
        _log.info(
            "Capturing failure result for runner %s: %s", runner_name, error
        )
        result = self.capture_from_reports()
        if result is not None:
            failures = max(result.failed_tests, 1)
            return TestResult.failed(
                total=max(result.total_tests, failures + result.skipped_tests),
                failures=failures,
                skipped=result.skipped_tests,
                cause=str(error),
            )
        return TestResult.failed(total=1, failures=1, cause=str(error))

    def capture_from_reports(self) -> TestResult | None:
        """Aggregate JUnit XML reports, or None when there are none."""
        if self.reports_dir is None or not self.reports_dir.is_dir():
            return None

        files = sorted(self.reports_dir.glob("*.xml"))
        if not files:
            _log.debug("No JUnit XML files found in %s", self.reports_dir)
            return None

        total = _Counts()
        for path in files:
            try:
                counts = parse_junit_file(path)
            except ET.ParseError as e:
                _log.warning("Failed to parse JUnit XML file %s: %s", path.name, e)
                continue
            total.tests += counts.tests
            total.failures += counts.failures
            total.errors += counts.errors
            total.skipped += counts.skipped

        failures = total.failures + total.errors
        if failures:
            return TestResult.failed(
                total=total.tests, failures=failures, skipped=total.skipped
            )
        return TestResult.passed(total=total.tests, skipped=total.skipped)
