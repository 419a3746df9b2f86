#   Generates the fixture tree of fabricated test pipeline results
#
#   Tasks of this module:
#       1. Writes one folder per test job with logs, reports and JSON results
#       2. Writes the category folders with summaries and result files
#       3. Periodically adds new jobs and appends lines to existing logs

from __future__ import annotations

import asyncio
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from report_dashboard.services.logging_service import logging_service
from report_dashboard.utils.file_utils import append_line, ensure_directory, write_text
from report_dashboard.utils.json_io import save_json

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "fixtures"
RESULTS_DIR_NAME = "test_pipeline_results"
JOB_COUNT = 25
REFERENCE_JOB_ID = "job_12345"

TEST_TYPES = ["integration", "unit", "e2e", "performance", "smoke", "regression", "security", "load", "api", "ui"]
STATUSES = ["passed", "failed", "passed", "passed", "failed", "passed", "passed", "failed", "passed", "passed"]
CATEGORIES = ["unit_tests", "integration_tests", "e2e_tests"]
TEST_CASES = ["Login functionality", "User registration", "Data validation", "API endpoints", "Database operations"]
LOG_MESSAGES = [
    "Additional test case executed",
    "Performance metrics updated",
    "Memory usage optimized",
    "Test environment refreshed",
    "New test data loaded",
    "Validation completed",
    "Cleanup process finished",
]

logger = logging_service.get_logger(__name__)

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _render(template: str, **context: Any) -> str:
    return _environment.get_template(template).render(timestamp=_now(), **context)


def _coverage_color(coverage: int) -> str:
    if coverage >= 80:
        return "green"
    if coverage >= 60:
        return "orange"
    return "red"


def _test_cases(status: str) -> List[Dict[str, Any]]:
    durations = [5.2, 3.8, 2.1, 8.5, 4.3]
    cases = []
    for name, duration in zip(TEST_CASES, durations):
        failed = status == "failed" and name == "API endpoints"
        cases.append({"name": name, "status": "failed" if failed else "passed", "duration": duration})
    return cases


def _summary(status: str, rng: random.Random) -> Dict[str, int]:
    passed = 25 if status == "passed" else 15
    return {
        "total": 25,
        "passed": passed,
        "failed": 25 - passed,
        "skipped": 0,
        "duration": rng.randint(60, 359),
    }


def create_test_job(
    job_id: str, test_type: str, status: str, results_dir: Path, rng: Optional[random.Random] = None
) -> Path:
    """Write the artifacts of one test job and return its folder."""
    rng = rng or random.Random()
    job_dir = results_dir / job_id
    ensure_directory(job_dir)

    passed = status == "passed"
    cases = _test_cases(status)
    summary = _summary(status, rng)
    context = {"job_id": job_id, "test_type": test_type, "status": status, "passed": passed, "cases": cases}

    write_text(
        job_dir / f"{test_type}_test.log",
        _render(
            "test.log",
            level="INFO" if passed else "ERROR",
            duration=summary["duration"],
            memory=rng.randint(100, 599),
            **context,
        ),
    )
    write_text(job_dir / "error.log", _render("error.log", **context))
    write_text(job_dir / "debug.log", _render("debug.log", **context))
    write_text(
        job_dir / "test_report.html",
        _render("test_report.html", summary=summary, pass_rate=100 if passed else 60, **context),
    )
    save_json(
        job_dir / "test_results.json",
        {
            "jobId": job_id,
            "testType": test_type,
            "status": status,
            "timestamp": _now(),
            "summary": summary,
            "tests": cases,
            "environment": {
                "browser": "Chrome 120.0",
                "os": "Linux",
                "pythonVersion": "3.12",
                "testFramework": "pytest 8",
            },
        },
    )

    coverage = rng.randint(70, 99)
    write_text(
        job_dir / "coverage_report.html",
        _render(
            "coverage_report.html",
            test_type=test_type,
            coverage=coverage,
            coverage_color=_coverage_color(coverage),
            lines={"covered": rng.randint(500, 1499), "total": rng.randint(800, 999)},
            functions={"covered": rng.randint(20, 69), "total": rng.randint(30, 39)},
            branches={"covered": rng.randint(100, 299), "total": rng.randint(150, 199)},
        ),
    )
    save_json(
        job_dir / "performance.json",
        {
            "timestamp": _now(),
            "metrics": {
                "responseTime": rng.randint(100, 1099),
                "throughput": rng.randint(500, 1499),
                "memoryUsage": rng.randint(100, 599),
                "cpuUsage": rng.randint(10, 89),
            },
            "benchmarks": {
                "pageLoad": rng.randint(500, 2499),
                "domReady": rng.randint(200, 1199),
                "firstPaint": rng.randint(100, 599),
            },
        },
    )
    write_text(
        job_dir / "metrics.csv",
        _render(
            "metrics.csv",
            test_type=test_type,
            metrics=[
                {"name": "response_time", "value": rng.randint(100, 1099), "unit": "ms"},
                {"name": "memory_usage", "value": rng.randint(100, 599), "unit": "MB"},
                {"name": "cpu_usage", "value": rng.randint(10, 89), "unit": "%"},
                {"name": "error_rate", "value": rng.randint(0, 4), "unit": "%"},
                {"name": "success_rate", "value": rng.randint(80, 99), "unit": "%"},
            ],
        ),
    )
    logger.debug("Created test job: %s (%s) - %s", job_id, test_type, status)
    return job_dir


def create_test_category(category: str, results_dir: Path, rng: Optional[random.Random] = None) -> Path:
    rng = rng or random.Random()
    category_dir = results_dir / category
    title = category.replace("_", " ")

    write_text(
        category_dir / "summary.txt",
        _render(
            "summary.txt",
            title=title,
            suites=rng.randint(10, 29),
            cases=rng.randint(50, 149),
            pass_rate=rng.randint(70, 99),
            average_seconds=rng.randint(30, 89),
        ),
    )
    write_text(category_dir / "README.md", _render("README.md", title=title, category=category))
    save_json(
        category_dir / "config.json",
        {
            "category": category,
            "testFramework": "pytest",
            "timeout": 30000,
            "retries": 3,
            "parallel": True,
            "coverage": {"enabled": True, "threshold": 80},
            "lastUpdated": _now(),
        },
    )

    results = category_dir / "results"
    save_json(
        results / "test_suite_1.json",
        {
            "suiteName": "suite_1",
            "category": category,
            "timestamp": _now(),
            "tests": [
                {"name": "Test 1", "status": "passed", "duration": 1.2},
                {"name": "Test 2", "status": "passed", "duration": 0.8},
                {"name": "Test 3", "status": "failed", "duration": 2.1},
            ],
            "summary": {"total": 3, "passed": 2, "failed": 1, "duration": 4.1},
        },
    )
    coverage = rng.randint(70, 99)
    write_text(
        results / "coverage_summary.html",
        _render(
            "coverage_summary.html",
            category=category,
            coverage=coverage,
            coverage_color="green" if coverage >= 80 else "orange",
        ),
    )
    logger.debug("Created test category: %s", category)
    return category_dir


def generate_fixtures(base_dir: Path | str, job_count: int = JOB_COUNT, seed: Optional[int] = None) -> Path:
    """(Re)populate ``base_dir`` with the fabricated pipeline results.

    The folder layout is fixed; only the numbers inside the files vary. Files
    are overwritten on every call, so running it twice is harmless.
    """
    rng = random.Random(seed)
    results_dir = Path(base_dir) / RESULTS_DIR_NAME
    ensure_directory(results_dir)
    logger.info("Generating test data in %s", results_dir)

    for index in range(1, job_count + 1):
        create_test_job(
            f"job_{index:03d}",
            TEST_TYPES[index % len(TEST_TYPES)],
            STATUSES[index % len(STATUSES)],
            results_dir,
            rng,
        )
    create_test_job(REFERENCE_JOB_ID, "integration", "passed", results_dir, rng)
    for category in CATEGORIES:
        create_test_category(category, results_dir, rng)

    logger.info("Test data generation completed: %s jobs, %s categories", job_count + 1, len(CATEGORIES))
    return results_dir


def generate_new_test_result(base_dir: Path | str, rng: Optional[random.Random] = None) -> Path:
    rng = rng or random.Random()
    results_dir = Path(base_dir) / RESULTS_DIR_NAME
    job_id = f"job_{int(time.time() * 1000)}"
    test_type = rng.choice(["integration", "unit", "performance", "e2e", "smoke", "regression"])
    job_dir = create_test_job(job_id, test_type, rng.choice(STATUSES), results_dir, rng)
    logger.info("Generated new test result: %s", job_id)
    return job_dir


def append_log_entries(base_dir: Path | str, rng: Optional[random.Random] = None) -> int:
    """Append one fabricated line to every ``.log`` file of every job."""
    rng = rng or random.Random()
    results_dir = Path(base_dir) / RESULTS_DIR_NAME
    if not results_dir.is_dir():
        return 0
    updated = 0
    for job_dir in sorted(results_dir.iterdir()):
        if not job_dir.is_dir():
            continue
        for log_file in sorted(job_dir.glob("*.log")):
            append_line(log_file, f"[{_now()}] {rng.choice(LOG_MESSAGES)}")
            updated += 1
    logger.debug("Appended entries to %s log files", updated)
    return updated


class FixtureRefresher:
    """Background task adding new jobs and growing logs on an interval."""

    def __init__(self, base_dir: Path | str, interval_seconds: float) -> None:
        self.base_dir = Path(base_dir)
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._rng = random.Random()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.interval_seconds <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Dynamic data generation started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def refresh_once(self) -> None:
        generate_new_test_result(self.base_dir, self._rng)
        append_log_entries(self.base_dir, self._rng)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.refresh_once()
            except OSError as exc:
                logger.error("Error refreshing test data: %s", exc)
