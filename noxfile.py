"""Nox sessions orchestrating gcl_output unit suites."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import nox


PYTHON_VERSIONS = ["3.11"]
PROJECT_ROOT = Path(__file__).parent

nox.options.sessions = [
    "tests(unit_output)",
]


def _install_test_requirements(session: nox.Session) -> None:
    """Install the package and its testing toolchain inside the session environment."""

    session.install("-e", ".[test]")


def _run_suite(session: nox.Session, suite: str, targets: Iterable[str]) -> None:
    _install_test_requirements(session)

    session.log("Running %s suite against %s", suite, ", ".join(targets))
    session.run(
        "coverage",
        "run",
        f"--context={suite}",
        "--source=gcl_output",
        "-m",
        "pytest",
        *targets,
        *session.posargs,
    )
    session.run("coverage", "report", "-m")


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True, name="tests(unit_output)")
def tests_unit_output(session: nox.Session) -> None:
    """Execute Cloud Logging output unit suites."""

    targets = ["tests/unit/gcl_output"]
    _run_suite(session, "output", targets)
