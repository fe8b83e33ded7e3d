"""Nox sessions orchestrating the permission portal unit suites."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import nox


PYTHON_VERSIONS = ["3.11"]
PROJECT_ROOT = Path(__file__).parent

nox.options.sessions = [
    "tests_unit_domain",
    "tests_unit_adapters",
    "tests_unit_http",
    "tests_unit_logging",
]


def _install_test_requirements(session: nox.Session) -> None:
    """Install the project with its test extra plus coverage."""

    session.install("-e", f"{PROJECT_ROOT}[test]", "coverage>=7.4")


def _normalize_pythonpath(existing: str | None) -> str:
    parts = [str(PROJECT_ROOT)]
    if existing:
        parts.append(existing)
    return ":".join(part for part in parts if part)


def _run_suite(session: nox.Session, suite: str, targets: Iterable[str]) -> None:
    _install_test_requirements(session)

    env = dict(session.env)
    env["PYTHONPATH"] = _normalize_pythonpath(env.get("PYTHONPATH"))
    env["PORTAL_ENV"] = "test"
    env["COVERAGE_FILE"] = str(PROJECT_ROOT / f".coverage.{suite}")

    args = ["coverage", "run", "--source=adapters,app_platform,apps,domains,logging_lib,scripts", "-m", "pytest", *targets]
    if session.posargs:
        args.extend(session.posargs)

    session.log("Running %s suite: %s", suite, " ".join(targets))
    session.run(*args, env=env)
    session.run("coverage", "report", "--skip-empty", env=env)


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True)
def tests_unit_domain(session: nox.Session) -> None:
    """Execute account domain and service suites."""

    _run_suite(session, "domain", ["tests/unit/accounts", "tests/unit/services", "tests/unit/scripts"])


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True)
def tests_unit_adapters(session: nox.Session) -> None:
    """Execute Firestore, Auth0, mail and issuer adapter suites."""

    _run_suite(
        session,
        "adapters",
        ["tests/unit/firestore", "tests/unit/providers", "tests/unit/adapters", "tests/unit/config"],
    )


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True)
def tests_unit_http(session: nox.Session) -> None:
    """Execute RPC and trigger route suites against the Flask test client."""

    _run_suite(session, "http", ["tests/unit/http"])


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True)
def tests_unit_logging(session: nox.Session) -> None:
    """Execute logging library unit suites."""

    _run_suite(session, "logging", ["tests/unit/logging"])
