# conftest.py
from __future__ import annotations

import os
import uuid

import pytest

from bootkit import Orchestrator
from bootkit.core.log import (
    bind_context,
    configure_from_env,
    enable_stdout_logging,
    get_logger,
    log_context,
)
from bootkit.core.time import ManualClock
from tests.helpers import Journal


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, single-component tests")
    config.addinivalue_line("markers", "integration: full startup sequence through the Orchestrator")


def pytest_addoption(parser):
    parser.addoption(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit bootkit logs in JSON format during tests",
    )


@pytest.fixture(scope="session", autouse=True)
def _configure_bootkit_logging(request):
    configure_from_env()
    prefer_json = request.config.getoption("--log-json")
    # Only attach our own handler when the env did not ask for one.
    if os.getenv("BOOTKIT_LOG_STDOUT", "").lower() not in ("1", "true", "yes", "on"):
        enable_stdout_logging(
            level="DEBUG",
            json_output=prefer_json,
            pretty=not prefer_json,
            route_errors_to_stderr=True,
        )
    bind_context(role="pytest")


@pytest.fixture(scope="session")
def session_run_id():
    return uuid.uuid4().hex[:8]


@pytest.fixture(autouse=True)
def _test_log_context(request, session_run_id):
    log = get_logger("test")
    with log_context(test=request.node.name, test_run=session_run_id):
        log.debug("pytest.test.start")
        yield


@pytest.fixture
def journal() -> Journal:
    return Journal()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def orch(clock) -> Orchestrator:
    return Orchestrator(clock=clock)
