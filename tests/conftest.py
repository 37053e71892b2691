from __future__ import annotations

from typing import Iterator

import pytest
import respx

from intune_assignment_checker.assignments.models import Group
from intune_assignment_checker.config import AppConfig, CheckerConfig
from intune_assignment_checker.graph.client import GraphClient
from intune_assignment_checker.safety.guardian import ReadOnlyGuardian

from tests.factories import GROUP_ID, GROUP_NAME


@pytest.fixture
def graph_router() -> Iterator[respx.Router]:
    """Mock all httpx traffic; any request without a route fails the test."""

    with respx.mock(assert_all_called=False, assert_all_mocked=True) as router:
        yield router


@pytest.fixture
def group() -> Group:
    return Group(id=GROUP_ID, display_name=GROUP_NAME)


@pytest.fixture
def sequential_config() -> CheckerConfig:
    return CheckerConfig(max_concurrent_requests=1, parallel_resources=False)


@pytest.fixture
def graph_client() -> GraphClient:
    """An unopened client; tests enter it with `async with`."""

    return GraphClient("token", ReadOnlyGuardian(), CheckerConfig())


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    config = AppConfig()
    config.output.export_path = str(tmp_path / "assignments.csv")
    return config
