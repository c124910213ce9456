"""Fixtures for unit tests."""

from collections.abc import Callable
from unittest.mock import Mock

import pytest
from pydantic import SecretStr

from qa_copilot_ci.client import TestCollabClient
from qa_copilot_ci.config import CIConfig
from qa_copilot_ci.models.testcollab import TestPlan
from qa_copilot_ci.testing.clock import FakeTimer
from qa_copilot_ci.testing.payloads import plan


@pytest.fixture
def config() -> CIConfig:
    """Create test configuration."""
    return CIConfig(
        build_id="101",
        app_url="https://staging.example.com",
        project_id="17",
        api_key=SecretStr("tc-api-key"),
        api_url="https://api.testcollab.io",
    )


@pytest.fixture
def client_mock() -> Mock:
    """Create mock API client."""
    return Mock(spec=TestCollabClient)


@pytest.fixture
def timer() -> FakeTimer:
    """Create fake timer."""
    return FakeTimer()


@pytest.fixture
def make_plan() -> Callable[..., TestPlan]:
    """Return a function building TestPlan models from payload overrides."""

    def _make(**overrides: object) -> TestPlan:
        return TestPlan.model_validate(plan(**overrides))  # type: ignore[arg-type]

    return _make
