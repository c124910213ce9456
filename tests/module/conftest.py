"""Fixtures for module tests using WireMock testcontainers."""

from collections.abc import Generator

import docker
import pytest
from docker.errors import DockerException
from testcontainers.core import testcontainers_config
from wiremock.client import Mappings
from wiremock.constants import Config
from wiremock.testing.testcontainer import WireMockContainer


@pytest.fixture(scope="session", autouse=True)
def _disable_ryuk() -> None:
    """Disable the extra cleanup instance, we use contexts to clean containers."""
    testcontainers_config.ryuk_disabled = True


@pytest.fixture(scope="session")
def _require_docker() -> None:
    """Skip module tests on hosts without a reachable Docker daemon."""
    try:
        docker.from_env().ping()
    except DockerException as exc:
        pytest.skip(f"Docker is not available: {exc}")


@pytest.fixture(scope="session")
def wiremock_server(
    _require_docker: None,
) -> Generator[WireMockContainer, None, None]:
    """Start WireMock container using wiremock's testcontainer support."""
    with WireMockContainer(secure=False) as wm:
        Config.base_url = wm.get_url("__admin")
        yield wm
        print(wm.get_logs())


@pytest.fixture
def api_url(wiremock_server: WireMockContainer) -> str:
    """Test Collab API URL served by WireMock, with mappings reset."""
    Mappings.delete_all_mappings()
    return wiremock_server.get_url("api")
