import pytest
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add the project root to the Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment from .env for all tests (does not override existing env)
load_dotenv(project_root / ".env")

SERVICES = ("sonarr", "radarr", "lidarr", "readarr", "prowlarr", "lingarr", "bazarr")


@pytest.fixture(scope="session")
def test_project_root():
    """Provide a test project root path."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def mock_environment(monkeypatch, request):
    """Give unit tests a known environment.

    Only Sonarr and Radarr are configured; the other services are cleared so
    a developer's .env cannot leak into unit tests. Tests marked
    `integration` keep the real environment.
    """
    if request.node.get_closest_marker("integration") is not None:
        return

    for name in SERVICES:
        for suffix in ("_URL", "_BASE_URL", "_API_KEY"):
            monkeypatch.delenv(f"{name.upper()}{suffix}", raising=False)
    monkeypatch.setenv("RADARR_URL", "http://localhost:7878")
    monkeypatch.setenv("RADARR_API_KEY", "test_radarr_key")
    monkeypatch.setenv("SONARR_URL", "http://localhost:8989")
    monkeypatch.setenv("SONARR_API_KEY", "test_sonarr_key")


# ---------------------- Integration CLI options ----------------------
def pytest_addoption(parser):
    for name in SERVICES:
        parser.addoption(f"--{name}-url", action="store", default=None, help=f"{name} URL for integration tests (overrides .env)")
        parser.addoption(f"--{name}-key", action="store", default=None, help=f"{name} API key for integration tests (overrides .env)")


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: tests that talk to live servers")


@pytest.fixture(scope="session")
def integration_config(request):
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)

    cfg = {}
    for name in SERVICES:
        cfg[f"{name}_url"] = request.config.getoption(f"--{name}-url") or os.getenv(f"{name.upper()}_URL")
        cfg[f"{name}_key"] = request.config.getoption(f"--{name}-key") or os.getenv(f"{name.upper()}_API_KEY")
    return cfg


@pytest.fixture(scope="session")
def live_services(integration_config):
    """Names of services with credentials available for integration runs."""
    names = [n for n in SERVICES if integration_config.get(f"{n}_url") and integration_config.get(f"{n}_key")]
    if not names:
        pytest.skip("No service URL/API key provided (set .env or pass CLI options)")
    return names
