import pytest

from config.loader import Settings
from hub.aggregator import Aggregator
from hub.services import ServiceRegistry


def registry_from(integration_config, live_services):
    values = {}
    for name in live_services:
        values[f"{name}_url"] = integration_config[f"{name}_url"]
        values[f"{name}_api_key"] = integration_config[f"{name}_key"]
    return ServiceRegistry.from_settings(Settings(**values))


@pytest.mark.integration
class TestLiveServices:
    """Runs against whatever services the environment (or CLI options) point at."""

    @pytest.mark.asyncio
    async def test_probe_all(self, integration_config, live_services):
        result = await Aggregator(registry_from(integration_config, live_services), timeout_sec=15).probe_all()
        assert [name for name, _ in result] == live_services
        for name, outcome in result:
            if outcome.ok:
                assert outcome.payload["reachable"] is True
                assert outcome.payload["service"] == name

    @pytest.mark.asyncio
    async def test_search_all(self, integration_config, live_services):
        result = await Aggregator(registry_from(integration_config, live_services), timeout_sec=30).search_all("the", limit=3)
        assert len(result) == len(live_services)
        for name, payload in result.successes().items():
            assert isinstance(payload, list)
            assert len(payload) <= 3
