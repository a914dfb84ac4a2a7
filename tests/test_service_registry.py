"""
Registry construction: configured means (url, key) both present; order is canonical.
"""

import itertools

import pytest

from config.loader import Settings
from hub.services import CANONICAL_ORDER, ServiceDescriptor, ServiceKind, ServiceRegistry
from integrations.arr_client import RadarrClient
from integrations.errors import ServiceNotConfigured


def fake_factory(descriptor):
    return {"client_for": descriptor.kind.value}


def descriptors_for(kinds):
    out = {}
    for kind in CANONICAL_ORDER:
        if kind in kinds:
            out[kind] = ServiceDescriptor(kind, f"http://{kind.value}.local", f"{kind.value}-key")
        else:
            out[kind] = None
    return out


def test_canonical_order_is_tv_movie_music_book_indexer_translation_subtitles():
    assert [k.value for k in CANONICAL_ORDER] == [
        "sonarr", "radarr", "lidarr", "readarr", "prowlarr", "lingarr", "bazarr",
    ]


def test_live_services_equals_configured_subset_for_every_subset():
    for size in range(len(CANONICAL_ORDER) + 1):
        for subset in itertools.combinations(CANONICAL_ORDER, size):
            # Feed kinds in reverse to show discovery order does not matter
            descriptors = dict(reversed(list(descriptors_for(set(subset)).items())))
            registry = ServiceRegistry.build(descriptors, fake_factory)
            assert [h.kind for h in registry.live_services()] == list(subset)
            assert len(registry) == len(subset)


@pytest.mark.parametrize("url,key", [("", "k"), ("http://x", ""), (None, "k"), ("http://x", None), ("  ", "k")])
def test_descriptor_missing_either_half_is_absent(url, key):
    descriptor = ServiceDescriptor(ServiceKind.RADARR, url, key)
    assert descriptor.present is False
    registry = ServiceRegistry.build({ServiceKind.RADARR: descriptor}, fake_factory)
    assert registry.live_services() == []


def test_get_unconfigured_raises_not_configured():
    registry = ServiceRegistry.build(descriptors_for({ServiceKind.SONARR}), fake_factory)
    assert registry.get("sonarr").client == {"client_for": "sonarr"}
    with pytest.raises(ServiceNotConfigured) as exc:
        registry.get(ServiceKind.BAZARR)
    assert exc.value.service == "bazarr"
    assert "BAZARR_URL" in exc.value.message


def test_get_rejects_unknown_service_names():
    registry = ServiceRegistry.build({}, fake_factory)
    with pytest.raises(ValueError, match="unknown service"):
        registry.get("plex")


def test_build_does_no_io_and_uses_real_clients_by_default():
    settings = Settings(radarr_url="http://localhost:7878", radarr_api_key="k")
    registry = ServiceRegistry.from_settings(settings)
    [handle] = registry.live_services()
    assert handle.name == "radarr"
    assert isinstance(handle.client, RadarrClient)
    assert registry.is_configured("radarr")
    assert not registry.is_configured("sonarr")


def test_handles_are_immutable():
    registry = ServiceRegistry.build(descriptors_for({ServiceKind.RADARR}), fake_factory)
    handle = registry.get("radarr")
    with pytest.raises(Exception):
        handle.client = None
    assert registry.get("radarr") is handle


def test_bad_url_disables_only_that_service(caplog):
    settings = Settings(
        sonarr_url="localhost:8989", sonarr_api_key="k",
        radarr_url="http://radarr:7878", radarr_api_key="k",
        bazarr_url="bazarr:6767", bazarr_api_key="k",
    )
    with caplog.at_level("WARNING", logger="arrhub.registry"):
        registry = ServiceRegistry.from_settings(settings)

    assert [h.name for h in registry.live_services()] == ["radarr"]
    assert set(registry.rejected()) == {"sonarr", "bazarr"}
    assert "SONARR_URL" in caplog.text
    with pytest.raises(ServiceNotConfigured) as exc:
        registry.get("sonarr")
    assert "misconfigured" in exc.value.message
    assert "SONARR_URL" in exc.value.message


def test_client_constructor_errors_are_contained():
    def picky_factory(descriptor):
        if descriptor.kind is ServiceKind.LIDARR:
            raise ValueError("api_key cannot be empty")
        return fake_factory(descriptor)

    registry = ServiceRegistry.build(descriptors_for({ServiceKind.LIDARR, ServiceKind.RADARR}), picky_factory)
    assert [h.name for h in registry.live_services()] == ["radarr"]
    assert registry.rejected() == {"lidarr": "api_key cannot be empty"}
