from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from config.loader import Settings
from integrations.arr_client import LidarrClient, ProwlarrClient, RadarrClient, ReadarrClient, SonarrClient
from integrations.bazarr_client import BazarrClient
from integrations.errors import ServiceNotConfigured
from integrations.lingarr_client import LingarrClient

log = logging.getLogger("arrhub.registry")


class ServiceKind(str, Enum):
    """Supported services. Definition order is the canonical output order."""

    SONARR = "sonarr"
    RADARR = "radarr"
    LIDARR = "lidarr"
    READARR = "readarr"
    PROWLARR = "prowlarr"
    LINGARR = "lingarr"
    BAZARR = "bazarr"

    @classmethod
    def parse(cls, value: Any) -> "ServiceKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"unknown service {value!r} (expected one of: {valid})") from None


CANONICAL_ORDER = tuple(ServiceKind)

CLIENT_TYPES: Dict[ServiceKind, Callable[..., Any]] = {
    ServiceKind.SONARR: SonarrClient,
    ServiceKind.RADARR: RadarrClient,
    ServiceKind.LIDARR: LidarrClient,
    ServiceKind.READARR: ReadarrClient,
    ServiceKind.PROWLARR: ProwlarrClient,
    ServiceKind.LINGARR: LingarrClient,
    ServiceKind.BAZARR: BazarrClient,
}


@dataclass(frozen=True)
class ServiceDescriptor:
    kind: ServiceKind
    base_url: Optional[str]
    api_key: Optional[str]

    @property
    def present(self) -> bool:
        return bool((self.base_url or "").strip()) and bool((self.api_key or "").strip())

    def problem(self) -> Optional[str]:
        """Why a present descriptor cannot be used, or None."""
        url = (self.base_url or "").strip()
        if not url.startswith(("http://", "https://")):
            return f"{self.kind.value.upper()}_URL must start with http:// or https:// (got {url!r})"
        return None


@dataclass(frozen=True)
class ServiceHandle:
    descriptor: ServiceDescriptor
    client: Any

    @property
    def kind(self) -> ServiceKind:
        return self.descriptor.kind

    @property
    def name(self) -> str:
        return self.descriptor.kind.value


ClientFactory = Callable[[ServiceDescriptor], Any]


def default_client_factory(descriptor: ServiceDescriptor) -> Any:
    return CLIENT_TYPES[descriptor.kind](descriptor.base_url, descriptor.api_key)


class ServiceRegistry:
    """Fixed set of configured service handles, built once at startup.

    "Live" means configured: no network I/O happens here, reachability is only
    learned when an operation is attempted.
    """

    def __init__(self, handles: Mapping[ServiceKind, ServiceHandle], rejected: Optional[Mapping[ServiceKind, str]] = None) -> None:
        self._handles: Dict[ServiceKind, ServiceHandle] = dict(handles)
        self._rejected: Dict[ServiceKind, str] = dict(rejected or {})

    @classmethod
    def build(
        cls,
        descriptors: Mapping[ServiceKind, Optional[ServiceDescriptor]],
        client_factory: ClientFactory = default_client_factory,
    ) -> "ServiceRegistry":
        handles: Dict[ServiceKind, ServiceHandle] = {}
        rejected: Dict[ServiceKind, str] = {}
        for kind in CANONICAL_ORDER:
            descriptor = descriptors.get(kind)
            if descriptor is None or not descriptor.present:
                continue
            problem = descriptor.problem()
            if problem is None:
                try:
                    client = client_factory(descriptor)
                except ValueError as e:
                    problem = str(e)
            if problem is not None:
                # One bad entry disables that service only
                log.warning("Ignoring %s: %s", kind.value, problem)
                rejected[kind] = problem
                continue
            handles[kind] = ServiceHandle(descriptor=descriptor, client=client)
        log.info("Configured services: %s", ", ".join(k.value for k in handles) or "none")
        return cls(handles, rejected)

    @classmethod
    def from_settings(cls, settings: Settings, client_factory: ClientFactory = default_client_factory) -> "ServiceRegistry":
        descriptors = {}
        for kind in CANONICAL_ORDER:
            url, key = settings.credentials(kind.value)
            descriptors[kind] = ServiceDescriptor(kind=kind, base_url=url, api_key=key)
        return cls.build(descriptors, client_factory)

    def get(self, kind: ServiceKind | str) -> ServiceHandle:
        kind = ServiceKind.parse(kind)
        handle = self._handles.get(kind)
        if handle is None:
            if kind in self._rejected:
                raise ServiceNotConfigured(f"{kind.value} is misconfigured: {self._rejected[kind]}", service=kind.value)
            raise ServiceNotConfigured(
                f"{kind.value} is not configured (set {kind.value.upper()}_URL and {kind.value.upper()}_API_KEY)",
                service=kind.value,
            )
        return handle

    def is_configured(self, kind: ServiceKind | str) -> bool:
        return ServiceKind.parse(kind) in self._handles

    def rejected(self) -> Dict[str, str]:
        """Services with credentials that could not be used, and why."""
        return {k.value: msg for k, msg in self._rejected.items()}

    def live_services(self) -> List[ServiceHandle]:
        return [self._handles[k] for k in CANONICAL_ORDER if k in self._handles]

    def __len__(self) -> int:
        return len(self._handles)
