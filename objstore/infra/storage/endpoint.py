"""Endpoint normalization and provider classification."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from objstore.infra.storage.client import StorageConfigError

DEFAULT_REGION = "auto"

R2_MARKER = "cloudflarestorage"
BACKBLAZE_MARKER = "backblazeb2"
CDN_DIRECT_MARKER = "bunnycdn"


class ProviderKind(str, Enum):
    R2 = "r2"
    BACKBLAZE = "backblazeb2"
    CDN_DIRECT = "bunnycdn"
    GENERIC = "etc"

    @property
    def uses_direct_http(self) -> bool:
        return self is ProviderKind.CDN_DIRECT


# First match wins; an endpoint carrying several markers resolves to the
# earliest entry.
_PROVIDER_MARKERS: tuple[tuple[str, ProviderKind], ...] = (
    (R2_MARKER, ProviderKind.R2),
    (BACKBLAZE_MARKER, ProviderKind.BACKBLAZE),
    (CDN_DIRECT_MARKER, ProviderKind.CDN_DIRECT),
)


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Connection settings for one storage endpoint."""

    endpoint: str
    region: str | None = None
    access_key_id: str = ""
    secret_access_key: str = ""


def normalize_endpoint(endpoint: str) -> str:
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    return f"https://{endpoint}"


def _backblaze_region(endpoint: str) -> str | None:
    # https://s3.<region>.backblazeb2.com -> ["https://s3", "<region>", ...]
    parts = endpoint.split(".")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def normalize_config(config: StorageConfig) -> StorageConfig:
    """Return a copy of ``config`` with a schemed endpoint and a region.

    Raises:
        StorageConfigError: If the endpoint is empty.
    """
    raw = (config.endpoint or "").strip()
    if not raw:
        raise StorageConfigError(
            "missing endpoint: <account-id>.r2.cloudflarestorage.com or "
            "s3.<region>.backblazeb2.com or storage.bunnycdn.com"
        )

    endpoint = normalize_endpoint(raw)
    region = config.region or None
    if region is None and BACKBLAZE_MARKER in endpoint:
        region = _backblaze_region(endpoint)
    if region is None:
        region = DEFAULT_REGION

    return replace(config, endpoint=endpoint, region=region)


def classify_endpoint(endpoint: str) -> ProviderKind:
    for marker, kind in _PROVIDER_MARKERS:
        if marker in endpoint:
            return kind
    return ProviderKind.GENERIC
