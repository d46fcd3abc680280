"""Exception hierarchy shared across the gateway."""

from __future__ import annotations


class GatewayError(Exception):
    """Base exception for gateway errors."""


class CacheError(GatewayError):
    """Error reading or writing the model catalog cache."""


class CatalogFetchError(GatewayError):
    """The remote model catalog could not be fetched."""


class CatalogTransportError(CatalogFetchError):
    """Network-level failure: timeout, refused connection or non-2xx status."""


class CatalogSchemaError(CatalogFetchError):
    """The catalog feed answered, but not with the expected JSON payload."""


class StorageError(GatewayError):
    """Base exception for conversation storage errors."""


class StreamDecodeError(GatewayError):
    """A streamed frame could not be decoded as the provider's envelope."""

    def __init__(self, provider_id: str, payload: str, reason: str) -> None:
        self.provider_id = provider_id
        self.payload = payload
        super().__init__(f"{provider_id}: undecodable stream frame ({reason})")
