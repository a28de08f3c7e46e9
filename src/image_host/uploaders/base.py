"""Uploader contract and the shared object-storage implementation."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, ClassVar, Generic, Protocol, TypeVar

import structlog

from image_host.config import ProviderType, UploaderConfig, parse_provider_config
from image_host.errors import UploadFailure
from image_host.files import UploadFile
from image_host.keys import build_object_key, build_probe_key

logger = structlog.get_logger(__name__)

ConfigT = TypeVar("ConfigT", bound=UploaderConfig)
ClientT = TypeVar("ClientT")

PROBE_BODY = b"test"
PROBE_CONTENT_TYPE = "text/plain"


class ImageUploader(Protocol):
    """Capability set every provider implements.

    ``configure(config)`` and ``async validate() -> bool`` are optional;
    callers check for them with ``getattr``.
    """

    name: str
    provider_type: ProviderType

    async def upload(self, file: UploadFile) -> str:
        """Upload ``file`` and return its public URL."""
        ...


class ClientCache(Generic[ClientT]):
    """Get-or-build holder for a provider's network client.

    ``invalidate()`` is the only way to drop the cached client.
    """

    def __init__(self, factory: Callable[[], ClientT]) -> None:
        self._factory = factory
        self._client: ClientT | None = None
        self.build_count = 0

    @property
    def is_built(self) -> bool:
        return self._client is not None

    def get(self) -> ClientT:
        if self._client is None:
            self._client = self._factory()
            self.build_count += 1
        return self._client

    def invalidate(self) -> None:
        self._client = None


class ObjectStorageUploader(ABC, Generic[ConfigT, ClientT]):
    """Base for bucket-style providers (Qiniu, OSS, COS, S3).

    Subclasses supply the client factory, the put/delete calls and the URL
    rule; upload, configure and the probe-object connection test live here.
    """

    name: ClassVar[str]
    provider_type: ClassVar[ProviderType]

    def __init__(self, config: ConfigT) -> None:
        self._config = config
        self._client: ClientCache[ClientT] = ClientCache(self._build_client)

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def client_cache(self) -> ClientCache[ClientT]:
        return self._client

    def configure(self, config: "ConfigT | dict[str, Any]") -> None:
        """Replace the config; the next operation rebuilds the client."""
        self._config = parse_provider_config(self.provider_type, config)  # type: ignore[assignment]
        self._client.invalidate()
        logger.debug("Uploader reconfigured", provider=self.provider_type.value)

    @abstractmethod
    def _build_client(self) -> ClientT:
        """Create the vendor SDK client from the current config."""

    @abstractmethod
    async def _put_object(self, client: ClientT, key: str, data: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    async def _delete_object(self, client: ClientT, key: str) -> None:
        ...

    @abstractmethod
    def _public_url(self, key: str) -> str:
        ...

    def _object_key(self, filename: str) -> str:
        return build_object_key(filename)

    def _check_upload_config(self) -> None:
        """Raise ConfigurationError when the config cannot serve an upload."""
        self._config.require()

    async def upload(self, file: UploadFile) -> str:
        """Upload ``file`` and return its public URL.

        Raises:
            ConfigurationError: A required field is missing.
            UploadFailure: The storage API call failed.
        """
        self._check_upload_config()
        key = self._object_key(file.filename)

        try:
            client = self._client.get()
            await self._put_object(client, key, file.data, file.effective_content_type)
        except Exception as e:
            logger.error(
                "Image upload failed",
                provider=self.provider_type.value,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UploadFailure(self.name, str(e) or type(e).__name__) from e

        url = self._public_url(key)
        logger.info("Image uploaded", provider=self.provider_type.value, key=key, size=file.size)
        return url

    async def validate(self) -> bool:
        """Write and delete a probe object to prove the credentials work.

        Returns False without touching the network when a required field is
        missing. A probe left behind by a failed delete is not cleaned up.
        """
        missing = self._config.missing_fields()
        if missing:
            logger.info(
                "Connection test skipped, config incomplete",
                provider=self.provider_type.value,
                missing=missing,
            )
            return False

        key = build_probe_key()
        try:
            client = self._client.get()
            await self._put_object(client, key, PROBE_BODY, PROBE_CONTENT_TYPE)
            await self._delete_object(client, key)
        except Exception as e:  # noqa: BLE001
            # Any failure means the config cannot be trusted
            logger.warning(
                "Connection test failed",
                provider=self.provider_type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        else:
            logger.info("Connection test passed", provider=self.provider_type.value)
            return True
