"""Image host manager: one config, one lazily resolved uploader.

Usage:
    from image_host import ImageHostConfig, ImageHostManager, UploadFile

    manager = ImageHostManager({"type": "s3", "config": {...}})
    if await manager.validate():
        url = await manager.upload(UploadFile.from_path("photo.png"))

The uploader is resolved through the registry on first use and memoized
in a single task, so concurrent callers share one uploader instance and one
SDK client. Managers are cheap: create one per upload or connection test.
"""

import asyncio
from typing import Any

import structlog

from image_host import registry
from image_host.config import ImageHostConfig, ProviderType, UploaderConfig
from image_host.errors import ConfigurationError, SizeLimitExceeded
from image_host.files import UploadFile
from image_host.uploaders.base import ImageUploader

logger = structlog.get_logger(__name__)

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB


class ImageHostManager:
    """Owns one image host config and the uploader built from it."""

    def __init__(self, config: "ImageHostConfig | dict[str, Any]") -> None:
        """Initialize the manager.

        Args:
            config: ``{"type": ..., "config": {...}}`` or an ImageHostConfig

        Raises:
            ConfigurationError: The config blob does not fit its provider type.
        """
        self._config = ImageHostConfig.model_validate(config)
        self._uploader_task: asyncio.Task[ImageUploader] | None = None

    @property
    def config(self) -> ImageHostConfig:
        return self._config

    @property
    def provider_type(self) -> ProviderType:
        return self._config.type

    async def _create_uploader(self) -> ImageUploader:
        return await registry.resolve(self._config.type, self._config.config)

    async def get_uploader(self) -> ImageUploader:
        """Resolve the uploader once; later and concurrent calls share it."""
        if self._uploader_task is None:
            self._uploader_task = asyncio.ensure_future(self._create_uploader())
        # Shielded so a cancelled caller cannot cancel the shared resolution
        return await asyncio.shield(self._uploader_task)

    async def upload(self, file: UploadFile) -> str:
        """Upload an image and return its public URL.

        Raises:
            SizeLimitExceeded: The file is larger than 10MB.
            ConfigurationError: The provider config is missing required fields.
            UploadFailure: The storage API call failed.
        """
        if file.size > MAX_UPLOAD_SIZE:
            raise SizeLimitExceeded(file.size, MAX_UPLOAD_SIZE)

        uploader = await self.get_uploader()
        return await uploader.upload(file)

    async def validate(self) -> bool:
        """Run the provider's connection test.

        Providers without a connection test are trusted and yield True. A
        provider that cannot be resolved (missing vendor SDK, for example)
        yields False.
        """
        try:
            uploader = await self.get_uploader()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Image uploader could not be resolved",
                type=self._config.type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        validate = getattr(uploader, "validate", None)
        if validate is None:
            return True
        return await validate()

    async def configure(self, config: "ImageHostConfig | UploaderConfig | dict[str, Any]") -> None:
        """Replace the provider settings of this manager.

        The uploader is reconfigured in place and rebuilds its SDK client on
        next use. Switching provider type needs a new manager.

        Args:
            config: Provider settings (model or camelCase blob) for this
                manager's provider type, or a full ImageHostConfig

        Raises:
            ConfigurationError: The config does not fit this manager's provider type.
        """
        if isinstance(config, ImageHostConfig):
            if config.type != self._config.type:
                raise ConfigurationError(
                    f"Manager is bound to {self._config.type.value}; "
                    f"create a new manager for {config.type.value}"
                )
            new_config = config
        else:
            new_config = ImageHostConfig.create(self._config.type, config)

        uploader = await self.get_uploader()
        configure = getattr(uploader, "configure", None)
        if configure is not None:
            configure(new_config.config)
        self._config = new_config
        logger.debug("Image host manager reconfigured", type=self._config.type.value)
