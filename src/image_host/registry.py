"""Provider registry: maps a provider type to a lazily imported uploader.

Uploader modules pull in vendor SDKs (boto3, qiniu, qcloud_cos, OSS), so a
module is imported only when its type is first requested.
"""

import asyncio
import importlib
from typing import TYPE_CHECKING, Any

import structlog

from image_host.config import ProviderType, parse_provider_config

if TYPE_CHECKING:
    from image_host.config import UploaderConfig
    from image_host.uploaders.base import ImageUploader

logger = structlog.get_logger(__name__)

# provider type -> (module path, class name)
UPLOADER_REGISTRY: dict[ProviderType, tuple[str, str]] = {
    ProviderType.OFFICIAL: ("image_host.uploaders.official_uploader", "OfficialUploader"),
    ProviderType.QINIU: ("image_host.uploaders.qiniu_uploader", "QiniuUploader"),
    ProviderType.ALIYUN: ("image_host.uploaders.oss_uploader", "AliyunUploader"),
    ProviderType.TENCENT: ("image_host.uploaders.cos_uploader", "TencentUploader"),
    ProviderType.S3: ("image_host.uploaders.s3_uploader", "S3Uploader"),
}

# Unrecognized tags are served by the managed service instead of failing.
UNKNOWN_TYPE_FALLBACK = ProviderType.OFFICIAL


def registered_types() -> list[ProviderType]:
    """Return the provider types the registry can build."""
    return list(UPLOADER_REGISTRY)


def resolve_provider_type(tag: "ProviderType | str | None") -> ProviderType:
    """Map a raw type tag to a ProviderType, falling back for unknown tags."""
    if isinstance(tag, ProviderType):
        return tag
    try:
        return ProviderType(tag)
    except ValueError:
        logger.warning(
            "Unknown image host type, using fallback provider",
            type=tag,
            fallback=UNKNOWN_TYPE_FALLBACK.value,
        )
        return UNKNOWN_TYPE_FALLBACK


async def load_uploader_class(provider_type: ProviderType) -> type["ImageUploader"]:
    """Import the uploader module for ``provider_type`` and return its class."""
    module_path, class_name = UPLOADER_REGISTRY[provider_type]
    module = await asyncio.to_thread(importlib.import_module, module_path)
    return getattr(module, class_name)


async def resolve(
    provider_type: "ProviderType | str",
    config: "UploaderConfig | dict[str, Any] | None" = None,
) -> "ImageUploader":
    """Build the uploader for ``provider_type`` from ``config``.

    Raises:
        ConfigurationError: The config blob does not fit the provider type.
    """
    resolved_type = resolve_provider_type(provider_type)
    settings = parse_provider_config(resolved_type, config)
    uploader_cls = await load_uploader_class(resolved_type)
    logger.debug("Image uploader resolved", type=resolved_type.value, uploader=uploader_cls.__name__)
    return uploader_cls(settings)
