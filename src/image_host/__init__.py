"""Image host: upload images to interchangeable storage backends.

Supports:
- Official managed image host (no configuration)
- Qiniu Kodo
- Alibaba Cloud OSS
- Tencent Cloud COS
- S3-compatible storage (AWS S3, Cloudflare R2, MinIO, ...)

Quick start:
    from image_host import ImageHostManager, UploadFile

    manager = ImageHostManager({"type": "s3", "config": {...}})
    url = await manager.upload(UploadFile.from_path("photo.png"))
"""

__version__ = "0.1.0"

from image_host.activation import (
    ActivationResult,
    ActivationState,
    ConnectionTestResult,
    ImageHostActivator,
)
from image_host.config import ImageHostConfig, ProviderType
from image_host.errors import (
    ConfigurationError,
    ImageHostError,
    SizeLimitExceeded,
    UploadFailure,
)
from image_host.files import UploadFile
from image_host.manager import MAX_UPLOAD_SIZE, ImageHostManager
from image_host.store import ActivationRecord, ConfigStore, JsonFileConfigStore, MemoryConfigStore

__all__ = [
    "MAX_UPLOAD_SIZE",
    "ActivationRecord",
    "ActivationResult",
    "ActivationState",
    "ConfigStore",
    "ConfigurationError",
    "ConnectionTestResult",
    "ImageHostActivator",
    "ImageHostConfig",
    "ImageHostError",
    "ImageHostManager",
    "JsonFileConfigStore",
    "MemoryConfigStore",
    "ProviderType",
    "SizeLimitExceeded",
    "UploadFailure",
    "UploadFile",
]
