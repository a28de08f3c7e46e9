"""S3-compatible storage uploader.

Works with AWS S3, Cloudflare R2, MinIO, DigitalOcean Spaces and other
S3-compatible services. MinIO-style deployments usually need
``forcePathStyle``.
"""

import asyncio
from typing import Any

import boto3
from botocore.config import Config

from image_host.config import ProviderType, S3Config
from image_host.keys import build_object_key
from image_host.uploaders.base import ObjectStorageUploader
from image_host.urls import build_object_url, normalize_endpoint


class S3Uploader(ObjectStorageUploader[S3Config, Any]):
    """Uploader backed by a boto3 S3 client."""

    name = "S3 Compatible Storage"
    provider_type = ProviderType.S3

    def _build_client(self) -> Any:
        cfg = self._config
        return boto3.client(
            "s3",
            endpoint_url=normalize_endpoint(cfg.endpoint),
            region_name=cfg.region,
            aws_access_key_id=cfg.access_key_id,
            aws_secret_access_key=cfg.secret_access_key,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path" if cfg.force_path_style else "virtual"},
            ),
        )

    def _object_key(self, filename: str) -> str:
        return build_object_key(filename, self._config.path_prefix)

    async def _put_object(self, client: Any, key: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            client.put_object,
            Bucket=self._config.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    async def _delete_object(self, client: Any, key: str) -> None:
        await asyncio.to_thread(client.delete_object, Bucket=self._config.bucket, Key=key)

    def _public_url(self, key: str) -> str:
        cfg = self._config
        return build_object_url(
            key,
            endpoint=cfg.endpoint,
            bucket=cfg.bucket,
            custom_domain=cfg.custom_domain or None,
            force_path_style=cfg.force_path_style,
        )
