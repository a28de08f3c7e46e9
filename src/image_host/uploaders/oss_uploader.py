"""Alibaba Cloud OSS uploader.

Region accepts either the console form (``oss-cn-hangzhou``) or the bare
region id (``cn-hangzhou``).
"""

import asyncio

import alibabacloud_oss_v2 as oss

from image_host.config import AliyunConfig, ProviderType
from image_host.uploaders.base import ObjectStorageUploader
from image_host.urls import domain_url

OSS_REGION_PREFIX = "oss-"


def oss_endpoint_region(region: str) -> str:
    """``cn-hangzhou`` -> ``oss-cn-hangzhou``, as used in bucket hostnames."""
    return region if region.startswith(OSS_REGION_PREFIX) else f"{OSS_REGION_PREFIX}{region}"


def oss_sdk_region(region: str) -> str:
    """``oss-cn-hangzhou`` -> ``cn-hangzhou``, as expected by the SDK."""
    return region[len(OSS_REGION_PREFIX):] if region.startswith(OSS_REGION_PREFIX) else region


class AliyunUploader(ObjectStorageUploader[AliyunConfig, oss.Client]):
    """Uploader backed by the alibabacloud_oss_v2 client."""

    name = "Alibaba Cloud OSS"
    provider_type = ProviderType.ALIYUN

    def _build_client(self) -> oss.Client:
        cfg = oss.config.load_default()
        cfg.region = oss_sdk_region(self._config.region)
        cfg.credentials_provider = oss.credentials.StaticCredentialsProvider(
            self._config.access_key_id,
            self._config.access_key_secret,
        )
        return oss.Client(cfg)

    async def _put_object(self, client: oss.Client, key: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            client.put_object,
            oss.PutObjectRequest(
                bucket=self._config.bucket,
                key=key,
                body=data,
                content_type=content_type,
            ),
        )

    async def _delete_object(self, client: oss.Client, key: str) -> None:
        await asyncio.to_thread(
            client.delete_object,
            oss.DeleteObjectRequest(bucket=self._config.bucket, key=key),
        )

    def _public_url(self, key: str) -> str:
        if self._config.endpoint:
            return domain_url(self._config.endpoint, key)
        region = oss_endpoint_region(self._config.region)
        return f"https://{self._config.bucket}.{region}.aliyuncs.com/{key}"
