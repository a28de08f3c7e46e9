"""Tencent Cloud COS uploader."""

import asyncio

from qcloud_cos import CosConfig, CosS3Client

from image_host.config import ProviderType, TencentConfig
from image_host.uploaders.base import ObjectStorageUploader
from image_host.urls import domain_url


class TencentUploader(ObjectStorageUploader[TencentConfig, CosS3Client]):
    """Uploader backed by the cos-python-sdk-v5 client."""

    name = "Tencent Cloud COS"
    provider_type = ProviderType.TENCENT

    def _build_client(self) -> CosS3Client:
        return CosS3Client(
            CosConfig(
                Region=self._config.region,
                SecretId=self._config.secret_id,
                SecretKey=self._config.secret_key,
                Scheme="https",
            )
        )

    async def _put_object(self, client: CosS3Client, key: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            client.put_object,
            Bucket=self._config.bucket,
            Body=data,
            Key=key,
            ContentType=content_type,
        )

    async def _delete_object(self, client: CosS3Client, key: str) -> None:
        await asyncio.to_thread(client.delete_object, Bucket=self._config.bucket, Key=key)

    def _public_url(self, key: str) -> str:
        if self._config.endpoint:
            return domain_url(self._config.endpoint, key)
        return f"https://{self._config.bucket}.cos.{self._config.region}.myqcloud.com/{key}"
