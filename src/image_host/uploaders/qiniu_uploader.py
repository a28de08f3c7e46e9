"""Qiniu Kodo uploader.

Uploads go through Qiniu's form-upload API on the region's upload host,
authorised by an upload token signed with the qiniu SDK. Kodo buckets have
no default public hostname, so ``domain`` (the bound CDN domain) is needed
to return a URL. Test domains usually need an explicit ``http://``.
"""

import asyncio
from dataclasses import dataclass

import httpx
from qiniu import Auth, BucketManager

from image_host.config import ProviderType, QiniuConfig
from image_host.errors import ConfigurationError
from image_host.settings import get_settings
from image_host.uploaders.base import ObjectStorageUploader
from image_host.urls import domain_url

DEFAULT_REGION = "z0"
UPLOAD_TOKEN_TTL = 3600  # seconds


def upload_host(region: str) -> str:
    """Form-upload endpoint for a Kodo region (z0, z1, z2, na0, as0, cn-east-2, ...)."""
    return f"https://up-{region or DEFAULT_REGION}.qiniup.com"


class QiniuAPIError(Exception):
    """Raised when a Kodo API call answers with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code


@dataclass(frozen=True)
class QiniuClient:
    auth: Auth
    buckets: BucketManager
    upload_url: str


class QiniuUploader(ObjectStorageUploader[QiniuConfig, QiniuClient]):
    """Uploader for Qiniu Kodo object storage."""

    name = "Qiniu Kodo"
    provider_type = ProviderType.QINIU

    def _build_client(self) -> QiniuClient:
        auth = Auth(self._config.access_key, self._config.secret_key)
        return QiniuClient(
            auth=auth,
            buckets=BucketManager(auth),
            upload_url=upload_host(self._config.region),
        )

    def _check_upload_config(self) -> None:
        super()._check_upload_config()
        if not self._config.domain:
            raise ConfigurationError(
                "Qiniu uploads need a CDN domain to build the image URL",
                missing_fields=["domain"],
            )

    async def _put_object(self, client: QiniuClient, key: str, data: bytes, content_type: str) -> None:
        token = client.auth.upload_token(self._config.bucket, key, UPLOAD_TOKEN_TTL)
        async with httpx.AsyncClient(timeout=get_settings().request_timeout) as http:
            response = await http.post(
                client.upload_url,
                data={"token": token, "key": key},
                files={"file": (key, data, content_type)},
            )
        if response.status_code != 200:
            raise QiniuAPIError(response.status_code, _error_message(response))

    async def _delete_object(self, client: QiniuClient, key: str) -> None:
        _, info = await asyncio.to_thread(client.buckets.delete, self._config.bucket, key)
        if info.status_code != 200:
            raise QiniuAPIError(info.status_code, info.error or "delete failed")

    def _public_url(self, key: str) -> str:
        return domain_url(self._config.domain, key)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or response.text
    except ValueError:
        return response.text
