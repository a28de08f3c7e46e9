"""Uploader for the managed (official) image host.

Needs no credentials: the file is posted as multipart form data to the
service URL from settings, which answers ``{"url": "<public url>"}``.
There is no connection test; the managed service is trusted.
"""

import httpx
import structlog

from image_host.config import OfficialConfig, ProviderType
from image_host.errors import UploadFailure
from image_host.files import UploadFile
from image_host.settings import get_settings

logger = structlog.get_logger(__name__)


class OfficialUploader:
    """Uploader for the zero-config managed service."""

    name = "Official Image Host"
    provider_type = ProviderType.OFFICIAL

    def __init__(self, config: OfficialConfig | None = None) -> None:
        self._config = config or OfficialConfig()

    async def upload(self, file: UploadFile) -> str:
        settings = get_settings()
        try:
            async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
                response = await client.post(
                    settings.official_upload_url,
                    files={"file": (file.filename, file.data, file.effective_content_type)},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            logger.error("Image upload failed", provider=self.provider_type.value, error=str(e))
            raise UploadFailure(self.name, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise UploadFailure(self.name, f"invalid response: {e}") from e

        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise UploadFailure(self.name, "response did not include an image URL")

        logger.info("Image uploaded", provider=self.provider_type.value, size=file.size)
        return url
