"""In-memory image files handed to the uploaders."""

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# MIME type mapping for common image formats
# Used as fallback when mimetypes module doesn't recognize extension
IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".avif": "image/avif",
}


def guess_content_type(filename: str) -> str | None:
    """Get the MIME content type for a file based on its extension.

    Args:
        filename: File name or path with extension

    Returns:
        MIME type string, or None if unknown
    """
    ext = Path(filename).suffix.lower()
    if ext in IMAGE_MIME_TYPES:
        return IMAGE_MIME_TYPES[ext]

    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type


@dataclass(frozen=True)
class UploadFile:
    """An image to upload: original filename, raw bytes and declared type."""

    filename: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def effective_content_type(self) -> str:
        return self.content_type or DEFAULT_CONTENT_TYPE

    @classmethod
    def from_path(cls, path: "str | Path", content_type: str | None = None) -> "UploadFile":
        """Read a local file; the content type is detected from its extension."""
        path_obj = Path(path)
        return cls(
            filename=path_obj.name,
            data=path_obj.read_bytes(),
            content_type=content_type or guess_content_type(path_obj.name),
        )

    @classmethod
    def from_base64(cls, filename: str, image_data: str) -> "UploadFile":
        """Decode a base64 string, with or without a ``data:`` URI prefix.

        Example:
            >>> UploadFile.from_base64("dot.png", "data:image/png;base64,iVBORw0KGgo=").content_type
            'image/png'

        Raises:
            ValueError: The payload is not valid base64.
        """
        content_type = None
        if "," in image_data:
            prefix, image_data = image_data.split(",", 1)
            if prefix.startswith("data:"):
                # "data:image/png;base64" -> "image/png"
                mime_part = prefix[5:]
                content_type = mime_part.split(";")[0] or None

        try:
            data = base64.b64decode(image_data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 image data for {filename}: {e}") from e

        return cls(
            filename=filename,
            data=data,
            content_type=content_type or guess_content_type(filename),
        )
