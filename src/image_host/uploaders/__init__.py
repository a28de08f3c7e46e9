"""Provider implementations.

Concrete uploader modules are not imported here: each pulls in its vendor
SDK and is loaded on demand by ``image_host.registry``.
"""

from image_host.uploaders.base import ClientCache, ImageUploader, ObjectStorageUploader

__all__ = [
    "ClientCache",
    "ImageUploader",
    "ObjectStorageUploader",
]
