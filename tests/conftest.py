"""Pytest configuration and shared fixtures for image_host tests."""

from unittest.mock import Mock

import pytest

from image_host.files import UploadFile
from image_host.settings import get_settings
from image_host.store import ActivationRecord, MemoryConfigStore

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from real settings files and .env values."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "IMAGE_HOST_CONFIG_FILE",
        "IMAGE_HOST_LOG_LEVEL",
        "IMAGE_HOST_STORE_PATH",
        "IMAGE_HOST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("IMAGE_HOST_OFFICIAL_URL", "https://img.test/api/upload")
    monkeypatch.setattr("image_host.settings.get_default_config_dir", lambda: tmp_path / ".image-host")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# Config Fixtures
# ============================================================================


@pytest.fixture
def s3_blob():
    """Complete S3 config as saved by the settings form."""
    return {
        "endpoint": "https://s3.amazonaws.com",
        "region": "us-east-1",
        "accessKeyId": "AKIATEST",
        "secretAccessKey": "secret-test",
        "bucket": "b",
    }


@pytest.fixture
def qiniu_blob():
    return {
        "accessKey": "qiniu-ak",
        "secretKey": "qiniu-sk",
        "bucket": "photos",
        "domain": "https://cdn.example.com/",
    }


@pytest.fixture
def aliyun_blob():
    return {
        "accessKeyId": "LTAI-test",
        "accessKeySecret": "oss-secret",
        "bucket": "photos",
        "region": "oss-cn-hangzhou",
    }


@pytest.fixture
def tencent_blob():
    return {
        "secretId": "AKID-test",
        "secretKey": "cos-secret",
        "bucket": "photos-1250000000",
        "region": "ap-guangzhou",
    }


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def png_file():
    """A small PNG upload."""
    return UploadFile(filename="a.png", data=b"\x89PNG\r\n\x1a\n" + b"0" * 32, content_type="image/png")


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def memory_store():
    """Store with nothing saved (official active)."""
    return MemoryConfigStore()


@pytest.fixture
def store_with_s3(s3_blob):
    """Store with an S3 config saved but the official host active."""
    return MemoryConfigStore(ActivationRecord(configs={"s3": s3_blob}))


# ============================================================================
# SDK Client Fixtures
# ============================================================================


@pytest.fixture
def mock_sdk_client():
    """Stand-in for a vendor SDK client with put/delete calls."""
    client = Mock()
    client.put_object = Mock(return_value={"ETag": "etag"})
    client.delete_object = Mock(return_value={})
    return client
