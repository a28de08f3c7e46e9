"""Tests for provider configuration models."""

import pytest

from image_host.config import (
    AliyunConfig,
    ImageHostConfig,
    OfficialConfig,
    ProviderType,
    QiniuConfig,
    S3Config,
    parse_provider_config,
    to_bool,
)
from image_host.errors import ConfigurationError


class TestToBool:
    """Tests for boolean-like flag coercion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, True),
            (False, False),
            ("true", True),
            ("false", False),
            ("True", False),
            ("1", False),
            ("", False),
            (None, False),
        ],
    )
    def test_only_literal_true_is_true(self, value, expected):
        """Test only True and the string 'true' coerce to True."""
        assert to_bool(value) is expected


class TestParseProviderConfig:
    """Tests for parse_provider_config."""

    def test_reads_camel_case_keys(self, s3_blob):
        """Test camelCase blob keys map onto snake_case attributes."""
        config = parse_provider_config(ProviderType.S3, s3_blob)

        assert isinstance(config, S3Config)
        assert config.access_key_id == "AKIATEST"
        assert config.secret_access_key == "secret-test"
        assert config.force_path_style is False

    def test_force_path_style_string_is_coerced(self, s3_blob):
        """Test forcePathStyle stored as a string is coerced to bool."""
        assert parse_provider_config(ProviderType.S3, {**s3_blob, "forcePathStyle": "true"}).force_path_style is True
        assert parse_provider_config(ProviderType.S3, {**s3_blob, "forcePathStyle": "false"}).force_path_style is False

    def test_unknown_key_is_rejected(self, s3_blob):
        """Test unknown fields raise ConfigurationError at the boundary."""
        with pytest.raises(ConfigurationError, match="s3"):
            parse_provider_config(ProviderType.S3, {**s3_blob, "bucketName": "x"})

    def test_missing_required_fields_are_accepted(self):
        """Test an incomplete config parses and reports what is missing."""
        config = parse_provider_config(ProviderType.ALIYUN, {"bucket": "photos"})

        assert config.missing_fields() == ["accessKeyId", "accessKeySecret", "region"]

    def test_none_values_are_treated_as_blank(self):
        """Test cleared form fields (None) count as missing."""
        config = parse_provider_config(ProviderType.QINIU, {"accessKey": None, "secretKey": "sk", "bucket": "b"})

        assert config.missing_fields() == ["accessKey"]

    def test_require_raises_with_missing_fields(self):
        """Test require() names the missing fields."""
        config = parse_provider_config(ProviderType.TENCENT, {"secretId": "id"})

        with pytest.raises(ConfigurationError) as exc_info:
            config.require()

        assert exc_info.value.missing_fields == ["secretKey", "bucket", "region"]
        assert "secretKey" in str(exc_info.value)

    def test_qiniu_region_defaults_to_z0(self):
        """Test Qiniu region defaults to z0."""
        assert parse_provider_config(ProviderType.QINIU, {}).region == "z0"

    def test_official_ignores_stored_fields(self):
        """Test the official host accepts and ignores any stored blob."""
        config = parse_provider_config(ProviderType.OFFICIAL, {"anything": "x"})

        assert isinstance(config, OfficialConfig)
        assert config.missing_fields() == []

    def test_model_of_other_provider_is_rejected(self):
        """Test passing a model for another provider raises."""
        with pytest.raises(ConfigurationError):
            parse_provider_config(ProviderType.S3, QiniuConfig())

    def test_model_instance_is_returned_as_is(self):
        """Test an already parsed model passes through."""
        config = AliyunConfig(bucket="b")

        assert parse_provider_config(ProviderType.ALIYUN, config) is config


class TestImageHostConfig:
    """Tests for the ImageHostConfig tagged union."""

    def test_selects_variant_by_type(self, s3_blob):
        """Test the config variant follows the type tag."""
        config = ImageHostConfig.model_validate({"type": "s3", "config": s3_blob})

        assert config.type == ProviderType.S3
        assert isinstance(config.config, S3Config)

    def test_unknown_type_falls_back_to_official(self):
        """Test an unrecognized type tag becomes the official provider."""
        config = ImageHostConfig.model_validate({"type": "imgur", "config": {"clientId": "x"}})

        assert config.type == ProviderType.OFFICIAL
        assert isinstance(config.config, OfficialConfig)

    def test_missing_config_uses_defaults(self):
        """Test a type without config parses to an empty variant."""
        config = ImageHostConfig.create(ProviderType.QINIU)

        assert isinstance(config.config, QiniuConfig)
        assert config.config.missing_fields() == ["accessKey", "secretKey", "bucket"]

    def test_create_rejects_unknown_key(self):
        """Test create() surfaces ConfigurationError for unknown keys."""
        with pytest.raises(ConfigurationError):
            ImageHostConfig.create("tencent", {"secretID": "typo"})

    def test_to_blob_round_trips_wire_format(self, s3_blob):
        """Test to_blob() returns the camelCase wire format."""
        blob = ImageHostConfig.create("s3", {**s3_blob, "pathPrefix": "images/"}).to_blob()

        assert blob == {"type": "s3", "config": {**s3_blob, "pathPrefix": "images/"}}
