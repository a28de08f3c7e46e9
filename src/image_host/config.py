"""Provider configuration models.

Each provider type has its own pydantic model listing its required and
optional fields. Blobs arrive with camelCase keys (``accessKeyId``), the
models expose snake_case attributes.

Unknown keys and wrongly typed values are rejected when the config is
parsed. Missing required fields are accepted here and reported later:
``validate()`` answers ``False`` and ``upload()`` raises
``ConfigurationError``.
"""

from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from image_host.errors import ConfigurationError


class ProviderType(str, Enum):
    """Supported image host backends."""

    OFFICIAL = "official"
    QINIU = "qiniu"
    ALIYUN = "aliyun"
    TENCENT = "tencent"
    S3 = "s3"


def to_bool(value: Any) -> bool:
    """Coerce a boolean-like flag; only ``True`` and the literal ``"true"`` are true."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value == "true"
    return False


class UploaderConfig(BaseModel):
    """Base class for per-provider settings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    required_fields: ClassVar[tuple[str, ...]] = ()

    def missing_fields(self) -> list[str]:
        """Return the camelCase names of required fields that are blank."""
        return [
            to_camel(name) for name in self.required_fields
            if not getattr(self, name)
        ]

    def require(self) -> None:
        """Raise ConfigurationError if any required field is blank."""
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                f"Missing required config fields: {', '.join(missing)}",
                missing_fields=missing,
            )

    def to_blob(self) -> dict[str, Any]:
        """Serialize back to the camelCase blob stored by the settings UI."""
        return self.model_dump(by_alias=True, exclude_defaults=True)


class OfficialConfig(UploaderConfig):
    """The managed service needs no settings; anything stored for it is ignored."""

    model_config = ConfigDict(extra="ignore")


class QiniuConfig(UploaderConfig):
    required_fields: ClassVar[tuple[str, ...]] = ("access_key", "secret_key", "bucket")

    access_key: str = ""
    secret_key: str = ""
    bucket: str = ""
    region: str = "z0"
    domain: str = ""


class AliyunConfig(UploaderConfig):
    required_fields: ClassVar[tuple[str, ...]] = (
        "access_key_id", "access_key_secret", "bucket", "region",
    )

    access_key_id: str = ""
    access_key_secret: str = ""
    bucket: str = ""
    region: str = ""
    endpoint: str = ""  # custom domain


class TencentConfig(UploaderConfig):
    required_fields: ClassVar[tuple[str, ...]] = ("secret_id", "secret_key", "bucket", "region")

    secret_id: str = ""
    secret_key: str = ""
    bucket: str = ""
    region: str = ""
    endpoint: str = ""  # custom domain


class S3Config(UploaderConfig):
    required_fields: ClassVar[tuple[str, ...]] = (
        "endpoint", "region", "access_key_id", "secret_access_key", "bucket",
    )

    endpoint: str = ""
    region: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    path_prefix: str = ""
    custom_domain: str = ""
    force_path_style: bool = False

    @field_validator("force_path_style", mode="before")
    @classmethod
    def _coerce_force_path_style(cls, value: Any) -> bool:
        return to_bool(value)


CONFIG_MODELS: dict[ProviderType, type[UploaderConfig]] = {
    ProviderType.OFFICIAL: OfficialConfig,
    ProviderType.QINIU: QiniuConfig,
    ProviderType.ALIYUN: AliyunConfig,
    ProviderType.TENCENT: TencentConfig,
    ProviderType.S3: S3Config,
}

ProviderSettings = OfficialConfig | QiniuConfig | AliyunConfig | TencentConfig | S3Config


def parse_provider_config(
    provider_type: ProviderType,
    blob: "dict[str, Any] | UploaderConfig | None",
) -> UploaderConfig:
    """Parse a raw config blob into the model for ``provider_type``.

    Raises:
        ConfigurationError: Unknown keys or values of the wrong type.
    """
    model = CONFIG_MODELS[provider_type]
    if isinstance(blob, model):
        return blob
    if isinstance(blob, UploaderConfig):
        raise ConfigurationError(
            f"{type(blob).__name__} cannot configure a {provider_type.value} uploader"
        )
    # Blank form fields come through as None
    data = {k: v for k, v in (blob or {}).items() if v is not None}
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid {provider_type.value} config: {e.error_count()} error(s): "
            + "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        ) from e


class ImageHostConfig(BaseModel):
    """A provider type paired with the config variant for that type.

    Accepts ``{"type": ..., "config": {...}}``. An unrecognized type tag is
    routed to the official provider.
    """

    model_config = ConfigDict(frozen=True)

    type: ProviderType
    config: ProviderSettings

    @model_validator(mode="before")
    @classmethod
    def _select_variant(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # Imported lazily: the registry imports this module
        from image_host.registry import resolve_provider_type

        provider_type = resolve_provider_type(data.get("type"))
        return {
            "type": provider_type,
            "config": parse_provider_config(provider_type, data.get("config")),
        }

    @classmethod
    def create(
        cls,
        provider_type: "ProviderType | str",
        config: "dict[str, Any] | UploaderConfig | None" = None,
    ) -> "ImageHostConfig":
        """Build a config from a type tag and a raw blob."""
        tag = provider_type.value if isinstance(provider_type, ProviderType) else provider_type
        return cls.model_validate({"type": tag, "config": config})

    def to_blob(self) -> dict[str, Any]:
        return {"type": self.type.value, "config": self.config.to_blob()}
