"""Persistence of the saved image host configurations.

The activation record holds the active provider type plus the last saved
config blob for every provider type. Each save also rewrites a legacy
``{type, config}`` mirror of the active provider for older readers.

JSON file layout::

    {
      "imageHostConfigs": {"currentType": "s3", "configs": {"s3": {...}}},
      "imageHostConfig": {"type": "s3", "config": {...}}
    }
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from image_host.config import ProviderType
from image_host.registry import resolve_provider_type

logger = structlog.get_logger(__name__)

RECORD_KEY = "imageHostConfigs"
LEGACY_KEY = "imageHostConfig"
CORRUPT_SUFFIX = ".corrupt"


class ActivationRecord(BaseModel):
    """Active provider type and the saved config blob per provider type."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_type: ProviderType = ProviderType.OFFICIAL
    configs: dict[ProviderType, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("current_type", mode="before")
    @classmethod
    def _known_type(cls, value: Any) -> ProviderType:
        return resolve_provider_type(value)

    @field_validator("configs", mode="before")
    @classmethod
    def _drop_unknown_types(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        known = {t.value for t in ProviderType}
        blobs = {}
        for key, blob in value.items():
            tag = key.value if isinstance(key, ProviderType) else key
            if tag in known:
                blobs[tag] = blob or {}
        return blobs

    def config_for(self, provider_type: ProviderType) -> dict[str, Any]:
        return dict(self.configs.get(provider_type, {}))

    def to_json(self) -> dict[str, Any]:
        return {
            "currentType": self.current_type.value,
            "configs": {t.value: blob for t, blob in self.configs.items()},
        }

    def legacy_mirror(self) -> dict[str, Any]:
        """``{type, config}`` of the active provider."""
        return {
            "type": self.current_type.value,
            "config": self.configs.get(self.current_type),
        }


class ConfigStore(Protocol):
    """Where the activation record lives."""

    def load(self) -> ActivationRecord:
        ...

    def save(self, record: ActivationRecord) -> None:
        ...


class MemoryConfigStore:
    """Keeps the record in memory; for tests and embedding."""

    def __init__(self, record: ActivationRecord | None = None) -> None:
        self._record = (record or ActivationRecord()).model_copy(deep=True)
        self.legacy: dict[str, Any] = self._record.legacy_mirror()
        self.save_count = 0

    def load(self) -> ActivationRecord:
        return self._record.model_copy(deep=True)

    def save(self, record: ActivationRecord) -> None:
        self._record = record.model_copy(deep=True)
        self.legacy = record.legacy_mirror()
        self.save_count += 1


class JsonFileConfigStore:
    """Stores the record and its legacy mirror in one JSON file."""

    def __init__(self, path: "str | Path") -> None:
        self.path = Path(path)

    def load(self) -> ActivationRecord:
        """Load the record; a missing or unreadable file yields the default.

        An unreadable file is renamed to ``<name>.corrupt`` first, so the next
        save cannot overwrite the credentials it may still hold.
        """
        if not self.path.exists():
            return ActivationRecord()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            raw = data.get(RECORD_KEY)
            if raw is None and LEGACY_KEY in data:
                # Only the legacy single-config record was ever written
                legacy = data[LEGACY_KEY] or {}
                provider_type = resolve_provider_type(legacy.get("type"))
                raw = {
                    "currentType": provider_type.value,
                    "configs": {provider_type.value: legacy.get("config") or {}},
                }
            return ActivationRecord.model_validate(raw or {})
        except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as e:
            logger.warning("Unreadable image host store, using defaults", path=str(self.path), error=str(e))
            self._move_aside()
            return ActivationRecord()

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_name(self.path.name + CORRUPT_SUFFIX)

    def _move_aside(self) -> None:
        try:
            os.replace(self.path, self.corrupt_path)
        except OSError as e:
            logger.error("Could not move unreadable image host store aside", path=str(self.path), error=str(e))
            return
        logger.warning("Unreadable image host store moved aside", path=str(self.corrupt_path))

    def save(self, record: ActivationRecord) -> None:
        """Write the record and the legacy mirror atomically."""
        payload = {
            RECORD_KEY: record.to_json(),
            LEGACY_KEY: record.legacy_mirror(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
        logger.debug("Image host store saved", path=str(self.path), current_type=record.current_type.value)
