"""Activation protocol: deciding which image host is used for uploads.

States per provider type::

    Inactive --activate--> Validating --valid--> Active
                               |
                               +--invalid/error--> ActivationFailed

The official host needs no credentials and becomes Active at once. Every
other provider is activated only after a Manager built from its saved
config passes ``validate()``. The active type is persisted in the store only
on success; on failure the previous provider stays active and the caller
gets a reason string.

Attempts are not serialized: if two activations overlap, the last one to
validate successfully is persisted.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from image_host.config import ImageHostConfig, ProviderType, parse_provider_config
from image_host.manager import ImageHostManager
from image_host.registry import resolve_provider_type
from image_host.store import ActivationRecord, ConfigStore

logger = structlog.get_logger(__name__)

StateListener = Callable[[ProviderType, "ActivationState"], None]


class ActivationState(str, Enum):
    INACTIVE = "inactive"
    VALIDATING = "validating"
    ACTIVE = "active"
    ACTIVATION_FAILED = "activation_failed"


@dataclass(frozen=True)
class ActivationResult:
    """Outcome of one activation attempt."""

    provider_type: ProviderType
    state: ActivationState
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.state == ActivationState.ACTIVE


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a connection test that does not change the active host."""

    provider_type: ProviderType
    ok: bool
    message: str


class ImageHostActivator:
    """Switches the active image host, gated by connection tests."""

    def __init__(
        self,
        store: ConfigStore,
        manager_factory: Callable[[ImageHostConfig], ImageHostManager] = ImageHostManager,
    ) -> None:
        """Initialize the activator.

        Args:
            store: Where the activation record is read from and written to
            manager_factory: Builds the manager used for connection tests
        """
        self._store = store
        self._manager_factory = manager_factory
        self._states: dict[ProviderType, ActivationState] = {}
        self._listeners: list[StateListener] = []

    @property
    def current_type(self) -> ProviderType:
        return self._store.load().current_type

    def record(self) -> ActivationRecord:
        """The saved activation record."""
        return self._store.load()

    def subscribe(self, listener: StateListener) -> None:
        """Call ``listener(provider_type, state)`` on every state change."""
        self._listeners.append(listener)

    def state_of(self, provider_type: "ProviderType | str") -> ActivationState:
        """Current activation state of ``provider_type``, for rendering."""
        provider_type = resolve_provider_type(provider_type)
        transient = self._states.get(provider_type)
        if transient == ActivationState.VALIDATING:
            return transient
        if provider_type == self.current_type:
            return ActivationState.ACTIVE
        return transient or ActivationState.INACTIVE

    def states(self) -> dict[ProviderType, ActivationState]:
        return {t: self.state_of(t) for t in ProviderType}

    def _set_state(self, provider_type: ProviderType, state: ActivationState) -> None:
        if state in (ActivationState.VALIDATING, ActivationState.ACTIVATION_FAILED):
            self._states[provider_type] = state
        else:
            self._states.pop(provider_type, None)
        for listener in self._listeners:
            listener(provider_type, state)

    def active_config(self) -> ImageHostConfig:
        """Config of the active provider, as used for uploads."""
        record = self._store.load()
        return ImageHostConfig.create(record.current_type, record.config_for(record.current_type))

    def create_manager(self) -> ImageHostManager:
        """Manager for the active provider."""
        return self._manager_factory(self.active_config())

    def set_config(self, provider_type: "ProviderType | str", config: dict[str, Any]) -> ActivationRecord:
        """Save the config blob for ``provider_type`` without activating it.

        Raises:
            ConfigurationError: Unknown keys or wrongly typed values.
        """
        provider_type = resolve_provider_type(provider_type)
        settings = parse_provider_config(provider_type, config)
        record = self._store.load()
        record.configs[provider_type] = settings.to_blob()
        self._store.save(record)
        return record

    def update_config(self, provider_type: "ProviderType | str", key: str, value: Any) -> ActivationRecord:
        """Change one field of the saved config for ``provider_type``."""
        provider_type = resolve_provider_type(provider_type)
        blob = self._store.load().config_for(provider_type)
        blob[key] = value
        return self.set_config(provider_type, blob)

    async def _validate(self, provider_type: ProviderType) -> str | None:
        """Validate the saved config; return None on success, else a reason."""
        label = provider_type.value
        try:
            record = self._store.load()
            manager = self._manager_factory(
                ImageHostConfig.create(provider_type, record.config_for(provider_type))
            )
            valid = await manager.validate()
        except Exception as e:  # noqa: BLE001
            # Reported to the caller as a reason, never raised
            logger.warning("Image host validation error", type=label, error=str(e), error_type=type(e).__name__)
            return f"Cannot activate {label}: validation error ({e})"

        if not valid:
            return f"Cannot activate {label}: connection test failed, check the configuration."
        return None

    def _persist_current(self, provider_type: ProviderType) -> str | None:
        """Save ``provider_type`` as the active type; return None on success, else a reason."""
        try:
            # Re-read so config edits made while validating are kept
            record = self._store.load()
            record.current_type = provider_type
            self._store.save(record)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Image host activation not saved",
                type=provider_type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return f"Cannot activate {provider_type.value}: could not save ({e})"
        return None

    def _fail(self, provider_type: ProviderType, reason: str) -> ActivationResult:
        self._set_state(provider_type, ActivationState.ACTIVATION_FAILED)
        logger.info("Image host activation failed", type=provider_type.value, reason=reason)
        return ActivationResult(provider_type, ActivationState.ACTIVATION_FAILED, reason)

    async def activate(self, provider_type: "ProviderType | str") -> ActivationResult:
        """Make ``provider_type`` the active image host if its config validates.

        Failures, including a store that cannot be written, are returned as a
        reason on the result; the previously active type stays active.
        """
        provider_type = resolve_provider_type(provider_type)

        if provider_type == ProviderType.OFFICIAL:
            reason = self._persist_current(provider_type)
            if reason is not None:
                return self._fail(provider_type, reason)
            self._set_state(provider_type, ActivationState.ACTIVE)
            logger.info("Image host activated", type=provider_type.value, validated=False)
            return ActivationResult(provider_type, ActivationState.ACTIVE)

        self._set_state(provider_type, ActivationState.VALIDATING)
        reason = await self._validate(provider_type)
        if reason is None:
            reason = self._persist_current(provider_type)
        if reason is not None:
            return self._fail(provider_type, reason)

        self._set_state(provider_type, ActivationState.ACTIVE)
        logger.info("Image host activated", type=provider_type.value, validated=True)
        return ActivationResult(provider_type, ActivationState.ACTIVE)

    async def test_connection(self, provider_type: "ProviderType | str") -> ConnectionTestResult:
        """Validate the saved config for ``provider_type`` without activating it."""
        provider_type = resolve_provider_type(provider_type)
        try:
            record = self._store.load()
            manager = self._manager_factory(
                ImageHostConfig.create(provider_type, record.config_for(provider_type))
            )
            valid = await manager.validate()
        except Exception as e:  # noqa: BLE001
            return ConnectionTestResult(provider_type, False, str(e))

        message = "Configuration is valid" if valid else "Configuration is invalid"
        return ConnectionTestResult(provider_type, valid, message)
