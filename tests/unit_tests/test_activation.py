"""Tests for the activation protocol."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from image_host.activation import ActivationState, ImageHostActivator
from image_host.config import ProviderType
from image_host.errors import ConfigurationError
from image_host.manager import ImageHostManager
from image_host.store import ActivationRecord, MemoryConfigStore


class UnsaveableStore(MemoryConfigStore):
    """Memory store whose writes fail, like a full disk."""

    def save(self, record):
        raise OSError("disk full")


def manager_factory(valid=True, error=None):
    """Factory returning managers whose validate() gives a fixed answer."""
    created = []

    def factory(config):
        manager = Mock(spec=ImageHostManager)
        manager.config = config
        manager.validate = AsyncMock(return_value=valid, side_effect=error)
        created.append(manager)
        return manager

    factory.created = created
    return factory


class TestActivate:
    """Tests for ImageHostActivator.activate."""

    @pytest.mark.asyncio
    async def test_official_activates_without_validation(self, s3_blob):
        store = MemoryConfigStore(ActivationRecord(current_type="s3", configs={"s3": s3_blob}))
        factory = manager_factory()
        activator = ImageHostActivator(store, factory)

        result = await activator.activate("official")

        assert result.ok
        assert result.reason is None
        assert factory.created == []
        assert store.load().current_type is ProviderType.OFFICIAL

    @pytest.mark.asyncio
    async def test_successful_validation_persists(self, store_with_s3):
        factory = manager_factory(valid=True)
        activator = ImageHostActivator(store_with_s3, factory)

        result = await activator.activate(ProviderType.S3)

        assert result.state is ActivationState.ACTIVE
        assert store_with_s3.load().current_type is ProviderType.S3
        assert store_with_s3.legacy["type"] == "s3"
        assert activator.state_of("s3") is ActivationState.ACTIVE
        assert activator.state_of("official") is ActivationState.INACTIVE

        validated = factory.created[0].config
        assert validated.type is ProviderType.S3
        assert validated.config.bucket == "b"

    @pytest.mark.asyncio
    async def test_failed_validation_keeps_previous_provider(self, store_with_s3):
        activator = ImageHostActivator(store_with_s3, manager_factory(valid=False))

        result = await activator.activate("s3")

        assert not result.ok
        assert result.state is ActivationState.ACTIVATION_FAILED
        assert "s3" in result.reason
        assert store_with_s3.load().current_type is ProviderType.OFFICIAL
        assert store_with_s3.save_count == 0
        assert activator.state_of("s3") is ActivationState.ACTIVATION_FAILED
        assert activator.state_of("official") is ActivationState.ACTIVE

    @pytest.mark.asyncio
    async def test_validation_error_becomes_reason(self, store_with_s3):
        """Test exceptions during validation are reported, not raised."""
        activator = ImageHostActivator(store_with_s3, manager_factory(error=RuntimeError("network down")))

        result = await activator.activate("s3")

        assert result.state is ActivationState.ACTIVATION_FAILED
        assert "network down" in result.reason
        assert store_with_s3.load().current_type is ProviderType.OFFICIAL

    @pytest.mark.asyncio
    async def test_malformed_saved_config_becomes_reason(self, memory_store):
        """Test a stored blob with unknown keys fails activation with a reason."""
        memory_store.save(ActivationRecord(configs={"qiniu": {"accesKey": "typo"}}))
        activator = ImageHostActivator(memory_store)

        result = await activator.activate("qiniu")

        assert result.state is ActivationState.ACTIVATION_FAILED
        assert "accesKey" in result.reason

    @pytest.mark.asyncio
    async def test_incomplete_config_fails_with_real_manager(self, memory_store):
        """Test a provider with nothing saved cannot be activated."""
        activator = ImageHostActivator(memory_store)

        with patch("boto3.client") as boto_client:
            result = await activator.activate("s3")

        assert result.state is ActivationState.ACTIVATION_FAILED
        assert "connection test failed" in result.reason
        boto_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_listeners_see_validating_then_result(self, store_with_s3):
        seen = []
        activator = ImageHostActivator(store_with_s3, manager_factory(valid=True))
        activator.subscribe(lambda provider_type, state: seen.append((provider_type, state)))

        await activator.activate("s3")

        assert seen == [
            (ProviderType.S3, ActivationState.VALIDATING),
            (ProviderType.S3, ActivationState.ACTIVE),
        ]

    @pytest.mark.asyncio
    async def test_state_is_validating_during_test(self, store_with_s3):
        """Test state_of reports VALIDATING while the connection test runs."""
        observed = []

        async def validate():
            observed.append(activator.state_of("s3"))
            return True

        def factory(config):
            manager = Mock(spec=ImageHostManager)
            manager.validate = validate
            return manager

        activator = ImageHostActivator(store_with_s3, factory)
        await activator.activate("s3")

        assert observed == [ActivationState.VALIDATING]
        assert activator.state_of("s3") is ActivationState.ACTIVE

    @pytest.mark.asyncio
    async def test_reactivating_after_failure_clears_failed_state(self, store_with_s3):
        activator = ImageHostActivator(store_with_s3, manager_factory(valid=False))
        await activator.activate("s3")

        activator._manager_factory = manager_factory(valid=True)
        result = await activator.activate("s3")

        assert result.ok
        assert activator.states()[ProviderType.S3] is ActivationState.ACTIVE

    @pytest.mark.asyncio
    async def test_save_error_becomes_reason(self, s3_blob):
        """Test a store that cannot be written fails activation without raising."""
        store = UnsaveableStore(ActivationRecord(configs={"s3": s3_blob}))
        seen = []
        activator = ImageHostActivator(store, manager_factory(valid=True))
        activator.subscribe(lambda provider_type, state: seen.append(state))

        result = await activator.activate("s3")

        assert result.state is ActivationState.ACTIVATION_FAILED
        assert "could not save" in result.reason
        assert "disk full" in result.reason
        assert activator.state_of("s3") is ActivationState.ACTIVATION_FAILED
        assert activator.current_type is ProviderType.OFFICIAL
        assert seen == [ActivationState.VALIDATING, ActivationState.ACTIVATION_FAILED]

    @pytest.mark.asyncio
    async def test_official_save_error_becomes_reason(self, s3_blob):
        store = UnsaveableStore(ActivationRecord(current_type="s3", configs={"s3": s3_blob}))
        activator = ImageHostActivator(store, manager_factory())

        result = await activator.activate("official")

        assert not result.ok
        assert "could not save" in result.reason
        assert activator.current_type is ProviderType.S3
        assert activator.state_of("official") is ActivationState.ACTIVATION_FAILED


class TestConfigEditing:
    """Tests for saving provider configs."""

    def test_set_config_normalizes_and_saves(self, memory_store):
        activator = ImageHostActivator(memory_store)

        activator.set_config("s3", {"bucket": "b", "forcePathStyle": "true", "region": None})

        assert memory_store.load().config_for(ProviderType.S3) == {"bucket": "b", "forcePathStyle": True}

    def test_set_config_does_not_activate(self, memory_store, s3_blob):
        activator = ImageHostActivator(memory_store)

        activator.set_config("s3", s3_blob)

        assert activator.current_type is ProviderType.OFFICIAL

    def test_set_config_rejects_unknown_key(self, memory_store):
        activator = ImageHostActivator(memory_store)

        with pytest.raises(ConfigurationError):
            activator.set_config("aliyun", {"accessKey": "wrong-provider-field"})

        assert memory_store.save_count == 0

    def test_update_config_changes_one_field(self, store_with_s3, s3_blob):
        activator = ImageHostActivator(store_with_s3)

        activator.update_config("s3", "bucket", "other")

        assert store_with_s3.load().config_for(ProviderType.S3) == {**s3_blob, "bucket": "other"}

    def test_active_config_and_manager(self, memory_store, qiniu_blob):
        memory_store.save(ActivationRecord(current_type="qiniu", configs={"qiniu": qiniu_blob}))
        activator = ImageHostActivator(memory_store)

        manager = activator.create_manager()

        assert manager.provider_type is ProviderType.QINIU
        assert manager.config.config.domain == "https://cdn.example.com/"


class TestConnectionTest:
    """Tests for ImageHostActivator.test_connection."""

    @pytest.mark.asyncio
    async def test_valid(self, store_with_s3):
        activator = ImageHostActivator(store_with_s3, manager_factory(valid=True))

        result = await activator.test_connection("s3")

        assert result.ok
        assert result.message == "Configuration is valid"
        assert store_with_s3.load().current_type is ProviderType.OFFICIAL

    @pytest.mark.asyncio
    async def test_invalid(self, store_with_s3):
        activator = ImageHostActivator(store_with_s3, manager_factory(valid=False))

        result = await activator.test_connection("s3")

        assert not result.ok
        assert result.message == "Configuration is invalid"

    @pytest.mark.asyncio
    async def test_error_message(self, store_with_s3):
        activator = ImageHostActivator(store_with_s3, manager_factory(error=RuntimeError("timeout")))

        result = await activator.test_connection("s3")

        assert not result.ok
        assert result.message == "timeout"
