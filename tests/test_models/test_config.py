"""Unit tests for CacheConfig."""

import pytest
from pydantic import ValidationError

from booking_cache.models.config import CacheConfig

REDIS_ENV_VARS = [
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_PASSWORD",
    "REDIS_DB",
    "REDIS_KEY_PREFIX",
    "REDIS_MAX_RETRIES",
    "REDIS_RETRY_DELAY_MS",
    "REDIS_READY_CHECK",
    "REDIS_LAZY_CONNECT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in REDIS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestCacheConfig:
    """Test suite for CacheConfig validation and defaults."""

    def test_defaults(self):
        """Test only host and port are required."""
        config = CacheConfig(host="localhost", port=6379)

        assert config.password is None
        assert config.db == 0
        assert config.key_prefix == "cbv:"
        assert config.max_retries_per_request == 3
        assert config.retry_delay_ms == 100
        assert config.enable_ready_check is True
        assert config.lazy_connect is True

    def test_host_and_port_required(self):
        """Test missing host or port fails validation."""
        with pytest.raises(ValidationError):
            CacheConfig(port=6379)
        with pytest.raises(ValidationError):
            CacheConfig(host="localhost")

    @pytest.mark.parametrize("port", [0, 70000])
    def test_invalid_port(self, port):
        """Test ports outside 1-65535 are rejected."""
        with pytest.raises(ValidationError):
            CacheConfig(host="localhost", port=port)

    def test_negative_retries_rejected(self):
        """Test retry settings must be non-negative."""
        with pytest.raises(ValidationError):
            CacheConfig(host="localhost", port=6379, max_retries_per_request=-1)

    def test_prefix_is_immutable(self):
        """Test the namespace cannot change after construction."""
        config = CacheConfig(host="localhost", port=6379)

        with pytest.raises(ValidationError):
            config.key_prefix = "other:"

    def test_redacted_hides_password(self):
        """Test redacted() never contains the password."""
        config = CacheConfig(host="localhost", port=6379, password="s3cret")

        redacted = config.redacted()

        assert redacted["password_set"] is True
        assert "s3cret" not in str(redacted)
        assert "s3cret" not in repr(config)


class TestFromEnv:
    """Test suite for CacheConfig.from_env()."""

    def test_defaults_without_env(self, clean_env):
        """Test environment defaults match the platform setup."""
        config = CacheConfig.from_env()

        assert config.host == "localhost"
        assert config.port == 6379
        assert config.password is None
        assert config.key_prefix == "cbv:"

    def test_reads_env(self, clean_env):
        """Test every REDIS_* variable is honored."""
        clean_env.setenv("REDIS_HOST", "cache.internal")
        clean_env.setenv("REDIS_PORT", "6380")
        clean_env.setenv("REDIS_PASSWORD", "s3cret")
        clean_env.setenv("REDIS_DB", "2")
        clean_env.setenv("REDIS_KEY_PREFIX", "staging:")
        clean_env.setenv("REDIS_MAX_RETRIES", "5")
        clean_env.setenv("REDIS_RETRY_DELAY_MS", "250")
        clean_env.setenv("REDIS_READY_CHECK", "false")
        clean_env.setenv("REDIS_LAZY_CONNECT", "0")

        config = CacheConfig.from_env()

        assert config.host == "cache.internal"
        assert config.port == 6380
        assert config.password.get_secret_value() == "s3cret"
        assert config.db == 2
        assert config.key_prefix == "staging:"
        assert config.max_retries_per_request == 5
        assert config.retry_delay_ms == 250
        assert config.enable_ready_check is False
        assert config.lazy_connect is False

    def test_empty_password_is_none(self, clean_env):
        """Test an empty REDIS_PASSWORD means no AUTH."""
        clean_env.setenv("REDIS_PASSWORD", "")

        assert CacheConfig.from_env().password is None
