"""Tests for HandshakeConfig."""

import os
from unittest.mock import patch

from salesforce_handshake.config import HandshakeConfig


class TestHandshakeConfig:
    """Tests for HandshakeConfig defaults and derived URLs."""

    def test_defaults(self):
        """Test default values."""
        config = HandshakeConfig()

        assert config.action_hub_base_url == "http://localhost:8000"
        assert config.action_name == "salesforce_campaigns"
        assert config.cipher_master is None
        assert config.login_url == "https://login.salesforce.com"

    def test_derived_urls(self):
        """Test the handshake endpoint URLs."""
        config = HandshakeConfig(action_hub_base_url="https://ah.example")

        assert config.action_path == "/actions/salesforce_campaigns"
        assert config.start_auth_url == "https://ah.example/actions/salesforce_campaigns/oauth"
        assert config.oauth_redirect_url == "https://ah.example/actions/salesforce_campaigns/oauth_redirect"
        assert config.authorization_endpoint == "https://login.salesforce.com/services/oauth2/authorize"

    def test_trailing_slash_removed(self):
        """Test that trailing slashes are removed from URLs."""
        config = HandshakeConfig(
            action_hub_base_url="https://ah.example/",
            login_url="https://test.salesforce.com/",
        )

        assert config.action_hub_base_url == "https://ah.example"
        assert config.login_url == "https://test.salesforce.com"

    def test_redirect_url_override(self):
        """Test that a fixed redirect URL takes precedence."""
        config = HandshakeConfig(redirect_url="https://ah.example/custom/callback")
        assert config.oauth_redirect_url == "https://ah.example/custom/callback"


class TestHandshakeConfigFromEnv:
    """Tests for HandshakeConfig.from_env()."""

    def test_from_env(self):
        """Test creating config from environment variables."""
        with patch.dict(
            os.environ,
            {
                "ACTION_HUB_BASE_URL": "https://ah.example",
                "ACTION_NAME": "salesforce",
                "CIPHER_MASTER": "secret-key",
                "SALESFORCE_LOGIN_URL": "https://test.salesforce.com",
                "SALESFORCE_REDIRECT_URL": "https://ah.example/cb",
            },
            clear=True,
        ):
            config = HandshakeConfig.from_env()

        assert config.action_hub_base_url == "https://ah.example"
        assert config.action_name == "salesforce"
        assert config.cipher_master == "secret-key"
        assert config.login_url == "https://test.salesforce.com"
        assert config.oauth_redirect_url == "https://ah.example/cb"

    def test_from_env_with_defaults(self):
        """Test from_env uses defaults when variables are not set."""
        with patch.dict(os.environ, {}, clear=True):
            config = HandshakeConfig.from_env()

        assert config == HandshakeConfig()

    def test_from_env_empty_cipher_is_unset(self):
        """Test that an empty CIPHER_MASTER counts as not configured."""
        with patch.dict(os.environ, {"CIPHER_MASTER": ""}, clear=True):
            config = HandshakeConfig.from_env()

        assert config.cipher_master is None
