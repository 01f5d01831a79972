"""Unit tests for configuration management."""

import json
import os
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from daily_brief.config import Config, get_secret_value
from daily_brief.errors import ConfigurationError

REQUIRED_ENV = {
    "GEMINI_API_KEY": "test-key",
    "DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/1/abc",
}


class TestConfigUnit:
    """Unit tests for Config class."""

    def test_default_feeds(self, tmp_path):
        with patch.dict(os.environ, {"FEEDS_FILE": str(tmp_path / "missing.json")}, clear=True):
            config = Config()
            feed_urls = config.get_feed_urls()

        assert feed_urls == Config.DEFAULT_FEEDS
        assert "http://feeds.bbci.co.uk/news/rss.xml" in feed_urls
        assert len(feed_urls) == 4

    def test_feeds_file(self, tmp_path):
        feeds_file = tmp_path / "feeds.json"
        feeds_file.write_text(
            json.dumps(
                {
                    "feeds": [
                        {"url": "https://a.example/rss"},
                        {"url": "https://b.example/rss", "enabled": False},
                        {"name": "no url"},
                        {"url": "https://c.example/rss", "enabled": True},
                    ]
                }
            )
        )

        with patch.dict(os.environ, {"FEEDS_FILE": str(feeds_file)}, clear=True):
            feed_urls = Config().get_feed_urls()

        assert feed_urls == ["https://a.example/rss", "https://c.example/rss"]

    def test_feeds_file_invalid_json(self, tmp_path):
        feeds_file = tmp_path / "feeds.json"
        feeds_file.write_text("{not json")

        with patch.dict(os.environ, {"FEEDS_FILE": str(feeds_file)}, clear=True):
            with pytest.raises(ConfigurationError, match="Invalid JSON"):
                Config().get_feed_urls()

    def test_feeds_file_without_enabled_feeds(self, tmp_path):
        feeds_file = tmp_path / "feeds.json"
        feeds_file.write_text(json.dumps({"feeds": [{"url": "x", "enabled": False}]}))

        with patch.dict(os.environ, {"FEEDS_FILE": str(feeds_file)}, clear=True):
            with pytest.raises(ConfigurationError, match="No enabled feeds"):
                Config().get_feed_urls()

    def test_feeds_file_argument_overrides_environment(self, tmp_path):
        feeds_file = tmp_path / "chosen.json"
        feeds_file.write_text(json.dumps({"feeds": [{"url": "https://chosen/rss"}]}))
        env = {"FEEDS_FILE": str(tmp_path / "missing.json")}

        with patch.dict(os.environ, env, clear=True):
            feed_urls = Config(feeds_file=str(feeds_file)).get_feed_urls()

        assert feed_urls == ["https://chosen/rss"]

    def test_env_feed_urls_override_file(self, tmp_path):
        feeds_file = tmp_path / "feeds.json"
        feeds_file.write_text(json.dumps({"feeds": [{"url": "https://file/rss"}]}))
        env = {
            "FEEDS_FILE": str(feeds_file),
            "RSS_FEED_URLS": " https://one/rss , ,https://two/rss",
        }

        with patch.dict(os.environ, env, clear=True):
            feed_urls = Config().get_feed_urls()

        assert feed_urls == ["https://one/rss", "https://two/rss"]

    def test_validate_missing_everything(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

            with pytest.raises(ConfigurationError) as exc_info:
                config.validate()

        assert "GEMINI_API_KEY" in str(exc_info.value)
        assert "DISCORD_WEBHOOK_URL" in str(exc_info.value)

    def test_validate_ok(self):
        with patch.dict(os.environ, REQUIRED_ENV, clear=True):
            Config().validate()

    def test_bedrock_does_not_need_api_key(self):
        env = {"SUMMARIZER_PROVIDER": "Bedrock", "DISCORD_WEBHOOK_URL": "https://hook"}

        with patch.dict(os.environ, env, clear=True):
            config = Config()
            config.validate()
            summarizer_config = config.get_summarizer_config()

        assert summarizer_config.provider == "bedrock"
        assert summarizer_config.model_id == "amazon.nova-micro-v1:0"
        assert summarizer_config.region == "us-east-1"

    def test_unsupported_provider(self):
        env = {**REQUIRED_ENV, "SUMMARIZER_PROVIDER": "openai"}

        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError, match="Unsupported SUMMARIZER_PROVIDER"):
                Config().validate()

    def test_gemini_summarizer_config(self):
        env = {**REQUIRED_ENV, "GEMINI_MODEL": "gemini-2.0-flash"}

        with patch.dict(os.environ, env, clear=True):
            summarizer_config = Config().get_summarizer_config()

        assert summarizer_config.provider == "gemini"
        assert summarizer_config.model_id == "gemini-2.0-flash"
        assert summarizer_config.api_key == "test-key"
        assert summarizer_config.temperature == 0.3
        assert summarizer_config.max_tokens == 500
        assert summarizer_config.timeout == 30

    def test_webhook_and_feed_config_defaults(self):
        with patch.dict(os.environ, REQUIRED_ENV, clear=True):
            config = Config()
            webhook_config = config.get_webhook_config()
            feed_config = config.get_feed_config()

        assert webhook_config.url == REQUIRED_ENV["DISCORD_WEBHOOK_URL"]
        assert webhook_config.timeout == 10
        assert feed_config.timeout == 10
        assert feed_config.max_items_per_feed == 5
        assert feed_config.max_headlines == 15

    def test_webhook_url_from_secret(self):
        env = {
            "GEMINI_API_KEY": "k",
            "DISCORD_WEBHOOK_SECRET_NAME": "daily-brief/webhook",
        }

        with patch.dict(os.environ, env, clear=True), patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.get_secret_value.return_value = {
                "SecretString": json.dumps({"webhook_url": "https://secret-hook"})
            }

            config = Config()

        assert config.webhook_url == "https://secret-hook"
        mock_client.get_secret_value.assert_called_once_with(SecretId="daily-brief/webhook")


class TestGetSecretValue:
    """Unit tests for get_secret_value."""

    def _client(self, mock_boto_client, secret_string):
        mock_client = Mock()
        mock_boto_client.return_value = mock_client
        mock_client.get_secret_value.return_value = {"SecretString": secret_string}
        return mock_client

    def test_plain_string(self):
        with patch("boto3.client") as mock_boto_client:
            self._client(mock_boto_client, "  plain-value  ")

            assert get_secret_value("s", "us-east-1", ("key",)) == "plain-value"

    def test_json_preferred_key(self):
        with patch("boto3.client") as mock_boto_client:
            self._client(mock_boto_client, json.dumps({"other": "x", "api_key": "y"}))

            assert get_secret_value("s", "us-east-1", ("api_key",)) == "y"

    def test_json_first_string_value(self):
        with patch("boto3.client") as mock_boto_client:
            self._client(mock_boto_client, json.dumps({"n": 1, "something": "z"}))

            assert get_secret_value("s", "us-east-1", ("api_key",)) == "z"

    def test_json_not_object(self):
        with patch("boto3.client") as mock_boto_client:
            self._client(mock_boto_client, json.dumps(["a"]))

            with pytest.raises(ConfigurationError, match="must be an object"):
                get_secret_value("s", "us-east-1", ("api_key",))

    def test_empty_secret(self):
        with patch("boto3.client") as mock_boto_client:
            self._client(mock_boto_client, "   ")

            with pytest.raises(ConfigurationError, match="empty value"):
                get_secret_value("s", "us-east-1", ("api_key",))

    def test_client_error(self):
        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.get_secret_value.side_effect = ClientError(
                {"Error": {"Code": "ResourceNotFoundException", "Message": "nope"}},
                "GetSecretValue",
            )

            with pytest.raises(ConfigurationError, match="Failed to retrieve secret s"):
                get_secret_value("s", "us-east-1", ("api_key",))
