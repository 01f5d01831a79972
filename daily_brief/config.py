"""Configuration management for the Daily Brief job."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

from .errors import ConfigurationError
from .logging_config import create_execution_logger

SUPPORTED_PROVIDERS = ("gemini", "bedrock")


@dataclass
class FeedConfig:
    """Configuration for feed aggregation."""

    urls: list[str] = field(default_factory=list)
    timeout: int = 10
    max_items_per_feed: int = 5
    max_headlines: int = 15


@dataclass
class SummarizerConfig:
    """Configuration for the language-model summarization call."""

    provider: str = "gemini"
    model_id: str = "gemini-1.5-flash"
    api_key: str = ""
    region: str = "us-east-1"
    temperature: float = 0.3
    max_tokens: int = 500
    timeout: int = 30


@dataclass
class WebhookConfig:
    """Configuration for the Discord webhook."""

    url: str
    timeout: int = 10


class Config:
    """Main configuration manager, built once at process start."""

    FEEDS_FILE = "feeds.json"

    DEFAULT_FEEDS = [
        "http://feeds.bbci.co.uk/news/rss.xml",
        "https://www.reuters.com/rssfeed/worldNews",
        "https://techcrunch.com/feed/",
        "https://www.theverge.com/rss/index.xml",
    ]

    def __init__(self, execution_id: str | None = None, feeds_file: str | None = None):
        """Initialize configuration from environment variables.

        Args:
            execution_id: Execution ID for logging context
            feeds_file: Feeds file path; overrides FEEDS_FILE when given
        """
        self.logger = create_execution_logger("config", execution_id)
        self.feed_urls_env = os.getenv("RSS_FEED_URLS", "")
        self.feeds_file = feeds_file or os.getenv("FEEDS_FILE", self.FEEDS_FILE)
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.provider = os.getenv("SUMMARIZER_PROVIDER", "gemini").strip().lower()
        self.gemini_model = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        self.bedrock_model_id = os.getenv("BEDROCK_MODEL_ID", "amazon.nova-micro-v1:0")
        self.gemini_api_key = self._resolve(
            "GEMINI_API_KEY",
            "GEMINI_API_KEY_SECRET_NAME",
            ("api_key", "gemini_api_key", "key"),
        )
        self.webhook_url = self._resolve(
            "DISCORD_WEBHOOK_URL",
            "DISCORD_WEBHOOK_SECRET_NAME",
            ("webhook_url", "discord_webhook_url", "url"),
        )

    def _resolve(self, env_name: str, secret_env_name: str, keys: tuple[str, ...]) -> str:
        """Read a value from the environment, falling back to Secrets Manager."""
        value = os.getenv(env_name, "").strip()
        if value:
            return value

        secret_name = os.getenv(secret_env_name, "").strip()
        if not secret_name:
            return ""

        return get_secret_value(secret_name, self.aws_region, keys, self.logger)

    def validate(self) -> None:
        """Ensure every required value is present.

        Raises:
            ConfigurationError: naming all missing values
        """
        missing = []
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported SUMMARIZER_PROVIDER '{self.provider}', "
                f"expected one of {', '.join(SUPPORTED_PROVIDERS)}"
            )
        if self.provider == "gemini" and not self.gemini_api_key:
            missing.append("GEMINI_API_KEY")
        if not self.webhook_url:
            missing.append("DISCORD_WEBHOOK_URL")

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {' and/or '.join(missing)}"
            )

    def get_feed_urls(self) -> list[str]:
        """Get feed URLs in order of precedence.

        RSS_FEED_URLS (comma separated) wins over the feeds file, which wins
        over the built-in defaults.
        """
        env_urls = [url.strip() for url in self.feed_urls_env.split(",") if url.strip()]
        if env_urls:
            return env_urls

        feeds_file = Path(self.feeds_file)
        if not feeds_file.exists():
            self.logger.info(
                "Feeds file not found, using default feeds",
                feeds_file=str(feeds_file),
                feed_count=len(self.DEFAULT_FEEDS),
            )
            return list(self.DEFAULT_FEEDS)

        try:
            with open(feeds_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in feeds file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading feeds file: {e}") from e

        feeds = data.get("feeds", []) if isinstance(data, dict) else []
        enabled_urls = [
            feed["url"]
            for feed in feeds
            if isinstance(feed, dict) and feed.get("enabled", True) and "url" in feed
        ]

        if not enabled_urls:
            raise ConfigurationError(f"No enabled feeds found in {feeds_file}")

        return enabled_urls

    def get_feed_config(self) -> FeedConfig:
        """Get feed aggregation configuration."""
        return FeedConfig(urls=self.get_feed_urls())

    def get_summarizer_config(self) -> SummarizerConfig:
        """Get summarization configuration for the selected provider."""
        if self.provider == "bedrock":
            return SummarizerConfig(
                provider="bedrock",
                model_id=self.bedrock_model_id,
                region=self.aws_region,
            )
        return SummarizerConfig(
            provider="gemini",
            model_id=self.gemini_model,
            api_key=self.gemini_api_key,
        )

    def get_webhook_config(self) -> WebhookConfig:
        """Get Discord webhook configuration."""
        return WebhookConfig(url=self.webhook_url)


def get_secret_value(secret_name: str, aws_region: str, keys: tuple[str, ...], logger=None) -> str:
    """
    Retrieve a configuration value from AWS Secrets Manager.

    Supports both plain string secrets and JSON objects. For JSON objects the
    first non-empty value among ``keys`` is used, then the first non-empty
    string value. Secret values are never logged.

    Raises:
        ConfigurationError: If the secret cannot be read or holds no usable value
    """
    logger = logger or create_execution_logger("config")

    try:
        logger.info(f"Retrieving configuration from Secrets Manager: {secret_name}")
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        logger.error(f"AWS Secrets Manager error retrieving {secret_name}: {error_code}")
        raise ConfigurationError(f"Failed to retrieve secret {secret_name}") from e

    secret_value = (response.get("SecretString") or "").strip()
    if not secret_value:
        raise ConfigurationError(f"Secret {secret_name} contains empty value")

    try:
        secret_data = json.loads(secret_value)
    except json.JSONDecodeError:
        # Plain string secret
        return secret_value

    if not isinstance(secret_data, dict):
        raise ConfigurationError(f"JSON secret {secret_name} must be an object")

    for key in keys:
        value = secret_data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    for value in secret_data.values():
        if isinstance(value, str) and value.strip():
            logger.info("Using first available value from JSON secret")
            return value.strip()

    raise ConfigurationError(f"No valid configuration found in JSON secret {secret_name}")
