"""Discord webhook publisher for the Daily Brief job."""

from datetime import date

import requests

from .config import WebhookConfig
from .errors import PublishError
from .logging_config import create_execution_logger

HEADER_TEMPLATE = "**Daily Brief – {date}**"


def format_long_date(day: date) -> str:
    """Format a date as e.g. ``October 19, 2026``."""
    return f"{day:%B} {day.day}, {day.year}"


class DiscordPublisher:
    """Posts the formatted brief to a Discord webhook."""

    def __init__(self, config: WebhookConfig, execution_id: str | None = None):
        """Initialize Discord publisher with configuration."""
        self.config = config
        self.logger = create_execution_logger("discord_publisher", execution_id)
        self.session = requests.Session()

        self.logger.info("DiscordPublisher initialized", timeout=config.timeout)

    def publish(self, bullet_block: str, today: date | None = None) -> str:
        """Format and send the brief.

        Returns:
            The message that was posted
        """
        message = self.format_message(bullet_block, today)
        self.send_message(message)
        return message

    def format_message(self, bullet_block: str, today: date | None = None) -> str:
        """
        Build the dated message envelope.

        Args:
            bullet_block: Normalized five-line bullet block
            today: Date shown in the header, defaults to the local date

        Returns:
            Message text in Discord markdown
        """
        today = today or date.today()
        header = HEADER_TEMPLATE.format(date=format_long_date(today))
        return f"{header}\n\n{bullet_block}"

    def send_message(self, message: str) -> None:
        """
        Post the message to the webhook. Not retried.

        Raises:
            PublishError: On transport failure, timeout or non-success status
        """
        self.logger.info("Posting to Discord", message_length=len(message))
        try:
            response = self.session.post(
                self.config.url,
                json={"content": message},
                timeout=self.config.timeout,
            )
        except requests.Timeout as e:
            raise PublishError(
                f"Discord webhook timed out after {self.config.timeout}s"
            ) from e
        except requests.RequestException as e:
            raise PublishError(
                f"Discord webhook request failed: {type(e).__name__}"
            ) from e

        if not response.ok:
            raise PublishError(f"Discord webhook error: {response.status_code}")

        self.logger.info(
            "Successfully posted to Discord", status_code=response.status_code
        )
