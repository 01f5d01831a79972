"""Entry points for the Daily Brief job: Lambda handler and command line."""

import argparse
import json
import os
import sys
from datetime import UTC, datetime
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .config import Config
from .discord import DiscordPublisher
from .errors import ConfigurationError
from .logging_config import create_execution_logger, setup_structured_logging
from .rss import FeedProcessor
from .summarize import Summarizer

# An unknown LOG_LEVEL falls back to INFO here; main() rejects it
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"), strict=False)


def new_execution_id(prefix: str) -> str:
    """Build a unique identifier for one run."""
    return f"{prefix}_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"


def run_daily_brief(
    config: Config, execution_id: str, metrics: dict[str, Any] | None = None
) -> dict[str, Any]:
    """
    Run one pass of the pipeline: aggregate, summarize, publish.

    Args:
        config: Configuration built at process start
        execution_id: Execution ID for logging context
        metrics: Optional dict updated in place as stages complete

    Returns:
        Run metrics

    Raises:
        DailyBriefError: On any fatal condition; nothing is published
    """
    main_logger = create_execution_logger("main", execution_id)
    if metrics is None:
        metrics = {}
    metrics.update(
        {
            "feeds_processed": 0,
            "feeds_failed": 0,
            "headlines_found": 0,
            "message_sent": False,
        }
    )

    config.validate()
    feed_config = config.get_feed_config()
    main_logger.info(
        "Configuration initialized",
        feed_count=len(feed_config.urls),
        provider=config.provider,
    )

    feed_processor = FeedProcessor(
        timeout=feed_config.timeout,
        max_items_per_feed=feed_config.max_items_per_feed,
        max_headlines=feed_config.max_headlines,
        execution_id=execution_id,
    )
    summarizer = Summarizer(config.get_summarizer_config(), execution_id=execution_id)
    publisher = DiscordPublisher(config.get_webhook_config(), execution_id=execution_id)

    main_logger.info("Fetching news headlines from RSS feeds")
    try:
        headlines = feed_processor.fetch_feeds(feed_config.urls)
    finally:
        metrics["feeds_processed"] = feed_processor.feeds_processed
        metrics["feeds_failed"] = feed_processor.feeds_failed
    metrics["headlines_found"] = len(headlines)
    main_logger.info(
        f"Fetched {len(headlines)} headlines", headline_count=len(headlines)
    )

    main_logger.info("Generating summary", provider=config.provider)
    bullet_block = summarizer.summarize(headlines)

    main_logger.info("Publishing brief")
    publisher.publish(bullet_block)
    metrics["message_sent"] = True

    main_logger.log_metrics(metrics)
    return metrics


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Lambda handler for a scheduled run.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status and metrics
    """
    execution_id = new_execution_id("lambda")
    main_logger = create_execution_logger("main", execution_id)
    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics: dict[str, Any] = {}
    try:
        config = Config(execution_id=execution_id)
        run_daily_brief(config, execution_id, metrics)
    except Exception as e:
        error_msg = f"Fatal error: {e}"
        main_logger.error(error_msg, error_type=type(e).__name__)
        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)
        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "message": "Daily brief failed",
                    "execution_id": execution_id,
                    "error": error_msg,
                    "metrics": metrics,
                }
            ),
        }

    main_logger.log_execution_end(success=True, metrics=metrics)
    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "Daily brief completed successfully",
                "execution_id": execution_id,
                "metrics": metrics,
            }
        ),
    }


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Summarize today's RSS headlines and post them to Discord."
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides LOG_LEVEL.",
    )
    parser.add_argument(
        "--feeds-file",
        default=None,
        help="Path to a feeds.json file. Overrides FEEDS_FILE.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file to load before reading configuration.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the job once from the command line and return the exit code."""
    args = build_parser().parse_args(argv)

    load_dotenv(args.env_file or find_dotenv(usecwd=True))
    execution_id = new_execution_id("cli")

    try:
        setup_structured_logging(args.log_level or os.getenv("LOG_LEVEL", "INFO"))
    except ValueError as e:
        setup_structured_logging("INFO")
        create_execution_logger("main", execution_id).error(
            f"Fatal error: {e}", error_type=ConfigurationError.__name__
        )
        return 1

    main_logger = create_execution_logger("main", execution_id)
    main_logger.log_execution_start()

    try:
        config = Config(execution_id=execution_id, feeds_file=args.feeds_file)
        metrics = run_daily_brief(config, execution_id)
    except Exception as e:
        main_logger.error(f"Fatal error: {e}", error_type=type(e).__name__)
        main_logger.log_execution_end(success=False)
        return 1

    main_logger.info("Daily brief completed successfully")
    main_logger.log_execution_end(success=True, metrics=metrics)
    return 0


if __name__ == "__main__":
    sys.exit(main())
