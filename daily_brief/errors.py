"""Error types for the Daily Brief job."""


class DailyBriefError(Exception):
    """Base exception for all Daily Brief errors."""


class ConfigurationError(DailyBriefError):
    """Required configuration is missing or invalid."""


class SourceFetchError(DailyBriefError):
    """A single feed source could not be fetched.

    Contained by the aggregator; never fatal on its own.
    """

    def __init__(self, feed_url: str, reason: str):
        super().__init__(f"Failed to fetch feed {feed_url}: {reason}")
        self.feed_url = feed_url
        self.reason = reason


class EmptyAggregateError(DailyBriefError):
    """No feed source yielded any headline."""


class UpstreamError(DailyBriefError):
    """The summarization call failed or returned an unusable response."""


class NormalizationError(DailyBriefError):
    """No bullet lines could be extracted from the model output."""


class PublishError(DailyBriefError):
    """The webhook rejected the message or could not be reached."""
