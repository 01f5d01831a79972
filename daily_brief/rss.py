"""RSS headline extraction and aggregation for the Daily Brief job."""

import re

import requests

from .errors import EmptyAggregateError, SourceFetchError
from .logging_config import create_execution_logger
from .models import HeadlineRecord

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

MAX_ITEMS_PER_FEED = 5
MAX_HEADLINES = 15

ITEM_RE = re.compile(r"<item(?:\s[^>]*)?>.*?</item>", re.IGNORECASE | re.DOTALL)
CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")

# Order matters: &amp; is unescaped after &lt;/&gt; so "&amp;lt;" becomes "&lt;"
ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#039;", "'"),
)


def extract_tag(fragment: str, tag_name: str) -> str:
    """Return the trimmed text of the first ``<tag_name>`` element in a fragment.

    Attributes on the opening tag are ignored and matching is case-insensitive.
    CDATA-wrapped content yields the CDATA payload. A missing or unterminated
    tag yields an empty string.
    """
    name = re.escape(tag_name)
    pattern = (
        rf"<{name}(?:\s[^>]*)?>\s*<!\[CDATA\[(.*?)\]\]>\s*</{name}>"
        rf"|<{name}(?:\s[^>]*)?>(.*?)</{name}>"
    )
    match = re.search(pattern, fragment, re.IGNORECASE | re.DOTALL)
    if not match:
        return ""
    return (match.group(1) or match.group(2) or "").strip()


def clean_text(text: str) -> str:
    """Flatten a markup fragment into a single line of plain text.

    Unwraps CDATA, strips tags, unescapes the five basic entities and collapses
    whitespace. Tags are stripped before entities are unescaped, so an
    entity-encoded tag such as ``&lt;b&gt;`` comes out as literal ``<b>``.
    """
    if not text:
        return ""

    text = CDATA_RE.sub(r"\1", text)
    text = TAG_RE.sub("", text)
    for entity, char in ENTITIES:
        text = text.replace(entity, char)
    return WHITESPACE_RE.sub(" ", text).strip()


def parse_feed_items(xml: str, max_items: int = MAX_ITEMS_PER_FEED) -> list[HeadlineRecord]:
    """Build headline records from the first ``max_items`` ``<item>`` blocks.

    Items whose cleaned title is empty are skipped. A document without any
    ``<item>`` block yields an empty list.
    """
    headlines = []
    for item_xml in ITEM_RE.findall(xml or "")[:max_items]:
        title = clean_text(extract_tag(item_xml, "title"))
        if not title:
            continue
        description = clean_text(extract_tag(item_xml, "description"))
        headlines.append(HeadlineRecord(title=title, description=description))
    return headlines


class FeedProcessor:
    """Fetches feed sources one by one and merges their headlines."""

    def __init__(
        self,
        timeout: int = 10,
        max_items_per_feed: int = MAX_ITEMS_PER_FEED,
        max_headlines: int = MAX_HEADLINES,
        execution_id: str | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            max_items_per_feed: Items considered from each feed document
            max_headlines: Cap on the merged headline list
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.max_items_per_feed = max_items_per_feed
        self.max_headlines = max_headlines
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": BROWSER_USER_AGENT})
        self.feeds_processed = 0
        self.feeds_failed = 0

        self.logger.info("FeedProcessor initialized", timeout=timeout)

    def fetch_feeds(self, feed_urls: list[str]) -> list[HeadlineRecord]:
        """Fetch every feed in order and return the merged, capped headlines.

        A failing source is logged and contributes nothing.

        Raises:
            EmptyAggregateError: If no source yielded any headline
        """
        self.logger.log_execution_start(feed_count=len(feed_urls))
        all_headlines = []

        for feed_url in feed_urls:
            try:
                headlines = self.parse_feed(feed_url)
            except SourceFetchError as e:
                self.feeds_failed += 1
                self.logger.error(str(e), feed_url=feed_url, error=e.reason)
                continue

            self.feeds_processed += 1
            all_headlines.extend(headlines)
            self.logger.log_feed_processing(feed_url, len(headlines))

        all_headlines = all_headlines[: self.max_headlines]
        self.logger.log_execution_end(
            success=bool(all_headlines),
            total_headlines=len(all_headlines),
            feeds_failed=self.feeds_failed,
        )

        if not all_headlines:
            raise EmptyAggregateError("No headlines fetched from any RSS feed")

        return all_headlines

    def parse_feed(self, feed_url: str) -> list[HeadlineRecord]:
        """Fetch a single feed and extract its headlines."""
        xml = self.fetch_feed(feed_url)
        headlines = parse_feed_items(xml, self.max_items_per_feed)
        self.logger.debug(
            "Parsed feed content", feed_url=feed_url, headline_count=len(headlines)
        )
        return headlines

    def fetch_feed(self, feed_url: str) -> str:
        """Download the raw feed document.

        Raises:
            SourceFetchError: On transport failure, timeout or non-success status
        """
        self.logger.info("Downloading feed content", feed_url=feed_url)
        try:
            response = self.session.get(feed_url, timeout=self.timeout)
        except requests.Timeout as e:
            raise SourceFetchError(feed_url, f"timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise SourceFetchError(feed_url, str(e)) from e

        if not response.ok:
            raise SourceFetchError(feed_url, f"HTTP {response.status_code}")

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.text
