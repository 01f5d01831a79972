"""Headline summarization through Gemini or Amazon Bedrock."""

import json
import re
import time

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from .config import SummarizerConfig
from .errors import NormalizationError, UpstreamError
from .logging_config import create_execution_logger
from .models import BULLET_COUNT, PLACEHOLDER_BULLET, BulletSummary, HeadlineRecord

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

PROMPT_TEMPLATE = """You are a news summarizer. Based on the following news headlines and descriptions, generate exactly 5 concise bullet points that summarize today's key news. Use neutral, factual tone. No emojis. Each bullet point should be one clear sentence.

Headlines:
{headlines}

Provide only the 5 bullet points, one per line, starting with a dash (-). Output nothing else."""

SYMBOL_MARKER_RE = re.compile(r"^[-*•]\s*")
NUMBER_MARKER_RE = re.compile(r"^\d+\.\s*")


def build_prompt(headlines: list[HeadlineRecord]) -> str:
    """Render the headlines into the summarization prompt."""
    entries = []
    for index, headline in enumerate(headlines, start=1):
        entry = f"{index}. {headline.title}"
        if headline.description:
            entry += f"\n{headline.description}"
        entries.append(entry)
    return PROMPT_TEMPLATE.format(headlines="\n\n".join(entries))


def _strip_marker(line: str) -> str:
    """Remove a single leading bullet glyph or ``N.`` ordinal."""
    if SYMBOL_MARKER_RE.match(line):
        return SYMBOL_MARKER_RE.sub("", line, count=1)
    if NUMBER_MARKER_RE.match(line):
        return NUMBER_MARKER_RE.sub("", line, count=1)
    return line


def extract_bullets(raw_text: str) -> BulletSummary:
    """Coerce free-form model output into exactly five bullet statements.

    Blank lines are ignored and collection stops after the fifth usable line.
    Fewer than five lines are padded with a placeholder.

    Raises:
        NormalizationError: If no usable line could be extracted
    """
    bullets = []
    for line in (raw_text or "").split("\n"):
        line = line.strip()
        if not line:
            continue
        cleaned = _strip_marker(line)
        if cleaned:
            bullets.append(cleaned)
        if len(bullets) == BULLET_COUNT:
            break

    if not bullets:
        raise NormalizationError("no bullets extracted")

    bullets.extend([PLACEHOLDER_BULLET] * (BULLET_COUNT - len(bullets)))
    return BulletSummary(bullets=tuple(bullets))


def normalize_bullets(raw_text: str) -> str:
    """Return the five dash-prefixed bullet lines for a raw model response."""
    return extract_bullets(raw_text).render()


class Summarizer:
    """Condenses headlines into a five-bullet brief with a language model."""

    def __init__(self, config: SummarizerConfig, execution_id: str | None = None):
        """Initialize the summarizer for the configured provider."""
        self.config = config
        self.logger = create_execution_logger("summarizer", execution_id)
        self.session = requests.Session()
        self.bedrock_client = None
        if config.provider == "bedrock":
            self.bedrock_client = boto3.client(
                "bedrock-runtime", region_name=config.region
            )
            self.logger.info("Initialized Bedrock client", region=config.region)

    def summarize(self, headlines: list[HeadlineRecord]) -> str:
        """Generate the normalized bullet block for a batch of headlines."""
        self.logger.info(
            "Starting summarization",
            headline_count=len(headlines),
            provider=self.config.provider,
            model=self.config.model_id,
        )
        prompt = build_prompt(headlines)
        raw_text = self.generate(prompt)
        bullet_block = normalize_bullets(raw_text)
        self.logger.info("Summary normalized", response_length=len(raw_text))
        return bullet_block

    def generate(self, prompt: str) -> str:
        """Send the prompt to the configured provider and return its raw text.

        Raises:
            UpstreamError: If the call fails or the response holds no text
        """
        start_time = time.time()
        if self.config.provider == "bedrock":
            text = self._bedrock_generate(prompt)
        else:
            text = self._gemini_generate(prompt)
        self.logger.info(
            "Model response received",
            provider=self.config.provider,
            response_time_ms=int((time.time() - start_time) * 1000),
        )
        return text

    def _gemini_generate(self, prompt: str) -> str:
        """Call the Gemini generateContent REST endpoint."""
        url = GEMINI_URL.format(model=self.config.model_id)
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
            },
        }

        self.logger.info("Calling Gemini API", model_id=self.config.model_id)
        try:
            response = self.session.post(
                url,
                headers={"x-goog-api-key": self.config.api_key},
                json=payload,
                timeout=self.config.timeout,
            )
        except requests.Timeout as e:
            raise UpstreamError(
                f"Gemini API timed out after {self.config.timeout}s"
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(
                f"Gemini API request failed: {type(e).__name__}"
            ) from e

        if not response.ok:
            raise UpstreamError(f"Gemini API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Invalid Gemini API response structure") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0].get("text")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise UpstreamError("Invalid Gemini API response structure") from e

        if not isinstance(text, str) or not text.strip():
            raise UpstreamError("Gemini returned empty response")

        return text

    def _bedrock_generate(self, prompt: str) -> str:
        """Invoke a Bedrock model (Nova/Mistral messages format or Llama prompt format)."""
        is_llama = "llama" in self.config.model_id.lower()
        if is_llama:
            request_body = {
                "prompt": prompt,
                "max_gen_len": self.config.max_tokens,
                "temperature": self.config.temperature,
            }
        else:
            request_body = {
                "messages": [{"role": "user", "content": [{"text": prompt}]}],
                "inferenceConfig": {
                    "maxTokens": self.config.max_tokens,
                    "temperature": self.config.temperature,
                },
            }

        self.logger.info("Calling Bedrock API", model_id=self.config.model_id)
        try:
            response = self.bedrock_client.invoke_model(
                modelId=self.config.model_id,
                body=json.dumps(request_body),
                contentType="application/json",
                accept="application/json",
            )
            response_body = json.loads(response["body"].read())
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise UpstreamError(f"Bedrock API error: {error_code}") from e
        except BotoCoreError as e:
            raise UpstreamError(f"Bedrock API request failed: {e}") from e
        except (KeyError, ValueError) as e:
            raise UpstreamError("Invalid Bedrock API response structure") from e

        try:
            if is_llama:
                text = response_body["generation"]
            else:
                text = response_body["output"]["message"]["content"][0].get("text")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise UpstreamError("Invalid Bedrock API response structure") from e

        if not isinstance(text, str) or not text.strip():
            raise UpstreamError("Bedrock returned empty response")

        return text
