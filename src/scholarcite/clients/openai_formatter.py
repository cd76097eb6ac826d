"""OpenAI-based citation formatting.

The model never writes the source URL itself: it puts ``{{URL_PLACEHOLDER}}``
where the style wants a URL and the placeholder is replaced with the source's
own URL afterwards.
"""

from datetime import date
from typing import Callable, Optional

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, OpenAIError, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from scholarcite.clients.base import BaseCitationFormatter
from scholarcite.config import Settings
from scholarcite.exceptions import CitationFormatError, CollaboratorNotConfiguredError
from scholarcite.logging import get_logger
from scholarcite.models.source import CitationResult, Source
from scholarcite.references.markup import denormalize_et_al
from scholarcite.references.styles import CitationStyle, parse_style
from scholarcite.utils import (
    RateLimiter,
    create_openai_rate_limiter,
    format_access_date,
    parse_json_object,
)

logger = get_logger("clients.openai_formatter")

URL_PLACEHOLDER = "{{URL_PLACEHOLDER}}"

SYSTEM_PROMPT = "You are an expert in academic referencing. You answer with JSON only."

FORMAT_PROMPT = """Create a citation for the following academic source in {style} style.

Source Details:
Title: {title}
Author: {author} (Use exactly as provided: "{author}")
Year: {year}
Publication: {publication}
URL: {url}
DOI: {doi}
Access Date: {access_date}

FORMATTING RULES:
1. Return JSON with two fields: "inText" and "bibliography".
2. "inText": the in-text citation, e.g. "(Smith, 2023)".
   - Plain text only. No asterisks or markdown.
   - If "et al." is required, write it simply as "et al.".
3. "bibliography": the full reference list entry.
   - Use the FULL author information provided. Do not shorten "Smith, J. and Doe, B." to "Smith and Doe".
   - Surround text that should be italic with asterisks, e.g. *Journal Name*.
4. URLs:
   - Never write the actual URL in "bibliography".
   - If {style} needs a URL ("Available at: ...", "Retrieved from ..."), write {placeholder} exactly where the URL goes.
   - Harvard example: "Surname, I. (Year) 'Title', *Publication*. Available at: {placeholder} (Accessed: {access_date})."
   - APA example: "Surname, I. (Year). *Title*. Publication. Retrieved from {placeholder}"
   - If a DOI is given ("{doi}") and {style} prefers DOIs, use the DOI instead of the placeholder.

Return JSON:
{{"inText": "...", "bibliography": "..."}}"""

_RETRYABLE = (RateLimitError, APITimeoutError, APIConnectionError)


class OpenAICitationFormatter(BaseCitationFormatter):
    """Citation formatter backed by OpenAI chat completions in JSON mode.

    Example usage:
        formatter = OpenAICitationFormatter(settings)
        citation = await formatter.format(source, CitationStyle.APA)
        print(citation.in_text, citation.bibliography)
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[AsyncOpenAI] = None,
        rate_limiter: Optional[RateLimiter] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the formatter.

        Args:
            settings: Settings carrying the API key and model name
            client: Pre-built OpenAI client (built from settings if not given)
            rate_limiter: Rate limiter shared with the session's other OpenAI client
            today: Source of the access date written into citations
        """
        self.settings = settings
        self.model = settings.openai_model
        self._client = client
        self.rate_limiter = rate_limiter or create_openai_rate_limiter(settings)
        self.today = today

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self.settings.is_openai_configured

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.is_openai_configured:
                raise CollaboratorNotConfiguredError(
                    "OpenAI API key is missing. Set OPENAI_API_KEY to format citations."
                )
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.request_timeout,
            )
        return self._client

    def build_prompt(self, source: Source, style: CitationStyle) -> str:
        """Build the user prompt for one source."""
        return FORMAT_PROMPT.format(
            style=style.value,
            title=source.title,
            author=source.author,
            year=source.year,
            publication=source.publication,
            url=source.url,
            doi=source.doi or "N/A",
            access_date=format_access_date(self.today()),
            placeholder=URL_PLACEHOLDER,
        )

    async def format(self, source: Source, style: CitationStyle) -> CitationResult:
        """Format a source, substituting the real URL into the bibliography."""
        style = parse_style(style)
        prompt = self.build_prompt(source, style)

        try:
            content = await self._request(prompt)
        except CollaboratorNotConfiguredError:
            raise
        except OpenAIError as e:
            raise CitationFormatError(f"Citation formatting request failed: {e}") from e

        return self.parse_citation(content, source)

    @retry(
        retry=retry_if_exception_type(_RETRYABLE),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=2, max=30),
        reraise=True,
    )
    async def _request(self, prompt: str) -> str:
        client = self.client
        await self.rate_limiter.wait()

        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )
        return response.choices[0].message.content or ""

    @staticmethod
    def parse_citation(content: str, source: Source) -> CitationResult:
        """Validate the model's JSON answer and post-process it.

        Raises:
            CitationFormatError: If the answer is empty or lacks either field
        """
        if not content or not content.strip():
            raise CitationFormatError("Empty response from citation formatter")

        try:
            data = parse_json_object(content)
        except ValueError as e:
            raise CitationFormatError(f"Unparseable citation response: {e}") from e

        in_text = data.get("inText")
        bibliography = data.get("bibliography")
        if not isinstance(in_text, str) or not in_text.strip():
            raise CitationFormatError("Citation response has no in-text citation")
        if not isinstance(bibliography, str) or not bibliography.strip():
            raise CitationFormatError("Citation response has no bibliography entry")

        return CitationResult(
            in_text=denormalize_et_al(in_text.strip()),
            bibliography=bibliography.strip().replace(URL_PLACEHOLDER, source.url),
        )
