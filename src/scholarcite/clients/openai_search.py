"""OpenAI-based source search using the Responses API with web search.

The model is asked for real academic sources supporting a selected passage
and answers with JSON of the form ``{"suggested": [...], "related": [...]}``.
"""

from typing import Any, Optional

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, OpenAIError, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from scholarcite.clients.base import BaseSourceSearchClient
from scholarcite.config import Settings
from scholarcite.exceptions import CollaboratorNotConfiguredError, SourceSearchError
from scholarcite.logging import get_logger, log_warning
from scholarcite.models.source import SearchResults, Source
from scholarcite.utils import RateLimiter, create_openai_rate_limiter, parse_json_object

logger = get_logger("clients.openai_search")

SEARCH_INSTRUCTIONS = """You are a research librarian helping an author cite a research paper.
Use web search to find real, high-quality academic sources (journal articles, books,
official reports) that support, refute or elaborate on the SELECTED TEXT.

Use the DOCUMENT CONTEXT to disambiguate terms, understand the field of study and
the angle of the paper, and make your searches specific rather than generic.

URL rules:
1. Give the exact, full deep link to the specific resource.
2. Do not give a root domain unless it is the only option.
3. Do not give search engine redirect links.
4. Never invent or guess URLs.
5. Prefer direct links to PDFs or article landing pages.

Answer with JSON only:
{
  "suggested": [the 2 most relevant sources directly supporting the text],
  "related": [2 broader or alternative sources giving background]
}

Fields per source:
- title
- author (list ALL authors in "Surname, Initials" form, e.g. "Abdolahi, M. and Adelnia, A."; do not simplify)
- year
- publication
- snippet (very brief summary of relevance)
- url (the exact deep link)
- doi (only if explicitly found)"""

_RETRYABLE = (RateLimitError, APITimeoutError, APIConnectionError)


class OpenAISourceSearchClient(BaseSourceSearchClient):
    """Source search client backed by OpenAI web search.

    Example usage:
        client = OpenAISourceSearchClient(settings)
        results = await client.search(selected, document_context)
        for source in results.suggested:
            print(f"- {source.title} ({source.year})")
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[AsyncOpenAI] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """Initialize the search client.

        Args:
            settings: Settings carrying the API key and model names
            client: Pre-built OpenAI client (built from settings if not given)
            rate_limiter: Rate limiter shared with the session's other OpenAI client
        """
        self.settings = settings
        self.model = settings.openai_search_model
        self._client = client
        self.rate_limiter = rate_limiter or create_openai_rate_limiter(settings)

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self.settings.is_openai_configured

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.is_openai_configured:
                raise CollaboratorNotConfiguredError(
                    "OpenAI API key is missing. Set OPENAI_API_KEY to search for sources."
                )
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.request_timeout,
            )
        return self._client

    async def search(self, selected_text: str, document_context: str) -> SearchResults:
        """Search the web for sources supporting the selected text."""
        query = f'DOCUMENT CONTEXT:\n"{document_context}"\n\nSELECTED TEXT TO CITE:\n"{selected_text}"'

        try:
            content = await self._request(query)
        except CollaboratorNotConfiguredError:
            raise
        except OpenAIError as e:
            raise SourceSearchError(f"Source search request failed: {e}") from e

        return self.parse_results(content)

    @retry(
        retry=retry_if_exception_type(_RETRYABLE),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=2, max=30),
        reraise=True,
    )
    async def _request(self, query: str) -> str:
        client = self.client
        await self.rate_limiter.wait()

        response = await client.responses.create(
            model=self.model,
            input=query,
            tools=[{"type": "web_search"}],
            instructions=SEARCH_INSTRUCTIONS,
        )
        return self._output_text(response)

    @staticmethod
    def _output_text(response: Any) -> str:
        """Collect the text blocks of a Responses API answer."""
        text = getattr(response, "output_text", None)
        if isinstance(text, str) and text:
            return text

        parts = []
        for output in getattr(response, "output", None) or []:
            if output.type == "message":
                for content_block in output.content:
                    if content_block.type == "output_text":
                        parts.append(content_block.text)
        return "".join(parts)

    @staticmethod
    def parse_results(content: str) -> SearchResults:
        """Turn the model's JSON answer into SearchResults.

        Empty or malformed answers give empty results.
        """
        if not content or not content.strip():
            log_warning(logger, "Source search", "Empty response")
            return SearchResults.empty()

        try:
            data = parse_json_object(content)
        except ValueError as e:
            log_warning(logger, "Source search", f"Unparseable response: {e}")
            return SearchResults.empty()

        def sources(key: str) -> tuple[Source, ...]:
            items = data.get(key) or []
            if not isinstance(items, list):
                return ()
            return tuple(Source.from_dict(item) for item in items if isinstance(item, dict))

        return SearchResults(suggested=sources("suggested"), related=sources("related"))
