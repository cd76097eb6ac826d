"""Clients package."""

from scholarcite.clients.base import BaseCitationFormatter, BaseSourceSearchClient
from scholarcite.clients.openai_formatter import URL_PLACEHOLDER, OpenAICitationFormatter
from scholarcite.clients.openai_search import OpenAISourceSearchClient

__all__ = [
    "BaseCitationFormatter",
    "BaseSourceSearchClient",
    "OpenAICitationFormatter",
    "OpenAISourceSearchClient",
    "URL_PLACEHOLDER",
]
