"""
FastAPI dependencies for external collaborators.

Tests override these with app.dependency_overrides.
"""

from collections.abc import AsyncGenerator

from cardmatch.services.catalog_client import CatalogSearch, PokemonTcgClient
from cardmatch.services.vision import AnthropicVisionAnalyzer, VisionAnalyzer


async def get_catalog() -> AsyncGenerator[CatalogSearch, None]:
    """Provide a catalog client for the duration of a request."""
    async with PokemonTcgClient() as client:
        yield client


async def get_card_lookup() -> AsyncGenerator[PokemonTcgClient, None]:
    """Provide the concrete catalog client (single-card lookups)."""
    async with PokemonTcgClient() as client:
        yield client


def get_vision_analyzer() -> VisionAnalyzer:
    """
    Raises:
        KnownError: If no Anthropic API key is configured
    """
    return AnthropicVisionAnalyzer()
