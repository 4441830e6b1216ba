"""
Pokemon TCG API catalog client.

Translates CatalogQuery field combinations into the API's Lucene-style
query syntax and parses results into CandidateCard records.

API reference: https://docs.pokemontcg.io/
"""

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from cardmatch.config import settings
from cardmatch.models.card import CandidateCard
from cardmatch.models.failure import NetworkError, ParseError
from cardmatch.models.search import CatalogPage, CatalogQuery

logger = logging.getLogger(__name__)

USER_AGENT = "CardMatch/1.0"

# Newest sets first
DEFAULT_ORDER_BY = "-set.releaseDate"


class CatalogSearch(Protocol):
    """The catalog collaborator consumed by the search cascade."""

    async def search(self, params: CatalogQuery) -> CatalogPage:
        """
        Raises:
            NetworkError: If the catalog is unreachable or answers with an error
            ParseError: If the response is malformed
        """
        ...


def build_search_query(params: CatalogQuery) -> str:
    """
    Build a Lucene query string for the cards endpoint.

    Example:
        CatalogQuery(name="Pikachu", number="025/165", set_id="SV2a")
        -> 'name:"Pikachu*" number:25 set.id:sv2a'
    """
    parts: list[str] = []

    if params.name:
        # Wildcard for partial matches ("Pikachu" -> "Pikachu ex")
        clean_name = params.name.strip().replace('"', "").replace("'", "")
        parts.append(f'name:"{clean_name}*"')

    if params.number:
        clean_number = params.number.strip().split("/")[0].lstrip("0")
        # "000" strips to nothing; the catalog still knows card 0
        parts.append(f"number:{clean_number or '0'}")

    if params.set_id:
        parts.append(f"set.id:{params.set_id.strip().lower()}")

    return " ".join(parts)


def parse_card(payload: Any) -> CandidateCard:
    """
    Parse one catalog card record.

    Raises:
        ParseError: If required fields are missing or mistyped
    """
    try:
        return CandidateCard.model_validate(payload)
    except ValidationError as e:
        raise ParseError(detail=f"Malformed card record: {e.error_count()} error(s)") from e


def parse_search_response(payload: Any) -> CatalogPage:
    """
    Parse a cards search response body.

    Raises:
        ParseError: If the body is not a search response
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise ParseError(detail="Search response has no 'data' list")

    cards = tuple(parse_card(item) for item in payload["data"])

    total_count = payload.get("totalCount", len(cards))
    if not isinstance(total_count, int):
        raise ParseError(detail="Search response 'totalCount' is not an integer")

    return CatalogPage(cards=cards, total_count=total_count)


class PokemonTcgClient:
    """
    Async client for the Pokemon TCG API.

    Usage:
        async with PokemonTcgClient() as catalog:
            page = await catalog.search(CatalogQuery(name="Pikachu"))
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        page_size: int | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.tcg_api_base_url).rstrip("/")
        self.api_key = settings.tcg_api_key if api_key is None else api_key
        self.page_size = page_size or settings.search_page_size
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.tcg_request_timeout,
        )

    async def __aenter__(self) -> "PokemonTcgClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        # Optional; raises the rate limit
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        return headers

    async def _get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.warning("Catalog request timed out: %s", url)
            raise NetworkError(detail=f"Timed out: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            logger.warning("Catalog request failed: %s (%s)", url, type(e).__name__)
            raise NetworkError(detail=f"Request failed: {type(e).__name__}") from e

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(detail="Catalog response is not valid JSON") from e

    async def search(self, params: CatalogQuery, page: int = 1) -> CatalogPage:
        """
        Search cards by name, number and/or set.

        Raises:
            ValueError: If the query has no fields
            NetworkError: On transport failure or error status
            ParseError: On malformed response
        """
        query = build_search_query(params)
        if not query:
            raise ValueError("CatalogQuery has no search fields")

        response = await self._get(
            "/cards",
            params={
                "q": query,
                "pageSize": str(self.page_size),
                "page": str(page),
                "orderBy": DEFAULT_ORDER_BY,
            },
        )

        if response.is_error:
            logger.error("Catalog search error: status=%d q=%s", response.status_code, query)
            raise NetworkError(detail=f"API error: {response.status_code}")

        result = parse_search_response(self._json(response))
        logger.debug("Catalog search q=%s returned %d card(s)", query, len(result.cards))
        return result

    async def get_card(self, card_id: str) -> CandidateCard | None:
        """
        Fetch a single card by catalog id.

        Returns:
            The card, or None if the catalog does not know the id

        Raises:
            NetworkError: On transport failure or error status other than 404
            ParseError: On malformed response
        """
        response = await self._get(f"/cards/{card_id}")

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            logger.error("Catalog get_card error: status=%d id=%s", response.status_code, card_id)
            raise NetworkError(detail=f"API error: {response.status_code}")

        payload = self._json(response)
        if not isinstance(payload, dict) or "data" not in payload:
            raise ParseError(detail="Card response has no 'data' object")

        return parse_card(payload["data"])
