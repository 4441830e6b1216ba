"""
Search the catalog for a card from the command line.

Runs the same cascade the app uses and prints the ranked candidates with
their score breakdowns. Useful for checking how a scanned card would rank.

Usage:
    python -m cardmatch.jobs.search_card --name Pikachu --number 025/165 --set sv2a
"""

import argparse
import asyncio
import logging
import sys

from cardmatch.matching.results import paginate
from cardmatch.models.query import CardLanguage, QueryFields
from cardmatch.models.search import ScoredCardSearchResult
from cardmatch.services.catalog_client import PokemonTcgClient
from cardmatch.services.pricing import format_price, get_market_price
from cardmatch.services.search_cascade import SearchCascade

logger = logging.getLogger(__name__)


async def run_search(query: QueryFields) -> ScoredCardSearchResult:
    """Run the search cascade against the live catalog."""
    async with PokemonTcgClient() as catalog:
        return await SearchCascade(catalog).search(query)


def format_result(result: ScoredCardSearchResult, limit: int) -> str:
    """Render a search result as a plain-text table."""
    if not result.success:
        return f"Search failed ({result.error_kind}): {result.error}"

    if not result.scored_cards:
        return "No matching cards found."

    strategy = result.strategy.value if result.strategy else "-"
    lines = [f"{len(result.scored_cards)} of {result.total_count} card(s) via {strategy}"]
    for card in paginate(result.scored_cards, 1, limit).items:
        breakdown = " ".join(f"{k}={v}" for k, v in card.score_breakdown.as_dict().items())
        lines.append(
            f"{card.accuracy_score:>4}  {card.name} #{card.card.number} "
            f"[{card.set.id}] {format_price(get_market_price(card.card))}  ({breakdown})"
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Search the card catalog")
    parser.add_argument("--name", default="", help="Pokemon name")
    parser.add_argument("--number", default="", help="Card number, e.g. 025/165")
    parser.add_argument("--set", dest="set_id", default=None, help="Set id, e.g. sv2a")
    parser.add_argument(
        "--language",
        choices=[language.value for language in CardLanguage],
        default=CardLanguage.KO.value,
    )
    parser.add_argument("--limit", type=int, default=10, help="Max cards to print")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    query = QueryFields(
        pokemon_name=args.name,
        card_number=args.number,
        set_id=args.set_id,
        language=CardLanguage(args.language),
    )
    result = asyncio.run(run_search(query))
    print(format_result(result, args.limit))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
