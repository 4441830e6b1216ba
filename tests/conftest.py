from collections.abc import Callable
from typing import Any

import pytest

from cardmatch.models.card import CandidateCard

CardFactory = Callable[..., CandidateCard]


def card_payload(
    card_id: str = "sv2a-25",
    name: str = "Pikachu",
    number: str = "25",
    set_id: str = "sv2a",
    set_name: str = "Pokemon Card 151",
    release_date: str | None = "2023/06/16",
    rarity: str | None = "Common",
    market: float | None = None,
) -> dict[str, Any]:
    """Catalog JSON for one card, in the Pokemon TCG API wire format."""
    payload: dict[str, Any] = {
        "id": card_id,
        "name": name,
        "supertype": "Pokémon",
        "number": number,
        "set": {
            "id": set_id,
            "name": set_name,
            "series": "Scarlet & Violet",
            "printedTotal": 165,
            "total": 207,
        },
        "images": {
            "small": f"https://images.pokemontcg.io/{set_id}/{number}.png",
            "large": f"https://images.pokemontcg.io/{set_id}/{number}_hires.png",
        },
    }
    if release_date is not None:
        payload["set"]["releaseDate"] = release_date
    if rarity is not None:
        payload["rarity"] = rarity
    if market is not None:
        payload["tcgplayer"] = {
            "url": f"https://prices.pokemontcg.io/tcgplayer/{card_id}",
            "updatedAt": "2024/01/01",
            "prices": {"normal": {"low": market / 2, "market": market}},
        }
    return payload


@pytest.fixture
def make_card() -> CardFactory:
    """Factory for CandidateCard records built from catalog JSON."""

    def _make(**kwargs: Any) -> CandidateCard:
        return CandidateCard.model_validate(card_payload(**kwargs))

    return _make


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Factory for raw catalog card JSON."""
    return card_payload
