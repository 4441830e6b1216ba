"""
Market price resolution for catalog cards.

The catalog reports TCGplayer prices per finish. A card's market price is
the first available one in finish priority order.
"""

from cardmatch.models.card import CandidateCard, FinishPrice

# holofoil > reverse holofoil > normal
FINISH_PRIORITY = ("holofoil", "reverse_holofoil", "normal")

PRICE_NOT_AVAILABLE = "N/A"


def get_market_price(card: CandidateCard) -> float | None:
    """
    Resolve the market price of a card.

    Returns:
        The first non-null market price in finish priority order,
        or None (not zero) when no finish has one.
    """
    if card.tcgplayer is None or card.tcgplayer.prices is None:
        return None

    prices = card.tcgplayer.prices
    for finish in FINISH_PRIORITY:
        finish_price: FinishPrice | None = getattr(prices, finish)
        if finish_price is not None and finish_price.market is not None:
            return finish_price.market

    return None


def format_price(price: float | None) -> str:
    """Format a price for display: "$12.50", or "N/A" when absent."""
    if price is None:
        return PRICE_NOT_AVAILABLE
    return f"${price:.2f}"
