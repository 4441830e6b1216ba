"""
Payload handed to the collection store once a card has been settled on.

Saving is owned by the persistence collaborator; this module only shapes
what the matcher gives it.
"""

from enum import Enum

from pydantic import BaseModel, Field

from cardmatch.models.query import CardLanguage


class CardCondition(str, Enum):
    MINT = "mint"
    NEAR_MINT = "near_mint"
    LIGHTLY_PLAYED = "lightly_played"
    MODERATELY_PLAYED = "moderately_played"
    HEAVILY_PLAYED = "heavily_played"


class InputMethod(str, Enum):
    VISION = "vision"
    MANUAL = "manual"


class SelectedCardHandoff(BaseModel):
    """A selected catalog card plus the user's collection details."""

    tcg_card_id: str
    pokemon_name: str
    card_number: str
    set_id: str
    set_name: str
    language: CardLanguage
    rarity: str | None = None
    image_url: str | None = None
    market_price: float | None = None
    accuracy_score: int = Field(..., ge=0)
    condition: CardCondition = CardCondition.NEAR_MINT
    quantity: int = Field(default=1, ge=1)
    notes: str | None = None
    input_method: InputMethod = InputMethod.VISION
