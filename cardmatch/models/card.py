"""
Catalog card records.

Mirrors the subset of the Pokemon TCG API card schema the matcher reads.
Unknown fields are ignored so catalog additions never break parsing.

API reference: https://docs.pokemontcg.io/
"""

from pydantic import BaseModel, ConfigDict, Field


class CatalogModel(BaseModel):
    """Base for catalog records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class CardSet(CatalogModel):
    """The expansion a card was printed in."""

    id: str
    name: str
    series: str | None = None
    printed_total: int | None = Field(default=None, alias="printedTotal")
    total: int | None = None
    # ISO date as published by the catalog, e.g. "2023/06/16" or "2023-06-16"
    release_date: str | None = Field(default=None, alias="releaseDate")


class CardImages(CatalogModel):
    small: str | None = None
    large: str | None = None


class FinishPrice(CatalogModel):
    """TCGplayer price points for a single finish (normal, holofoil, ...)."""

    low: float | None = None
    mid: float | None = None
    high: float | None = None
    market: float | None = None
    direct_low: float | None = Field(default=None, alias="directLow")


class FinishPrices(CatalogModel):
    normal: FinishPrice | None = None
    holofoil: FinishPrice | None = None
    reverse_holofoil: FinishPrice | None = Field(default=None, alias="reverseHolofoil")
    first_edition_holofoil: FinishPrice | None = Field(
        default=None, alias="1stEditionHolofoil"
    )
    first_edition_normal: FinishPrice | None = Field(default=None, alias="1stEditionNormal")


class TcgPlayerInfo(CatalogModel):
    url: str | None = None
    updated_at: str | None = Field(default=None, alias="updatedAt")
    prices: FinishPrices | None = None


class CandidateCard(CatalogModel):
    """
    One card record returned by the catalog for a query.

    Opaque beyond the fields the scorer and presentation layer read.
    """

    id: str
    name: str
    number: str
    set: CardSet
    supertype: str | None = None
    rarity: str | None = None
    artist: str | None = None
    images: CardImages = Field(default_factory=CardImages)
    tcgplayer: TcgPlayerInfo | None = None
