from dataclasses import dataclass
from enum import Enum


class CardLanguage(str, Enum):
    """Card print languages the scanner recognises."""

    KO = "ko"
    JA = "ja"
    EN = "en"


@dataclass(frozen=True, slots=True)
class QueryFields:
    """
    The identification signal to match catalog entries against.

    Produced by the vision collaborator or by a manual edit. The matching
    engine compares these fields but never mutates them.
    """

    pokemon_name: str = ""
    card_number: str = ""
    set_id: str | None = None
    language: CardLanguage = CardLanguage.KO

    def has_search_fields(self) -> bool:
        """True when at least a name or a number is present."""
        return bool(self.pokemon_name.strip() or self.card_number.strip())

    def cache_key(self) -> tuple[str, str, str, str]:
        """Exact field tuple used for result caching."""
        return (
            self.pokemon_name,
            self.card_number,
            self.set_id or "",
            self.language.value,
        )
