from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NormalizedCardNumber:
    """
    A card number parsed into a comparable form.

    Attributes:
        number: Number part; leading zeros stripped when purely numeric ("025" -> "25"),
            kept verbatim when it carries letters ("TG05")
        total: Set total after the slash ("165"), or None
        full: Canonical rendering, "number" or "number/total"
        original: Trimmed raw input
        has_total: Whether the input had a total part
    """

    number: str
    total: str | None
    full: str
    original: str
    has_total: bool

    def is_empty(self) -> bool:
        """True when there was no number to normalize."""
        return not self.number
