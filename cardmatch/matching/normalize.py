"""
Card number normalization.

Catalog numbers and printed numbers come in several shapes:

    "025/165"   -> number "25", total "165", full "25/165"
    "025"       -> number "25", full "25"
    "TG05/TG30" -> number "TG05", total "TG30" (letters: kept verbatim)
    "SV001"     -> number "SV001"

Only purely numeric tokens lose their leading zeros, so differently
padded prints of the same card compare equal.

Input with more than one slash ("1/2/3") is treated as having no total.
"""

import re

from cardmatch.models.card_number import NormalizedCardNumber

# Optional leading zeros, then ASCII digits; used with fullmatch
_PURE_NUMBER = re.compile(r"0*([0-9]+)")


def _strip_leading_zeros(token: str) -> str | None:
    """
    Strip leading zeros from a purely numeric token.

    Returns None when the token is not purely numeric.
    "000" keeps one digit and becomes "0".
    """
    match = _PURE_NUMBER.fullmatch(token)
    if match is None:
        return None
    return match.group(1)


def normalize_card_number(raw: str | None) -> NormalizedCardNumber:
    """
    Normalize a raw card number string. Never raises.

    Args:
        raw: Card number as printed, extracted or typed. None is treated as empty.

    Returns:
        NormalizedCardNumber with the trimmed input preserved in `original`
    """
    original = (raw or "").strip()

    if not original:
        return NormalizedCardNumber(number="", total=None, full="", original="", has_total=False)

    parts = original.split("/")
    if len(parts) == 2:
        number_part, total_part = parts
        stripped = _strip_leading_zeros(number_part)
        number = stripped if stripped is not None else number_part
        return NormalizedCardNumber(
            number=number,
            total=total_part,
            full=f"{number}/{total_part}",
            original=original,
            has_total=True,
        )

    stripped = _strip_leading_zeros(original)
    if stripped is not None:
        return NormalizedCardNumber(
            number=stripped, total=None, full=stripped, original=original, has_total=False
        )

    # Alphanumeric (or multi-slash) token, kept as-is
    return NormalizedCardNumber(
        number=original, total=None, full=original, original=original, has_total=False
    )
