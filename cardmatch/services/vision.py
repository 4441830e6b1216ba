"""
Vision collaborator adapter.

Sends a card photo to Claude and turns the reply into QueryFields. The
model is treated as an opaque, possibly wrong oracle: only the shape of
its answer is validated, never whether it identified the right card.
"""

import base64
import json
import logging
import re
from typing import Any, Literal, Protocol

import anthropic
import httpx
from anthropic.types import MessageParam, TextBlock
from pydantic import BaseModel, Field, ValidationError

from cardmatch.config import settings
from cardmatch.models.failure import FailureKind, KnownError, NetworkError, ParseError
from cardmatch.models.query import CardLanguage, QueryFields

logger = logging.getLogger(__name__)

VISION_PROMPT = """You are a Pokemon card analyzer.
Analyze this Pokemon card image and extract the following information.

IMPORTANT RULES:
1. Return ONLY valid JSON, no other text
2. For card_number, look at the BOTTOM of the card for numbers like "025/165" or "SV2a 025/165"
3. The card_number format should be exactly as shown on the card (e.g., "025/165")
4. For set_id, look for set symbols or codes (e.g., "SV2a", "sv4")
5. Detect the language from the card text (en=English, ja=Japanese, ko=Korean)

Required JSON format:
{
  "pokemon_name": "string (Pokemon name as shown on card)",
  "card_number": "string (e.g., '025/165')",
  "set_id": "string or null (set code if visible)",
  "language": "en" | "ja" | "ko"
}

Analyze the card and return ONLY the JSON object, nothing else."""

# Printed number shapes: "025/165", "SV2a-025", "025"
CARD_NUMBER_PATTERNS = (
    re.compile(r"^\d{1,3}/\d{1,3}$"),
    re.compile(r"^[A-Za-z0-9]+-\d{1,3}$"),
    re.compile(r"^\d{1,3}$"),
)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class VisionResponse(BaseModel):
    """Shape the vision model must answer with."""

    pokemon_name: str = Field(..., min_length=1)
    card_number: str = Field(..., min_length=1)
    set_id: str | None = None
    language: Literal["ko", "ja", "en"]

    def to_query_fields(self) -> QueryFields:
        return QueryFields(
            pokemon_name=self.pokemon_name,
            card_number=self.card_number,
            set_id=self.set_id or None,
            language=CardLanguage(self.language),
        )


class VisionAnalyzer(Protocol):
    async def analyze(self, image_url: str) -> QueryFields: ...


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence."""
    result = content.strip()

    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]

    if result.endswith("```"):
        result = result[:-3]

    return result.strip()


def safe_parse_vision_json(content: str) -> Any:
    """
    Parse JSON from a model reply, tolerating common formatting slips.

    Tries, in order: direct parse, parse after removing trailing commas,
    parse of the first {...} block.

    Raises:
        ParseError: If no attempt yields valid JSON
    """
    text = strip_code_fences(content)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    text = _TRAILING_COMMA.sub(r"\1", text)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = _JSON_OBJECT.search(text)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass

    raise ParseError(detail="Failed to parse JSON response")


def parse_vision_response(content: str) -> QueryFields:
    """
    Validate a model reply and convert it to QueryFields.

    Raises:
        ParseError: If the reply is not JSON or does not match VisionResponse
    """
    payload = safe_parse_vision_json(content)
    try:
        return VisionResponse.model_validate(payload).to_query_fields()
    except ValidationError as e:
        detail = f"Vision response failed validation: {e.error_count()} error(s)"
        raise ParseError(detail=detail) from e


def is_valid_card_number(card_number: str | None) -> bool:
    """Loose plausibility check for an extracted card number."""
    if not card_number:
        return False
    value = card_number.strip()
    return any(pattern.match(value) for pattern in CARD_NUMBER_PATTERNS)


class AnthropicVisionAnalyzer:
    """
    Vision collaborator backed by Claude.

    The image is downloaded and sent inline as base64, so the image URL
    only needs to be reachable from this service.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: anthropic.AsyncAnthropic | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        key = settings.anthropic_api_key if api_key is None else api_key
        if client is None and not key:
            raise KnownError(
                kind=FailureKind.SERVICE_UNAVAILABLE,
                message="Card recognition is not configured.",
                detail="Anthropic API key not configured",
                status_code=503,
            )
        self.model = model or settings.vision_model
        self._client = client or anthropic.AsyncAnthropic(api_key=key)
        self._http = http_client

    async def _fetch_image(self, image_url: str) -> tuple[str, str]:
        """Download an image; returns (media_type, base64 data)."""
        try:
            if self._http is not None:
                response = await self._http.get(image_url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=settings.tcg_request_timeout) as client:
                    response = await client.get(image_url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise NetworkError(detail=f"Failed to fetch image: {type(e).__name__}") from e

        if response.is_error:
            raise NetworkError(detail=f"Failed to fetch image: {response.status_code}")

        media_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        return media_type, base64.b64encode(response.content).decode("ascii")

    async def analyze(self, image_url: str) -> QueryFields:
        """
        Identify the card in an image.

        Raises:
            NetworkError: If the image or the model cannot be reached
            ParseError: If the model's reply is malformed
        """
        media_type, data = await self._fetch_image(image_url)

        messages: list[MessageParam] = [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": media_type, "data": data},
                    },
                    {"type": "text", "text": VISION_PROMPT},
                ],
            }
        ]

        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=500,
                messages=messages,
            )
        except anthropic.APIError as e:
            logger.warning("VISION_CALL_FAILED", extra={"error_type": type(e).__name__})
            raise NetworkError(detail=f"Vision API error: {type(e).__name__}") from e

        text = "".join(block.text for block in response.content if isinstance(block, TextBlock))
        if not text:
            raise ParseError(detail="No text in vision response")

        fields = parse_vision_response(text)
        logger.info(
            "VISION_ANALYZED",
            extra={
                "language": fields.language.value,
                "card_number_plausible": is_valid_card_number(fields.card_number),
            },
        )
        return fields
