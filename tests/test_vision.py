"""Tests for the vision collaborator adapter."""

from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest
import respx
from anthropic.types import TextBlock

from cardmatch.models.failure import FailureKind, KnownError, NetworkError, ParseError
from cardmatch.models.query import CardLanguage
from cardmatch.services.vision import (
    AnthropicVisionAnalyzer,
    is_valid_card_number,
    parse_vision_response,
    safe_parse_vision_json,
    strip_code_fences,
)

IMAGE_URL = "https://images.example.com/scan.jpg"

VALID_REPLY = (
    '{"pokemon_name": "Pikachu", "card_number": "025/165", "set_id": "SV2a", "language": "ja"}'
)


class TestStripCodeFences:
    def test_json_fence(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self) -> None:
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self) -> None:
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestSafeParseVisionJson:
    def test_plain_json(self) -> None:
        assert safe_parse_vision_json('{"a": 1}') == {"a": 1}

    def test_trailing_comma(self) -> None:
        assert safe_parse_vision_json('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}

    def test_surrounding_prose(self) -> None:
        reply = 'Here is the card:\n{"a": 1}\nHope that helps.'

        assert safe_parse_vision_json(reply) == {"a": 1}

    def test_unparseable(self) -> None:
        with pytest.raises(ParseError):
            safe_parse_vision_json("I could not read this card.")


class TestParseVisionResponse:
    def test_valid_reply(self) -> None:
        fields = parse_vision_response(f"```json\n{VALID_REPLY}\n```")

        assert fields.pokemon_name == "Pikachu"
        assert fields.card_number == "025/165"
        assert fields.set_id == "SV2a"
        assert fields.language is CardLanguage.JA

    def test_null_set_id(self) -> None:
        fields = parse_vision_response(
            '{"pokemon_name": "피카츄", "card_number": "025/165", '
            '"set_id": null, "language": "ko"}'
        )

        assert fields.set_id is None
        assert fields.language is CardLanguage.KO

    @pytest.mark.parametrize(
        "reply",
        [
            '{"pokemon_name": "", "card_number": "025/165", "language": "en"}',
            '{"pokemon_name": "Pikachu", "language": "en"}',
            '{"pokemon_name": "Pikachu", "card_number": "025/165", "language": "fr"}',
            "[1, 2, 3]",
        ],
    )
    def test_invalid_shape(self, reply: str) -> None:
        with pytest.raises(ParseError):
            parse_vision_response(reply)


class TestIsValidCardNumber:
    @pytest.mark.parametrize("number", ["025/165", "25", "SV2a-025", " 1/99 "])
    def test_plausible(self, number: str) -> None:
        assert is_valid_card_number(number)

    @pytest.mark.parametrize("number", [None, "", "unknown", "1234/5", "TG05/TG30"])
    def test_implausible(self, number: str | None) -> None:
        assert not is_valid_card_number(number)


def _anthropic_client(*texts: str) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=MagicMock(content=[TextBlock(type="text", text=text) for text in texts])
    )
    return client


class TestAnthropicVisionAnalyzer:
    def test_requires_api_key(self) -> None:
        with pytest.raises(KnownError) as exc_info:
            AnthropicVisionAnalyzer(api_key="")

        assert exc_info.value.kind is FailureKind.SERVICE_UNAVAILABLE
        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_analyze(self) -> None:
        respx.get(IMAGE_URL).mock(
            return_value=httpx.Response(
                200, content=b"\xff\xd8\xff", headers={"content-type": "image/jpeg"}
            )
        )
        client = _anthropic_client(VALID_REPLY)
        analyzer = AnthropicVisionAnalyzer(client=client, model="test-model")

        fields = await analyzer.analyze(IMAGE_URL)

        assert fields.pokemon_name == "Pikachu"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        image = kwargs["messages"][0]["content"][0]
        assert image["source"]["media_type"] == "image/jpeg"
        assert image["source"]["data"] == "/9j/"

    @respx.mock
    async def test_joins_text_blocks(self) -> None:
        respx.get(IMAGE_URL).mock(return_value=httpx.Response(200, content=b"img"))
        half = len(VALID_REPLY) // 2
        analyzer = AnthropicVisionAnalyzer(
            client=_anthropic_client(VALID_REPLY[:half], VALID_REPLY[half:])
        )

        fields = await analyzer.analyze(IMAGE_URL)

        assert fields.card_number == "025/165"

    @respx.mock
    async def test_image_fetch_failure(self) -> None:
        respx.get(IMAGE_URL).mock(return_value=httpx.Response(404))
        client = _anthropic_client(VALID_REPLY)
        analyzer = AnthropicVisionAnalyzer(client=client)

        with pytest.raises(NetworkError):
            await analyzer.analyze(IMAGE_URL)

        client.messages.create.assert_not_called()

    @respx.mock
    async def test_api_error_is_network_error(self) -> None:
        respx.get(IMAGE_URL).mock(return_value=httpx.Response(200, content=b"img"))
        client = MagicMock()
        client.messages.create = AsyncMock(
            side_effect=anthropic.APIConnectionError(
                request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
            )
        )
        analyzer = AnthropicVisionAnalyzer(client=client)

        with pytest.raises(NetworkError):
            await analyzer.analyze(IMAGE_URL)

    @respx.mock
    async def test_no_text_is_parse_error(self) -> None:
        respx.get(IMAGE_URL).mock(return_value=httpx.Response(200, content=b"img"))
        analyzer = AnthropicVisionAnalyzer(client=_anthropic_client())

        with pytest.raises(ParseError):
            await analyzer.analyze(IMAGE_URL)

    @respx.mock
    async def test_malformed_reply_is_parse_error(self) -> None:
        respx.get(IMAGE_URL).mock(return_value=httpx.Response(200, content=b"img"))
        analyzer = AnthropicVisionAnalyzer(client=_anthropic_client("Sorry, too blurry."))

        with pytest.raises(ParseError):
            await analyzer.analyze(IMAGE_URL)
