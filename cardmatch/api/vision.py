"""
Vision analysis endpoint.

Identifies a photographed card and returns the extracted query fields,
ready to be fed to /cards/search.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from cardmatch.api.dependencies import get_vision_analyzer
from cardmatch.models.failure import ApiResponse, create_success
from cardmatch.services.vision import VisionAnalyzer, is_valid_card_number

router = APIRouter(prefix="/vision", tags=["vision"])


class VisionAnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: HttpUrl = Field(..., alias="imageUrl")


class VisionAnalyzeResponse(BaseModel):
    pokemon_name: str
    card_number: str
    set_id: str | None = None
    language: str
    card_number_plausible: bool


@router.post("/analyze", response_model=ApiResponse[VisionAnalyzeResponse])
async def analyze(
    request: VisionAnalyzeRequest,
    analyzer: Annotated[VisionAnalyzer, Depends(get_vision_analyzer)],
) -> ApiResponse[Any]:
    """Extract pokemon name, card number, set id and language from a card photo."""
    fields = await analyzer.analyze(str(request.image_url))

    return create_success(
        VisionAnalyzeResponse(
            pokemon_name=fields.pokemon_name,
            card_number=fields.card_number,
            set_id=fields.set_id,
            language=fields.language.value,
            card_number_plausible=is_valid_card_number(fields.card_number),
        )
    )
