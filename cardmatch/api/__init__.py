from cardmatch.api.cards import router as cards_router
from cardmatch.api.health import router as health_router
from cardmatch.api.vision import router as vision_router

__all__ = [
    "cards_router",
    "health_router",
    "vision_router",
]
