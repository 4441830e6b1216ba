from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardMatch"
    debug: bool = False

    # Pokemon TCG API (catalog collaborator)
    tcg_api_base_url: str = "https://api.pokemontcg.io/v2"
    tcg_api_key: str = ""
    tcg_request_timeout: float = 15.0

    # Vision collaborator
    anthropic_api_key: str = ""
    vision_model: str = "claude-sonnet-4-20250514"

    # Catalog page size per cascade strategy; result page size for the UI grid
    search_page_size: int = 20
    result_page_size: int = 12

    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 10.0

    cache_stale_seconds: float = 300.0
    cache_evict_seconds: float = 1800.0


settings = Settings()


# =============================================================================
# SCORING WEIGHTS
# =============================================================================

NUMBER_EXACT_POINTS = 50
NUMBER_RAW_CONTAINS_POINTS = 30
NUMBER_PARTIAL_POINTS = 20

NAME_EXACT_POINTS = 30
NAME_CANDIDATE_CONTAINS_POINTS = 15
NAME_QUERY_CONTAINS_POINTS = 10

SET_EXACT_POINTS = 25
SET_PARTIAL_POINTS = 10

PRICE_BONUS_POINTS = 3

# Release within the last year / last three years
RECENT_RELEASE_POINTS = 2
SEMI_RECENT_RELEASE_POINTS = 1
