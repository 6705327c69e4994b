"""Environment-based configuration for the health-card extraction service."""

from pydantic_settings import BaseSettings

from lexicon import DEFAULT_LEXICON, Lexicon


class Settings(BaseSettings):
    """Service settings, loaded from environment variables."""

    # Server
    PORT: int = 8080

    # OCR service connection (empty = OCR unavailable, local dev default)
    OCR_SERVICE_URL: str = ""

    # OCR service timeouts and retry
    OCR_TIMEOUT_SECONDS: int = 60
    OCR_CONNECT_TIMEOUT: int = 10
    OCR_RETRY_ATTEMPTS: int = 3
    OCR_RETRY_DELAY: float = 1.0
    OCR_RETRY_BACKOFF: float = 2.0

    # ConvertAPI (PDF -> image for scanned PDFs without a text layer)
    CONVERT_API_URL: str = "https://v2.convertapi.com"
    CONVERT_API_SECRET: str = ""
    CONVERT_API_TIMEOUT: int = 60

    # Extra classifier tokens, JSON lists, e.g. EXTRA_CLINIC_TOKENS='["KLINIK"]'
    EXTRA_HEADER_TOKENS: list[str] = []
    EXTRA_CLINIC_TOKENS: list[str] = []
    EXTRA_STREET_TOKENS: list[str] = []

    model_config = {"env_prefix": "", "case_sensitive": True}


def build_lexicon(config: Settings) -> Lexicon:
    """Default lexicon extended with tokens from configuration."""
    return DEFAULT_LEXICON.extended(
        header_tokens=config.EXTRA_HEADER_TOKENS,
        clinic_tokens=config.EXTRA_CLINIC_TOKENS,
        street_tokens=config.EXTRA_STREET_TOKENS,
    )


settings = Settings()
