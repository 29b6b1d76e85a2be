from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys (passed through to the content model client)
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # "openai" | "claude" | "auto"
    llm_provider: str = "auto"
    llm_timeout_seconds: float = 60.0

    # Database holding the fields / goldstandard / claims / history blobs
    database_url: str = "sqlite:///./catalog_enhancer.db"

    # Frontend
    frontend_url: str = "http://localhost:3000"

    log_level: str = "INFO"

    # Idle enhancement sessions are dropped after this many seconds
    session_ttl_seconds: int = 3600

    model_config = {"env_file": ".env"}


settings = Settings()
