from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DB_URL: str

    TALENT_API_KEY: str | None = None
    GITHUB_TOKEN: str | None = None
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    SYNC_SECRET: str | None = None

    PROFILES_CACHE_TTL_HOURS: int = 24
    FETCH_CONCURRENCY: int = 10
    HTTP_TIMEOUT: float = 20

    LOG_LEVEL: str = "INFO"

    # призовой фонд по умолчанию, MNT
    REWARDS_POOL_MNT: int = 10000
    CONTRACT_ADDRESS: str | None = None


def mask(secret: str | None) -> str:
    return f"{secret[:8]}..." if secret else "not set"


settings = Settings()
