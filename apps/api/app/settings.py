import os
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # Environment and CORS
    environment: str = Field("dev", alias="ENVIRONMENT")  # dev|prod
    allow_origins: str = Field("http://localhost:5173", alias="ALLOW_ORIGINS")

    use_sqlite: bool = Field(default=True, alias="USE_SQLITE")
    disable_redis: bool = Field(default=True, alias="DISABLE_REDIS")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # --- Catalog (TMDB) ---
    tmdb_api_key: str = Field("", alias="TMDB_API_KEY")
    tmdb_base_url: str = Field("https://api.themoviedb.org/3", alias="TMDB_BASE_URL")
    default_language: str = Field("it", alias="DEFAULT_LANGUAGE")

    # --- Embed provider ---
    embed_base_url: str = Field("https://vixsrc.to", alias="EMBED_BASE_URL")
    embed_primary_color: str = Field("B20710", alias="EMBED_PRIMARY_COLOR")
    embed_secondary_color: str = Field("170000", alias="EMBED_SECONDARY_COLOR")

    # --- Watch state ---
    # Seconds of reported position between progress writes
    progress_write_interval: int = Field(10, alias="PROGRESS_WRITE_INTERVAL")
    cache_prefix: str = Field("watchstate", alias="CACHE_PREFIX")
    # Identity placeholder the player starts with before any user is cached
    default_user_id: int = Field(1, alias="DEFAULT_USER_ID")
    default_user_email: str = Field("default@soaggtv.com", alias="DEFAULT_USER_EMAIL")
    default_user_name: str = Field("Default User", alias="DEFAULT_USER_NAME")

    # --- Build info ---
    app_version: str = Field("0.1.0", alias="APP_VERSION")
    git_sha: str | None = Field(None, alias="GIT_SHA")

    def resolved_database_url(self) -> str:
        if self.use_sqlite:
            return (self.database_url or "sqlite:///./.local/watchstate.db")
        if self.database_url:
            return self.database_url
        user = os.getenv("POSTGRES_USER", "dev")
        password = os.getenv("POSTGRES_PASSWORD", "dev")
        host = os.getenv("POSTGRES_HOST", "localhost")
        port = os.getenv("POSTGRES_PORT", "5432")
        db = os.getenv("POSTGRES_DB", "watchstate")
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    def resolved_redis_url(self) -> str | None:
        if self.disable_redis:
            return None
        return self.redis_url or os.getenv("REDIS_URL")

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
