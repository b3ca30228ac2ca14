from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    server_host: str = "0.0.0.0"
    server_port: int = 8080
    # Optional full database URL override (useful for tests)
    database_url: str = ""
    db_host: str = "db"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "featuregate"
    # Database connection pool settings (ignored for sqlite)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_recycle: int = 3600  # Recycle connections after 1 hour
    db_pool_pre_ping: bool = True
    # Flag snapshot freshness window (seconds)
    flag_cache_ttl_seconds: float = 300.0
    # Upper bound on a single repository read during refresh (seconds)
    flag_refresh_timeout_seconds: float = 5.0
    # Background refresh interval (seconds); 0 disables the refresher task
    flag_background_refresh_seconds: float = 0.0
    # Admit callers with no userId/sessionId to partial rollouts
    flag_anonymous_rollout_admit: bool = True


# module-level settings instance for convenience across the app
settings = Settings()
