from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Compendium Indexer API"
    DEBUG: bool = True

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "compendium"
    POSTGRES_PASSWORD: str = "compendium_secret"
    POSTGRES_DB: str = "compendium"

    # Full URL override (e.g. sqlite+aiosqlite:// for local runs)
    DATABASE_URL: str = ""

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Batch import
    IMPORT_CHUNK_SIZE: int = 10  # Records per chunk (bounds concurrent DB connections)
    IMPORT_MAX_ATTEMPTS: int = 3  # Attempts per record on pool exhaustion
    IMPORT_RETRY_DELAY_SEC: float = 2.0
    IMPORT_CHUNK_DELAY_SEC: float = 1.0
    STORAGE_TIMEOUT_SEC: float = 30.0  # Deadline per storage operation

    # Search
    SEARCH_PAGE_SIZE: int = 20
    SEARCH_CACHE_TTL_SEC: int = 300
    COLLATION_LOCALE: str = ""  # LC_COLLATE for string sorting; "" = from environment

    # Import jobs
    JOB_TTL_SEC: int = 86400

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
