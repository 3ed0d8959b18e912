from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Cryptofolio"
    DATABASE_URL: str = "sqlite+aiosqlite:///./cryptofolio.db"

    # Security
    SECRET_KEY: str = "dev_secret_key_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "app.log"

    ALLOWED_ORIGINS: List[str] = []

    # Market data providers
    MARKET_DATA_PRIMARY: str = "binance"
    MARKET_DATA_FALLBACK: str = "coingecko"
    BINANCE_BASE_URL: str = "https://api.binance.com"
    COINGECKO_BASE_URL: str = "https://api.coingecko.com"
    COINGECKO_API_KEY: Optional[str] = None
    HTTP_PROXY: Optional[str] = None
    HTTP_TIMEOUT: float = 10.0

    # Retry policy per provider (attempts, base wait in seconds)
    PRIMARY_RETRY_ATTEMPTS: int = 3
    FALLBACK_RETRY_ATTEMPTS: int = 2
    RETRY_WAIT_SECONDS: float = 1.0

    # Cache TTLs (seconds)
    PRICE_CACHE_TTL: int = 60
    HISTORICAL_CACHE_TTL: int = 300

    TREND_THRESHOLD: float = 0.5
    REFRESH_INTERVAL_SECONDS: int = 60

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
