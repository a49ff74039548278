from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Clubhouse API"
    DATABASE_URL: str = "sqlite:///./clubhouse.db"
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 1 week

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # Image metadata (bytes live in external storage)
    IMAGE_BASE_URL: str = "https://images.example.com"

    # Author/admin checks on post mutations
    OWNERSHIP_CACHE_TTL_SECONDS: int = 60

    # Certificates: <PREFIX>-GEN<n>-<SUFFIX>
    CERTIFICATE_PREFIX: str = "TN"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
