from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str

    # JWT for customer auth
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Session (cart and favorites)
    SESSION_SECRET_KEY: str

    # Shop Configuration
    SHOP_NAME: str = "My Shop"
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Order persistence
    ORDER_STORE_BACKEND: Literal["database", "file", "memory"] = "database"
    ORDERS_FILE_PATH: str = "data/orders.json"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
