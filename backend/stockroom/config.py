from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./stockroom.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 3001
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    RESET_DB: bool = False
    SQLITE_WAL: bool = True
    DB_BUSY_TIMEOUT_SECONDS: float = 30.0
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
