from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "formioDb"
    FORMS_COLLECTION: str = "forms"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    DOCS_URL: str = "/api-docs"

    class Config:
        env_file = ".env"


settings = Settings()
