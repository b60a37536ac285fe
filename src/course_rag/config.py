from typing import List

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: SecretStr = SecretStr("")
    openai_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"

    # Admin endpoints are disabled while this is empty
    admin_token: SecretStr = SecretStr("")

    syllabus_link: str = ""
    syllabus_path: str = "syllabus.md"

    # Retrieval policy
    strict_rag: bool = True
    rag_min_score: float = 0.25
    rag_top_k: int = 3
    cache_ttl_min: float = 60

    # Chunking
    chunk_max_chars: int = 1700
    chunk_overlap: int = 200

    database_url: str = "sqlite+aiosqlite:///./course_rag.db"

    cors_origins: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_min * 60

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
