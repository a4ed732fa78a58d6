from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "ProjectMates"
    app_version: str = "0.1.0"

    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_key: str = ""

    # "supabase" or "memory"; memory keeps everything in-process for local runs
    store_backend: str = "supabase"
    seed_demo_data: bool = False

    suggested_teammates_limit: int = 4

    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
