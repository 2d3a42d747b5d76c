from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # API Configuration
    app_name: str = "ScriptFlow API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    # Base URL the execution engine uses to call back with run progress
    public_base_url: str = "http://localhost:8000"
    cors_origins: List[str] = ["*"]

    # AI provider selection
    ai_provider: str = "openai"
    ai_timeout_seconds: float = 60.0
    ai_temperature: float = 0.3
    # How many recent runs are sent along when analyzing a script
    insight_recent_runs: int = 10

    # OpenAI Configuration (secrets come from environment)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://models.github.ai/inference"
    openai_model: str = "openai/gpt-4.1"

    # Gemini Configuration (optional)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-pro"

    # Execution engine. When executor_url is unset runs are dry-run in process.
    executor_url: Optional[str] = None
    executor_api_token: Optional[str] = None
    executor_timeout_seconds: float = 10.0
    local_executor_step_delay: float = 0.5

    # Database Configuration
    database_url: str = "sqlite:///./data/scriptflow.db"

    # Security (SECRET_KEY is required outside development)
    secret_key: Optional[str] = None
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
