"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "InterviewAce"
    app_version: str = "1.0.0"
    debug: bool = True

    # Security (JWT issued by the identity service)
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"

    # Storage
    storage_type: str = "local"
    local_storage_path: str = "./data"

    # Credits
    initial_user_credits: float = 0
    session_list_limit: int = 50

    # Answer generation
    llm_provider: str = "groq"  # "groq" or "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1000
    generation_timeout_seconds: float = 30.0
    history_window: int = 10  # transcript entries handed to the gateway
    prompt_history_window: int = 5  # transcript entries embedded in the prompt
    answer_language: str = "en"
    auto_answer_enabled: bool = True

    # Speech-to-text (Whisper)
    openai_api_key: Optional[str] = None

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/interviewace.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
