import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """Runtime settings for the health-services backend."""

    # Model provider (Azure OpenAI when an endpoint is set, OpenAI otherwise)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    AZURE_FOUNDRY_API_KEY: str = os.getenv("AZURE_FOUNDRY_API_KEY", "")
    AZURE_FOUNDRY_ENDPOINT: str = os.getenv("AZURE_FOUNDRY_ENDPOINT", "")
    AZURE_API_VERSION: str = os.getenv("AZURE_API_VERSION", "2024-12-01-preview")
    AZURE_CHAT_DEPLOYMENT: str = os.getenv("AZURE_CHAT_DEPLOYMENT", "gpt-4o")
    MODEL_TIMEOUT_SECONDS: float = float(os.getenv("MODEL_TIMEOUT_SECONDS", "60"))

    # MongoDB (in-memory stores are used when no URI is configured)
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DB: str = os.getenv("MONGODB_DB", "doctorsearch")

    # Per-feature usage limits
    DOCTOR_SEARCH_LIMIT: int = int(os.getenv("DOCTOR_SEARCH_LIMIT", "3"))
    DIET_PLAN_LIMIT: int = int(os.getenv("DIET_PLAN_LIMIT", "3"))
    PRESCRIPTION_SCAN_LIMIT: int = int(os.getenv("PRESCRIPTION_SCAN_LIMIT", "3"))

    # Transactional email (Brevo)
    BREVO_API_KEY: str = os.getenv("BREVO_API_KEY", "")
    SENDER_EMAIL: str = os.getenv("SENDER_EMAIL", "")
    SENDER_NAME: str = os.getenv("SENDER_NAME", "Team Sansthapana")

    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000"
    )
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        case_sensitive = True

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def use_azure(self) -> bool:
        return bool(self.AZURE_FOUNDRY_ENDPOINT)


settings = Settings()
