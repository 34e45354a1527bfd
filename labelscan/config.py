from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application-wide configuration - SINGLE SOURCE OF TRUTH

    All deployment settings are centralized here.
    Change these values in .env file for different environments.
    """

    # ==========================================
    # OCR CONFIGURATION - SINGLE PLACE TO CHANGE PROVIDER
    # ==========================================
    OCR_PROVIDER: Optional[str] = None  # Options: "gemini", "openai", "claude"

    # Provider API Keys (a provider is only used when its key is set)
    GEMINI_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None

    # Vision models
    GEMINI_MODEL: str = "gemini-2.0-flash"
    OPENAI_MODEL: str = "gpt-4o-mini"
    CLAUDE_MODEL: str = "claude-3-5-haiku-20241022"

    OCR_MAX_TOKENS: int = 1024
    OCR_TIMEOUT: Optional[float] = 60  # Seconds per provider call, 0 or empty disables

    # ==========================================
    # GOOGLE SHEETS (service account)
    # ==========================================
    GOOGLE_SERVICE_ACCOUNT_EMAIL: Optional[str] = None
    GOOGLE_PRIVATE_KEY: Optional[str] = None  # "\n" escapes are expanded
    GOOGLE_SHEETS_ID: Optional[str] = None
    GOOGLE_SHEETS_RANGE: str = "Sheet1!A:F"  # Timestamp | Well | Company | From | To | Box Code
    SHEET_TIMEZONE: str = "Asia/Kuala_Lumpur"

    # ==========================================
    # TELEGRAM BOT
    # ==========================================
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_ACCESS_CODE: Optional[str] = None  # Unset = bot open to everyone

    @field_validator("OCR_TIMEOUT", mode="before")
    @classmethod
    def _empty_timeout_disables(cls, value):
        # OCR_TIMEOUT= in .env means no timeout
        if isinstance(value, str) and not value.strip():
            return None
        return value

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
