"""
Configuration management for the PDF Chat Backend.
Handles environment variables and application settings.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from environment
    )

    # API Configuration
    app_name: str = Field(default="PDF Chat Backend")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    cors_origins: List[str] = Field(default=["http://localhost:3000"])

    # Google AI Configuration
    google_api_key: str = Field(default="")
    google_chat_model: str = Field(default="gemini-1.5-flash-latest")
    google_temperature: float = Field(default=0.7)
    google_top_k: int = Field(default=1)
    google_top_p: float = Field(default=1.0)
    google_max_output_tokens: int = Field(default=2048)

    # Document context
    max_pdf_text_length: int = Field(default=70000)
    max_file_size_mb: int = Field(default=10)

    # Clerk Authentication Configuration
    clerk_issuer: str = Field(default="")
    clerk_jwks_url: Optional[str] = Field(default=None)
    clerk_audience: Optional[str] = Field(default=None)
    session_cookie_name: str = Field(default="__session")

    # Database Configuration
    database_url: str = Field(default="sqlite:///./pdfchat.db")

    @property
    def jwks_url(self) -> str:
        """JWKS endpoint, derived from the issuer unless set explicitly."""
        if self.clerk_jwks_url:
            return self.clerk_jwks_url
        return f"{self.clerk_issuer.rstrip('/')}/.well-known/jwks.json"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings


def validate_required_settings() -> None:
    """Validate that all required settings are present."""
    required_settings = [
        ("google_api_key", settings.google_api_key),
        ("clerk_issuer", settings.clerk_issuer),
    ]

    missing_settings = []
    for setting_name, setting_value in required_settings:
        if not setting_value:
            missing_settings.append(setting_name)

    if missing_settings:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_settings).upper()}. "
            "Please check your .env file."
        )
