"""
Configuration module for the barbershop booking backend.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Edge function that delivers booking / cancellation emails
    booking_email_function: str = "send-booking-email"

    # Booking Settings
    timezone: str = "America/New_York"
    default_day_start: str = "09:00"
    default_day_end: str = "18:00"
    booking_window_days: int = 31  # Default range for the date picker

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Optional comma-separated list of admin emails; empty means any
    # authenticated Supabase user may use the admin endpoints
    admin_emails: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def is_admin(self, email: Optional[str]) -> bool:
        """
        Check if an authenticated user may use the admin endpoints.

        Args:
            email: Email of the authenticated Supabase user

        Returns:
            True if user is admin, False otherwise
        """
        if not email:
            return False
        if not self.admin_emails:
            return True
        admins = [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]
        return email.lower() in admins

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = [
            "supabase_url",
            "supabase_key",
        ]

        missing = []
        for field in required_fields:
            value = getattr(self, field, None)

            if not value:
                missing.append(field)
                continue

            # Check for placeholder values
            if str(value).lower().startswith("your_"):
                missing.append(field)

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
