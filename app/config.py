"""
Application configuration loaded from environment variables.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings:
    """Application settings from environment variables."""

    # Yahoo OAuth app credentials
    YAHOO_CLIENT_ID: str = os.getenv("YAHOO_CLIENT_ID", "")
    YAHOO_CLIENT_SECRET: str = os.getenv("YAHOO_CLIENT_SECRET", "")

    # Explicit callback URL. Must be https; when empty it is derived from the request host.
    YAHOO_REDIRECT_URI: str = os.getenv("YAHOO_REDIRECT_URI", "")
    # Callback used when the request comes from a loopback host
    YAHOO_LOCAL_REDIRECT_URI: str = os.getenv(
        "YAHOO_LOCAL_REDIRECT_URI", "https://localhost:8080/api/auth"
    )

    # Yahoo endpoints
    YAHOO_AUTH_URL: str = "https://api.login.yahoo.com/oauth2/request_auth"
    YAHOO_TOKEN_URL: str = "https://api.login.yahoo.com/oauth2/get_token"
    YAHOO_API_BASE: str = "https://fantasysports.yahooapis.com/"

    # Where the browser lands after sign-in (errors get ?auth_error=...)
    AUTH_LANDING_PATH: str = os.getenv("AUTH_LANDING_PATH", "/")

    # Outbound HTTP timeout
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    # Application
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))

    def validate(self) -> list[str]:
        """Validate required settings are present. Returns list of missing settings."""
        missing = []
        if not self.YAHOO_CLIENT_ID:
            missing.append("YAHOO_CLIENT_ID")
        if not self.YAHOO_CLIENT_SECRET:
            missing.append("YAHOO_CLIENT_SECRET")
        return missing


settings = Settings()
