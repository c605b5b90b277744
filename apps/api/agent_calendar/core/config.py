"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    
    # Environment
    ENV: str = "dev"
    
    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"
    
    # Database
    DATABASE_URL: str
    
    # Signs the OAuth state parameter for the consent round-trip
    JWT_SECRET: str = "change-this-in-production"
    
    # Google Calendar OAuth (per-tenant connection)
    GOOGLE_CALENDAR_CLIENT_ID: str = ""
    GOOGLE_CALENDAR_CLIENT_SECRET: str = ""
    GOOGLE_CALENDAR_REDIRECT_URI: str = "http://localhost:8000/integrations/google-calendar/callback"
    
    # Token Encryption (for storing OAuth tokens)
    FERNET_KEY: str = ""  # Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    
    # Shared secret sent by the voice platform in X-Tool-Secret
    TOOL_SECRET: str = ""
    
    # Frontend (for post-consent redirects)
    FRONTEND_URL: str = "http://localhost:3000"
    
    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"
    
    # Local wall clock for business hours and spoken times (one zone per deployment)
    BUSINESS_TIMEZONE: str = "UTC"
    
    # Calendar provider HTTP timeout
    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
