from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional, List, Union


class Settings(BaseSettings):
    # Database
    database_url: str

    # Redis (quota locks)
    redis_url: str = "redis://localhost:6379/0"
    redis_password: Optional[str] = None
    redis_db: int = 0

    # Firebase (identity)
    firebase_project_id: Optional[str] = None
    firebase_credentials_path: Optional[str] = None

    # API
    api_prefix: str = "/api"
    frontend_url: str = "http://localhost:3000"

    # Environment
    environment: str = "development"
    debug: bool = True

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_premium_price_cents: int = 1999
    stripe_currency: str = "usd"

    # SendGrid
    sendgrid_api_key: Optional[str] = None
    sendgrid_sender_email: str = "noreply@revuverse.com"
    sendgrid_sender_name: str = "Revuverse"
    sendgrid_review_request_template_id: Optional[str] = None
    sendgrid_reminder_template_id: Optional[str] = None
    sendgrid_feedback_template_id: Optional[str] = None

    # Twilio
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_verify_service_sid: Optional[str] = None

    # Google Places
    google_api_key: Optional[str] = None

    # 'auto', 'live' or 'mock'
    notification_mode: str = "auto"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS origins from environment variable (comma-separated) or use default list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    @field_validator('notification_mode')
    @classmethod
    def validate_notification_mode(cls, v: str) -> str:
        mode = v.strip().lower()
        if mode not in ('auto', 'live', 'mock'):
            raise ValueError(f"Invalid notification mode: {v}")
        return mode

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from environment


settings = Settings()
