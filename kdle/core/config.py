from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://kdle:kdle@db:5432/kdle"
    APP_ENV: str = "development"
    APP_NAME: str = "K-Dle API"
    SECRET_KEY: str = "changeme-secret-key"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://kdle.app,https://admin.kdle.app"
    CORS_ORIGINS: str = "*"

    # Hosted auth provider: HS256 secret used to sign access tokens.
    AUTH_JWT_SECRET: str = "changeme-jwt-secret"
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # Comma-separated admin emails. Empty means any signed-in user.
    ADMIN_EMAILS: str = ""

    SPOTIFY_CLIENT_ID: str = ""
    SPOTIFY_CLIENT_SECRET: str = ""
    SPOTIFY_TIMEOUT: float = 10.0

    # The daily puzzle rolls over at midnight in this zone.
    DAILY_RESET_TZ: str = "America/Los_Angeles"
    STREAK_RESET_HOURS: int = 24

    COOKIE_SECURE: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def admin_emails_list(self) -> list[str]:
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]


settings = Settings()
