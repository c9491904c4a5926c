from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PORT: int = 5000
    ENVIRONMENT: str = "development"
    DATABASE_URL: str = ""
    FIREBASE_API_KEY: str = ""
    FIREBASE_CREDENTIALS: str = "credentials.json"
    FIRESTORE_DATABASE_ID: str = "(default)"

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_DAYS: int = 7

    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""

    ALLOWED_ORIGINS: str = "http://localhost:3000"
    RATE_LIMIT: str = "100/15minutes"

    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_UPLOAD_TYPES: str = "image/jpeg,image/png,image/gif"

    DEFAULT_EXCHANGE_RATE: float = 330.0

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_upload_types(self) -> list[str]:
        return [t.strip() for t in self.ALLOWED_UPLOAD_TYPES.split(",") if t.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

settings = Settings()
