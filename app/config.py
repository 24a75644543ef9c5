import os
from dotenv import load_dotenv

load_dotenv()


class ConfigError(RuntimeError):
    pass


class Settings:
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB: str = os.getenv("MONGO_DB", "tendermarket")

    JWT_SECRET: str = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "http://localhost:3000")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 5000))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    LOGO_BUCKET: str = os.getenv("LOGO_BUCKET", "logos")
    MAX_LOGO_BYTES: int = int(os.getenv("MAX_LOGO_BYTES", 2 * 1024 * 1024))
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000")

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ConfigError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def validate(self):
        """Fail fast when the signing secret or store location is missing."""
        missing = [
            name for name in ("JWT_SECRET", "MONGO_URI", "MONGO_DB")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
