#config.py
import os
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True)
    # Application Settings
    APP_NAME: str = "Urbanesta API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"))
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 3012))

    # Database Settings
    MONGODB_URI: str = os.environ.get("MONGODB_URI", os.environ.get("MONGODB_URL", ""))
    MONGODB_DB: str = "urbanesta"
    MONGODB_TIMEOUT_MS: int = 5000

    # Shared store for OTP sessions and rate limits (in-memory when unset)
    REDIS_URL: Optional[str] = None

    # 2Factor.in gateway
    TWO_FACTOR_API_KEY: str = ""
    TWO_FACTOR_BASE_URL: str = "https://2factor.in/API/V1"
    TWO_FACTOR_SMS_TEMPLATE: str = "UrbanestaOTP"
    TWO_FACTOR_SMS_TIMEOUT: float = 10
    TWO_FACTOR_VOICE_TIMEOUT: float = 15
    TWO_FACTOR_VERIFY_TIMEOUT: float = 10

    # OTP policy
    OTP_SESSION_TTL_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3
    PHONE_COUNTRY_CODE: str = "91"

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    REFRESH_SECRET_KEY: Optional[str] = Field(default=None, alias="JWT_REFRESH_SECRET")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    COOKIE_DOMAIN: Optional[str] = None
    API_KEY: str = ""

    # Identity and lead defaults
    DEFAULT_USER_NAME: str = "User"
    DEFAULT_CITY: str = "Gurgaon"
    LEAD_SOURCE: str = "otp_verification"

    # CORS Settings (accept comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"
    ALLOWED_METHODS: str = "GET,POST,PUT,DELETE,OPTIONS"
    ALLOWED_HEADERS: str = "Content-Type,Authorization,X-Requested-With,X-API-Key"
    CORS_ALLOW_CREDENTIALS: bool = True

    # Reverse proxies whose X-Forwarded-For is trusted (comma-separated peer IPs)
    TRUSTED_PROXIES: str = ""

    # Middleware settings
    MAX_REQUEST_SIZE: int = 50 * 1024 * 1024  # 50MB
    GZIP_MIN_SIZE: int = 500  # bytes

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting
    RATE_LIMIT_MAX: int = 1000
    RATE_LIMIT_WINDOW_SEC: int = 15 * 60
    AUTH_RATE_LIMIT_MAX: int = 10
    AUTH_RATE_LIMIT_WINDOW_SEC: int = 15 * 60

    # Accept comma-separated strings for list envs in addition to JSON arrays
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def refresh_secret(self) -> str:
        return self.REFRESH_SECRET_KEY or self.SECRET_KEY

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def allowed_methods_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_METHODS)

    @property
    def trusted_proxies_list(self) -> List[str]:
        return self._split_csv(self.TRUSTED_PROXIES)

    @property
    def allowed_headers_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_HEADERS)


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # CORS_ORIGINS is the name used by older deployments
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
