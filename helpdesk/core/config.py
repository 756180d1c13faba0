from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./data/app.db"
    SECRET_KEY: str = "change-this-secret"  # Change to a secure value in production
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 12 * 60

    # Directory (LDAP / Active Directory). All four must be set to enable lookups.
    AD_URL: str = ""
    AD_BIND_DN: str = ""
    AD_BIND_PW: str = ""
    AD_BASE_DN: str = ""
    AD_TIMEOUT_SECONDS: int = 5
    AD_SEARCH_LIMIT: int = 50

    # Headers a reverse proxy may use to forward the authenticated account name, in priority order
    SSO_HEADERS: List[str] = ["x-remote-user", "remote-user", "x-forwarded-user", "remote_user"]

    CORS_ORIGINS: List[str] = ["*"]

    BOOTSTRAP_ADMIN: bool = True
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

settings = Settings()
