from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )

    app_name: str = "portfolio"
    environment: str = Field(default="local", validation_alias=AliasChoices("ENVIRONMENT", "PORTFOLIO_ENVIRONMENT"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "PORTFOLIO_LOG_LEVEL"))
    database_url: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/portfolio",
        validation_alias=AliasChoices("DATABASE_URL", "PORTFOLIO_DATABASE_URL"),
    )
    jwt_secret: str = Field(default="change-me", validation_alias=AliasChoices("JWT_SECRET", "PORTFOLIO_JWT_SECRET"))
    jwt_audience: str = Field(default="authenticated", validation_alias=AliasChoices("JWT_AUDIENCE", "PORTFOLIO_JWT_AUDIENCE"))
    jwt_algorithm: str = Field(default="HS256", validation_alias=AliasChoices("JWT_ALGORITHM", "PORTFOLIO_JWT_ALGORITHM"))
    session_cookie_name: str = Field(
        default="sb-access-token", validation_alias=AliasChoices("SESSION_COOKIE_NAME", "PORTFOLIO_SESSION_COOKIE_NAME")
    )
    admin_path_prefixes: list[str] = Field(
        default=["/dashboard", "/api/admin"],
        validation_alias=AliasChoices("ADMIN_PATH_PREFIXES", "PORTFOLIO_ADMIN_PATH_PREFIXES"),
    )
    auth_path_prefixes: list[str] = Field(
        default=["/auth"], validation_alias=AliasChoices("AUTH_PATH_PREFIXES", "PORTFOLIO_AUTH_PATH_PREFIXES")
    )
    login_path: str = Field(default="/auth/login", validation_alias=AliasChoices("LOGIN_PATH", "PORTFOLIO_LOGIN_PATH"))
    home_path: str = Field(default="/", validation_alias=AliasChoices("HOME_PATH", "PORTFOLIO_HOME_PATH"))
    admin_home_path: str = Field(default="/dashboard", validation_alias=AliasChoices("ADMIN_HOME_PATH", "PORTFOLIO_ADMIN_HOME_PATH"))
    login_redirect_param: str = Field(
        default="redirectTo", validation_alias=AliasChoices("LOGIN_REDIRECT_PARAM", "PORTFOLIO_LOGIN_REDIRECT_PARAM")
    )
    revalidate_url: str | None = Field(default=None, validation_alias=AliasChoices("REVALIDATE_URL", "PORTFOLIO_REVALIDATE_URL"))
    revalidate_secret: str | None = Field(
        default=None, validation_alias=AliasChoices("REVALIDATE_SECRET", "PORTFOLIO_REVALIDATE_SECRET")
    )
    revalidate_timeout_sec: float = Field(
        default=5.0, validation_alias=AliasChoices("REVALIDATE_TIMEOUT_SEC", "PORTFOLIO_REVALIDATE_TIMEOUT_SEC")
    )
    cors_origins: list[str] = Field(default=["*"], validation_alias=AliasChoices("CORS_ORIGINS", "PORTFOLIO_CORS_ORIGINS"))

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("postgresql+"):
            return self.database_url
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
