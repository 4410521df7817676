from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="docker", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gst_data_explorer", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # MongoDB
    MONGODB_URI: str = Field(
        default="mongodb://localhost:27017/mongodb-explorer",
        validation_alias=AliasChoices("MONGODB_URI", "mongodb_uri"),
    )
    MONGODB_DB_NAME: str = Field(default="", validation_alias=AliasChoices("MONGODB_DB_NAME", "mongodb_db_name"))
    MONGODB_MAX_POOL_SIZE: int = Field(default=10, validation_alias=AliasChoices("MONGODB_MAX_POOL_SIZE", "mongodb_max_pool_size"))

    # GSTR-3B source documents
    GSTR3B_SCHEMA_VARIANT: str = Field(
        default="nested",
        validation_alias=AliasChoices("GSTR3B_SCHEMA_VARIANT", "gstr3b_schema_variant"),
    )
    SUPPLY_TRANSACTIONS_COLLECTION: str = Field(default="supply_transactions")
    ITC_PAYMENTS_COLLECTION: str = Field(default="itc_payments")
    COMPANIES_COLLECTION: str = Field(default="companies")
    TRANSACTIONS_COLLECTION: str = Field(default="transactions")

    # Explorer query bounds
    DEFAULT_QUERY_LIMIT: int = Field(default=5, validation_alias=AliasChoices("DEFAULT_QUERY_LIMIT", "default_query_limit"))
    MAX_QUERY_LIMIT: int = Field(default=1000, validation_alias=AliasChoices("MAX_QUERY_LIMIT", "max_query_limit"))

    # HTTP plumbing
    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=60,
        validation_alias=AliasChoices("RATE_LIMIT_WINDOW_SECONDS", "rate_limit_window_seconds"),
    )
    RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=100,
        validation_alias=AliasChoices("RATE_LIMIT_MAX_REQUESTS", "rate_limit_max_requests"),
    )
    CORS_ORIGINS: list[str] = Field(default=["*"], validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"))


settings = Settings()
